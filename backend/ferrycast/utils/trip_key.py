from typing import Optional

from ferrycast.utils.time import ms_to_pacific


def make_trip_key(
    vessel_abbrev: str,
    departing_terminal_abbrev: str,
    arriving_terminal_abbrev: Optional[str],
    departing_time: Optional[int],
) -> Optional[str]:
    """
    "[vessel]--[YYYY-MM-DD]--[HH:MM]--[departing]-[arriving]" in Pacific
    calendar date/time (not sailing day). None without vessel, departing
    terminal or departure time.
    """
    if not vessel_abbrev or not departing_terminal_abbrev or not departing_time:
        return None

    local = ms_to_pacific(departing_time)
    date_str = local.strftime("%Y-%m-%d")
    time_str = local.strftime("%H:%M")
    return f"{vessel_abbrev}--{date_str}--{time_str}--{departing_terminal_abbrev}-{arriving_terminal_abbrev or ''}"
