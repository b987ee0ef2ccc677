import re
from datetime import date, datetime, timedelta, timezone
from typing import Optional

from zoneinfo import ZoneInfo

PACIFIC = ZoneInfo("America/Los_Angeles")

# WSF operational day runs 03:00 -> 02:59 Pacific
SAILING_DAY_START_HOUR = 3

_WSF_DATE = re.compile(r"^/Date\((-?\d+)([+-]\d{4})?\)/$")


def now_ms() -> int:
    return int(datetime.now(timezone.utc).timestamp() * 1000)


def ms_to_pacific(ms: int) -> datetime:
    return datetime.fromtimestamp(ms / 1000, tz=timezone.utc).astimezone(PACIFIC)


def floor_to_second(ms: Optional[int]) -> Optional[int]:
    if ms is None:
        return None
    return (int(ms) // 1000) * 1000


def minutes_between(start_ms: Optional[int], end_ms: Optional[int]) -> Optional[float]:
    """
    (end - start) in minutes, rounded to 0.1. None when either side is missing.
    Negative when end precedes start.
    """
    if not start_ms or not end_ms:
        return None
    return round((end_ms - start_ms) / 60000, 1)


def sailing_day(ms: int) -> str:
    """
    Sailing day (YYYY-MM-DD) for an epoch-ms instant.
    Anything before 03:00 Pacific belongs to the previous day's sailings.
    """
    local = ms_to_pacific(ms)
    d: date = local.date()
    if local.hour < SAILING_DAY_START_HOUR:
        d = d - timedelta(days=1)
    return d.isoformat()


def parse_wsf_date(value) -> Optional[int]:
    """
    Decode "/Date(1700000000000-0800)/" into epoch ms. The offset is
    informational only; the number is already UTC ms.

    Returns None for blank. Raises ValueError for anything else unparseable.
    """
    if value is None:
        return None
    if isinstance(value, (int, float)):
        return int(value)

    s = str(value).strip()
    if not s:
        return None

    m = _WSF_DATE.match(s)
    if m:
        return int(m.group(1))

    # ISO-8601 fallback ("2026-01-05T08:30:00-08:00")
    try:
        dt = datetime.fromisoformat(s.replace("Z", "+00:00"))
    except ValueError:
        raise ValueError(f"Bad WSF date value: {s}")
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=PACIFIC)
    return int(dt.timestamp() * 1000)
