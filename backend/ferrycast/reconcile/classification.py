from __future__ import annotations

import logging
from dataclasses import replace
from typing import Iterable, Optional

from ferrycast.reconcile.grouping import group_trips_by_physical_departure, group_trips_by_vessel
from ferrycast.reconcile.types import PhysicalDeparture, ScheduledTrip

logger = logging.getLogger(__name__)


def classify_trips_by_type(trips: Iterable[ScheduledTrip]) -> list[ScheduledTrip]:
    """
    Mark each trip direct or indirect.

    Direct = the vessel's immediate next stop. For a multi-destination
    departure the next group's departing terminal tells us where the boat
    actually goes first.
    """
    out: list[ScheduledTrip] = []
    for vessel_trips in group_trips_by_vessel(trips).values():
        ordered = sorted(vessel_trips, key=lambda t: t.departing_time)
        groups = group_trips_by_physical_departure(ordered)

        for idx, group in enumerate(groups):
            next_terminal = groups[idx + 1].departing_terminal_abbrev if idx + 1 < len(groups) else None
            out.extend(_resolve_group(group, next_terminal))
    return out


def _resolve_group(group: PhysicalDeparture, next_terminal: Optional[str]) -> list[ScheduledTrip]:
    if next_terminal is None:
        return [replace(t, trip_type="direct") for t in group.trips]

    direct = next((t for t in group.trips if t.arriving_terminal_abbrev == next_terminal), None)
    if direct is None:
        logger.warning(
            "No trip matches next terminal %s for %s departing %s at %d",
            next_terminal,
            group.vessel_abbrev,
            group.departing_terminal_abbrev,
            group.departing_time,
        )
        return [replace(t, trip_type="direct") for t in group.trips]

    return [
        replace(
            t,
            trip_type="direct" if t.arriving_terminal_abbrev == next_terminal else "indirect",
            direct_key=direct.key,
        )
        for t in group.trips
    ]


def link_trip_segments(trips: Iterable[ScheduledTrip]) -> list[ScheduledTrip]:
    """
    Set prev_key / next_key / next_departing_time on classified trips.

    next_* points at the first direct trip after the physical departure;
    prev_key is the last direct trip that arrived at this departing terminal.
    """
    out: list[ScheduledTrip] = []
    for vessel_trips in group_trips_by_vessel(trips).values():
        ordered = sorted(vessel_trips, key=lambda t: t.departing_time)
        groups = group_trips_by_physical_departure(ordered)

        last_direct_into: dict[str, str] = {}
        for idx, group in enumerate(groups):
            next_direct = next(
                (t for g in groups[idx + 1:] for t in g.trips if t.trip_type != "indirect"),
                None,
            )
            prev_key = last_direct_into.get(group.departing_terminal_abbrev)

            for t in group.trips:
                out.append(
                    replace(
                        t,
                        prev_key=prev_key,
                        next_key=next_direct.key if next_direct else None,
                        next_departing_time=next_direct.departing_time if next_direct else None,
                    )
                )

            for t in group.trips:
                if t.trip_type != "indirect":
                    last_direct_into[t.arriving_terminal_abbrev] = t.key
    return out


def find_scheduled_trip(
    groups: list[PhysicalDeparture],
    *,
    departing_terminal_abbrev: str,
    scheduled_departure: int,
    arriving_terminal_abbrev: Optional[str] = None,
) -> Optional[ScheduledTrip]:
    """
    Locate the advertised trip behind a live sailing.

    Prefers the trip to the arriving terminal the vessel reports; otherwise
    the physical departure's direct trip.
    """
    group = next(
        (
            g
            for g in groups
            if g.departing_terminal_abbrev == departing_terminal_abbrev and g.departing_time == scheduled_departure
        ),
        None,
    )
    if group is None:
        return None

    if arriving_terminal_abbrev:
        match = next((t for t in group.trips if t.arriving_terminal_abbrev == arriving_terminal_abbrev), None)
        if match is not None:
            return match

    return next((t for t in group.trips if t.trip_type != "indirect"), group.trips[0])
