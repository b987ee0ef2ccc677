"""
Schedule grouping helpers.

A vessel's published schedule can list several trips for one sailing when
the boat calls at more than one terminal (the San Juan islands are the usual
case: ANA->LOP, ANA->SHI and ANA->FRH all leave Anacortes at 08:30). Before
any per-sailing estimation happens these are collapsed into one physical
departure.
"""

from __future__ import annotations

from typing import Iterable

from ferrycast.reconcile.types import PhysicalDeparture, ScheduledTrip


def group_trips_by_vessel(trips: Iterable[ScheduledTrip]) -> dict[str, list[ScheduledTrip]]:
    """
    Partition trips by vessel abbreviation.

    Input order is kept inside each list; callers sort by departing_time when
    they need chronology.
    """
    by_vessel: dict[str, list[ScheduledTrip]] = {}
    for trip in trips:
        by_vessel.setdefault(trip.vessel_abbrev, []).append(trip)
    return by_vessel


def group_trips_by_physical_departure(trips: list[ScheduledTrip]) -> list[PhysicalDeparture]:
    """
    Single left-to-right merge over one vessel's chronologically ordered trips.

    A trip joins the open group only when both its departing terminal and
    departing time match the group's. Unsorted input fragments groups.
    """
    groups: list[PhysicalDeparture] = []
    current: PhysicalDeparture | None = None

    for trip in trips:
        if (
            current is not None
            and current.departing_terminal_abbrev == trip.departing_terminal_abbrev
            and current.departing_time == trip.departing_time
        ):
            current.trips.append(trip)
            continue

        current = PhysicalDeparture(
            vessel_abbrev=trip.vessel_abbrev,
            departing_terminal_abbrev=trip.departing_terminal_abbrev,
            departing_time=trip.departing_time,
            trips=[trip],
        )
        groups.append(current)

    return groups


def physical_departures_by_vessel(trips: Iterable[ScheduledTrip]) -> dict[str, list[PhysicalDeparture]]:
    """Vessel grouping, chronological sort, then physical-departure grouping."""
    out: dict[str, list[PhysicalDeparture]] = {}
    for vessel, vessel_trips in group_trips_by_vessel(trips).items():
        ordered = sorted(vessel_trips, key=lambda t: t.departing_time)
        out[vessel] = group_trips_by_physical_departure(ordered)
    return out
