from __future__ import annotations

from dataclasses import replace
from typing import Optional

from ferrycast.reconcile.types import EpochMs, Prediction, VesselTrip
from ferrycast.utils.time import floor_to_second, minutes_between


def apply_actual(prediction: Optional[Prediction], actual_ms: Optional[EpochMs]) -> Optional[Prediction]:
    """
    Close out a prediction slot.

    Actual is floored to the second. DeltaTotal = Actual - PredTime and
    DeltaRange = MaxTime - MinTime, both in minutes to 0.1. A slot that
    already has Actual is returned untouched.
    """
    if prediction is None or actual_ms is None or prediction.is_complete:
        return prediction

    actual = floor_to_second(actual_ms)
    return replace(
        prediction,
        actual=actual,
        delta_total=_signed_minutes(prediction.pred_time, actual),
        delta_range=_signed_minutes(prediction.min_time, prediction.max_time),
    )


def _signed_minutes(start: Optional[int], end: Optional[int]) -> Optional[float]:
    if start is None or end is None:
        return None
    return round((end - start) / 60000, 1)


def actualize_slots(trip: VesselTrip, actual_ms: Optional[EpochMs], *fields: str) -> VesselTrip:
    changes = {name: apply_actual(trip.slot(name), actual_ms) for name in fields}
    return replace(trip, **changes)


def complete_trip(trip: VesselTrip, trip_end: EpochMs) -> VesselTrip:
    """Stamp TripEnd, durations and the arrival slots."""
    done = replace(
        trip,
        trip_end=trip_end,
        at_sea_duration=minutes_between(trip.left_dock, trip_end),
        total_duration=minutes_between(trip.trip_start, trip_end),
    )
    return actualize_slots(done, trip_end, "at_dock_arrive_next", "at_sea_arrive_next")
