from __future__ import annotations

from typing import Optional

from ferrycast.reconcile.types import PREDICTION_FIELDS, PREDICTION_TYPES, PredictionRecord, VesselTrip
from ferrycast.utils.time import floor_to_second

# "AtSeaArriveNext" -> "at_sea_arrive_next"
_SLOT_BY_TYPE = {name: slot for slot, name in PREDICTION_TYPES.items()}


def extract_prediction_record(trip: VesselTrip, field: str) -> Optional[PredictionRecord]:
    """
    Build the durable record for one completed slot.

    `field` is a slot attribute or its PascalCase prediction type. None unless
    the slot exists with Actual set and the trip has its Key and both
    terminals. Never mutates the trip.
    """
    field = _SLOT_BY_TYPE.get(field, field)
    if field not in PREDICTION_TYPES:
        return None

    prediction = trip.slot(field)
    if prediction is None or prediction.actual is None:
        return None
    if not trip.key or not trip.departing_terminal_abbrev or not trip.arriving_terminal_abbrev:
        return None

    return PredictionRecord(
        key=trip.key,
        vessel_abbreviation=trip.vessel_abbrev,
        departing_terminal_abbrev=trip.departing_terminal_abbrev,
        arriving_terminal_abbrev=trip.arriving_terminal_abbrev,
        prediction_type=PREDICTION_TYPES[field],
        trip_start=floor_to_second(trip.trip_start),
        scheduled_departure=floor_to_second(trip.scheduled_departure),
        left_dock=floor_to_second(trip.left_dock),
        trip_end=floor_to_second(trip.trip_end),
        min_time=floor_to_second(prediction.min_time) or 0,
        pred_time=floor_to_second(prediction.pred_time) or 0,
        max_time=floor_to_second(prediction.max_time) or 0,
        mae=prediction.mae,
        std_dev=prediction.std_dev,
        actual=floor_to_second(prediction.actual) or 0,
        delta_total=prediction.delta_total or 0,
        delta_range=prediction.delta_range or 0,
    )


def extract_completed_records(trip: VesselTrip, fields=PREDICTION_FIELDS) -> list[PredictionRecord]:
    out: list[PredictionRecord] = []
    for field in fields:
        record = extract_prediction_record(trip, field)
        if record is not None:
            out.append(record)
    return out
