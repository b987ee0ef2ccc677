"""
vessel_trips repository and row <-> VesselTrip conversion.

Prediction slots are stored as JSON documents with the same field names the
prediction records use (MinTime, PredTime, ...).
"""

from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ferrycast.models.vessel_trips import VesselTripRow
from ferrycast.reconcile.actuals import actualize_slots
from ferrycast.reconcile.extract import extract_completed_records
from ferrycast.reconcile.types import DEPART_NEXT_SLOTS, PREDICTION_FIELDS, Prediction, PredictionRecord, VesselTrip

logger = logging.getLogger(__name__)

ACTIVE = "active"
COMPLETED = "completed"

_PREDICTION_DOC = (
    ("min_time", "MinTime"),
    ("pred_time", "PredTime"),
    ("max_time", "MaxTime"),
    ("mae", "MAE"),
    ("std_dev", "StdDev"),
    ("actual", "Actual"),
    ("delta_total", "DeltaTotal"),
    ("delta_range", "DeltaRange"),
)

_SCALAR_FIELDS = (
    "key",
    "vessel_abbrev",
    "departing_terminal_abbrev",
    "arriving_terminal_abbrev",
    "prev_terminal_abbrev",
    "at_dock",
    "in_service",
    "timestamp",
    "trip_start",
    "scheduled_departure",
    "left_dock",
    "trip_end",
    "eta",
    "prev_scheduled_departure",
    "prev_left_dock",
    "next_scheduled_departure",
    "regime",
    "at_dock_duration",
    "at_sea_duration",
    "total_duration",
)


def prediction_to_doc(p: Optional[Prediction]) -> Optional[dict]:
    if p is None:
        return None
    return {doc: getattr(p, attr) for attr, doc in _PREDICTION_DOC}


def prediction_from_doc(doc: Optional[dict]) -> Optional[Prediction]:
    if not doc:
        return None
    return Prediction(**{attr: doc[name] for attr, name in _PREDICTION_DOC if doc.get(name) is not None})


def trip_values(trip: VesselTrip) -> dict:
    values = {name: getattr(trip, name) for name in _SCALAR_FIELDS}
    for slot in PREDICTION_FIELDS:
        values[slot] = prediction_to_doc(trip.slot(slot))
    return values


def row_to_trip(row: VesselTripRow) -> VesselTrip:
    values = {name: getattr(row, name) for name in _SCALAR_FIELDS}
    for slot in PREDICTION_FIELDS:
        values[slot] = prediction_from_doc(getattr(row, slot))
    return VesselTrip(**values)


def _apply(row: VesselTripRow, trip: VesselTrip) -> None:
    for name, value in trip_values(trip).items():
        setattr(row, name, value)


def get_active_row(db: Session, vessel_abbrev: str) -> Optional[VesselTripRow]:
    stmt = (
        select(VesselTripRow)
        .where(VesselTripRow.vessel_abbrev == vessel_abbrev)
        .where(VesselTripRow.status == ACTIVE)
        .limit(1)
    )
    return db.scalars(stmt).first()


def get_active_trips(db: Session) -> dict[str, VesselTrip]:
    rows = db.scalars(select(VesselTripRow).where(VesselTripRow.status == ACTIVE))
    return {row.vessel_abbrev: row_to_trip(row) for row in rows}


def list_active(db: Session) -> list[VesselTripRow]:
    stmt = select(VesselTripRow).where(VesselTripRow.status == ACTIVE).order_by(VesselTripRow.vessel_abbrev)
    return list(db.scalars(stmt))


def list_completed(db: Session, vessel_abbrev: str, *, limit: int = 50) -> list[VesselTripRow]:
    stmt = (
        select(VesselTripRow)
        .where(VesselTripRow.vessel_abbrev == vessel_abbrev)
        .where(VesselTripRow.status == COMPLETED)
        .order_by(VesselTripRow.trip_end.desc())
        .limit(limit)
    )
    return list(db.scalars(stmt))


def upsert_active(db: Session, trip: VesselTrip) -> VesselTripRow:
    row = get_active_row(db, trip.vessel_abbrev)
    if row is None:
        row = VesselTripRow(status=ACTIVE)
        db.add(row)
    _apply(row, trip)
    db.flush()
    return row


def complete_active(db: Session, trip: VesselTrip) -> VesselTripRow:
    """Move the vessel's active row to completed with the final trip state."""
    row = get_active_row(db, trip.vessel_abbrev)
    if row is None:
        row = VesselTripRow()
        db.add(row)
    _apply(row, trip)
    row.status = COMPLETED
    db.flush()
    return row


def most_recent_completed_row(db: Session, vessel_abbrev: str) -> Optional[VesselTripRow]:
    rows = list_completed(db, vessel_abbrev, limit=1)
    return rows[0] if rows else None


def backfill_depart_next(
    db: Session,
    *,
    vessel_abbrev: str,
    departing_terminal_abbrev: str,
    left_dock: int,
) -> list[PredictionRecord]:
    """
    The vessel just left `departing_terminal_abbrev`: that is the actual
    depart-next time of the trip that brought it there.
    """
    row = most_recent_completed_row(db, vessel_abbrev)
    if row is None:
        return []

    if row.arriving_terminal_abbrev and row.arriving_terminal_abbrev != departing_terminal_abbrev:
        logger.debug(
            "Skip depart-next backfill for %s: last trip arrived %s, now leaving %s",
            vessel_abbrev,
            row.arriving_terminal_abbrev,
            departing_terminal_abbrev,
        )
        return []

    trip = actualize_slots(row_to_trip(row), left_dock, *DEPART_NEXT_SLOTS)
    for slot in DEPART_NEXT_SLOTS:
        setattr(row, slot, prediction_to_doc(trip.slot(slot)))
    db.flush()
    return extract_completed_records(trip, DEPART_NEXT_SLOTS)
