from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy import delete, or_, select
from sqlalchemy.orm import Session

from ferrycast.models.scheduled_trips import ScheduledTripRow
from ferrycast.reconcile.types import ScheduledTrip
from ferrycast.store.sweep import delete_older_than

_FIELDS = (
    "key",
    "vessel_abbrev",
    "departing_terminal_abbrev",
    "arriving_terminal_abbrev",
    "departing_time",
    "arriving_time",
    "sailing_day",
    "route_id",
    "route_abbrev",
    "trip_type",
    "direct_key",
    "prev_key",
    "next_key",
    "next_departing_time",
)


def row_to_scheduled(row: ScheduledTripRow) -> ScheduledTrip:
    return ScheduledTrip(**{name: getattr(row, name) for name in _FIELDS})


def replace_window(
    db: Session,
    trips: Iterable[ScheduledTrip],
    *,
    start_ms: int,
    end_ms: int,
    commit: bool = True,
) -> dict:
    """Replace every stored trip departing in [start_ms, end_ms) with `trips`."""
    trips = list(trips)
    keys = [t.key for t in trips]

    try:
        window = (ScheduledTripRow.departing_time >= start_ms) & (ScheduledTripRow.departing_time < end_ms)
        cond = or_(window, ScheduledTripRow.key.in_(keys)) if keys else window
        res = db.execute(delete(ScheduledTripRow).where(cond).execution_options(synchronize_session=False))

        for t in trips:
            db.add(ScheduledTripRow(**{name: getattr(t, name) for name in _FIELDS}))
        db.flush()

        if commit:
            db.commit()
    except Exception:
        db.rollback()
        raise

    return {"deleted": res.rowcount or 0, "inserted": len(trips)}


def list_trips(
    db: Session,
    *,
    start_ms: Optional[int] = None,
    end_ms: Optional[int] = None,
    vessel_abbrev: Optional[str] = None,
) -> list[ScheduledTrip]:
    stmt = select(ScheduledTripRow)
    if start_ms is not None:
        stmt = stmt.where(ScheduledTripRow.departing_time >= start_ms)
    if end_ms is not None:
        stmt = stmt.where(ScheduledTripRow.departing_time < end_ms)
    if vessel_abbrev:
        stmt = stmt.where(ScheduledTripRow.vessel_abbrev == vessel_abbrev)
    stmt = stmt.order_by(ScheduledTripRow.vessel_abbrev, ScheduledTripRow.departing_time)
    return [row_to_scheduled(r) for r in db.scalars(stmt)]


def purge_scheduled_trips(db: Session, *, cutoff_ms: int, batch_size: int, max_batches: Optional[int] = None) -> dict:
    return delete_older_than(
        db,
        ScheduledTripRow,
        ScheduledTripRow.departing_time,
        cutoff_ms=cutoff_ms,
        batch_size=batch_size,
        max_batches=max_batches,
    )
