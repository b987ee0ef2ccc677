from __future__ import annotations

from typing import Iterable, Optional

from sqlalchemy.orm import Session

from ferrycast.models.vessel_pings import VesselPing
from ferrycast.reconcile.types import VesselLocation
from ferrycast.store.sweep import delete_older_than


def store_pings(db: Session, locations: Iterable[VesselLocation]) -> int:
    n = 0
    for loc in locations:
        db.add(
            VesselPing(
                vessel_id=loc.vessel_id,
                vessel_abbrev=loc.vessel_abbrev,
                latitude=loc.latitude,
                longitude=loc.longitude,
                speed=loc.speed,
                heading=loc.heading,
                at_dock=loc.at_dock,
                timestamp=loc.timestamp,
            )
        )
        n += 1
    db.flush()
    return n


def cleanup_old_pings(db: Session, *, cutoff_ms: int, batch_size: int, max_batches: Optional[int] = None) -> dict:
    return delete_older_than(
        db,
        VesselPing,
        VesselPing.timestamp,
        cutoff_ms=cutoff_ms,
        batch_size=batch_size,
        max_batches=max_batches,
    )
