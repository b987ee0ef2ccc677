from __future__ import annotations

import uuid
from dataclasses import asdict
from typing import Iterable, Optional

from sqlalchemy import select
from sqlalchemy.orm import Session

from ferrycast.models.prediction_records import PredictionRecordRow
from ferrycast.reconcile.types import PredictionRecord


def _existing_id(db: Session, key: str, prediction_type: str) -> Optional[uuid.UUID]:
    stmt = (
        select(PredictionRecordRow.id)
        .where(PredictionRecordRow.key == key)
        .where(PredictionRecordRow.prediction_type == prediction_type)
        .limit(1)
    )
    return db.scalars(stmt).first()


def insert_record(db: Session, record: PredictionRecord) -> tuple[uuid.UUID, bool]:
    """
    Append one record unless (key, prediction_type) is already stored.
    Returns (id, inserted). Does not commit.
    """
    existing = _existing_id(db, record.key, record.prediction_type)
    if existing is not None:
        return existing, False

    row = PredictionRecordRow(id=uuid.uuid4(), **asdict(record))
    db.add(row)
    db.flush()
    return row.id, True


def insert_records(db: Session, records: Iterable[PredictionRecord]) -> dict:
    inserted = 0
    skipped = 0
    for record in records:
        _, created = insert_record(db, record)
        if created:
            inserted += 1
        else:
            skipped += 1
    return {"inserted": inserted, "skipped": skipped}


def list_records(
    db: Session,
    *,
    key: Optional[str] = None,
    vessel: Optional[str] = None,
    prediction_type: Optional[str] = None,
    limit: int = 500,
) -> list[PredictionRecordRow]:
    stmt = select(PredictionRecordRow)
    if key:
        stmt = stmt.where(PredictionRecordRow.key == key)
    if vessel:
        stmt = stmt.where(PredictionRecordRow.vessel_abbreviation == vessel)
    if prediction_type:
        stmt = stmt.where(PredictionRecordRow.prediction_type == prediction_type)
    stmt = stmt.order_by(PredictionRecordRow.pred_time.desc()).limit(limit)
    return list(db.scalars(stmt))
