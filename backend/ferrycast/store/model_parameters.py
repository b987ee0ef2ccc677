"""
model_parameters_v2 repository.

At most one row per (bucket_type, chain_key|pair_key, model_type). Writes go
through upsert(), which deletes the existing row(s) and inserts the new one
inside a single transaction.
"""

from __future__ import annotations

import uuid
from dataclasses import dataclass
from typing import Optional

from sqlalchemy import delete as sa_delete
from sqlalchemy import func, select
from sqlalchemy.orm import Session

from ferrycast.models.model_parameters import ModelParametersV2
from ferrycast.reconcile.model_types import BUCKET_TYPES, is_valid_model_type


@dataclass(frozen=True)
class ModelParametersIn:
    bucket_type: str
    model_type: str
    parameters: dict
    chain_key: Optional[str] = None
    pair_key: Optional[str] = None
    bucket_stats: Optional[dict] = None


def _bucket_column(bucket_type: str):
    if bucket_type == "chain":
        return ModelParametersV2.chain_key
    if bucket_type == "pair":
        return ModelParametersV2.pair_key
    raise ValueError(f"Unknown bucket type: {bucket_type!r}")


def bucket_key(model: ModelParametersIn) -> str:
    return model.chain_key if model.bucket_type == "chain" else model.pair_key


def validate(model: ModelParametersIn) -> None:
    if model.bucket_type not in BUCKET_TYPES:
        raise ValueError(f"Unknown bucket type: {model.bucket_type!r}")
    if not is_valid_model_type(model.model_type):
        raise ValueError(f"Unknown model type: {model.model_type!r}")
    if not bucket_key(model):
        raise ValueError(f"{model.bucket_type} bucket requires {model.bucket_type}_key")
    if not isinstance(model.parameters, dict):
        raise ValueError("parameters must be an object")


def upsert(db: Session, model: ModelParametersIn, *, commit: bool = True) -> uuid.UUID:
    validate(model)

    try:
        db.execute(
            sa_delete(ModelParametersV2)
            .where(ModelParametersV2.bucket_type == model.bucket_type)
            .where(_bucket_column(model.bucket_type) == bucket_key(model))
            .where(ModelParametersV2.model_type == model.model_type)
        )

        row = ModelParametersV2(
            id=uuid.uuid4(),
            bucket_type=model.bucket_type,
            chain_key=model.chain_key if model.bucket_type == "chain" else None,
            pair_key=model.pair_key if model.bucket_type == "pair" else None,
            model_type=model.model_type,
            parameters=model.parameters,
            bucket_stats=model.bucket_stats,
        )
        db.add(row)
        db.flush()

        if commit:
            db.commit()
        return row.id

    except Exception:
        db.rollback()
        raise


def _get_one(db: Session, bucket_type: str, key: str, model_type: str) -> Optional[ModelParametersV2]:
    stmt = (
        select(ModelParametersV2)
        .where(_bucket_column(bucket_type) == key)
        .where(ModelParametersV2.model_type == model_type)
        .where(ModelParametersV2.bucket_type == bucket_type)
        .order_by(ModelParametersV2.created_at.desc())
        .limit(1)
    )
    return db.scalars(stmt).first()


def get_by_chain(db: Session, chain_key: str, model_type: str) -> Optional[ModelParametersV2]:
    return _get_one(db, "chain", chain_key, model_type)


def get_by_pair(db: Session, pair_key: str, model_type: str) -> Optional[ModelParametersV2]:
    return _get_one(db, "pair", pair_key, model_type)


def get_all(db: Session) -> list[ModelParametersV2]:
    stmt = select(ModelParametersV2).order_by(
        ModelParametersV2.bucket_type,
        ModelParametersV2.chain_key,
        ModelParametersV2.pair_key,
        ModelParametersV2.model_type,
    )
    return list(db.scalars(stmt))


def count(db: Session) -> int:
    return db.scalar(select(func.count()).select_from(ModelParametersV2)) or 0


def delete(db: Session, model_id: uuid.UUID, *, commit: bool = True) -> bool:
    """Idempotent. Returns whether a row was removed."""
    res = db.execute(
        sa_delete(ModelParametersV2)
        .where(ModelParametersV2.id == model_id)
        .execution_options(synchronize_session=False)
    )
    if commit:
        db.commit()
    return (res.rowcount or 0) > 0


def delete_all(db: Session, *, commit: bool = True) -> int:
    res = db.execute(sa_delete(ModelParametersV2).execution_options(synchronize_session=False))
    if commit:
        db.commit()
    return res.rowcount or 0


def delete_bucket(db: Session, bucket_type: str, key: str, *, commit: bool = True) -> int:
    column = _bucket_column(bucket_type)
    if not key:
        raise ValueError(f"{bucket_type} bucket requires a key")

    res = db.execute(
        sa_delete(ModelParametersV2)
        .where(ModelParametersV2.bucket_type == bucket_type)
        .where(column == key)
        .execution_options(synchronize_session=False)
    )
    if commit:
        db.commit()
    return res.rowcount or 0


class SqlModelSource:
    """ModelSource over a session, for the reconciliation pipeline."""

    def __init__(self, db: Session):
        self.db = db

    def get_by_chain(self, chain_key: str, model_type: str) -> Optional[ModelParametersV2]:
        return get_by_chain(self.db, chain_key, model_type)

    def get_by_pair(self, pair_key: str, model_type: str) -> Optional[ModelParametersV2]:
        return get_by_pair(self.db, pair_key, model_type)
