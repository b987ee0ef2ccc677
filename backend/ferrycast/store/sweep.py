from __future__ import annotations

import logging
from typing import Optional

from sqlalchemy import delete, select
from sqlalchemy.orm import Session

logger = logging.getLogger(__name__)


def delete_older_than(
    db: Session,
    model,
    column,
    *,
    cutoff_ms: int,
    batch_size: int,
    max_batches: Optional[int] = None,
) -> dict:
    """
    Delete rows with column < cutoff_ms in batches, committing each batch.

    Stops when a batch comes back short or after max_batches (None/0 means no
    limit). Whatever is left is picked up by the next run.
    """
    if batch_size <= 0:
        raise ValueError("batch_size must be positive")

    deleted = 0
    batches = 0
    while True:
        ids = list(db.scalars(select(model.id).where(column < cutoff_ms).limit(batch_size)))
        if not ids:
            break

        db.execute(delete(model).where(model.id.in_(ids)))
        db.commit()

        deleted += len(ids)
        batches += 1
        logger.debug("Swept %d %s rows (batch %d)", len(ids), model.__tablename__, batches)

        if len(ids) < batch_size:
            break
        if max_batches and batches >= max_batches:
            break

    return {"deleted": deleted, "batches": batches, "cutoff_ms": cutoff_ms}
