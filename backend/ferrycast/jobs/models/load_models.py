from __future__ import annotations

import json
import logging
from dataclasses import asdict, dataclass
from pathlib import Path

from sqlalchemy.orm import Session

from ferrycast.jobs.job_runs import finish_job, start_job
from ferrycast.store import model_parameters as model_store

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class LoadModelsResult:
    path: str
    deleted: int
    upserted: int


def parse_model(item: dict) -> model_store.ModelParametersIn:
    return model_store.ModelParametersIn(
        bucket_type=item.get("bucketType"),
        chain_key=item.get("chainKey"),
        pair_key=item.get("pairKey"),
        model_type=item.get("modelType"),
        parameters=item.get("parameters"),
        bucket_stats=item.get("bucketStats"),
    )


def load_models(db: Session, path: Path, *, replace_all: bool = False) -> LoadModelsResult:
    """
    Upsert trainer output (a JSON array of model parameter objects).
    Every item is validated before anything is written, and the whole load
    commits as one transaction.
    """
    run_id = start_job(db, "load_model_parameters", {"path": str(path), "replace_all": replace_all})

    try:
        items = json.loads(path.read_text(encoding="utf-8"))
        if not isinstance(items, list):
            raise ValueError(f"{path} must contain a JSON array")

        models = [parse_model(item) for item in items]
        for m in models:
            model_store.validate(m)

        deleted = model_store.delete_all(db, commit=False) if replace_all else 0
        for i, m in enumerate(models, start=1):
            model_store.upsert(db, m, commit=False)
            if i % 100 == 0:
                logger.info("Upserted %d/%d models", i, len(models))

        db.commit()

        result = LoadModelsResult(path=str(path), deleted=deleted, upserted=len(models))
        finish_job(db, run_id, "success", {"result": asdict(result)})
        return result

    except Exception as e:
        db.rollback()
        finish_job(db, run_id, "fail", {"error": repr(e)})
        raise
