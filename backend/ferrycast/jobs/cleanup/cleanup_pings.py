from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Optional

from sqlalchemy.orm import Session

from ferrycast.jobs.job_runs import finish_job, start_job
from ferrycast.store.pings import cleanup_old_pings


@dataclass(frozen=True)
class CleanupPingsResult:
    cutoff_ms: int
    deleted: int
    batches: int


def cleanup_pings(
    db: Session,
    *,
    cutoff_ms: int,
    batch_size: int,
    max_batches: Optional[int] = None,
) -> CleanupPingsResult:
    """
    Delete vessel_pings older than cutoff_ms, batch_size rows per commit.
    An interrupted run leaves the rest for the next one.
    """
    run_id = start_job(
        db,
        "cleanup_vessel_pings",
        {"cutoff_ms": cutoff_ms, "batch_size": batch_size, "max_batches": max_batches},
    )

    try:
        swept = cleanup_old_pings(db, cutoff_ms=cutoff_ms, batch_size=batch_size, max_batches=max_batches)
        result = CleanupPingsResult(cutoff_ms=cutoff_ms, deleted=swept["deleted"], batches=swept["batches"])
        finish_job(db, run_id, "success", {"result": asdict(result)})
        return result

    except Exception as e:
        db.rollback()
        finish_job(db, run_id, "fail", {"error": repr(e)})
        raise
