import uuid
from datetime import datetime, timezone

from sqlalchemy.orm import Session

from ferrycast.models.job_runs import JobRun


def start_job(db: Session, job_name: str, meta: dict) -> uuid.UUID:
    run_id = uuid.uuid4()
    jr = JobRun(run_id=run_id, job_name=job_name, status="running", meta=meta)
    db.add(jr)
    db.commit()
    return run_id


def finish_job(db: Session, run_id: uuid.UUID, status: str, meta_updates: dict) -> None:
    jr = db.get(JobRun, run_id)
    jr.status = status
    jr.ended_at = datetime.now(timezone.utc)
    jr.meta = {**(jr.meta or {}), **meta_updates}
    db.commit()
