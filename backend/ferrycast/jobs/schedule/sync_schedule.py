from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import date, timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ferrycast.jobs.job_runs import finish_job, start_job
from ferrycast.jobs.sources.base import FeedSource, UpstreamSignalError
from ferrycast.reconcile.classification import classify_trips_by_type, link_trip_segments
from ferrycast.store import scheduled_trips as schedule_store
from ferrycast.utils.time import now_ms as utc_now_ms, sailing_day

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class SyncScheduleResult:
    sailing_days: list[str]
    trips_fetched: int
    trips_deleted: int
    trips_inserted: int
    indirect_trips: int


@dataclass(frozen=True)
class PurgeScheduleResult:
    cutoff_ms: int
    deleted: int
    batches: int


def sailing_days_from(now_ms: int, days: int) -> list[str]:
    first = date.fromisoformat(sailing_day(now_ms))
    return [(first + timedelta(days=i)).isoformat() for i in range(days)]


def sync_scheduled_trips(
    db: Session,
    source: FeedSource,
    *,
    days: int = 2,
    now_ms: Optional[int] = None,
) -> SyncScheduleResult:
    """
    Fetch `days` sailing days starting today, classify direct/indirect,
    link next/prev segments, then replace the stored window in one
    transaction. Days are classified together so links cross midnight.
    """
    now_ms = now_ms if now_ms is not None else utc_now_ms()
    sailing_days = sailing_days_from(now_ms, days)

    run_id = start_job(db, "sync_scheduled_trips", {"sailing_days": sailing_days})

    try:
        fetched = []
        for day in sailing_days:
            day_trips = source.fetch_schedule(day)
            logger.info("Fetched %d scheduled trips for %s", len(day_trips), day)
            fetched.extend(day_trips)

        if not fetched:
            raise UpstreamSignalError(f"No scheduled trips for {sailing_days}")

        trips = link_trip_segments(classify_trips_by_type(fetched))

        counts = schedule_store.replace_window(
            db,
            trips,
            start_ms=min(t.departing_time for t in trips),
            end_ms=max(t.departing_time for t in trips) + 1,
        )

        result = SyncScheduleResult(
            sailing_days=sailing_days,
            trips_fetched=len(fetched),
            trips_deleted=counts["deleted"],
            trips_inserted=counts["inserted"],
            indirect_trips=sum(1 for t in trips if t.trip_type == "indirect"),
        )
        finish_job(db, run_id, "success", {"result": asdict(result)})
        return result

    except Exception as e:
        db.rollback()
        finish_job(db, run_id, "fail", {"error": repr(e)})
        raise


def purge_old_scheduled_trips(
    db: Session,
    *,
    cutoff_ms: int,
    batch_size: int,
    max_batches: Optional[int] = None,
) -> PurgeScheduleResult:
    run_id = start_job(
        db,
        "purge_scheduled_trips",
        {"cutoff_ms": cutoff_ms, "batch_size": batch_size, "max_batches": max_batches},
    )

    try:
        swept = schedule_store.purge_scheduled_trips(
            db,
            cutoff_ms=cutoff_ms,
            batch_size=batch_size,
            max_batches=max_batches,
        )
        result = PurgeScheduleResult(cutoff_ms=cutoff_ms, deleted=swept["deleted"], batches=swept["batches"])
        finish_job(db, run_id, "success", {"result": asdict(result)})
        return result

    except Exception as e:
        db.rollback()
        finish_job(db, run_id, "fail", {"error": repr(e)})
        raise
