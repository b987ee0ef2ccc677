"""
Vessel-trip reconciliation job.

One invocation = one location tick for every vessel:
  1) fetch live locations (hard failure when the feed is empty)
  2) store pings
  3) plan each vessel against its active trip, the schedule and the model store
  4) apply each vessel's plan in its own transaction
"""

from __future__ import annotations

import logging
from dataclasses import asdict, dataclass
from datetime import timedelta
from typing import Optional

from sqlalchemy.orm import Session

from ferrycast.core.config import ReconcileConfig, load_reconcile_config
from ferrycast.jobs.job_runs import finish_job, start_job
from ferrycast.jobs.sources.base import FeedSource
from ferrycast.reconcile.estimation import Estimator, linear_estimate
from ferrycast.reconcile.grouping import physical_departures_by_vessel
from ferrycast.reconcile.pipeline import VesselTripTickPlan, process_vessel_pass
from ferrycast.store import pings as ping_store
from ferrycast.store import prediction_records as record_store
from ferrycast.store import scheduled_trips as schedule_store
from ferrycast.store import vessel_trips as trip_store
from ferrycast.store.model_parameters import SqlModelSource
from ferrycast.utils.time import now_ms as utc_now_ms

logger = logging.getLogger(__name__)

# schedule rows considered when matching a live sailing
SCHEDULE_LOOKBEHIND = timedelta(hours=12)
SCHEDULE_LOOKAHEAD = timedelta(hours=36)


@dataclass(frozen=True)
class ReconcileResult:
    vessels_seen: int
    plans_applied: int
    trips_completed: int
    records_inserted: int
    records_skipped: int
    pings_stored: int
    skipped: list[str]
    failed: dict[str, str]


def apply_tick_plan(db: Session, plan: VesselTripTickPlan) -> dict:
    """Persist one vessel's plan atomically. Storage errors propagate after rollback."""
    try:
        if plan.completed is not None:
            trip_store.complete_active(db, plan.completed)

        records = list(plan.records)
        if plan.depart_next_backfill is not None:
            bf = plan.depart_next_backfill
            records.extend(
                trip_store.backfill_depart_next(
                    db,
                    vessel_abbrev=bf.vessel_abbrev,
                    departing_terminal_abbrev=bf.departing_terminal_abbrev,
                    left_dock=bf.left_dock,
                )
            )

        trip_store.upsert_active(db, plan.active)
        counts = record_store.insert_records(db, records)
        db.commit()
    except Exception:
        db.rollback()
        raise

    return counts


def reconcile_vessel_trips(
    db: Session,
    source: FeedSource,
    *,
    config: Optional[ReconcileConfig] = None,
    now_ms: Optional[int] = None,
    estimator: Estimator = linear_estimate,
    store_pings: bool = True,
) -> ReconcileResult:
    config = config or load_reconcile_config()
    now_ms = now_ms if now_ms is not None else utc_now_ms()

    run_id = start_job(
        db,
        "reconcile_vessel_trips",
        {
            "now_ms": now_ms,
            "layover_threshold_minutes": config.layover_threshold_minutes,
            "min_chain_records": config.min_chain_records,
        },
    )

    try:
        locations = source.fetch_locations()

        pings_stored = 0
        if store_pings:
            pings_stored = ping_store.store_pings(db, locations)
            db.commit()

        schedule = schedule_store.list_trips(
            db,
            start_ms=now_ms - int(SCHEDULE_LOOKBEHIND.total_seconds() * 1000),
            end_ms=now_ms + int(SCHEDULE_LOOKAHEAD.total_seconds() * 1000),
        )
        groups = physical_departures_by_vessel(schedule)
        active = trip_store.get_active_trips(db)

        planned = process_vessel_pass(
            locations,
            active,
            groups,
            SqlModelSource(db),
            config,
            estimator,
        )

        inserted = 0
        skipped_records = 0
        completed = 0
        for plan in planned.plans:
            counts = apply_tick_plan(db, plan)
            inserted += counts["inserted"]
            skipped_records += counts["skipped"]
            if plan.completed is not None:
                completed += 1
            logger.debug("Applied %s for %s: %s", plan.event, plan.vessel_abbrev, plan.stats)

        result = ReconcileResult(
            vessels_seen=len(planned.plans) + len(planned.failed),
            plans_applied=len(planned.plans),
            trips_completed=completed,
            records_inserted=inserted,
            records_skipped=skipped_records,
            pings_stored=pings_stored,
            skipped=planned.skipped,
            failed=planned.failed,
        )
        logger.info(
            "Reconciled %d vessels (%d completed trips, %d new records, %d failed)",
            result.plans_applied,
            completed,
            inserted,
            len(planned.failed),
        )
        finish_job(db, run_id, "success", {"result": asdict(result)})
        return result

    except Exception as e:
        db.rollback()
        finish_job(db, run_id, "fail", {"error": repr(e)})
        raise
