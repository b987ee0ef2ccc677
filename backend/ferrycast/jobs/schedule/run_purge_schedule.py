import argparse

from ferrycast.core.config import load_retention_config
from ferrycast.core.db import SessionLocal
from ferrycast.core.log import configure_logging_if_needed
from ferrycast.jobs.schedule.sync_schedule import purge_old_scheduled_trips
from ferrycast.utils.time import now_ms


def main():
    cfg = load_retention_config()

    p = argparse.ArgumentParser(description="Delete scheduled trips that departed long ago")
    p.add_argument("--retention-hours", type=float, default=cfg.schedule_retention_hours)
    p.add_argument("--batch-size", type=int, default=cfg.cleanup_batch_size)
    p.add_argument("--max-batches", type=int, default=cfg.cleanup_max_batches, help="0 = no limit")
    args = p.parse_args()

    configure_logging_if_needed()

    cutoff_ms = now_ms() - int(args.retention_hours * 3600 * 1000)

    db = SessionLocal()
    try:
        res = purge_old_scheduled_trips(
            db,
            cutoff_ms=cutoff_ms,
            batch_size=args.batch_size,
            max_batches=args.max_batches or None,
        )
        print(res)
    finally:
        db.close()


if __name__ == "__main__":
    main()
