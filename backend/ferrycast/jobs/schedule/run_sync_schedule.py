import argparse

from ferrycast.core.config import load_retention_config
from ferrycast.core.db import SessionLocal
from ferrycast.core.log import configure_logging_if_needed
from ferrycast.jobs.schedule.sync_schedule import sync_scheduled_trips
from ferrycast.jobs.sources.feed import HttpFeedSource


def main():
    cfg = load_retention_config()

    p = argparse.ArgumentParser(description="Sync the published schedule into scheduled_trips")
    p.add_argument("--days", type=int, default=cfg.schedule_sync_days, help="Sailing days to fetch, starting today")
    p.add_argument("--now-ms", type=int, help="Override the clock (epoch ms)")
    args = p.parse_args()

    configure_logging_if_needed()

    db = SessionLocal()
    try:
        res = sync_scheduled_trips(db, HttpFeedSource(), days=args.days, now_ms=args.now_ms)
        print(res)
    finally:
        db.close()


if __name__ == "__main__":
    main()
