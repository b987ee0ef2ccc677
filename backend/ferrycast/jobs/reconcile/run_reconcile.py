import argparse

from ferrycast.core.db import SessionLocal
from ferrycast.core.log import configure_logging_if_needed
from ferrycast.jobs.reconcile.vessel_trips import reconcile_vessel_trips
from ferrycast.jobs.sources.feed import HttpFeedSource


def main():
    p = argparse.ArgumentParser(description="Reconcile live vessel locations into vessel_trips")
    p.add_argument("--no-pings", action="store_true", help="Do not persist the fetched locations as pings")
    p.add_argument("--now-ms", type=int, help="Override the clock (epoch ms)")
    args = p.parse_args()

    configure_logging_if_needed()

    db = SessionLocal()
    try:
        res = reconcile_vessel_trips(
            db,
            HttpFeedSource(),
            now_ms=args.now_ms,
            store_pings=not args.no_pings,
        )
        print(res)
    finally:
        db.close()


if __name__ == "__main__":
    main()
