import argparse

from sqlalchemy.engine import Engine

from ferrycast.core.db import Base, engine as default_engine

# registers every table on Base.metadata
from ferrycast.models import job_runs, model_parameters, prediction_records, scheduled_trips, vessel_pings, vessel_trips  # noqa: F401


def init_db(engine: Engine = default_engine) -> list[str]:
    Base.metadata.create_all(bind=engine)
    return sorted(Base.metadata.tables)


def main():
    p = argparse.ArgumentParser(description="Create the ferrycast tables if missing")
    p.parse_args()
    print(init_db())


if __name__ == "__main__":
    main()
