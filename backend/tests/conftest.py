"""
Shared fixtures: an in-memory SQLite database per test, plus small factories
for schedule rows, live locations and model parameters.
"""

import os

os.environ.setdefault("DATABASE_URL", "sqlite://")

from types import SimpleNamespace

import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from ferrycast.core.config import ReconcileConfig
from ferrycast.core.init_db import init_db
from ferrycast.reconcile.types import ScheduledTrip, VesselLocation

MINUTE = 60_000

# 2026-01-05 08:30 PST
T = 1_767_630_600_000

FLAT_PARAMS = {
    "featureKeys": [],
    "coefficients": [],
    "intercept": 5.0,
    "testMetrics": {"mae": 1.0, "stdDev": 2.0},
}


@pytest.fixture
def engine():
    eng = create_engine(
        "sqlite://",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
    )
    init_db(eng)
    yield eng
    eng.dispose()


@pytest.fixture
def db(engine):
    Session = sessionmaker(bind=engine, autoflush=False, autocommit=False)
    session = Session()
    yield session
    session.close()


@pytest.fixture
def config():
    return ReconcileConfig(layover_threshold_minutes=60, min_chain_records=50)


def make_scheduled(
    departing="P52",
    arriving="BBI",
    at=T,
    vessel="WAL",
    key=None,
    **kw,
) -> ScheduledTrip:
    return ScheduledTrip(
        key=key or f"{vessel}-{departing}-{arriving}-{at}",
        vessel_abbrev=vessel,
        departing_terminal_abbrev=departing,
        arriving_terminal_abbrev=arriving,
        departing_time=at,
        **kw,
    )


def make_location(
    departing="P52",
    arriving="BBI",
    *,
    at_dock=True,
    timestamp=T,
    scheduled=T,
    left_dock=None,
    vessel="WAL",
    vessel_id=2,
) -> VesselLocation:
    return VesselLocation(
        vessel_id=vessel_id,
        vessel_abbrev=vessel,
        latitude=47.6,
        longitude=-122.4,
        in_service=True,
        at_dock=at_dock,
        timestamp=timestamp,
        departing_terminal_abbrev=departing,
        arriving_terminal_abbrev=arriving,
        scheduled_departure=scheduled,
        left_dock=left_dock,
    )


class FakeModels:
    """In-memory ModelSource: {(key, model_type): row}."""

    def __init__(self, chain=None, pair=None):
        self.chain = chain or {}
        self.pair = pair or {}
        self.calls = []

    @staticmethod
    def row(model_type, parameters=None, total_records=None):
        stats = {"totalRecords": total_records, "sampledRecords": total_records} if total_records is not None else None
        return SimpleNamespace(model_type=model_type, parameters=parameters or FLAT_PARAMS, bucket_stats=stats)

    def get_by_chain(self, chain_key, model_type):
        self.calls.append(("chain", chain_key, model_type))
        return self.chain.get((chain_key, model_type))

    def get_by_pair(self, pair_key, model_type):
        self.calls.append(("pair", pair_key, model_type))
        return self.pair.get((pair_key, model_type))
