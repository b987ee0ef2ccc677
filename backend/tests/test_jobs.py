import json
from dataclasses import replace

import pytest
from conftest import FLAT_PARAMS, MINUTE, T, make_location, make_scheduled
from sqlalchemy import func, select
from sqlalchemy.exc import SQLAlchemyError

from ferrycast.jobs.cleanup.cleanup_pings import cleanup_pings
from ferrycast.jobs.models.load_models import load_models
from ferrycast.jobs.reconcile.vessel_trips import reconcile_vessel_trips
from ferrycast.jobs.schedule.sync_schedule import purge_old_scheduled_trips, sailing_days_from, sync_scheduled_trips
from ferrycast.jobs.sources.base import FeedSource, UpstreamSignalError
from ferrycast.models.job_runs import JobRun
from ferrycast.models.prediction_records import PredictionRecordRow
from ferrycast.models.scheduled_trips import ScheduledTripRow
from ferrycast.models.vessel_pings import VesselPing
from ferrycast.models.vessel_trips import VesselTripRow
from ferrycast.reconcile.classification import classify_trips_by_type, link_trip_segments
from ferrycast.reconcile.model_types import MODEL_TYPES
from ferrycast.store import model_parameters as model_store
from ferrycast.store import scheduled_trips as schedule_store
from ferrycast.store import vessel_trips as trip_store


class FakeFeed(FeedSource):
    def __init__(self, locations=None, schedule=None):
        self.locations = locations or []
        self.schedule = schedule or {}

    def fetch_locations(self):
        if not self.locations:
            raise UpstreamSignalError("no locations")
        return list(self.locations)

    def fetch_schedule(self, sailing_day):
        return list(self.schedule.get(sailing_day, []))


def _count(db, model):
    return db.scalar(select(func.count()).select_from(model))


def _job_statuses(db, job_name):
    return sorted(r.status for r in db.scalars(select(JobRun).where(JobRun.job_name == job_name)))


@pytest.fixture
def seeded(db):
    trips = link_trip_segments(
        classify_trips_by_type(
            [
                make_scheduled("P52", "BBI", T, key="k1"),
                make_scheduled("BBI", "P52", T + 60 * MINUTE, key="k2"),
            ]
        )
    )
    schedule_store.replace_window(db, trips, start_ms=T - 60 * MINUTE, end_ms=T + 180 * MINUTE)
    for pair_key in ("P52->BBI", "BBI->P52"):
        for mt in MODEL_TYPES:
            model_store.upsert(
                db,
                model_store.ModelParametersIn(bucket_type="pair", pair_key=pair_key, model_type=mt, parameters=FLAT_PARAMS),
            )
    return db


class TestReconcileJob:
    def run(self, db, location, config):
        return reconcile_vessel_trips(db, FakeFeed([location]), config=config, now_ms=T)

    def test_full_round_trip(self, seeded, config):
        db = seeded

        self.run(db, make_location(timestamp=T - 10 * MINUTE), config)
        active = trip_store.get_active_trips(db)["WAL"]
        assert active.key == "k1"
        assert active.at_dock_depart_next.pred_time == T + 65 * MINUTE

        self.run(db, make_location(at_dock=False, timestamp=T + 2 * MINUTE, left_dock=T + 2 * MINUTE), config)
        assert trip_store.get_active_trips(db)["WAL"].at_dock_depart_curr.actual == T + 2 * MINUTE

        res = self.run(db, make_location("BBI", "P52", timestamp=T + 40 * MINUTE, scheduled=T + 60 * MINUTE), config)
        assert res.trips_completed == 1
        assert res.records_inserted == 3

        leave_bbi = make_location(
            "BBI", "P52", at_dock=False, timestamp=T + 63 * MINUTE, scheduled=T + 60 * MINUTE, left_dock=T + 63 * MINUTE
        )
        res = self.run(db, leave_bbi, config)
        assert res.records_inserted == 2

        completed = trip_store.list_completed(db, "WAL")
        assert len(completed) == 1
        assert completed[0].key == "k1"
        assert completed[0].at_dock_depart_next["Actual"] == T + 63 * MINUTE
        assert completed[0].at_dock_depart_next["DeltaTotal"] == -2.0

        types = sorted(r.prediction_type for r in db.scalars(select(PredictionRecordRow)))
        assert types == ["AtDockArriveNext", "AtDockDepartCurr", "AtDockDepartNext", "AtSeaArriveNext", "AtSeaDepartNext"]

        # replaying the same tick writes nothing new
        res = self.run(db, leave_bbi, config)
        assert res.records_inserted == 0
        assert _count(db, PredictionRecordRow) == 5
        assert _count(db, VesselTripRow) == 2
        assert _count(db, VesselPing) == 5
        assert _job_statuses(db, "reconcile_vessel_trips") == ["success"] * 5

    def test_boundary_seen_already_underway(self, seeded, config):
        db = seeded
        self.run(db, make_location(timestamp=T - 10 * MINUTE), config)
        self.run(db, make_location(at_dock=False, timestamp=T + 2 * MINUTE, left_dock=T + 2 * MINUTE), config)

        # the docked tick at BBI was missed
        underway = make_location(
            "BBI", "P52", at_dock=False, timestamp=T + 64 * MINUTE, scheduled=T + 60 * MINUTE, left_dock=T + 63 * MINUTE
        )
        res = self.run(db, underway, config)

        assert res.trips_completed == 1
        assert res.records_inserted == 5
        done = trip_store.list_completed(db, "WAL")[0]
        assert done.at_dock_depart_next["Actual"] == T + 63 * MINUTE
        assert done.at_sea_depart_next["Actual"] == T + 63 * MINUTE
        assert trip_store.get_active_trips(db)["WAL"].left_dock == T + 63 * MINUTE

    def test_empty_feed_fails_job_and_keeps_state(self, seeded, config):
        db = seeded
        self.run(db, make_location(timestamp=T - 10 * MINUTE), config)

        with pytest.raises(UpstreamSignalError):
            reconcile_vessel_trips(db, FakeFeed([]), config=config, now_ms=T)

        assert _job_statuses(db, "reconcile_vessel_trips") == ["fail", "success"]
        assert trip_store.get_active_trips(db)["WAL"].key == "k1"


class TestScheduleJobs:
    def test_sync_classifies_links_and_replaces(self, db):
        days = sailing_days_from(T, 2)
        assert days == ["2026-01-05", "2026-01-06"]

        day1 = [
            make_scheduled("ANA", "LOP", T, key="ana-lop"),
            make_scheduled("ANA", "FRH", T, key="ana-frh"),
            make_scheduled("LOP", "ANA", T + 60 * MINUTE, key="lop-ana"),
        ]
        day2 = [make_scheduled("ANA", "LOP", T + 24 * 60 * MINUTE, key="ana-lop-2")]
        feed = FakeFeed(schedule={days[0]: day1, days[1]: day2})

        res = sync_scheduled_trips(db, feed, days=2, now_ms=T)

        assert res.trips_inserted == 4
        assert res.indirect_trips == 1
        stored = {t.key: t for t in schedule_store.list_trips(db)}
        assert stored["ana-frh"].trip_type == "indirect"
        assert stored["lop-ana"].next_key == "ana-lop-2"

        again = sync_scheduled_trips(db, feed, days=2, now_ms=T)
        assert again.trips_deleted == 4
        assert _count(db, ScheduledTripRow) == 4

    def test_sync_without_trips_fails(self, db):
        with pytest.raises(UpstreamSignalError):
            sync_scheduled_trips(db, FakeFeed(), days=1, now_ms=T)
        assert _job_statuses(db, "sync_scheduled_trips") == ["fail"]

    def test_purge_only_removes_departed(self, db):
        old = [make_scheduled(at=T - (30 + i) * 60 * MINUTE, key=f"old-{i}") for i in range(7)]
        fresh = [make_scheduled(at=T + i * MINUTE, key=f"new-{i}") for i in range(3)]
        schedule_store.replace_window(db, old + fresh, start_ms=0, end_ms=T + 60 * MINUTE)

        cutoff = T - 24 * 60 * MINUTE
        res = purge_old_scheduled_trips(db, cutoff_ms=cutoff, batch_size=3, max_batches=2)
        assert (res.deleted, res.batches) == (6, 2)

        res = purge_old_scheduled_trips(db, cutoff_ms=cutoff, batch_size=3)
        assert (res.deleted, res.batches) == (1, 1)
        assert sorted(t.key for t in schedule_store.list_trips(db)) == ["new-0", "new-1", "new-2"]


class TestCleanupPings:
    def _seed(self, db, n_old, n_new, cutoff):
        for i in range(n_old):
            db.add(VesselPing(vessel_id=1, vessel_abbrev="WAL", latitude=0, longitude=0, timestamp=cutoff - 1 - i))
        for i in range(n_new):
            db.add(VesselPing(vessel_id=1, vessel_abbrev="WAL", latitude=0, longitude=0, timestamp=cutoff + i))
        db.commit()

    def test_batches_respect_limit_and_resume(self, db):
        cutoff = T - 120 * MINUTE
        self._seed(db, 120, 5, cutoff)

        res = cleanup_pings(db, cutoff_ms=cutoff, batch_size=50, max_batches=2)
        assert (res.deleted, res.batches) == (100, 2)
        assert _count(db, VesselPing) == 25

        res = cleanup_pings(db, cutoff_ms=cutoff, batch_size=50)
        assert (res.deleted, res.batches) == (20, 1)
        assert _count(db, VesselPing) == 5
        assert _job_statuses(db, "cleanup_vessel_pings") == ["success", "success"]

    def test_nothing_to_do(self, db):
        res = cleanup_pings(db, cutoff_ms=T, batch_size=50)
        assert (res.deleted, res.batches) == (0, 0)

    def test_bad_batch_size_marks_failure(self, db):
        with pytest.raises(ValueError):
            cleanup_pings(db, cutoff_ms=T, batch_size=0)
        assert _job_statuses(db, "cleanup_vessel_pings") == ["fail"]


class TestDepartNextBackfill:
    def _complete_first_trip(self, db, config, arriving):
        reconcile_vessel_trips(db, FakeFeed([make_location(timestamp=T - 10 * MINUTE)]), config=config, now_ms=T)
        trip = trip_store.get_active_trips(db)["WAL"]
        trip_store.complete_active(db, replace(trip, arriving_terminal_abbrev=arriving, trip_end=T + 40 * MINUTE))
        db.commit()

    def test_skips_when_terminals_disagree(self, seeded, config):
        self._complete_first_trip(seeded, config, "SEA")
        records = trip_store.backfill_depart_next(
            seeded, vessel_abbrev="WAL", departing_terminal_abbrev="BBI", left_dock=T + 63 * MINUTE
        )
        assert records == []

    def test_actualizes_matching_trip(self, seeded, config):
        self._complete_first_trip(seeded, config, "BBI")
        records = trip_store.backfill_depart_next(
            seeded, vessel_abbrev="WAL", departing_terminal_abbrev="BBI", left_dock=T + 63 * MINUTE
        )
        assert [r.prediction_type for r in records] == ["AtDockDepartNext"]
        assert records[0].actual == T + 63 * MINUTE

    def test_no_completed_trip(self, db):
        assert trip_store.backfill_depart_next(db, vessel_abbrev="WAL", departing_terminal_abbrev="BBI", left_dock=T) == []


class TestLoadModels:
    def _write(self, tmp_path, items):
        path = tmp_path / "models.json"
        path.write_text(json.dumps(items), encoding="utf-8")
        return path

    def _item(self, pair_key="P52->BBI", model_type="layover-at-dock-depart-b", **kw):
        return {"bucketType": "pair", "pairKey": pair_key, "modelType": model_type, "parameters": FLAT_PARAMS, **kw}

    def test_upserts_every_item(self, db, tmp_path):
        path = self._write(
            tmp_path,
            [
                self._item(),
                self._item("BBI->P52"),
                {
                    "bucketType": "chain",
                    "chainKey": "BBI->P52->BBI",
                    "modelType": "in-service-at-sea-arrive-c",
                    "parameters": FLAT_PARAMS,
                    "bucketStats": {"totalRecords": 120, "sampledRecords": 100},
                },
            ],
        )

        res = load_models(db, path)

        assert (res.deleted, res.upserted) == (0, 3)
        chain = model_store.get_by_chain(db, "BBI->P52->BBI", "in-service-at-sea-arrive-c")
        assert chain.bucket_stats["totalRecords"] == 120

    def test_replace_all(self, db, tmp_path):
        load_models(db, self._write(tmp_path, [self._item(), self._item("BBI->P52")]))

        res = load_models(db, self._write(tmp_path, [self._item("SEA->BBI")]), replace_all=True)

        assert (res.deleted, res.upserted) == (2, 1)
        assert model_store.count(db) == 1

    def test_one_bad_item_writes_nothing(self, db, tmp_path):
        path = self._write(tmp_path, [self._item(), self._item(model_type="nope")])

        with pytest.raises(ValueError):
            load_models(db, path)

        assert model_store.count(db) == 0
        assert _job_statuses(db, "load_model_parameters") == ["fail"]

    def test_failed_write_keeps_previous_models(self, db, tmp_path, monkeypatch):
        load_models(db, self._write(tmp_path, [self._item(), self._item("BBI->P52")]))

        real_upsert = model_store.upsert

        def upsert(session, model, **kw):
            if model.pair_key == "SEA->BBI":
                raise SQLAlchemyError("disk full")
            return real_upsert(session, model, **kw)

        monkeypatch.setattr(model_store, "upsert", upsert)
        path = self._write(tmp_path, [self._item("P52->SEA"), self._item("SEA->BBI")])

        with pytest.raises(SQLAlchemyError):
            load_models(db, path, replace_all=True)

        assert sorted(r.pair_key for r in model_store.get_all(db)) == ["BBI->P52", "P52->BBI"]
        assert _job_statuses(db, "load_model_parameters") == ["fail", "success"]
