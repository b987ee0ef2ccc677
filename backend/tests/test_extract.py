from dataclasses import replace

import pytest
from conftest import MINUTE, T

from ferrycast.reconcile.extract import extract_completed_records, extract_prediction_record
from ferrycast.reconcile.types import PREDICTION_FIELDS, Prediction, VesselTrip


def completed_trip(**kw) -> VesselTrip:
    slot = Prediction(
        min_time=T + 3 * MINUTE + 123,
        pred_time=T + 5 * MINUTE + 456,
        max_time=T + 7 * MINUTE + 789,
        mae=1.0,
        std_dev=2.0,
        actual=T + 30 * MINUTE + 999,
        delta_total=25.0,
        delta_range=4.0,
    )
    base = VesselTrip(
        key="WAL--2026-01-05--08:30--P52-BBI",
        vessel_abbrev="WAL",
        departing_terminal_abbrev="P52",
        arriving_terminal_abbrev="BBI",
        at_dock=True,
        in_service=True,
        timestamp=T + 30 * MINUTE + 999,
        trip_start=T - 20 * MINUTE + 501,
        scheduled_departure=T,
        left_dock=T + 2 * MINUTE + 250,
        trip_end=T + 30 * MINUTE + 999,
        at_sea_arrive_next=slot,
    )
    return replace(base, **kw)


class TestPreconditions:
    @pytest.mark.parametrize(
        "changes",
        [
            {"at_sea_arrive_next": None},
            {"at_sea_arrive_next": Prediction(min_time=1, pred_time=2, max_time=3)},
            {"key": None},
            {"departing_terminal_abbrev": ""},
            {"arriving_terminal_abbrev": None},
        ],
        ids=["no-slot", "no-actual", "no-key", "no-departing", "no-arriving"],
    )
    def test_not_extractable(self, changes):
        assert extract_prediction_record(completed_trip(**changes), "at_sea_arrive_next") is None

    @pytest.mark.parametrize("field", ["at_sea_depart_curr", "AtSeaDepartCurr", ""])
    def test_unknown_slot_name(self, field):
        assert extract_prediction_record(completed_trip(), field) is None

    def test_prediction_type_name(self):
        record = extract_prediction_record(completed_trip(), "AtSeaArriveNext")
        assert record == extract_prediction_record(completed_trip(), "at_sea_arrive_next")
        assert record.prediction_type == "AtSeaArriveNext"


class TestRecord:
    def test_fields_and_flooring(self):
        trip = completed_trip()
        rec = extract_prediction_record(trip, "at_sea_arrive_next")

        assert rec.prediction_type == "AtSeaArriveNext"
        assert rec.vessel_abbreviation == "WAL"
        assert rec.key == trip.key

        pairs = [
            (rec.trip_start, trip.trip_start),
            (rec.scheduled_departure, trip.scheduled_departure),
            (rec.left_dock, trip.left_dock),
            (rec.trip_end, trip.trip_end),
            (rec.min_time, trip.at_sea_arrive_next.min_time),
            (rec.pred_time, trip.at_sea_arrive_next.pred_time),
            (rec.max_time, trip.at_sea_arrive_next.max_time),
            (rec.actual, trip.at_sea_arrive_next.actual),
        ]
        for floored, raw in pairs:
            assert floored % 1000 == 0
            assert 0 <= raw - floored < 1000

    def test_absent_optional_times_stay_absent(self):
        rec = extract_prediction_record(completed_trip(trip_start=None, left_dock=None), "at_sea_arrive_next")
        assert rec.trip_start is None
        assert rec.left_dock is None

    def test_missing_bounds_default_to_zero(self):
        """Arrival observed on a slot that never got a model estimate."""
        trip = completed_trip(at_sea_arrive_next=Prediction(actual=T + 30 * MINUTE))
        rec = extract_prediction_record(trip, "at_sea_arrive_next")

        assert (rec.min_time, rec.pred_time, rec.max_time) == (0, 0, 0)
        assert rec.actual == T + 30 * MINUTE
        assert rec.delta_total == 0
        assert rec.delta_range == 0

    def test_idempotent_and_pure(self):
        trip = completed_trip()
        before = replace(trip)

        assert extract_prediction_record(trip, "at_sea_arrive_next") == extract_prediction_record(
            trip, "at_sea_arrive_next"
        )
        assert trip == before


def test_extract_completed_records_only_complete_slots():
    trip = completed_trip(
        at_dock_depart_curr=Prediction(min_time=T, pred_time=T, max_time=T, actual=T + 2 * MINUTE),
        at_dock_arrive_next=Prediction(min_time=T, pred_time=T, max_time=T),
    )

    records = extract_completed_records(trip)

    assert [r.prediction_type for r in records] == ["AtDockDepartCurr", "AtSeaArriveNext"]
    assert len(PREDICTION_FIELDS) == 5
