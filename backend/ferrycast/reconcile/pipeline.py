"""
Per-vessel trip reconciliation.

One call handles one vessel for one location tick and returns a plan; the
persistence layer applies the plan in a single transaction. Nothing here
touches the database directly: model lookups go through a ModelSource.

Tick events, in order of precedence:

    first trip      no active trip for the vessel yet
    trip boundary   the vessel reports a new departing terminal
    trip update     everything else; may carry the leave-dock transition
"""

from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from typing import Iterable, Mapping, Optional

from ferrycast.core.config import ReconcileConfig
from ferrycast.reconcile.actuals import actualize_slots, complete_trip
from ferrycast.reconcile.classification import find_scheduled_trip
from ferrycast.reconcile.estimation import Estimator, build_features, clamp_not_before, linear_estimate
from ferrycast.reconcile.extract import extract_completed_records
from ferrycast.reconcile.lookup import CachedModelSource, LookupRequest, ModelSource, resolve_model
from ferrycast.reconcile.model_types import model_type_for
from ferrycast.reconcile.types import (
    DEPART_NEXT_SLOTS,
    PREDICTION_FIELDS,
    EpochMs,
    PhysicalDeparture,
    PredictionRecord,
    Regime,
    VesselLocation,
    VesselTrip,
)
from ferrycast.utils.time import minutes_between
from ferrycast.utils.trip_key import make_trip_key

logger = logging.getLogger(__name__)

AT_DOCK_SLOTS = ("at_dock_depart_curr", "at_dock_arrive_next", "at_dock_depart_next")
AT_SEA_SLOTS = ("at_sea_arrive_next", "at_sea_depart_next")

FIRST_TRIP = "first_trip"
TRIP_BOUNDARY = "trip_boundary"
TRIP_UPDATE = "trip_update"


@dataclass(frozen=True)
class DepartNextBackfill:
    """Actualise depart-next slots on the vessel's most recent completed trip."""

    vessel_abbrev: str
    departing_terminal_abbrev: str
    left_dock: EpochMs


@dataclass(frozen=True)
class VesselTripTickPlan:
    vessel_abbrev: str
    event: str
    active: VesselTrip
    completed: Optional[VesselTrip] = None
    depart_next_backfill: Optional[DepartNextBackfill] = None
    records: list[PredictionRecord] = field(default_factory=list)
    stats: dict = field(default_factory=dict)


@dataclass(frozen=True)
class PassResult:
    plans: list[VesselTripTickPlan]
    skipped: list[str]
    failed: dict[str, str]


def is_usable_location(location: Optional[VesselLocation]) -> bool:
    if location is None:
        return False
    if not location.vessel_abbrev or not location.departing_terminal_abbrev:
        return False
    return bool(location.timestamp) and location.timestamp > 0


# --- trip construction ---

def _start_trip(location: VesselLocation, previous: Optional[VesselTrip]) -> VesselTrip:
    if previous is None:
        # first sighting: we did not see the vessel arrive
        return VesselTrip(
            vessel_abbrev=location.vessel_abbrev,
            departing_terminal_abbrev=location.departing_terminal_abbrev,
            arriving_terminal_abbrev=location.arriving_terminal_abbrev,
            at_dock=location.at_dock,
            in_service=location.in_service,
            timestamp=location.timestamp,
            scheduled_departure=location.scheduled_departure,
            left_dock=location.left_dock,
            eta=location.eta,
        )

    return VesselTrip(
        vessel_abbrev=location.vessel_abbrev,
        departing_terminal_abbrev=location.departing_terminal_abbrev,
        arriving_terminal_abbrev=location.arriving_terminal_abbrev,
        prev_terminal_abbrev=previous.departing_terminal_abbrev,
        prev_scheduled_departure=previous.scheduled_departure,
        prev_left_dock=previous.left_dock,
        at_dock=location.at_dock,
        in_service=location.in_service,
        timestamp=location.timestamp,
        trip_start=location.timestamp,
        scheduled_departure=location.scheduled_departure,
        left_dock=None if location.at_dock else location.left_dock,
        eta=location.eta,
    )


def _merge_location(existing: VesselTrip, location: VesselLocation) -> VesselTrip:
    flipped_to_sea = existing.at_dock and not location.at_dock

    if flipped_to_sea and existing.left_dock is None:
        left_dock = location.left_dock or location.timestamp
    else:
        left_dock = location.left_dock or existing.left_dock

    return replace(
        existing,
        departing_terminal_abbrev=location.departing_terminal_abbrev,
        arriving_terminal_abbrev=location.arriving_terminal_abbrev or existing.arriving_terminal_abbrev,
        at_dock=location.at_dock,
        in_service=location.in_service,
        timestamp=location.timestamp,
        scheduled_departure=location.scheduled_departure or existing.scheduled_departure,
        left_dock=left_dock,
        eta=location.eta or existing.eta,
        at_dock_duration=minutes_between(existing.trip_start, left_dock) or existing.at_dock_duration,
    )


def _with_schedule(trip: VesselTrip, groups: list[PhysicalDeparture]) -> VesselTrip:
    if trip.scheduled_departure is None:
        return trip

    scheduled = find_scheduled_trip(
        groups,
        departing_terminal_abbrev=trip.departing_terminal_abbrev,
        scheduled_departure=trip.scheduled_departure,
        arriving_terminal_abbrev=trip.arriving_terminal_abbrev,
    )
    if scheduled is None:
        return replace(
            trip,
            key=make_trip_key(
                trip.vessel_abbrev,
                trip.departing_terminal_abbrev,
                trip.arriving_terminal_abbrev,
                trip.scheduled_departure,
            ),
        )

    return replace(
        trip,
        key=scheduled.key,
        arriving_terminal_abbrev=scheduled.arriving_terminal_abbrev,
        next_scheduled_departure=scheduled.next_departing_time,
    )


def classify_regime(trip: VesselTrip, layover_threshold_minutes: float) -> Regime:
    if trip.prev_terminal_abbrev is None or trip.trip_start is None:
        return "layover"

    dock_end = trip.scheduled_departure or trip.timestamp
    dwell = (dock_end - trip.trip_start) / 60000
    if dwell > layover_threshold_minutes:
        return "layover"
    return "in-service"


def _has_predictions(trip: VesselTrip) -> bool:
    return any(trip.slot(name) is not None for name in PREDICTION_FIELDS)


# --- estimation ---

def _anchor(trip: VesselTrip, slot: str) -> Optional[EpochMs]:
    if slot in ("at_dock_depart_curr", "at_dock_arrive_next"):
        return trip.scheduled_departure
    if slot == "at_sea_arrive_next":
        return trip.left_dock
    return trip.next_scheduled_departure


def _clamp_floor(trip: VesselTrip, slot: str) -> Optional[EpochMs]:
    if slot == "at_dock_depart_curr":
        return trip.scheduled_departure
    if slot in DEPART_NEXT_SLOTS:
        return trip.next_scheduled_departure
    return None


def applicable_slots(trip: VesselTrip) -> tuple[str, ...]:
    if trip.at_dock and trip.left_dock is None:
        return AT_DOCK_SLOTS
    return AT_SEA_SLOTS


def _predict_missing(
    trip: VesselTrip,
    models: ModelSource,
    config: ReconcileConfig,
    estimator: Estimator,
) -> tuple[VesselTrip, list[str]]:
    if trip.regime is None:
        return trip, []

    features = build_features(trip)
    changes: dict = {}
    for slot in applicable_slots(trip):
        if trip.slot(slot) is not None:
            continue

        anchor = _anchor(trip, slot)
        if anchor is None:
            continue

        model = resolve_model(
            models,
            LookupRequest(
                prev_terminal=trip.prev_terminal_abbrev,
                departing_terminal=trip.departing_terminal_abbrev,
                arriving_terminal=trip.arriving_terminal_abbrev,
                model_type=model_type_for(trip.regime, slot),
            ),
            min_chain_records=config.min_chain_records,
        )
        if model is None:
            continue

        try:
            prediction = estimator(anchor, model.parameters, features)
        except (TypeError, ValueError) as e:
            logger.warning("Unusable %s model %s %s: %s", model.bucket_type, model.key, model.model_type, e)
            continue

        if slot == "at_dock_depart_curr" or slot in DEPART_NEXT_SLOTS:
            prediction = clamp_not_before(prediction, _clamp_floor(trip, slot))
        changes[slot] = prediction

    if not changes:
        return trip, []
    return replace(trip, **changes), sorted(changes)


# --- entry points ---

def _left_dock(trip: VesselTrip) -> tuple[VesselTrip, DepartNextBackfill]:
    trip = actualize_slots(trip, trip.left_dock, "at_dock_depart_curr")
    return trip, DepartNextBackfill(
        vessel_abbrev=trip.vessel_abbrev,
        departing_terminal_abbrev=trip.departing_terminal_abbrev,
        left_dock=trip.left_dock,
    )


def process_vessel_tick(
    existing: Optional[VesselTrip],
    location: VesselLocation,
    groups: list[PhysicalDeparture],
    models: ModelSource,
    config: ReconcileConfig,
    estimator: Estimator = linear_estimate,
) -> VesselTripTickPlan:
    completed: Optional[VesselTrip] = None
    backfill: Optional[DepartNextBackfill] = None
    records: list[PredictionRecord] = []

    if existing is None:
        event = FIRST_TRIP
        trip = _start_trip(location, None)

    elif existing.departing_terminal_abbrev != location.departing_terminal_abbrev:
        event = TRIP_BOUNDARY
        completed = complete_trip(existing, location.timestamp)
        records.extend(extract_completed_records(completed))
        trip = _start_trip(location, completed)
        if not trip.at_dock:
            # first tick at the new terminal is already underway
            trip = replace(trip, left_dock=location.left_dock or location.timestamp)
            trip, backfill = _left_dock(trip)

    else:
        event = TRIP_UPDATE
        trip = _merge_location(existing, location)
        if existing.left_dock is None and trip.left_dock is not None:
            trip, backfill = _left_dock(trip)

    trip = _with_schedule(trip, groups)

    if trip.regime is None or not _has_predictions(trip):
        trip = replace(trip, regime=classify_regime(trip, config.layover_threshold_minutes))

    trip, predicted = _predict_missing(trip, models, config, estimator)

    return VesselTripTickPlan(
        vessel_abbrev=location.vessel_abbrev,
        event=event,
        active=trip,
        completed=completed,
        depart_next_backfill=backfill,
        records=records,
        stats={"event": event, "predicted": predicted, "records": len(records)},
    )


def _latest_by_vessel(locations: Iterable[VesselLocation]) -> tuple[dict[str, VesselLocation], list[str]]:
    latest: dict[str, VesselLocation] = {}
    skipped: list[str] = []
    for loc in locations:
        if not is_usable_location(loc):
            name = getattr(loc, "vessel_abbrev", None) or "?"
            logger.warning("Skipping unusable location for vessel %s", name)
            skipped.append(name)
            continue
        prev = latest.get(loc.vessel_abbrev)
        if prev is None or loc.timestamp >= prev.timestamp:
            latest[loc.vessel_abbrev] = loc
    return latest, skipped


def process_vessel_pass(
    locations: Iterable[VesselLocation],
    active_trips: Mapping[str, VesselTrip],
    groups_by_vessel: Mapping[str, list[PhysicalDeparture]],
    models: ModelSource,
    config: ReconcileConfig,
    estimator: Estimator = linear_estimate,
) -> PassResult:
    """
    Plan one tick for every vessel with a usable location.

    A vessel whose planning raises is logged and reported in `failed`; the
    remaining vessels still get plans.
    """
    latest, skipped = _latest_by_vessel(locations)
    cached = CachedModelSource(models)

    plans: list[VesselTripTickPlan] = []
    failed: dict[str, str] = {}
    for vessel in sorted(latest):
        try:
            plans.append(
                process_vessel_tick(
                    active_trips.get(vessel),
                    latest[vessel],
                    groups_by_vessel.get(vessel, []),
                    cached,
                    config,
                    estimator,
                )
            )
        except Exception as e:
            logger.exception("Vessel %s failed to reconcile", vessel)
            failed[vessel] = repr(e)

    return PassResult(plans=plans, skipped=skipped, failed=failed)
