from __future__ import annotations

from dataclasses import dataclass, field
from typing import Literal, Optional

EpochMs = int

TripType = Literal["direct", "indirect"]
Regime = Literal["in-service", "layover"]

# Slot attribute names on VesselTrip, in physical order of ferry operations.
PREDICTION_FIELDS: tuple[str, ...] = (
    "at_dock_depart_curr",
    "at_dock_arrive_next",
    "at_dock_depart_next",
    "at_sea_arrive_next",
    "at_sea_depart_next",
)

# PascalCase names stored on prediction records
PREDICTION_TYPES: dict[str, str] = {
    "at_dock_depart_curr": "AtDockDepartCurr",
    "at_dock_arrive_next": "AtDockArriveNext",
    "at_dock_depart_next": "AtDockDepartNext",
    "at_sea_arrive_next": "AtSeaArriveNext",
    "at_sea_depart_next": "AtSeaDepartNext",
}

DEPART_NEXT_SLOTS: tuple[str, ...] = ("at_dock_depart_next", "at_sea_depart_next")


@dataclass(frozen=True)
class ScheduledTrip:
    key: str
    vessel_abbrev: str
    departing_terminal_abbrev: str
    arriving_terminal_abbrev: str
    departing_time: EpochMs

    arriving_time: Optional[EpochMs] = None
    sailing_day: Optional[str] = None       # "YYYY-MM-DD"
    route_id: Optional[int] = None
    route_abbrev: Optional[str] = None

    # derived by classification / linking
    trip_type: Optional[TripType] = None
    direct_key: Optional[str] = None
    prev_key: Optional[str] = None
    next_key: Optional[str] = None
    next_departing_time: Optional[EpochMs] = None


@dataclass(frozen=True)
class PhysicalDeparture:
    """One real-world sailing; may carry several advertised destinations."""

    vessel_abbrev: str
    departing_terminal_abbrev: str
    departing_time: EpochMs
    trips: list[ScheduledTrip] = field(default_factory=list)


@dataclass(frozen=True)
class Prediction:
    # bounds may be absent on partially written slots
    min_time: Optional[EpochMs] = None
    pred_time: Optional[EpochMs] = None
    max_time: Optional[EpochMs] = None
    mae: float = 0.0
    std_dev: float = 0.0

    actual: Optional[EpochMs] = None
    delta_total: Optional[float] = None    # minutes
    delta_range: Optional[float] = None    # minutes

    @property
    def is_complete(self) -> bool:
        return self.actual is not None


@dataclass(frozen=True)
class VesselLocation:
    vessel_id: int
    vessel_abbrev: str
    latitude: float
    longitude: float
    in_service: bool
    at_dock: bool
    timestamp: EpochMs

    heading: Optional[float] = None
    speed: Optional[float] = None
    departing_terminal_abbrev: Optional[str] = None
    arriving_terminal_abbrev: Optional[str] = None
    scheduled_departure: Optional[EpochMs] = None
    left_dock: Optional[EpochMs] = None
    eta: Optional[EpochMs] = None


@dataclass(frozen=True)
class VesselTrip:
    vessel_abbrev: str
    departing_terminal_abbrev: str
    at_dock: bool
    in_service: bool
    timestamp: EpochMs

    key: Optional[str] = None
    arriving_terminal_abbrev: Optional[str] = None
    prev_terminal_abbrev: Optional[str] = None

    trip_start: Optional[EpochMs] = None
    scheduled_departure: Optional[EpochMs] = None
    left_dock: Optional[EpochMs] = None
    trip_end: Optional[EpochMs] = None
    eta: Optional[EpochMs] = None

    prev_scheduled_departure: Optional[EpochMs] = None
    prev_left_dock: Optional[EpochMs] = None
    next_scheduled_departure: Optional[EpochMs] = None

    regime: Optional[Regime] = None

    at_dock_duration: Optional[float] = None   # minutes
    at_sea_duration: Optional[float] = None    # minutes
    total_duration: Optional[float] = None     # minutes

    at_dock_depart_curr: Optional[Prediction] = None
    at_dock_arrive_next: Optional[Prediction] = None
    at_dock_depart_next: Optional[Prediction] = None
    at_sea_arrive_next: Optional[Prediction] = None
    at_sea_depart_next: Optional[Prediction] = None

    def slot(self, name: str) -> Optional[Prediction]:
        if name not in PREDICTION_TYPES:
            raise KeyError(f"Unknown prediction slot: {name}")
        return getattr(self, name)


@dataclass(frozen=True)
class PredictionRecord:
    key: str
    vessel_abbreviation: str
    departing_terminal_abbrev: str
    arriving_terminal_abbrev: str
    prediction_type: str

    trip_start: Optional[EpochMs]
    scheduled_departure: Optional[EpochMs]
    left_dock: Optional[EpochMs]
    trip_end: Optional[EpochMs]

    min_time: EpochMs
    pred_time: EpochMs
    max_time: EpochMs
    mae: float
    std_dev: float
    actual: EpochMs
    delta_total: float
    delta_range: float
