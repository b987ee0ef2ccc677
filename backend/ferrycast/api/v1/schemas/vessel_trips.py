from pydantic import BaseModel
from typing import Literal, Optional


class PredictionSlot(BaseModel):
    # null = pending, never 0
    MinTime: Optional[int] = None
    PredTime: Optional[int] = None
    MaxTime: Optional[int] = None
    MAE: Optional[float] = None
    StdDev: Optional[float] = None
    Actual: Optional[int] = None
    DeltaTotal: Optional[float] = None
    DeltaRange: Optional[float] = None


class VesselTripOut(BaseModel):
    Key: Optional[str] = None
    Status: Literal["active", "completed"]

    VesselAbbrev: str
    DepartingTerminalAbbrev: str
    ArrivingTerminalAbbrev: Optional[str] = None
    PrevTerminalAbbrev: Optional[str] = None

    AtDock: bool
    InService: bool
    TimeStamp: int

    TripStart: Optional[int] = None
    ScheduledDeparture: Optional[int] = None
    LeftDock: Optional[int] = None
    TripEnd: Optional[int] = None
    Eta: Optional[int] = None
    NextScheduledDeparture: Optional[int] = None

    Regime: Optional[Literal["in-service", "layover"]] = None
    AtDockDuration: Optional[float] = None
    AtSeaDuration: Optional[float] = None
    TotalDuration: Optional[float] = None

    AtDockDepartCurr: Optional[PredictionSlot] = None
    AtDockArriveNext: Optional[PredictionSlot] = None
    AtDockDepartNext: Optional[PredictionSlot] = None
    AtSeaArriveNext: Optional[PredictionSlot] = None
    AtSeaDepartNext: Optional[PredictionSlot] = None
