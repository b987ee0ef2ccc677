from pydantic import BaseModel
from typing import Optional


class PredictionRecordOut(BaseModel):
    Key: str
    VesselAbbreviation: str
    DepartingTerminalAbbrev: str
    ArrivingTerminalAbbrev: str
    PredictionType: str

    TripStart: Optional[int] = None
    ScheduledDeparture: Optional[int] = None
    LeftDock: Optional[int] = None
    TripEnd: Optional[int] = None

    MinTime: int
    PredTime: int
    MaxTime: int
    MAE: float
    StdDev: float
    Actual: int
    DeltaTotal: float
    DeltaRange: float
