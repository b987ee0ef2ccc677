from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from ferrycast.api.v1.schemas.vessel_trips import PredictionSlot, VesselTripOut
from ferrycast.core.deps import get_db
from ferrycast.models.vessel_trips import VesselTripRow
from ferrycast.reconcile.types import PREDICTION_FIELDS, PREDICTION_TYPES
from ferrycast.store import vessel_trips as trip_store

router = APIRouter(prefix="/v1/vessel-trips", tags=["vessel-trips"])


def to_out(row: VesselTripRow) -> VesselTripOut:
    slots = {
        PREDICTION_TYPES[name]: PredictionSlot(**getattr(row, name)) if getattr(row, name) else None
        for name in PREDICTION_FIELDS
    }
    return VesselTripOut(
        Key=row.key,
        Status=row.status,
        VesselAbbrev=row.vessel_abbrev,
        DepartingTerminalAbbrev=row.departing_terminal_abbrev,
        ArrivingTerminalAbbrev=row.arriving_terminal_abbrev,
        PrevTerminalAbbrev=row.prev_terminal_abbrev,
        AtDock=row.at_dock,
        InService=row.in_service,
        TimeStamp=row.timestamp,
        TripStart=row.trip_start,
        ScheduledDeparture=row.scheduled_departure,
        LeftDock=row.left_dock,
        TripEnd=row.trip_end,
        Eta=row.eta,
        NextScheduledDeparture=row.next_scheduled_departure,
        Regime=row.regime,
        AtDockDuration=row.at_dock_duration,
        AtSeaDuration=row.at_sea_duration,
        TotalDuration=row.total_duration,
        **slots,
    )


@router.get("/active", response_model=list[VesselTripOut])
def get_active(db: Session = Depends(get_db)):
    return [to_out(r) for r in trip_store.list_active(db)]


@router.get("/{vessel_abbrev}/completed", response_model=list[VesselTripOut])
def get_completed(
    vessel_abbrev: str,
    limit: int = Query(50, ge=1, le=500),
    db: Session = Depends(get_db),
):
    return [to_out(r) for r in trip_store.list_completed(db, vessel_abbrev, limit=limit)]
