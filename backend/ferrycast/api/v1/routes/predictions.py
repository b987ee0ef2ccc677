from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ferrycast.api.v1.schemas.predictions import PredictionRecordOut
from ferrycast.core.deps import get_db
from ferrycast.reconcile.types import PREDICTION_TYPES
from ferrycast.store import prediction_records as record_store

router = APIRouter(prefix="/v1", tags=["predictions"])


@router.get("/predictions", response_model=list[PredictionRecordOut])
def get_predictions(
    key: Optional[str] = Query(None, description="Trip key"),
    vessel: Optional[str] = Query(None, description="Vessel abbreviation e.g. WAL"),
    prediction_type: Optional[str] = Query(None, description="e.g. AtSeaArriveNext"),
    limit: int = Query(500, ge=1, le=5000),
    db: Session = Depends(get_db),
):
    if prediction_type and prediction_type not in PREDICTION_TYPES.values():
        raise HTTPException(status_code=400, detail=f"unknown prediction_type {prediction_type}")

    rows = record_store.list_records(db, key=key, vessel=vessel, prediction_type=prediction_type, limit=limit)
    return [
        PredictionRecordOut(
            Key=r.key,
            VesselAbbreviation=r.vessel_abbreviation,
            DepartingTerminalAbbrev=r.departing_terminal_abbrev,
            ArrivingTerminalAbbrev=r.arriving_terminal_abbrev,
            PredictionType=r.prediction_type,
            TripStart=r.trip_start,
            ScheduledDeparture=r.scheduled_departure,
            LeftDock=r.left_dock,
            TripEnd=r.trip_end,
            MinTime=r.min_time,
            PredTime=r.pred_time,
            MaxTime=r.max_time,
            MAE=r.mae,
            StdDev=r.std_dev,
            Actual=r.actual,
            DeltaTotal=r.delta_total,
            DeltaRange=r.delta_range,
        )
        for r in rows
    ]
