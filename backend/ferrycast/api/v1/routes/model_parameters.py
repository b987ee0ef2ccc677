from uuid import UUID

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ferrycast.api.v1.schemas.model_parameters import (
    DeleteResult,
    ModelParametersIn,
    ModelParametersOut,
    UpsertResult,
)
from ferrycast.core.deps import get_db
from ferrycast.models.model_parameters import ModelParametersV2
from ferrycast.store import model_parameters as model_store

router = APIRouter(prefix="/v1/model-parameters", tags=["model-parameters"])


def to_out(row: ModelParametersV2) -> ModelParametersOut:
    return ModelParametersOut(
        id=row.id,
        bucketType=row.bucket_type,
        chainKey=row.chain_key,
        pairKey=row.pair_key,
        modelType=row.model_type,
        parameters=row.parameters or {},
        bucketStats=row.bucket_stats,
        createdAt=row.created_at,
    )


@router.get("", response_model=list[ModelParametersOut])
def list_model_parameters(db: Session = Depends(get_db)):
    return [to_out(r) for r in model_store.get_all(db)]


@router.put("", response_model=UpsertResult)
def upsert_model_parameters(body: ModelParametersIn, db: Session = Depends(get_db)):
    model = model_store.ModelParametersIn(
        bucket_type=body.bucketType,
        chain_key=body.chainKey,
        pair_key=body.pairKey,
        model_type=body.modelType,
        parameters=body.parameters,
        bucket_stats=body.bucketStats.model_dump() if body.bucketStats else None,
    )
    try:
        new_id = model_store.upsert(db, model)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return UpsertResult(id=new_id)


@router.delete("/{model_id}", response_model=DeleteResult)
def delete_model_parameters(model_id: UUID, db: Session = Depends(get_db)):
    return DeleteResult(deleted=1 if model_store.delete(db, model_id) else 0)


@router.delete("", response_model=DeleteResult)
def delete_all_model_parameters(db: Session = Depends(get_db)):
    return DeleteResult(deleted=model_store.delete_all(db))
