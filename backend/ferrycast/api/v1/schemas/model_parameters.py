from datetime import datetime
from typing import Literal, Optional
from uuid import UUID

from pydantic import BaseModel, Field


class BucketStats(BaseModel):
    totalRecords: int = Field(..., ge=0)
    sampledRecords: int = Field(..., ge=0)


class ModelParametersIn(BaseModel):
    bucketType: Literal["chain", "pair"]
    chainKey: Optional[str] = Field(None, description='"A->B->C", required for chain buckets')
    pairKey: Optional[str] = Field(None, description='"B->C", required for pair buckets')
    modelType: str
    parameters: dict
    bucketStats: Optional[BucketStats] = None


class ModelParametersOut(BaseModel):
    id: UUID
    bucketType: str
    chainKey: Optional[str] = None
    pairKey: Optional[str] = None
    modelType: str
    parameters: dict
    bucketStats: Optional[dict] = None
    createdAt: Optional[datetime] = None


class UpsertResult(BaseModel):
    id: UUID


class DeleteResult(BaseModel):
    deleted: int
