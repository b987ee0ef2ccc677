import uuid

from sqlalchemy import Column, DateTime, Index, Text, Uuid
from sqlalchemy.sql import func

from ferrycast.core.db import Base, JsonDoc


class ModelParametersV2(Base):
    """
    Fitted parameters for one (bucket, model type).

    Uniqueness of (bucket_type, chain_key|pair_key, model_type) is kept by the
    store's delete-then-insert upsert, not by a constraint.
    """

    __tablename__ = "model_parameters_v2"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    bucket_type = Column(Text, nullable=False, index=True)   # chain / pair
    chain_key = Column(Text, nullable=True)                  # "A->B->C"
    pair_key = Column(Text, nullable=True)                   # "B->C"
    model_type = Column(Text, nullable=False)

    parameters = Column(JsonDoc, nullable=False, default=dict)
    bucket_stats = Column(JsonDoc, nullable=True)            # {"totalRecords": .., "sampledRecords": ..}

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_model_parameters_v2_chain_type", "chain_key", "model_type"),
        Index("ix_model_parameters_v2_pair_type", "pair_key", "model_type"),
    )
