import uuid

from sqlalchemy import BigInteger, Column, DateTime, Float, Index, Text, Uuid
from sqlalchemy.sql import func

from ferrycast.core.db import Base


class PredictionRecordRow(Base):
    """Append-only: one row per completed prediction slot, used as the training corpus."""

    __tablename__ = "prediction_records"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)

    key = Column(Text, nullable=False, index=True)
    vessel_abbreviation = Column(Text, nullable=False, index=True)
    departing_terminal_abbrev = Column(Text, nullable=False)
    arriving_terminal_abbrev = Column(Text, nullable=False)
    prediction_type = Column(Text, nullable=False, index=True)

    trip_start = Column(BigInteger, nullable=True)
    scheduled_departure = Column(BigInteger, nullable=True)
    left_dock = Column(BigInteger, nullable=True)
    trip_end = Column(BigInteger, nullable=True)

    min_time = Column(BigInteger, nullable=False)
    pred_time = Column(BigInteger, nullable=False, index=True)
    max_time = Column(BigInteger, nullable=False)
    mae = Column(Float, nullable=False)
    std_dev = Column(Float, nullable=False)
    actual = Column(BigInteger, nullable=False)
    delta_total = Column(Float, nullable=False)
    delta_range = Column(Float, nullable=False)

    created_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_prediction_records_key_type", "key", "prediction_type"),
        Index("ix_prediction_records_vessel_type", "vessel_abbreviation", "prediction_type"),
    )
