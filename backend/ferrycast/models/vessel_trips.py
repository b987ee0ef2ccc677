import uuid

from sqlalchemy import BigInteger, Boolean, Column, DateTime, Float, Index, Text, Uuid
from sqlalchemy.sql import func

from ferrycast.core.db import Base, JsonDoc


class VesselTripRow(Base):
    """
    Live-tracked sailing. status="active" holds at most one row per vessel;
    finished sailings move to status="completed".
    """

    __tablename__ = "vessel_trips"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    status = Column(Text, nullable=False, default="active", index=True)   # active / completed

    key = Column(Text, nullable=True, index=True)
    vessel_abbrev = Column(Text, nullable=False, index=True)
    departing_terminal_abbrev = Column(Text, nullable=False)
    arriving_terminal_abbrev = Column(Text, nullable=True)
    prev_terminal_abbrev = Column(Text, nullable=True)

    at_dock = Column(Boolean, nullable=False, default=False)
    in_service = Column(Boolean, nullable=False, default=True)
    timestamp = Column(BigInteger, nullable=False)

    trip_start = Column(BigInteger, nullable=True)
    scheduled_departure = Column(BigInteger, nullable=True)
    left_dock = Column(BigInteger, nullable=True)
    trip_end = Column(BigInteger, nullable=True, index=True)
    eta = Column(BigInteger, nullable=True)

    prev_scheduled_departure = Column(BigInteger, nullable=True)
    prev_left_dock = Column(BigInteger, nullable=True)
    next_scheduled_departure = Column(BigInteger, nullable=True)

    regime = Column(Text, nullable=True)

    at_dock_duration = Column(Float, nullable=True)
    at_sea_duration = Column(Float, nullable=True)
    total_duration = Column(Float, nullable=True)

    # prediction slots, stored as documents
    at_dock_depart_curr = Column(JsonDoc, nullable=True)
    at_dock_arrive_next = Column(JsonDoc, nullable=True)
    at_dock_depart_next = Column(JsonDoc, nullable=True)
    at_sea_arrive_next = Column(JsonDoc, nullable=True)
    at_sea_depart_next = Column(JsonDoc, nullable=True)

    updated_at = Column(DateTime(timezone=True), server_default=func.now(), onupdate=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_vessel_trips_vessel_status", "vessel_abbrev", "status"),
    )
