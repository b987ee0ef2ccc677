import uuid

from sqlalchemy import BigInteger, Column, DateTime, Index, Integer, Text, Uuid
from sqlalchemy.sql import func

from ferrycast.core.db import Base


class ScheduledTripRow(Base):
    __tablename__ = "scheduled_trips"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    key = Column(Text, nullable=False, unique=True)

    vessel_abbrev = Column(Text, nullable=False, index=True)
    departing_terminal_abbrev = Column(Text, nullable=False)
    arriving_terminal_abbrev = Column(Text, nullable=False)
    departing_time = Column(BigInteger, nullable=False, index=True)
    arriving_time = Column(BigInteger, nullable=True)

    sailing_day = Column(Text, nullable=True, index=True)
    route_id = Column(Integer, nullable=True)
    route_abbrev = Column(Text, nullable=True)

    trip_type = Column(Text, nullable=True)
    direct_key = Column(Text, nullable=True)
    prev_key = Column(Text, nullable=True)
    next_key = Column(Text, nullable=True)
    next_departing_time = Column(BigInteger, nullable=True)

    synced_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)

    __table_args__ = (
        Index("ix_scheduled_trips_vessel_departing", "vessel_abbrev", "departing_time"),
    )
