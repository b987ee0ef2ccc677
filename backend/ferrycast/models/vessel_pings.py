import uuid

from sqlalchemy import BigInteger, Boolean, Column, Float, Index, Integer, Text, Uuid

from ferrycast.core.db import Base


class VesselPing(Base):
    __tablename__ = "vessel_pings"

    id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    vessel_id = Column(Integer, nullable=False)
    vessel_abbrev = Column(Text, nullable=False)

    latitude = Column(Float, nullable=False)
    longitude = Column(Float, nullable=False)
    speed = Column(Float, nullable=True)
    heading = Column(Float, nullable=True)
    at_dock = Column(Boolean, nullable=False, default=False)

    timestamp = Column(BigInteger, nullable=False, index=True)   # epoch ms

    __table_args__ = (
        Index("ix_vessel_pings_vessel_timestamp", "vessel_id", "timestamp"),
    )
