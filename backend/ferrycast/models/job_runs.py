import uuid

from sqlalchemy import Column, DateTime, Text, Uuid
from sqlalchemy.sql import func

from ferrycast.core.db import Base, JsonDoc


class JobRun(Base):
    __tablename__ = "job_runs"

    run_id = Column(Uuid, primary_key=True, default=uuid.uuid4)
    job_name = Column(Text, nullable=False, index=True)
    started_at = Column(DateTime(timezone=True), server_default=func.now(), nullable=False)
    ended_at = Column(DateTime(timezone=True), nullable=True)
    status = Column(Text, nullable=False, default="running")   # running / success / fail
    meta = Column(JsonDoc, nullable=False, default=dict)
