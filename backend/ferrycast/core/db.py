import os

from sqlalchemy import JSON, create_engine
from sqlalchemy.dialects.postgresql import JSONB
from sqlalchemy.orm import declarative_base, sessionmaker

from ferrycast.core.config import load_env

load_env()

DATABASE_URL = os.getenv("DATABASE_URL", "sqlite:///./ferrycast.db")


def _connect_args(url: str) -> dict:
    if url.startswith("sqlite"):
        return {"check_same_thread": False}
    return {"connect_timeout": int(os.getenv("DATABASE_CONNECT_TIMEOUT_SECONDS", "10"))}


engine = create_engine(DATABASE_URL, pool_pre_ping=True, connect_args=_connect_args(DATABASE_URL))
SessionLocal = sessionmaker(bind=engine, autoflush=False, autocommit=False)
Base = declarative_base()

# JSONB on Postgres, plain JSON everywhere else (sqlite in tests)
JsonDoc = JSON().with_variant(JSONB(), "postgresql")
