import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv

BACKEND_DIR = Path(__file__).resolve().parents[2]

_env_loaded = False


def load_env() -> None:
    """Load backend/.env once; real environment variables win."""
    global _env_loaded
    if _env_loaded:
        return
    load_dotenv(BACKEND_DIR / ".env", override=False)
    _env_loaded = True


@dataclass(frozen=True)
class ReconcileConfig:
    # chain continuity: longer than this at the dock means the vessel starts a layover
    layover_threshold_minutes: float
    # chain-keyed models with fewer training records fall back to the pair model
    min_chain_records: int


@dataclass(frozen=True)
class RetentionConfig:
    ping_retention_hours: float
    cleanup_batch_size: int
    cleanup_max_batches: int

    schedule_sync_days: int
    schedule_retention_hours: float


def load_reconcile_config() -> ReconcileConfig:
    load_env()
    return ReconcileConfig(
        layover_threshold_minutes=float(os.getenv("LAYOVER_THRESHOLD_MINUTES", "60")),
        min_chain_records=int(os.getenv("MIN_CHAIN_RECORDS", "50")),
    )


def load_retention_config() -> RetentionConfig:
    load_env()
    return RetentionConfig(
        ping_retention_hours=float(os.getenv("PING_RETENTION_HOURS", "2")),
        cleanup_batch_size=int(os.getenv("CLEANUP_BATCH_SIZE", "50")),
        cleanup_max_batches=int(os.getenv("CLEANUP_MAX_BATCHES", "0")),
        schedule_sync_days=int(os.getenv("SCHEDULE_SYNC_DAYS", "2")),
        schedule_retention_hours=float(os.getenv("SCHEDULE_RETENTION_HOURS", "24")),
    )
