import os
from dataclasses import dataclass
from typing import Optional

from ferrycast.core.config import load_env


@dataclass(frozen=True)
class FeedConfig:
    base_url: str
    api_key: Optional[str]

    locations_path: str
    schedule_path: str   # formatted with sailing_day=YYYY-MM-DD

    connect_timeout: float
    read_timeout: float
    write_timeout: float
    pool_timeout: float

    retries: int
    backoff_base: float


def load_config() -> FeedConfig:
    load_env()
    return FeedConfig(
        base_url=os.getenv("FEED_BASE_URL", "https://www.wsdot.wa.gov/ferries/api"),
        api_key=os.getenv("FEED_API_KEY") or None,
        locations_path=os.getenv("FEED_LOCATIONS_PATH", "/vessels/rest/vessellocations"),
        schedule_path=os.getenv("FEED_SCHEDULE_PATH", "/schedule/rest/sailings/{sailing_day}"),
        connect_timeout=float(os.getenv("FEED_CONNECT_TIMEOUT_SECONDS", "10")),
        read_timeout=float(os.getenv("FEED_READ_TIMEOUT_SECONDS", "30")),
        write_timeout=float(os.getenv("FEED_WRITE_TIMEOUT_SECONDS", "30")),
        pool_timeout=float(os.getenv("FEED_POOL_TIMEOUT_SECONDS", "30")),
        retries=int(os.getenv("FEED_RETRIES", "4")),
        backoff_base=float(os.getenv("FEED_BACKOFF_BASE_SECONDS", "1.5")),
    )
