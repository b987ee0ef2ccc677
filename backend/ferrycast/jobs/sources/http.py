import logging
import random
import time
from typing import Any, Optional

import httpx

from .config import FeedConfig

logger = logging.getLogger(__name__)

RETRY_STATUSES = {429, 502, 503, 504, 520, 522, 524}


def mask_api_key(value: Optional[str]) -> Optional[str]:
    if not value:
        return value
    if len(value) <= 6:
        return "****"
    return f"****{value[-4:]}"


def make_client(cfg: FeedConfig) -> httpx.Client:
    timeout = httpx.Timeout(
        connect=cfg.connect_timeout,
        read=cfg.read_timeout,
        write=cfg.write_timeout,
        pool=cfg.pool_timeout,
    )
    params = {"apiaccesscode": cfg.api_key} if cfg.api_key else None
    return httpx.Client(
        base_url=cfg.base_url,
        params=params,
        timeout=timeout,
        headers={"Accept": "application/json"},
    )


def sleep_backoff(cfg: FeedConfig, *, attempt: int, path: str) -> None:
    sleep_s = cfg.backoff_base * (2 ** (attempt - 1))
    sleep_s += random.uniform(0, 0.5)
    logger.info("Sleeping %.2fs before retrying %s", sleep_s, path)
    time.sleep(sleep_s)


def get_with_retry(cfg: FeedConfig, client: httpx.Client, path: str) -> Any:
    last_err: Exception | None = None

    for attempt in range(1, cfg.retries + 1):
        t0 = time.perf_counter()
        try:
            r = client.get(path)
            elapsed = time.perf_counter() - t0

            if r.status_code in RETRY_STATUSES:
                logger.warning(
                    "Retryable HTTP %d (attempt %d/%d) GET %s after %.2fs body_snippet=%r",
                    r.status_code,
                    attempt,
                    cfg.retries,
                    path,
                    elapsed,
                    (r.text or "")[:300],
                )
                raise httpx.HTTPStatusError("Retryable status", request=r.request, response=r)

            logger.debug("GET %s completed in %.2fs status=%d", path, elapsed, r.status_code)
            r.raise_for_status()
            return r.json()

        except (httpx.ReadTimeout, httpx.ConnectTimeout) as e:
            last_err = e
            logger.warning(
                "%s (attempt %d/%d) GET %s after %.2fs",
                e.__class__.__name__,
                attempt,
                cfg.retries,
                path,
                time.perf_counter() - t0,
            )

        except httpx.HTTPStatusError as e:
            last_err = e
            status = e.response.status_code if e.response is not None else None
            if status not in RETRY_STATUSES:
                logger.error("Non-retryable HTTP %s GET %s (key %s)", status, path, mask_api_key(cfg.api_key))
                raise

        except httpx.TransportError as e:
            last_err = e
            logger.warning("Request failed (attempt %d/%d) GET %s error=%r", attempt, cfg.retries, path, e)

        if attempt < cfg.retries:
            sleep_backoff(cfg, attempt=attempt, path=path)

    raise last_err  # type: ignore
