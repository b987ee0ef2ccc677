import logging
from typing import Any, Optional

import httpx

from ferrycast.core.log import configure_logging_if_needed
from ferrycast.jobs.sources.base import FeedSource, UpstreamSignalError
from ferrycast.reconcile.types import ScheduledTrip, VesselLocation
from ferrycast.utils.time import parse_wsf_date, sailing_day as sailing_day_of
from ferrycast.utils.trip_key import make_trip_key

from .config import load_config
from .http import get_with_retry, make_client

logger = logging.getLogger(__name__)


def _str(value: Any) -> Optional[str]:
    s = (value or "").strip() if isinstance(value, str) else value
    return s or None


def parse_location(raw: dict) -> Optional[VesselLocation]:
    """
    One vessel-locations item -> VesselLocation.
    Returns None when identity or position is missing.
    """
    vessel_abbrev = _str(raw.get("VesselAbbrev")) or _str(raw.get("VesselName"))
    vessel_id = raw.get("VesselID")
    timestamp = parse_wsf_date(raw.get("TimeStamp"))
    lat = raw.get("Latitude")
    lon = raw.get("Longitude")
    if not vessel_abbrev or vessel_id is None or timestamp is None or lat is None or lon is None:
        return None

    return VesselLocation(
        vessel_id=int(vessel_id),
        vessel_abbrev=vessel_abbrev,
        latitude=float(lat),
        longitude=float(lon),
        in_service=bool(raw.get("InService", True)),
        at_dock=bool(raw.get("AtDock", False)),
        timestamp=timestamp,
        heading=raw.get("Heading"),
        speed=raw.get("Speed"),
        departing_terminal_abbrev=_str(raw.get("DepartingTerminalAbbrev")),
        arriving_terminal_abbrev=_str(raw.get("ArrivingTerminalAbbrev")),
        scheduled_departure=parse_wsf_date(raw.get("ScheduledDeparture")),
        left_dock=parse_wsf_date(raw.get("LeftDock")),
        eta=parse_wsf_date(raw.get("Eta")),
    )


def parse_scheduled_trip(raw: dict) -> Optional[ScheduledTrip]:
    vessel = _str(raw.get("VesselAbbrev"))
    departing = _str(raw.get("DepartingTerminalAbbrev"))
    arriving = _str(raw.get("ArrivingTerminalAbbrev"))
    departing_time = parse_wsf_date(raw.get("DepartingTime"))
    if not vessel or not departing or not arriving or departing_time is None:
        return None

    key = _str(raw.get("Key")) or make_trip_key(vessel, departing, arriving, departing_time)
    return ScheduledTrip(
        key=key,
        vessel_abbrev=vessel,
        departing_terminal_abbrev=departing,
        arriving_terminal_abbrev=arriving,
        departing_time=departing_time,
        arriving_time=parse_wsf_date(raw.get("ArrivingTime")),
        sailing_day=_str(raw.get("SailingDay")) or sailing_day_of(departing_time),
        route_id=raw.get("RouteID"),
        route_abbrev=_str(raw.get("RouteAbbrev")),
    )


class HttpFeedSource(FeedSource):
    """
    WSF-style JSON feeds:
      - GET locations_path -> [VesselLocation-ish]
      - GET schedule_path (per sailing day) -> [ScheduledTrip-ish]
    """

    def __init__(self, client: Optional[httpx.Client] = None):
        configure_logging_if_needed()
        self.cfg = load_config()
        self._client = client

        logger.info(
            "Feed configured base_url=%s timeouts(connect=%.1f read=%.1f) retries=%d backoff_base=%.2f",
            self.cfg.base_url,
            self.cfg.connect_timeout,
            self.cfg.read_timeout,
            self.cfg.retries,
            self.cfg.backoff_base,
        )

    def _get(self, path: str) -> Any:
        try:
            if self._client is not None:
                return get_with_retry(self.cfg, self._client, path)
            with make_client(self.cfg) as client:
                return get_with_retry(self.cfg, client, path)
        except httpx.HTTPError as e:
            raise UpstreamSignalError(f"GET {path} failed: {e!r}") from e

    def fetch_locations(self) -> list[VesselLocation]:
        payload = self._get(self.cfg.locations_path)
        if not isinstance(payload, list) or not payload:
            raise UpstreamSignalError("Vessel locations feed returned no data")

        out: list[VesselLocation] = []
        dropped = 0
        for raw in payload:
            try:
                loc = parse_location(raw) if isinstance(raw, dict) else None
            except (TypeError, ValueError) as e:
                logger.debug("Bad vessel location %r: %s", raw, e)
                loc = None
            if loc is None:
                dropped += 1
                continue
            out.append(loc)

        if dropped:
            logger.warning("Dropped %d malformed vessel locations", dropped)
        if not out:
            raise UpstreamSignalError("Vessel locations feed had no usable rows")
        return out

    def fetch_schedule(self, sailing_day: str) -> list[ScheduledTrip]:
        path = self.cfg.schedule_path.format(sailing_day=sailing_day)
        payload = self._get(path)
        if not isinstance(payload, list) or not payload:
            raise UpstreamSignalError(f"Schedule feed returned no trips for {sailing_day}")

        out: list[ScheduledTrip] = []
        for raw in payload:
            try:
                trip = parse_scheduled_trip(raw) if isinstance(raw, dict) else None
            except (TypeError, ValueError) as e:
                logger.debug("Bad scheduled trip %r: %s", raw, e)
                trip = None
            if trip is not None:
                out.append(trip)
        if len(out) < len(payload):
            logger.warning("Dropped %d malformed scheduled trips for %s", len(payload) - len(out), sailing_day)
        return out
