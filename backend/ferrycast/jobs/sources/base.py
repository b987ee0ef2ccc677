from abc import ABC, abstractmethod

from ferrycast.reconcile.types import ScheduledTrip, VesselLocation


class UpstreamSignalError(RuntimeError):
    """Live position or schedule feed unavailable or empty."""


class FeedSource(ABC):
    @abstractmethod
    def fetch_locations(self) -> list[VesselLocation]:
        """Current position of every vessel. Raises UpstreamSignalError when empty or unreachable."""
        raise NotImplementedError

    @abstractmethod
    def fetch_schedule(self, sailing_day: str) -> list[ScheduledTrip]:
        """Published trips for one sailing day (YYYY-MM-DD)."""
        raise NotImplementedError
