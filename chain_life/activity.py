"""Utilities to query Strava activities."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import TYPE_CHECKING, Any, Dict, Iterator, List, Mapping, Optional

import structlog

from . import STRAVA_API_BASE
from .client import ApiError, AuthError, StravaAPIClient
from .dates import coerce_datetime

logger = structlog.get_logger(__name__)

if TYPE_CHECKING:
    import requests

__all__ = [
    "ACTIVITIES_URL",
    "Activity",
    "ApiError",
    "AuthError",
    "StravaActivityFetcher",
]

ACTIVITIES_URL = f"{STRAVA_API_BASE}/athlete/activities"
DEFAULT_PAGE_SIZE = 200
MAX_PAGE_SIZE = 200


@dataclass(frozen=True)
class Activity:
    """One recorded exercise session as returned by Strava."""

    id: int
    type: str
    distance_meters: float
    start_date: Optional[datetime] = None

    @property
    def distance_km(self) -> float:
        return self.distance_meters / 1000.0

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "Activity":
        """Create an Activity from a summary activity JSON object."""
        distance = payload.get("distance") or 0.0
        return cls(
            id=payload.get("id"),
            type=str(payload.get("type") or ""),
            distance_meters=max(0.0, float(distance)),
            start_date=coerce_datetime(payload.get("start_date")),
        )


class StravaActivityFetcher(StravaAPIClient):
    """High level helper that pages through the athlete's activities."""

    def __init__(
        self,
        access_token: str,
        *,
        session: Optional["requests.Session"] = None,
        page_size: int = DEFAULT_PAGE_SIZE,
    ) -> None:
        if page_size < 1 or page_size > MAX_PAGE_SIZE:
            raise ValueError(f"page_size must be between 1 and {MAX_PAGE_SIZE}")
        super().__init__(access_token, session=session)
        self.page_size = page_size
        self._last_request_count = 0

    def fetch_activities_since(self, since_epoch: int) -> List[Activity]:
        """Fetch every activity started after ``since_epoch``.

        Pages are concatenated in the order Strava returns them. Any failing
        page aborts the whole fetch; nothing from earlier pages is returned.
        """
        return list(self.iter_activities(since_epoch))

    def iter_activities(self, since_epoch: int) -> Iterator[Activity]:
        """Yield activities page by page until Strava returns an empty page."""
        params: Dict[str, Any] = {
            "after": int(since_epoch),
            "page": 1,
            "per_page": self.page_size,
        }
        self._last_request_count = 0

        while True:
            batch = self.get_json(ACTIVITIES_URL, params=dict(params))
            self._last_request_count += 1
            if not isinstance(batch, list):
                raise ApiError(200, f"Expected a list of activities, got: {batch!r}")
            logger.info(
                "fetched_activities_page",
                page=params["page"],
                fetched=len(batch),
            )
            if not batch:
                break
            for payload in batch:
                try:
                    activity = Activity.from_dict(payload)
                except (AttributeError, TypeError, ValueError) as exc:
                    raise ApiError(200, f"Malformed activity: {payload!r}") from exc
                yield activity
            params["page"] += 1

    @property
    def last_request_count(self) -> int:
        """Return the number of API requests performed by the last fetch."""
        return self._last_request_count
