"""Sum activity distances for a filter."""

from __future__ import annotations

from typing import Iterable, NamedTuple

import structlog

from .activity import Activity
from .filters import FilterSet

logger = structlog.get_logger(__name__)


class DistanceSummary(NamedTuple):
    """Totals for one fetch."""

    total_km: float
    included: int
    excluded: int


def aggregate(activities: Iterable[Activity], filter_set: FilterSet) -> DistanceSummary:
    """Sum the kilometers of activities matching ``filter_set``.

    Counts are informational. Values are not rounded here.
    """
    total_km = 0.0
    included = 0
    excluded = 0
    for activity in activities:
        if filter_set.matches(activity):
            total_km += activity.distance_km
            included += 1
            logger.debug(
                "activity_included",
                activity_id=activity.id,
                type=activity.type,
                km=round(activity.distance_km, 2),
            )
        else:
            excluded += 1
            logger.debug(
                "activity_excluded",
                activity_id=activity.id,
                type=activity.type,
            )
    return DistanceSummary(total_km=total_km, included=included, excluded=excluded)
