"""Map user supplied activity-type filters onto Strava activity types."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, FrozenSet

import structlog

from .activity import Activity

logger = structlog.get_logger(__name__)

__all__ = [
    "CYCLING_TYPES",
    "KNOWN_ACTIVITY_TYPES",
    "PRESETS",
    "RUNNING_TYPES",
    "FilterSet",
    "matches",
    "resolve_filter_set",
]

CYCLING_TYPES: FrozenSet[str] = frozenset(
    {
        "Ride",
        "VirtualRide",
        "EBikeRide",
        "MountainBikeRide",
        "GravelRide",
        "Handcycle",
    }
)
RUNNING_TYPES: FrozenSet[str] = frozenset(
    {"Run", "TrailRun", "Treadmill", "VirtualRun"}
)

PRESETS: Dict[str, FrozenSet[str]] = {
    "cycling": CYCLING_TYPES,
    "running": RUNNING_TYPES,
}
ALL_KEYWORD = "all"

# Values Strava documents for the ``type``/``sport_type`` fields. Only used to
# warn about likely typos; explicit filters are never rejected.
KNOWN_ACTIVITY_TYPES: FrozenSet[str] = CYCLING_TYPES | RUNNING_TYPES | frozenset(
    {
        "AlpineSki",
        "BackcountrySki",
        "Badminton",
        "Canoeing",
        "Crossfit",
        "Elliptical",
        "EMountainBikeRide",
        "Golf",
        "HighIntensityIntervalTraining",
        "Hike",
        "IceSkate",
        "InlineSkate",
        "Kayaking",
        "Kitesurf",
        "NordicSki",
        "Pickleball",
        "Pilates",
        "Racquetball",
        "RockClimbing",
        "RollerSki",
        "Rowing",
        "Sail",
        "Skateboard",
        "Snowboard",
        "Snowshoe",
        "Soccer",
        "Squash",
        "StairStepper",
        "StandUpPaddling",
        "Surfing",
        "Swim",
        "TableTennis",
        "Tennis",
        "Velomobile",
        "VirtualRow",
        "Walk",
        "WeightTraining",
        "Wheelchair",
        "Windsurf",
        "Workout",
        "Yoga",
    }
)


@dataclass(frozen=True)
class FilterSet:
    """Concrete set of activity types a fetch should count."""

    types: FrozenSet[str]
    match_all: bool = False
    label: str = ""

    def matches(self, activity: Activity) -> bool:
        if self.match_all:
            return True
        return activity.type in self.types

    def describe(self) -> str:
        """Return a short human readable description of the filter."""
        if self.match_all:
            return "all activity types"
        names = ", ".join(sorted(self.types)) or "no activity types"
        if self.label in PRESETS:
            return f"{self.label}: {names}"
        return names


def resolve_filter_set(spec: str) -> FilterSet:
    """Resolve a preset keyword or comma-separated list into a FilterSet.

    ``cycling``, ``running`` and ``all`` select presets. Any other value is
    split on commas; each entry is trimmed and kept with its original case.
    Entries Strava does not know are accepted but logged, since they can never
    match an activity.
    """
    if spec == ALL_KEYWORD:
        return FilterSet(types=frozenset(), match_all=True, label=spec)

    preset = PRESETS.get(spec)
    if preset is not None:
        return FilterSet(types=preset, label=spec)

    types = frozenset(entry.strip() for entry in spec.split(",") if entry.strip())
    unknown = sorted(types - KNOWN_ACTIVITY_TYPES)
    if unknown:
        logger.warning(
            "unknown_activity_types",
            types=unknown,
            help="Types are case-sensitive, e.g. 'Ride' or 'TrailRun'",
        )
    if not types:
        logger.warning("empty_activity_filter", spec=spec)
    return FilterSet(types=types, label=spec)


def matches(activity: Activity, filter_set: FilterSet) -> bool:
    """Return True when ``activity`` should be counted under ``filter_set``."""
    return filter_set.matches(activity)
