"""Tests for activity-type filter resolution."""

from __future__ import annotations

import pytest

from chain_life.activity import Activity
from chain_life.filters import (
    CYCLING_TYPES,
    RUNNING_TYPES,
    matches,
    resolve_filter_set,
)


def make_activity(kind: str) -> Activity:
    return Activity(id=1, type=kind, distance_meters=1000.0)


def test_cycling_preset():
    filter_set = resolve_filter_set("cycling")

    assert filter_set.types == {
        "Ride",
        "VirtualRide",
        "EBikeRide",
        "MountainBikeRide",
        "GravelRide",
        "Handcycle",
    }
    assert filter_set.types == CYCLING_TYPES
    assert not filter_set.match_all


def test_running_preset():
    filter_set = resolve_filter_set("running")

    assert filter_set.types == {"Run", "TrailRun", "Treadmill", "VirtualRun"}
    assert filter_set.types == RUNNING_TYPES


@pytest.mark.parametrize("spec", ["cycling", "running", "all", "Ride, Run"])
def test_resolution_is_idempotent(spec):
    assert resolve_filter_set(spec) == resolve_filter_set(spec)


def test_all_matches_anything():
    filter_set = resolve_filter_set("all")

    assert filter_set.match_all
    assert matches(make_activity("Ride"), filter_set)
    assert matches(make_activity("Yoga"), filter_set)
    assert matches(make_activity(""), filter_set)


@pytest.mark.parametrize("spec", ["Ride,Run", " Ride , Run ", "Ride,,Run,"])
def test_explicit_list_is_trimmed(spec):
    assert resolve_filter_set(spec).types == {"Ride", "Run"}


def test_explicit_list_is_case_sensitive():
    filter_set = resolve_filter_set("ride")

    assert filter_set.types == {"ride"}
    assert not matches(make_activity("Ride"), filter_set)


def test_unknown_types_are_kept_but_never_match():
    filter_set = resolve_filter_set("Ride,Skydive")

    assert filter_set.types == {"Ride", "Skydive"}
    assert matches(make_activity("Ride"), filter_set)
    assert not matches(make_activity("Run"), filter_set)


def test_keywords_are_exact():
    # Only the lower-case keywords select presets.
    assert resolve_filter_set("Cycling").types == {"Cycling"}


def test_describe():
    assert resolve_filter_set("all").describe() == "all activity types"
    assert resolve_filter_set("Run,Ride").describe() == "Ride, Run"
    assert resolve_filter_set("").describe() == "no activity types"
    assert resolve_filter_set("running").describe() == (
        "running: Run, TrailRun, Treadmill, VirtualRun"
    )
