"""Core helpers for interacting with the Strava API."""

from __future__ import annotations

__all__ = ["STRAVA_API_BASE", "STRAVA_OAUTH_BASE"]

STRAVA_API_BASE = "https://www.strava.com/api/v3"
STRAVA_OAUTH_BASE = "https://www.strava.com/oauth"
