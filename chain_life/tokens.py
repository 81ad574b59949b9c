"""Helpers for reading and writing Strava token files."""

from __future__ import annotations

import json
import time
from dataclasses import dataclass
from pathlib import Path
from typing import Any, Dict, Mapping, Optional


@dataclass(frozen=True)
class TokenSet:
    """In-memory representation of the tokens returned by Strava."""

    access_token: str
    refresh_token: Optional[str] = None
    expires_at: Optional[int] = None
    athlete_firstname: Optional[str] = None
    athlete_lastname: Optional[str] = None

    @classmethod
    def from_dict(cls, payload: Mapping[str, Any]) -> "TokenSet":
        """Create a TokenSet from a token response or a saved token file.

        Both Strava's nested ``athlete`` object and the flat keys written by
        ``as_serializable_dict`` are understood.
        """
        athlete = payload.get("athlete") or {}
        expires_at = payload.get("expires_at")
        return cls(
            access_token=payload["access_token"],
            refresh_token=payload.get("refresh_token"),
            expires_at=int(expires_at) if expires_at is not None else None,
            athlete_firstname=athlete.get("firstname")
            or payload.get("athlete_firstname"),
            athlete_lastname=athlete.get("lastname") or payload.get("athlete_lastname"),
        )

    @property
    def athlete_name(self) -> str:
        parts = [self.athlete_firstname, self.athlete_lastname]
        return " ".join(part for part in parts if part)

    def as_serializable_dict(self) -> Dict[str, Any]:
        """Return a JSON serializable representation of the token."""
        data: Dict[str, Any] = {"access_token": self.access_token}
        if self.refresh_token:
            data["refresh_token"] = self.refresh_token
        if self.expires_at is not None:
            data["expires_at"] = self.expires_at
        if self.athlete_firstname:
            data["athlete_firstname"] = self.athlete_firstname
        if self.athlete_lastname:
            data["athlete_lastname"] = self.athlete_lastname
        return data

    def is_expired(self, now: Optional[float] = None) -> bool:
        """Return True when ``expires_at`` lies in the past."""
        if self.expires_at is None:
            return False
        current = time.time() if now is None else now
        return self.expires_at <= current


def load_token_file(path: str | Path) -> TokenSet:
    """Load token JSON from disk."""
    token_path = Path(path).expanduser()
    with token_path.open("r", encoding="utf-8") as handle:
        payload = json.load(handle)
    return TokenSet.from_dict(payload)


def write_token_file(token: TokenSet, path: str | Path) -> Path:
    """Persist token JSON to disk and return the resolved path."""
    token_path = Path(path).expanduser()
    token_path.parent.mkdir(parents=True, exist_ok=True)
    with token_path.open("w", encoding="utf-8") as handle:
        json.dump(token.as_serializable_dict(), handle, indent=2)
        handle.write("\n")
    return token_path
