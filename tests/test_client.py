"""Tests for Strava API client helpers."""

from __future__ import annotations

from typing import Any, List

import pytest

from chain_life.client import ApiError, AuthError, StravaAPIClient, raise_for_status


class FakeResponse:
    def __init__(self, status_code: int, text: str = "") -> None:
        self.status_code = status_code
        self.text = text

    def json(self) -> Any:
        raise ValueError("not json")


class DummySession:
    def __init__(self, response: FakeResponse) -> None:
        self.response = response
        self.kwargs: List[dict] = []

    def request(self, method: str, url: str, **kwargs: Any) -> FakeResponse:
        self.kwargs.append(kwargs)
        return self.response


def test_raise_for_status_passes_2xx_through():
    response = FakeResponse(204)
    assert raise_for_status(response) is response


def test_raise_for_status_distinguishes_401():
    with pytest.raises(AuthError):
        raise_for_status(FakeResponse(401, "Authorization Error"))
    with pytest.raises(ApiError) as exc_info:
        raise_for_status(FakeResponse(403, "Forbidden"))
    assert not isinstance(exc_info.value, AuthError)
    assert str(exc_info.value) == "Strava API call failed with 403: Forbidden"


def test_get_json_wraps_unreadable_body():
    session = DummySession(FakeResponse(200, "<html>"))
    client = StravaAPIClient("token", session=session)

    with pytest.raises(ApiError) as exc_info:
        client.get_json("https://www.strava.com/api/v3/athlete")

    assert exc_info.value.body == "<html>"
    assert session.kwargs[0]["timeout"] == 30


def test_empty_token_is_rejected():
    with pytest.raises(ValueError):
        StravaAPIClient("")
