"""Tests for the Strava OAuth2 authorization-code flow."""

from __future__ import annotations

import json
from typing import Any
from unittest.mock import patch
from urllib.parse import parse_qs, urlparse

import pytest
import requests

from chain_life import oauth
from chain_life.client import ApiError, AuthError
from chain_life.oauth import (
    AuthorizationDenied,
    MissingCode,
    StateMismatch,
    begin_authorization,
    complete_authorization,
    create_strava_session,
    parse_redirect_url,
)

TOKEN_PAYLOAD = {
    "token_type": "Bearer",
    "expires_at": 1700000000,
    "refresh_token": "refresh-abc",
    "access_token": "access-xyz",
    "athlete": {"id": 42, "firstname": "Ada", "lastname": "Lovelace"},
}


def make_response(status_code: int, payload: Any) -> requests.Response:
    body = payload if isinstance(payload, str) else json.dumps(payload)
    response = requests.Response()
    response.status_code = status_code
    response._content = body.encode("utf-8")
    response.encoding = "utf-8"
    response.headers["Content-Type"] = "application/json"
    response.request = requests.Request("POST", oauth.TOKEN_ENDPOINT).prepare()
    return response


def redirect_for(state: str, code: str | None = "auth-code") -> str:
    url = f"http://localhost/exchange_token?state={state}&scope=read,activity:read_all"
    if code is not None:
        url += f"&code={code}"
    return url


def test_authorization_url_parameters():
    url, state = begin_authorization("12345", "secret")

    parsed = urlparse(url)
    params = parse_qs(parsed.query)
    assert f"{parsed.scheme}://{parsed.netloc}{parsed.path}" == (
        "https://www.strava.com/oauth/authorize"
    )
    assert params["client_id"] == ["12345"]
    assert params["response_type"] == ["code"]
    assert params["redirect_uri"] == ["http://localhost/exchange_token"]
    assert params["approval_prompt"] == ["force"]
    assert params["scope"] == ["read,activity:read_all"]
    assert params["state"] == [state]
    assert "secret" not in url


def test_each_attempt_gets_a_fresh_state():
    _, first = begin_authorization("12345", "secret")
    _, second = begin_authorization("12345", "secret")

    assert first != second
    assert len(first) >= 16


def test_parse_redirect_url():
    params = parse_redirect_url(redirect_for("abc", "xyz"))

    assert params["state"] == "abc"
    assert params["code"] == "xyz"
    assert parse_redirect_url("") == {}


def test_state_mismatch_makes_no_request():
    session = create_strava_session("12345", state="expected")

    with patch.object(session, "request", side_effect=AssertionError("no HTTP")) as req:
        with pytest.raises(StateMismatch):
            complete_authorization(
                redirect_for("forged"), "expected", "12345", "secret", session=session
            )

    assert req.call_count == 0


def test_missing_state_is_a_mismatch():
    with pytest.raises(StateMismatch):
        complete_authorization(
            "http://localhost/exchange_token?code=abc", "expected", "12345", "secret"
        )


def test_missing_code():
    with pytest.raises(MissingCode):
        complete_authorization(
            redirect_for("expected", code=None), "expected", "12345", "secret"
        )


def test_denied_authorization():
    url = "http://localhost/exchange_token?state=expected&error=access_denied"

    with pytest.raises(AuthorizationDenied, match="access_denied"):
        complete_authorization(url, "expected", "12345", "secret")


def test_successful_exchange_maps_token_set():
    session = create_strava_session("12345", state="expected")

    with patch.object(
        session, "request", return_value=make_response(200, TOKEN_PAYLOAD)
    ) as req:
        token = complete_authorization(
            redirect_for("expected"), "expected", "12345", "secret", session=session
        )

    assert token.access_token == "access-xyz"
    assert token.refresh_token == "refresh-abc"
    assert token.expires_at == 1700000000
    assert token.athlete_name == "Ada Lovelace"

    assert req.call_count == 1
    data = req.call_args.kwargs["data"]
    assert data["grant_type"] == "authorization_code"
    assert data["code"] == "auth-code"
    assert data["client_id"] == "12345"
    assert data["client_secret"] == "secret"


@pytest.mark.parametrize(
    "status,expected_error", [(400, ApiError), (500, ApiError), (401, AuthError)]
)
def test_non_2xx_token_response(status, expected_error):
    session = create_strava_session("12345", state="expected")
    body = {"message": "Bad Request", "errors": [{"field": "code"}]}

    with patch.object(session, "request", return_value=make_response(status, body)):
        with pytest.raises(expected_error) as exc_info:
            complete_authorization(
                redirect_for("expected"), "expected", "12345", "secret", session=session
            )

    assert exc_info.value.status == status
    assert "Bad Request" in exc_info.value.body


def test_malformed_token_body_is_api_error():
    session = create_strava_session("12345", state="expected")

    with patch.object(
        session, "request", return_value=make_response(200, {"unexpected": True})
    ):
        with pytest.raises(ApiError) as exc_info:
            complete_authorization(
                redirect_for("expected"), "expected", "12345", "secret", session=session
            )

    assert exc_info.value.status == 200
