"""Strava OAuth2 authorization-code helpers."""

from __future__ import annotations

import secrets
from typing import Dict, Optional, Tuple
from urllib.parse import parse_qs, urlparse

import requests
import structlog
from oauthlib.oauth2.rfc6749.errors import OAuth2Error
from requests_oauthlib import OAuth2Session

from . import STRAVA_OAUTH_BASE
from .client import REQUEST_TIMEOUT, ApiError, raise_for_status
from .tokens import TokenSet

__all__ = [
    "AUTHORIZATION_ENDPOINT",
    "REDIRECT_URI",
    "REQUIRED_SCOPE",
    "TOKEN_ENDPOINT",
    "AuthorizationDenied",
    "MissingCode",
    "OAuthFlowError",
    "StateMismatch",
    "begin_authorization",
    "complete_authorization",
    "create_strava_session",
    "parse_redirect_url",
]

logger = structlog.get_logger(__name__)

AUTHORIZATION_ENDPOINT = f"{STRAVA_OAUTH_BASE}/authorize"
TOKEN_ENDPOINT = f"{STRAVA_OAUTH_BASE}/token"

# Strava never serves this URL; the user copies it from the browser's address
# bar after the redirect fails to load.
REDIRECT_URI = "http://localhost/exchange_token"

# read for the profile, activity:read_all to include private activities.
# Strava expects a comma separated scope, so it is passed as a single item.
REQUIRED_SCOPE = "read,activity:read_all"


class OAuthFlowError(RuntimeError):
    """Base class for failures in the authorization flow."""


class StateMismatch(OAuthFlowError):
    """The redirect's ``state`` does not match the one we generated."""


class MissingCode(OAuthFlowError):
    """The pasted redirect URL carries no authorization code."""


class AuthorizationDenied(OAuthFlowError):
    """Strava redirected back with an ``error`` parameter."""


def create_strava_session(
    client_id: str, state: Optional[str] = None
) -> OAuth2Session:
    """Create an OAuth2 session configured for the Strava API."""
    return OAuth2Session(
        client_id=client_id,
        redirect_uri=REDIRECT_URI,
        scope=[REQUIRED_SCOPE],
        state=state,
    )


def begin_authorization(client_id: str, client_secret: str) -> Tuple[str, str]:
    """Build the authorization URL and the state the redirect must echo.

    ``client_secret`` is not part of the URL; it is accepted so both halves of
    the flow share a signature.

    Returns:
        ``(authorization_url, expected_state)``.
    """
    expected_state = secrets.token_urlsafe(16)
    session = create_strava_session(client_id)
    authorization_url, state = session.authorization_url(
        AUTHORIZATION_ENDPOINT,
        state=expected_state,
        approval_prompt="force",
    )
    logger.debug(
        "authorization_url_built",
        client_id=client_id,
        redirect_uri=REDIRECT_URI,
        scope=REQUIRED_SCOPE,
    )
    return authorization_url, state


def parse_redirect_url(redirect_url: str) -> Dict[str, str]:
    """Return the first value of every query parameter in ``redirect_url``."""
    query_params = parse_qs(urlparse((redirect_url or "").strip()).query)
    return {key: values[0] for key, values in query_params.items() if values}


def _states_match(returned: Optional[str], expected: str) -> bool:
    if not returned or not expected:
        return False
    return secrets.compare_digest(returned.encode("utf-8"), expected.encode("utf-8"))


def complete_authorization(
    redirect_url: str,
    expected_state: str,
    client_id: str,
    client_secret: str,
    *,
    session: Optional[OAuth2Session] = None,
) -> TokenSet:
    """Validate the pasted redirect URL and exchange its code for tokens.

    Raises:
        StateMismatch: The returned state differs from ``expected_state``.
            No request is sent in that case.
        AuthorizationDenied: The user declined access on Strava.
        MissingCode: The redirect URL has no ``code`` parameter.
        ApiError: The token endpoint failed or returned an unreadable body
            (``AuthError`` for HTTP 401).
    """
    params = parse_redirect_url(redirect_url)

    if not _states_match(params.get("state"), expected_state):
        logger.error("oauth_state_mismatch")
        raise StateMismatch(
            "OAuth state mismatch; the redirect did not come from this request. "
            "Restart the authorization."
        )

    if "error" in params:
        raise AuthorizationDenied(f"Authorization failed: {params['error']}")

    code = params.get("code")
    if not code:
        raise MissingCode("No authorization code found in redirect URL")
    logger.info("authorization_code_received", code=code[:6] + "...")

    oauth = session or create_strava_session(client_id, state=expected_state)
    captured: Dict[str, requests.Response] = {}

    def _check_token_response(response: requests.Response) -> requests.Response:
        captured["response"] = response
        return raise_for_status(response)

    oauth.register_compliance_hook("access_token_response", _check_token_response)

    logger.info("exchanging_authorization_code", token_endpoint=TOKEN_ENDPOINT)
    try:
        token = oauth.fetch_token(
            TOKEN_ENDPOINT,
            code=code,
            client_secret=client_secret,
            include_client_id=True,
            timeout=REQUEST_TIMEOUT,
        )
    except (OAuth2Error, ValueError) as exc:
        # Reached only for 2xx responses oauthlib could not read as a token.
        response = captured.get("response")
        if response is None:
            raise ApiError(getattr(exc, "status_code", 0), str(exc)) from exc
        raise ApiError(response.status_code, response.text) from exc

    try:
        token_set = TokenSet.from_dict(token)
    except (AttributeError, KeyError, TypeError, ValueError) as exc:
        response = captured.get("response")
        body = response.text if response is not None else str(token)
        status = response.status_code if response is not None else 200
        raise ApiError(status, body) from exc

    logger.info(
        "access_token_received",
        athlete=token_set.athlete_name,
        expires_at=token_set.expires_at,
    )
    return token_set
