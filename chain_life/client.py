"""Shared Strava API client utilities."""

from __future__ import annotations

from typing import Any, Dict, Optional

import requests
import structlog

logger = structlog.get_logger(__name__)

REQUEST_TIMEOUT = 30


class StravaError(RuntimeError):
    """Base class for failures talking to Strava."""


class ApiError(StravaError):
    """Raised when Strava answers with a non-2xx status or an unreadable body."""

    def __init__(self, status: int, body: str) -> None:
        super().__init__(f"Strava API call failed with {status}: {body}")
        self.status = status
        self.body = body


class AuthError(ApiError):
    """Raised on HTTP 401; the access token is invalid or expired."""


def raise_for_status(response: requests.Response) -> requests.Response:
    """Map non-2xx responses onto ``AuthError``/``ApiError``."""
    if response.status_code == 401:
        raise AuthError(response.status_code, response.text)
    if not 200 <= response.status_code < 300:
        raise ApiError(response.status_code, response.text)
    return response


class StravaAPIClient:
    """Base class that performs bearer-authenticated requests."""

    def __init__(
        self,
        access_token: str,
        *,
        session: Optional[requests.Session] = None,
    ) -> None:
        if not access_token:
            raise ValueError("access_token must not be empty")
        self.access_token = access_token
        self.session = session or requests.Session()

    def request(
        self,
        method: str,
        url: str,
        *,
        params: Optional[Dict[str, Any]] = None,
        headers: Optional[Dict[str, str]] = None,
        **kwargs: Any,
    ) -> requests.Response:
        """Perform an authorized HTTP request.

        There is no retry: the first failing response is raised as
        ``AuthError`` (401) or ``ApiError`` (any other non-2xx).
        """
        merged_headers = {"Accept": "application/json"}
        if headers:
            merged_headers.update(headers)
        merged_headers["Authorization"] = f"Bearer {self.access_token}"
        kwargs.setdefault("timeout", REQUEST_TIMEOUT)

        response = self.session.request(
            method,
            url,
            params=params,
            headers=merged_headers,
            **kwargs,
        )
        logger.debug(
            "strava_request_completed",
            method=method,
            url=url,
            status=response.status_code,
        )
        return raise_for_status(response)

    def get_json(self, url: str, **kwargs: Any) -> Any:
        """GET ``url`` and decode the JSON body."""
        response = self.request("GET", url, **kwargs)
        try:
            return response.json()
        except ValueError as exc:
            raise ApiError(response.status_code, response.text) from exc
