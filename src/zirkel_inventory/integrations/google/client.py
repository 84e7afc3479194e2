#!/usr/bin/env python3
"""
Base Google API client.

Handles OAuth2 refresh-token authentication and turns every HTTP failure into
a ``RemoteServiceError`` classified as rate-limited, transient or permanent
from the status code and Google's structured error body.
"""

import logging
import time
from typing import Any, Dict, Optional

import requests

from zirkel_inventory.core.errors import ErrorKind, RemoteServiceError, classify_status
from zirkel_inventory.integrations.google.config import (
    GOOGLE_CLIENT_ID,
    GOOGLE_CLIENT_SECRET,
    GOOGLE_REFRESH_TOKEN,
    GOOGLE_REQUEST_TIMEOUT,
    GOOGLE_TOKEN_URL,
)

logger = logging.getLogger(__name__)

# Error reasons Google reports for quota exhaustion (often with HTTP 403)
RATE_LIMIT_REASONS = frozenset({
    "rateLimitExceeded",
    "userRateLimitExceeded",
    "quotaExceeded",
})
RATE_LIMIT_STATUSES = frozenset({"RESOURCE_EXHAUSTED"})


class GoogleAPIError(RemoteServiceError):
    """Exception raised for Google API errors."""


def classify_google_error(status_code: Optional[int], body: Optional[Dict[str, Any]]) -> ErrorKind:
    """
    Classify a Google API failure.

    Args:
        status_code: HTTP status code
        body: Parsed JSON error body, if any

    Returns:
        ErrorKind for the failure
    """
    error = (body or {}).get("error")
    if isinstance(error, dict):
        if error.get("status") in RATE_LIMIT_STATUSES:
            return ErrorKind.RATE_LIMITED
        for detail in error.get("errors") or []:
            if isinstance(detail, dict) and detail.get("reason") in RATE_LIMIT_REASONS:
                return ErrorKind.RATE_LIMITED
    return classify_status(status_code)


class GoogleClient:
    """
    Authenticated client for Google REST APIs.

    Subclasses add the Sheets, Slides and Drive resources.
    """

    def __init__(
        self,
        client_id: Optional[str] = None,
        client_secret: Optional[str] = None,
        refresh_token: Optional[str] = None,
        session: Optional[requests.Session] = None,
        timeout: float = GOOGLE_REQUEST_TIMEOUT,
    ):
        """
        Initialize the client.

        Args:
            client_id: OAuth client ID (defaults to env var)
            client_secret: OAuth client secret (defaults to env var)
            refresh_token: OAuth refresh token (defaults to env var)
            session: HTTP session (a new one by default)
            timeout: Per-request timeout in seconds
        """
        self.client_id = client_id or GOOGLE_CLIENT_ID
        self.client_secret = client_secret or GOOGLE_CLIENT_SECRET
        self.refresh_token = refresh_token or GOOGLE_REFRESH_TOKEN
        self.session = session or requests.Session()
        self.timeout = timeout

        self._access_token: Optional[str] = None
        self._token_expiry: float = 0

    # =========================================================================
    # Authentication
    # =========================================================================

    def _refresh_access_token(self) -> str:
        """
        Refresh the OAuth2 access token using the refresh token.

        Returns:
            New access token

        Raises:
            GoogleAPIError: If token refresh fails
        """
        logger.debug("Refreshing Google access token...")

        data = {
            "refresh_token": self.refresh_token,
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "grant_type": "refresh_token",
        }

        try:
            response = self.session.post(GOOGLE_TOKEN_URL, data=data, timeout=self.timeout)
        except requests.RequestException as e:
            raise GoogleAPIError(f"Token refresh request failed: {e}", kind=ErrorKind.TRANSIENT)

        token_data = response.json() if response.content else {}
        if response.status_code >= 400 or "access_token" not in token_data:
            raise GoogleAPIError(
                f"Token refresh failed: {token_data.get('error', response.status_code)}",
                kind=classify_status(response.status_code),
                status_code=response.status_code,
                response=token_data,
            )

        self._access_token = token_data["access_token"]
        # Tokens last an hour; refresh 5 minutes early
        expires_in = token_data.get("expires_in", 3600)
        self._token_expiry = time.time() + expires_in - 300

        logger.debug("Access token refreshed successfully")
        return self._access_token

    def _get_access_token(self) -> str:
        """Get a valid access token, refreshing if necessary."""
        if not self._access_token or time.time() >= self._token_expiry:
            return self._refresh_access_token()
        return self._access_token

    def _get_headers(self) -> Dict[str, str]:
        """Get headers for API requests including auth token."""
        return {
            "Authorization": f"Bearer {self._get_access_token()}",
            "Content-Type": "application/json",
        }

    # =========================================================================
    # API Request Helper
    # =========================================================================

    def _make_request(
        self,
        method: str,
        url: str,
        params: Optional[Dict[str, Any]] = None,
        json_data: Optional[Dict[str, Any]] = None,
    ) -> Dict[str, Any]:
        """
        Make an authenticated API request.

        Args:
            method: HTTP method (GET, POST, PUT)
            url: Absolute endpoint URL
            params: Query parameters
            json_data: JSON body data

        Returns:
            Response JSON

        Raises:
            GoogleAPIError: If the request fails
        """
        logger.debug(f"Google API {method} {url}")

        try:
            response = self.session.request(
                method=method,
                url=url,
                headers=self._get_headers(),
                params=params,
                json=json_data,
                timeout=self.timeout,
            )
        except requests.RequestException as e:
            raise GoogleAPIError(f"Request failed: {e}", kind=ErrorKind.TRANSIENT)

        try:
            response_data = response.json() if response.content else {}
        except ValueError:
            response_data = {"raw": response.text}

        if response.status_code >= 400:
            error = response_data.get("error")
            message = error.get("message") if isinstance(error, dict) else response.text
            kind = classify_google_error(response.status_code, response_data)
            raise GoogleAPIError(
                f"API error ({response.status_code}): {message}",
                kind=kind,
                status_code=response.status_code,
                response=response_data,
            )

        return response_data
