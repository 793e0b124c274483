"""Thin async wrapper around Google's JSON REST APIs.

Shared by the Gmail and Chat sources and the Drive backup: bearer
authentication, request timeouts, and translation of httpx failures into
a single GoogleApiError that carries the HTTP status when there is one.
"""

from __future__ import annotations

from typing import Any

import httpx

from taskmind.logging import get_logger

log = get_logger("taskmind.sources.google_api")

DEFAULT_TIMEOUT = 30.0

# Statuses that mean "this account or scope cannot use the API"
PERMISSION_STATUSES = frozenset({401, 403})


class GoogleApiError(Exception):
    """Raised when a Google API request fails."""

    def __init__(self, message: str, *, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code

    @property
    def is_permission_error(self) -> bool:
        """True when the token lacks the scope or the account lacks access."""
        return self.status_code in PERMISSION_STATUSES


class GoogleApiClient:
    """Async client bound to a single OAuth access token."""

    def __init__(self, access_token: str, *, timeout: float = DEFAULT_TIMEOUT) -> None:
        """Initialize the client.

        Args:
            access_token: Google OAuth2 access token.
            timeout: HTTP request timeout in seconds.
        """
        if not access_token:
            raise ValueError("access_token is required")
        self._access_token = access_token
        self._timeout = timeout

    def _headers(self) -> dict[str, str]:
        """Return authorization headers."""
        return {"Authorization": f"Bearer {self._access_token}"}

    async def _get(self, url: str, params: dict[str, Any] | None = None) -> dict[str, Any]:
        """Make an authenticated GET request."""
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            try:
                response = await client.get(url, headers=self._headers(), params=params)
                response.raise_for_status()
                result: dict[str, Any] = response.json()
                return result
            except httpx.HTTPStatusError as exc:
                raise GoogleApiError(
                    f"Google API error {exc.response.status_code}: {exc.response.text}",
                    status_code=exc.response.status_code,
                ) from exc
            except httpx.RequestError as exc:
                raise GoogleApiError(f"Google API request failed: {exc}") from exc

    async def _post_multipart(
        self,
        url: str,
        parts: dict[str, tuple[str | None, bytes, str]],
        params: dict[str, Any] | None = None,
    ) -> dict[str, Any]:
        """Make an authenticated multipart POST request."""
        async with httpx.AsyncClient(timeout=self._timeout) as client:
            try:
                response = await client.post(
                    url, headers=self._headers(), params=params, files=parts
                )
                response.raise_for_status()
                result: dict[str, Any] = response.json()
                return result
            except httpx.HTTPStatusError as exc:
                raise GoogleApiError(
                    f"Google API error {exc.response.status_code}: {exc.response.text}",
                    status_code=exc.response.status_code,
                ) from exc
            except httpx.RequestError as exc:
                raise GoogleApiError(f"Google API request failed: {exc}") from exc
