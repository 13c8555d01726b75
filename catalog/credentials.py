"""Bearer credential providers and the in-memory credential cache."""

from __future__ import annotations

import logging
import time
from collections.abc import Callable
from typing import Protocol

import httpx

from catalog.models import Credential
from core.exceptions import CredentialError, CredentialFailureReason
from core.sentry import add_catalog_breadcrumb
from core.telemetry import record_token_cache_hit, record_token_refresh

logger = logging.getLogger(__name__)

DEFAULT_TOKEN_VALIDITY = 3600

# Status codes a token endpoint uses to report why it refused
STATUS_REASONS: dict[int, CredentialFailureReason] = {
    401: CredentialFailureReason.NOT_SIGNED_IN,
    403: CredentialFailureReason.PERMISSION_DENIED,
    451: CredentialFailureReason.PRIVACY_ACKNOWLEDGEMENT_REQUIRED,
}


class CredentialProvider(Protocol):
    """Issues developer tokens for the catalog API."""

    async def developer_token(self) -> str:
        """Return a fresh token or raise CredentialError."""
        ...


class StaticTokenProvider:
    """Hands out a token configured ahead of time."""

    def __init__(self, token: str | None):
        self._token = token

    async def developer_token(self) -> str:
        if not self._token:
            raise CredentialError(
                CredentialFailureReason.NOT_SIGNED_IN,
                "No developer token configured",
            )
        return self._token


class RemoteTokenProvider:
    """Fetches tokens from a token-issuing HTTP endpoint.

    The endpoint is expected to answer ``{"token": "..."}``. Refusals are
    mapped to a CredentialFailureReason by status code, or by an explicit
    ``reason`` field in the error body when one is present.
    """

    def __init__(self, url: str, timeout: float = 10.0, client: httpx.AsyncClient | None = None):
        self.url = url
        self.timeout = timeout
        self._client = client

    async def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient(timeout=self.timeout)
        return self._client

    async def close(self):
        if self._client:
            await self._client.aclose()
            self._client = None

    async def developer_token(self) -> str:
        client = await self._get_client()
        try:
            response = await client.get(self.url)
        except httpx.RequestError as e:
            logger.error(f"Token endpoint unreachable: {e}")
            raise CredentialError(
                CredentialFailureReason.PROVIDER_FAILURE, f"Token endpoint unreachable: {e}"
            ) from e

        if response.status_code != 200:
            reason = self._reason_for(response)
            logger.error(f"Token endpoint refused ({response.status_code}): {reason}")
            raise CredentialError(reason, details={"status_code": response.status_code})

        try:
            token = response.json().get("token")
        except (ValueError, AttributeError) as e:
            raise CredentialError(
                CredentialFailureReason.PROVIDER_FAILURE, "Token endpoint returned invalid JSON"
            ) from e

        if not isinstance(token, str) or not token:
            raise CredentialError(
                CredentialFailureReason.PROVIDER_FAILURE, "Token endpoint returned no token"
            )
        return token

    @staticmethod
    def _reason_for(response: httpx.Response) -> CredentialFailureReason:
        try:
            declared = response.json().get("reason")
        except (ValueError, AttributeError):
            declared = None
        if isinstance(declared, str) and declared in set(CredentialFailureReason):
            return CredentialFailureReason(declared)
        if response.status_code in STATUS_REASONS:
            return STATUS_REASONS[response.status_code]
        if response.status_code >= 500:
            return CredentialFailureReason.PROVIDER_FAILURE
        return CredentialFailureReason.UNKNOWN


class CredentialCache:
    """Caches one bearer credential and refreshes it when it expires.

    The provider does not report a token lifetime, so each credential is
    trusted for a fixed ``validity_seconds`` from the moment it was issued.
    A token that expired upstream before that window closes surfaces later
    as an ApiError(401) from the catalog.

    Concurrent refreshes are allowed; whichever finishes last is kept.
    """

    def __init__(
        self,
        provider: CredentialProvider,
        validity_seconds: float = DEFAULT_TOKEN_VALIDITY,
        clock: Callable[[], float] = time.time,
    ):
        self.provider = provider
        self.validity_seconds = validity_seconds
        self._clock = clock
        self._credential: Credential | None = None

    @property
    def cached(self) -> Credential | None:
        return self._credential

    def invalidate(self) -> None:
        """Forget the cached credential so the next call refreshes."""
        self._credential = None

    async def get_token(self) -> Credential:
        """Return a usable credential, refreshing from the provider if needed.

        Raises:
            CredentialError: If the provider refuses or fails
        """
        credential = self._credential
        if credential is not None and credential.is_usable(self._clock()):
            logger.debug("Using cached developer token")
            record_token_cache_hit()
            return credential

        logger.info("Requesting new developer token")
        add_catalog_breadcrumb("token_refresh")
        try:
            token = await self.provider.developer_token()
        except CredentialError as e:
            add_catalog_breadcrumb("token_error", {"reason": str(e.reason)}, level="error")
            raise
        except Exception as e:
            logger.error(f"Unexpected error getting developer token: {e}")
            raise CredentialError(CredentialFailureReason.UNKNOWN, str(e)) from e

        refreshed = Credential(token=token, expires_at=self._clock() + self.validity_seconds)
        self._credential = refreshed
        record_token_refresh()
        logger.info("Developer token obtained successfully")
        return refreshed
