"""Installation access token exchange and caching."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime, timedelta, timezone
from types import TracebackType

import httpx
from pydantic import ValidationError

from github_app_auth.app import GitHubAppAuthenticator
from github_app_auth.exceptions import (
    ClientError,
    FailedToDecodeAccessTokenResponse,
    InstallationRequestFailed,
)
from github_app_auth.models import CachedToken, InstallationTokenResponse, TokenRequest

logger = logging.getLogger(__name__)

# A fresh JWT is minted for every exchange; one minute is plenty for a single request.
_JWT_VALIDITY = timedelta(seconds=60)


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class GitHubInstallationAuthenticator:
    """Fetches access tokens for a single GitHub App installation.

    Uses the app's configured HTTP client when there is one; otherwise the
    authenticator owns a private ``httpx.AsyncClient`` that ``aclose()`` releases.
    """

    def __init__(self, app: GitHubAppAuthenticator, installation_id: int) -> None:
        self._app = app
        self._installation_id = installation_id
        self._endpoint = f"{app.base_endpoint}/app/installations/{installation_id}/access_tokens"
        self._client = app.client
        self._owns_client = self._client is None
        self._consumed = False

    def __repr__(self) -> str:
        return (
            f"GitHubInstallationAuthenticator(app_id={self._app.app_id}, "
            f"installation_id={self._installation_id})"
        )

    async def __aenter__(self) -> GitHubInstallationAuthenticator:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    @property
    def installation_id(self) -> int:
        return self._installation_id

    @property
    def endpoint(self) -> str:
        return self._endpoint

    def _get_client(self) -> httpx.AsyncClient:
        if self._client is None:
            self._client = httpx.AsyncClient()
        return self._client

    async def aclose(self) -> None:
        """Close the HTTP client if this authenticator created it."""
        if self._owns_client and self._client is not None:
            await self._client.aclose()
            self._client = None

    def into_refreshing(self, request: TokenRequest) -> RefreshingGitHubInstallationAuthenticator:
        """Turn this authenticator into one that keeps a token for ``request`` alive.

        The refreshing authenticator takes over this one; calling ``access_token``
        on this authenticator afterwards raises ``RuntimeError``.
        """
        if self._consumed:
            raise RuntimeError("Installation authenticator was already converted to refreshing")
        self._consumed = True
        return RefreshingGitHubInstallationAuthenticator(self, request)

    async def access_token(self, request: TokenRequest) -> str:
        """Fetch a new access token for ``request``. Every call performs an exchange."""
        if self._consumed:
            raise RuntimeError("Installation authenticator was converted to refreshing")
        response = await self._request_token(request)
        return response.token

    async def _request_token(self, request: TokenRequest) -> InstallationTokenResponse:
        logger.info(
            "Requesting installation access token for installation %s", self._installation_id
        )

        app_jwt = self._app.mint_jwt(_JWT_VALIDITY)
        headers = {
            "Authorization": f"Bearer {app_jwt}",
            "User-Agent": self._app.user_agent,
            "Accept": "application/vnd.github+json",
        }

        try:
            resp = await self._get_client().post(
                self._endpoint, headers=headers, json=request.to_wire()
            )
        except (httpx.HTTPError, httpx.InvalidURL) as e:
            logger.error(
                "Failed to send installation token request for installation %s: %s",
                self._installation_id,
                type(e).__name__,
            )
            raise ClientError(f"Failed to send request {e}") from e

        if resp.status_code != 201:
            logger.error(
                "Failed to request installation access token for installation %s (HTTP %d)",
                self._installation_id,
                resp.status_code,
            )
            raise InstallationRequestFailed(resp.status_code)

        try:
            return InstallationTokenResponse.model_validate_json(resp.content)
        except ValidationError as e:
            logger.error("Failed to decode installation access token response body")
            raise FailedToDecodeAccessTokenResponse() from e


class RefreshingGitHubInstallationAuthenticator:
    """Keeps an access token for one installation and request pair alive.

    Callers get the cached token until its skew-adjusted expiry passes. Renewal
    runs under a lock with a re-check, so concurrent callers that find the
    cache stale share a single exchange. A failed or cancelled exchange leaves
    the cache untouched.
    """

    def __init__(
        self, authenticator: GitHubInstallationAuthenticator, request: TokenRequest
    ) -> None:
        self._authenticator = authenticator
        self._request = request
        self._token: CachedToken | None = None
        self._lock = asyncio.Lock()

    def __repr__(self) -> str:
        return (
            f"RefreshingGitHubInstallationAuthenticator("
            f"installation_id={self._authenticator.installation_id}, token={self._token!r})"
        )

    async def __aenter__(self) -> RefreshingGitHubInstallationAuthenticator:
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        await self.aclose()

    @property
    def request(self) -> TokenRequest:
        return self._request

    @property
    def expires_at(self) -> datetime | None:
        """Skew-adjusted expiry of the cached token, or None before the first exchange."""
        token = self._token
        return token.expires_at if token is not None else None

    async def aclose(self) -> None:
        await self._authenticator.aclose()

    async def access_token(self) -> str:
        """Return a valid access token, exchanging for a new one when the cache is stale."""
        token = self._token
        if token is not None and not token.is_expired(_utcnow()):
            logger.debug(
                "Using cached token for installation %s", self._authenticator.installation_id
            )
            return token.access_token

        async with self._lock:
            # Another caller may have refreshed while we waited for the lock.
            token = self._token
            if token is None or token.is_expired(_utcnow()):
                response = await self._authenticator._request_token(self._request)
                token = CachedToken.from_response(response)
                self._token = token
                logger.info(
                    "Cached token for installation %s until %s",
                    self._authenticator.installation_id,
                    token.expires_at.isoformat(),
                )
            return token.access_token
