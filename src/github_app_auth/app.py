"""GitHub App identity and JWT minting."""

from __future__ import annotations

import copy
import json
import logging
import time
from datetime import timedelta
from typing import TYPE_CHECKING

import httpx
import jwt
from cryptography.exceptions import UnsupportedAlgorithm
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from github_app_auth.exceptions import FailedToGenerateJwt, FailedToParseKey
from github_app_auth.models import JwtClaims, check_id

if TYPE_CHECKING:
    from github_app_auth.installation import GitHubInstallationAuthenticator

logger = logging.getLogger(__name__)

GITHUB_API_BASE = "https://api.github.com"


class GitHubAppAuthenticator:
    """Holds a GitHub App identity and mints JWTs proving it.

    An app authenticator is the factory for per-installation authenticators.
    The private key is kept as raw PEM bytes and only parsed when a JWT is minted.
    """

    def __init__(self, app_id: int, private_key: bytes | str, user_agent: str) -> None:
        logger.debug("Creating app authenticator for app %s (user agent %r)", app_id, user_agent)
        self._app_id = check_id("app", app_id)
        self._key = private_key.encode() if isinstance(private_key, str) else private_key
        self._user_agent = user_agent
        self._base_endpoint = GITHUB_API_BASE
        self._client: httpx.AsyncClient | None = None

    def __repr__(self) -> str:
        return f"GitHubAppAuthenticator(app_id={self._app_id})"

    @property
    def app_id(self) -> int:
        return self._app_id

    @property
    def user_agent(self) -> str:
        return self._user_agent

    @property
    def base_endpoint(self) -> str:
        return self._base_endpoint

    @property
    def client(self) -> httpx.AsyncClient | None:
        """The HTTP client shared with installation authenticators, if one was configured."""
        return self._client

    def with_base_uri(self, base_endpoint: str) -> GitHubAppAuthenticator:
        """Point requests at another API root (GitHub Enterprise, a mock server)."""
        self._base_endpoint = str(base_endpoint).rstrip("/")
        return self

    def with_client(self, client: httpx.AsyncClient) -> GitHubAppAuthenticator:
        """Send requests via the given client. The caller stays responsible for closing it."""
        self._client = client
        return self

    def _load_key(self) -> rsa.RSAPrivateKey:
        try:
            key = serialization.load_pem_private_key(self._key, password=None)
        except (ValueError, TypeError, UnsupportedAlgorithm):
            # The underlying error can echo key bytes; keep it out of the logs.
            logger.error("Failed to parse private key for app %s", self._app_id)
            raise FailedToParseKey() from None
        if not isinstance(key, rsa.RSAPrivateKey):
            logger.error("Private key for app %s is not an RSA key", self._app_id)
            raise FailedToParseKey()
        return key

    def mint_jwt(self, duration: timedelta) -> str:
        """Generate an RS256-signed JWT valid for ``duration`` from now.

        Negative durations are accepted and yield an already-expired token.
        """
        now = int(time.time())
        claims = JwtClaims(
            iat=now,
            exp=now + int(duration.total_seconds()),
            iss=self._app_id,
        )
        key = self._load_key()
        # Signed at the JWS layer: PyJWT's claim checks insist on a string iss,
        # GitHub expects the numeric app id.
        payload = json.dumps(claims.to_dict(), separators=(",", ":")).encode()
        try:
            return jwt.PyJWS().encode(payload, key, algorithm="RS256", headers={"typ": "JWT"})
        except (jwt.PyJWTError, ValueError, TypeError) as e:
            logger.error("Failed to generate authentication JWT (claims %s): %s", claims, e)
            raise FailedToGenerateJwt(str(e)) from e

    def installation_authenticator(self, installation_id: int) -> GitHubInstallationAuthenticator:
        """Create an authenticator for one installation of this App.

        Each installation authenticator gets its own copy of this app authenticator,
        so later ``with_base_uri`` calls do not affect it.
        """
        from github_app_auth.installation import GitHubInstallationAuthenticator

        check_id("installation", installation_id)
        return GitHubInstallationAuthenticator(copy.copy(self), installation_id)
