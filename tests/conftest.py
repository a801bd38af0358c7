"""Shared test fixtures."""

from __future__ import annotations

import asyncio
import json
from collections.abc import AsyncIterator, Callable
from datetime import datetime, timedelta, timezone
from typing import Any

import httpx
import pytest
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.hazmat.primitives.serialization import (
    Encoding,
    NoEncryption,
    PrivateFormat,
)

from github_app_auth.app import GitHubAppAuthenticator

APP_ID = 42
INSTALLATION_ID = 99
MOCK_BASE_URL = "http://github.test"
USER_AGENT = "mock-authenticator"


class MockInstallationServer:
    """Stand-in for GitHub's installation token endpoint, served through httpx.MockTransport."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.status_code = 201
        self.token = "test-token"
        self.expires_in = timedelta(seconds=3600)
        self.raw_body: bytes | None = None
        self.delay: float = 0.0
        self.gate: asyncio.Event | None = None

    def respond_with(
        self,
        status_code: int = 201,
        token: str = "test-token",
        expires_in: timedelta = timedelta(seconds=3600),
        raw_body: bytes | None = None,
    ) -> None:
        self.status_code = status_code
        self.token = token
        self.expires_in = expires_in
        self.raw_body = raw_body

    @property
    def request_count(self) -> int:
        return len(self.requests)

    async def handler(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        if self.gate is not None:
            await self.gate.wait()
        if self.delay:
            await asyncio.sleep(self.delay)

        if self.raw_body is not None:
            return httpx.Response(self.status_code, content=self.raw_body)
        if self.status_code != 201:
            return httpx.Response(self.status_code, json={"message": "Not Found"})
        expires_at = datetime.now(timezone.utc) + self.expires_in
        return httpx.Response(
            201,
            json={
                "token": self.token,
                "expires_at": expires_at.strftime("%Y-%m-%dT%H:%M:%SZ"),
                "permissions": {"contents": "read"},
                "repository_selection": "all",
            },
        )

    def last_body(self) -> dict[str, Any]:
        return json.loads(self.requests[-1].content)


@pytest.fixture
def rsa_key() -> rsa.RSAPrivateKey:
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def rsa_private_key(rsa_key: rsa.RSAPrivateKey) -> bytes:
    """A test RSA private key in PKCS#1 PEM format, as GitHub hands them out."""
    return rsa_key.private_bytes(Encoding.PEM, PrivateFormat.TraditionalOpenSSL, NoEncryption())


@pytest.fixture
def mock_server() -> MockInstallationServer:
    return MockInstallationServer()


@pytest.fixture
async def http_client(mock_server: MockInstallationServer) -> AsyncIterator[httpx.AsyncClient]:
    async with httpx.AsyncClient(transport=httpx.MockTransport(mock_server.handler)) as client:
        yield client


@pytest.fixture
def app_auth(rsa_private_key: bytes) -> GitHubAppAuthenticator:
    return GitHubAppAuthenticator(APP_ID, rsa_private_key, USER_AGENT)


@pytest.fixture
def mock_app(
    app_auth: GitHubAppAuthenticator, http_client: httpx.AsyncClient
) -> GitHubAppAuthenticator:
    return app_auth.with_base_uri(MOCK_BASE_URL).with_client(http_client)


@pytest.fixture
def frozen_now(monkeypatch: pytest.MonkeyPatch) -> Callable[[datetime], None]:
    """Pin the refreshing layer's clock. Call the returned function to move it."""
    import github_app_auth.installation as installation

    def _set(now: datetime) -> None:
        monkeypatch.setattr(installation, "_utcnow", lambda: now)

    return _set
