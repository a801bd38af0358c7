"""Shared data models for token requests, responses and the token cache."""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import datetime, timedelta, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, field_validator

from github_app_auth.permissions import Permissions

# Subtracted from GitHub's reported expiry to absorb clock skew and in-flight requests.
TOKEN_EXPIRY_MARGIN = timedelta(minutes=5)

MAX_ID = 2**32 - 1


def check_id(kind: str, value: int) -> int:
    """Reject ids outside the unsigned 32-bit range GitHub uses."""
    if isinstance(value, bool) or not isinstance(value, int) or not 0 <= value <= MAX_ID:
        raise ValueError(f"{kind} id out of range: {value!r}")
    return value


class TokenRequest(BaseModel):
    """A request for an access token limited to specific permissions and repositories.

    The App must already be granted every requested permission on every
    requested repository. Absent fields mean "use the installation defaults".
    """

    model_config = ConfigDict(extra="forbid")

    permissions: Permissions | None = None
    repositories: list[int] | None = None

    @field_validator("repositories")
    @classmethod
    def _check_repository_ids(cls, value: list[int] | None) -> list[int] | None:
        if value is None:
            return value
        for repo_id in value:
            check_id("repository", repo_id)
        return value

    def to_wire(self) -> dict[str, Any]:
        body: dict[str, Any] = {}
        if self.permissions is not None:
            body["permissions"] = self.permissions.to_wire()
        if self.repositories is not None:
            body["repositories"] = list(self.repositories)
        return body


class InstallationTokenResponse(BaseModel):
    """The parts of GitHub's 201 response we care about; other keys are ignored."""

    token: str
    expires_at: datetime

    @field_validator("expires_at")
    @classmethod
    def _assume_utc(cls, value: datetime) -> datetime:
        if value.tzinfo is None:
            return value.replace(tzinfo=timezone.utc)
        return value


@dataclass(frozen=True)
class CachedToken:
    """An access token plus its skew-adjusted expiry."""

    access_token: str = field(repr=False)
    expires_at: datetime

    @classmethod
    def from_response(cls, response: InstallationTokenResponse) -> CachedToken:
        return cls(
            access_token=response.token,
            expires_at=response.expires_at - TOKEN_EXPIRY_MARGIN,
        )

    def is_expired(self, now: datetime) -> bool:
        return now >= self.expires_at


@dataclass
class JwtClaims:
    """Claims GitHub expects in an App JWT."""

    iat: int
    exp: int
    iss: int

    def to_dict(self) -> dict[str, int]:
        return {"iat": self.iat, "exp": self.exp, "iss": self.iss}
