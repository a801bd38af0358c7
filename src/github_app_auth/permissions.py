"""Permissions that can be requested for an installation access token.

Field names and the levels each one accepts are fixed by GitHub's
``POST /app/installations/{id}/access_tokens`` API. Only fields that are
set appear in the request body.
"""

from __future__ import annotations

import enum
from typing import Any

from pydantic import BaseModel, ConfigDict


class ReadOnly(str, enum.Enum):
    READ = "read"


class WriteOnly(str, enum.Enum):
    WRITE = "write"


class ReadWrite(str, enum.Enum):
    READ = "read"
    WRITE = "write"


class ReadWriteAdmin(str, enum.Enum):
    READ = "read"
    WRITE = "write"
    ADMIN = "admin"


class Permissions(BaseModel):
    """Sparse set of capabilities to request for an access token.

    Assignment is validated, so ``perms.contents = "admin"`` raises while
    ``perms.contents = ReadWrite.READ`` (or ``"read"``) is accepted.
    """

    model_config = ConfigDict(extra="forbid", validate_assignment=True)

    # Repository permissions
    actions: ReadWrite | None = None
    administration: ReadWrite | None = None
    checks: ReadWrite | None = None
    contents: ReadWrite | None = None
    deployments: ReadWrite | None = None
    environments: ReadWrite | None = None
    issues: ReadWrite | None = None
    metadata: ReadWrite | None = None
    packages: ReadWrite | None = None
    pages: ReadWrite | None = None
    pull_requests: ReadWrite | None = None
    repository_hooks: ReadWrite | None = None
    repository_projects: ReadWriteAdmin | None = None
    secret_scanning_alerts: ReadWrite | None = None
    secrets: ReadWrite | None = None
    security_events: ReadWrite | None = None
    single_file: ReadWrite | None = None
    statuses: ReadWrite | None = None
    vulnerability_alerts: ReadWrite | None = None
    workflows: WriteOnly | None = None

    # Organization permissions
    members: ReadWrite | None = None
    organization_administration: ReadWrite | None = None
    organization_custom_roles: ReadWrite | None = None
    organization_announcement_banners: ReadWrite | None = None
    organization_hooks: ReadWrite | None = None
    organization_personal_access_tokens: ReadWrite | None = None
    organization_personal_access_token_requests: ReadWrite | None = None
    organization_plan: ReadOnly | None = None
    organization_projects: ReadWriteAdmin | None = None
    organization_packages: ReadWrite | None = None
    organization_secrets: ReadWrite | None = None
    organization_self_hosted_runners: ReadWrite | None = None
    organization_user_blocking: ReadWrite | None = None
    team_discussions: ReadWrite | None = None

    def set(self, **fields: Any) -> Permissions:
        """Return a copy with the given fields set, validated against their levels."""
        return Permissions.model_validate({**self.model_dump(exclude_none=True), **fields})

    def to_wire(self) -> dict[str, str]:
        """Return the JSON body fragment: set fields only, lowercase tokens."""
        return self.model_dump(mode="json", exclude_none=True)
