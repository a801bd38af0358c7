"""Authenticate API requests on behalf of GitHub Apps and their installations.

Example::

    app = GitHubAppAuthenticator(12345, pem_bytes, "my-app")
    authenticator = app.installation_authenticator(67890)

    request = TokenRequest(permissions=Permissions(contents=ReadWrite.READ))
    token = await authenticator.access_token(request)

    # Same token until it is about to expire
    refreshing = authenticator.into_refreshing(request)
    token = await refreshing.access_token()
"""

from __future__ import annotations

__version__ = "0.1.0"

from github_app_auth.app import GITHUB_API_BASE, GitHubAppAuthenticator  # noqa: E402
from github_app_auth.exceptions import (  # noqa: E402
    ClientError,
    ConfigError,
    FailedToDecodeAccessTokenResponse,
    FailedToGenerateJwt,
    FailedToParseEnvValue,
    FailedToParseKey,
    GitHubAuthenticatorError,
    InstallationRequestFailed,
)
from github_app_auth.installation import (  # noqa: E402
    GitHubInstallationAuthenticator,
    RefreshingGitHubInstallationAuthenticator,
)
from github_app_auth.models import TOKEN_EXPIRY_MARGIN, TokenRequest  # noqa: E402
from github_app_auth.permissions import (  # noqa: E402
    Permissions,
    ReadOnly,
    ReadWrite,
    ReadWriteAdmin,
    WriteOnly,
)

__all__ = [
    "GITHUB_API_BASE",
    "TOKEN_EXPIRY_MARGIN",
    "ClientError",
    "ConfigError",
    "FailedToDecodeAccessTokenResponse",
    "FailedToGenerateJwt",
    "FailedToParseEnvValue",
    "FailedToParseKey",
    "GitHubAppAuthenticator",
    "GitHubAuthenticatorError",
    "GitHubInstallationAuthenticator",
    "InstallationRequestFailed",
    "Permissions",
    "ReadOnly",
    "ReadWrite",
    "ReadWriteAdmin",
    "RefreshingGitHubInstallationAuthenticator",
    "TokenRequest",
    "WriteOnly",
]
