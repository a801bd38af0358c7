"""Custom exception hierarchy for the GitHub App authenticator."""

from __future__ import annotations


class GitHubAuthenticatorError(Exception):
    """Base exception for all authenticator errors."""


class ClientError(GitHubAuthenticatorError):
    """The HTTP transport failed (connect, TLS, DNS, IO). Wraps the cause."""


class FailedToDecodeAccessTokenResponse(GitHubAuthenticatorError):
    """GitHub answered 201 but the body did not match the token schema."""

    def __init__(self) -> None:
        super().__init__("Failed to decode access token from GitHub")


class FailedToGenerateJwt(GitHubAuthenticatorError):
    """Signing the App JWT failed. Wraps the cause."""


class FailedToParseKey(GitHubAuthenticatorError):
    """The RSA private key PEM could not be parsed.

    The message is fixed so that key material never ends up in logs or tracebacks.
    """

    def __init__(self) -> None:
        super().__init__("Failed to parse private key")


class FailedToParseEnvValue(GitHubAuthenticatorError):
    """A numeric id read from the environment was not a valid integer."""

    def __init__(self, name: str, value: str) -> None:
        self.name = name
        self.value = value
        super().__init__(f"Failed to parse {name}={value!r} as an integer")


class InstallationRequestFailed(GitHubAuthenticatorError):
    """The installation token endpoint returned something other than 201."""

    def __init__(self, status_code: int) -> None:
        self.status_code = status_code
        super().__init__(f"Installation token request failed {status_code}")


class ConfigError(GitHubAuthenticatorError):
    """Error loading or validating configuration."""
