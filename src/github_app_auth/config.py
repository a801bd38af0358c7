"""Configuration loading for callers that build authenticators from files or the environment."""

from __future__ import annotations

import os
from collections.abc import Mapping
from pathlib import Path
from typing import Any

import yaml
from pydantic import BaseModel, Field, ValidationError

from github_app_auth.app import GITHUB_API_BASE, GitHubAppAuthenticator
from github_app_auth.exceptions import ConfigError, FailedToParseEnvValue
from github_app_auth.models import MAX_ID, TokenRequest
from github_app_auth.permissions import Permissions

_DEFAULT_CONFIG_FILENAME = ".github-app.yml"

_DEFAULT_USER_AGENT = "github-app-authenticator"

# env var -> (config key, numeric)
_ENV_VARS: dict[str, tuple[str, bool]] = {
    "GITHUB_APP_ID": ("app_id", True),
    "GITHUB_APP_PRIVATE_KEY": ("private_key", False),
    "GITHUB_APP_INSTALLATION_ID": ("installation_id", True),
    "GITHUB_APP_USER_AGENT": ("user_agent", False),
    "GITHUB_API_URL": ("base_url", False),
}


class AppConfig(BaseModel):
    app_id: int = Field(ge=0, le=MAX_ID)
    private_key: str
    user_agent: str = _DEFAULT_USER_AGENT
    base_url: str = GITHUB_API_BASE
    installation_id: int | None = Field(default=None, ge=0, le=MAX_ID)
    permissions: Permissions | None = None
    repositories: list[int] | None = None

    def resolve_private_key(self) -> bytes:
        """Return the PEM bytes, reading the file when the key is given as ``@path``."""
        if not self.private_key.startswith("@"):
            return self.private_key.encode()
        key_path = Path(self.private_key[1:]).expanduser()
        try:
            return key_path.read_bytes()
        except FileNotFoundError:
            raise ConfigError(f"Private key file not found: {key_path}") from None

    def build_app(self) -> GitHubAppAuthenticator:
        app = GitHubAppAuthenticator(self.app_id, self.resolve_private_key(), self.user_agent)
        return app.with_base_uri(self.base_url)

    def token_request(self) -> TokenRequest:
        return TokenRequest(permissions=self.permissions, repositories=self.repositories)


def find_config_file(start_dir: Path | None = None) -> Path | None:
    """Walk up from start_dir looking for .github-app.yml."""
    current = start_dir or Path.cwd()
    for directory in [current, *current.parents]:
        candidate = directory / _DEFAULT_CONFIG_FILENAME
        if candidate.is_file():
            return candidate
    return None


def _load_yaml(path: Path) -> dict[str, Any]:
    try:
        raw = path.read_text(encoding="utf-8")
        parsed = yaml.safe_load(raw)
        if parsed and isinstance(parsed, dict):
            return dict(parsed)
        return {}
    except yaml.YAMLError as e:
        raise ConfigError(f"Invalid YAML in {path}: {e}") from e


def parse_env_int(name: str, value: str) -> int:
    """Parse a numeric id taken from the environment."""
    try:
        return int(value.strip())
    except ValueError:
        raise FailedToParseEnvValue(name, value) from None


def _apply_env(data: dict[str, Any], environ: Mapping[str, str]) -> None:
    for env_name, (key, numeric) in _ENV_VARS.items():
        value = environ.get(env_name)
        if not value:
            continue
        data[key] = parse_env_int(env_name, value) if numeric else value


def load_config(
    config_path: Path | str | None = None,
    overrides: dict[str, Any] | None = None,
    environ: Mapping[str, str] | None = None,
) -> AppConfig:
    """Load config from YAML, then the environment, then explicit overrides.

    Later sources win. Overrides use dotted keys, e.g. ``permissions.contents``.
    """
    data: dict[str, Any] = {}

    if config_path is not None:
        path = Path(config_path)
        if not path.is_file():
            raise ConfigError(f"Config file not found: {path}")
        data = _load_yaml(path)
    else:
        found = find_config_file()
        if found:
            data = _load_yaml(found)

    _apply_env(data, os.environ if environ is None else environ)

    if overrides:
        for key, value in overrides.items():
            if value is not None:
                _set_nested(data, key.split("."), value)

    try:
        return AppConfig.model_validate(data)
    except ValidationError as e:
        # Locations and messages only: input values would include the private key.
        problems = "; ".join(
            f"{'.'.join(str(part) for part in err['loc'])}: {err['msg']}" for err in e.errors()
        )
        raise ConfigError(f"Invalid configuration: {problems}") from None


def _set_nested(d: dict[str, Any], keys: list[str], value: Any) -> None:
    """Set a value in a nested dict using a list of keys."""
    for key in keys[:-1]:
        if not isinstance(d.get(key), dict):
            d[key] = {}
        d = d[key]
    d[keys[-1]] = value
