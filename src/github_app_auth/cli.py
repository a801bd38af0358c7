"""Click CLI for minting App JWTs and installation tokens."""

from __future__ import annotations

import asyncio
import logging
import sys
from datetime import timedelta
from typing import Any

import click

from github_app_auth import __version__
from github_app_auth.config import AppConfig, load_config
from github_app_auth.exceptions import GitHubAuthenticatorError


def _common_options(func: Any) -> Any:
    options = [
        click.option("--config", "config_path", default=None, help="Path to .github-app.yml"),
        click.option("--app-id", type=int, default=None, help="GitHub App ID"),
        click.option(
            "--private-key", default=None, help="PEM contents or @path/to/key.pem"
        ),
        click.option("--base-url", default=None, help="API root, e.g. for GitHub Enterprise"),
        click.option("--verbose", is_flag=True, help="Enable verbose logging"),
    ]
    for option in reversed(options):
        func = option(func)
    return func


def _setup(
    verbose: bool,
    config_path: str | None,
    overrides: dict[str, Any],
) -> AppConfig:
    logging.basicConfig(
        level=logging.DEBUG if verbose else logging.WARNING,
        format="%(name)s %(levelname)s: %(message)s",
        stream=sys.stderr,
    )
    try:
        return load_config(config_path, overrides)
    except GitHubAuthenticatorError as e:
        raise click.ClickException(str(e)) from e


@click.group()
@click.version_option(version=__version__, prog_name="github-app-auth")
def main() -> None:
    """Authenticate as a GitHub App and its installations."""


@main.command()
@_common_options
@click.option(
    "--duration", type=int, default=600, show_default=True, help="JWT validity in seconds"
)
def jwt(
    config_path: str | None,
    app_id: int | None,
    private_key: str | None,
    base_url: str | None,
    verbose: bool,
    duration: int,
) -> None:
    """Print a JWT that authenticates as the App."""
    config = _setup(
        verbose,
        config_path,
        {"app_id": app_id, "private_key": private_key, "base_url": base_url},
    )
    try:
        token = config.build_app().mint_jwt(timedelta(seconds=duration))
    except GitHubAuthenticatorError as e:
        raise click.ClickException(str(e)) from e
    click.echo(token)


@main.command()
@_common_options
@click.option("--installation-id", type=int, default=None, help="Installation to request for")
def token(
    config_path: str | None,
    app_id: int | None,
    private_key: str | None,
    base_url: str | None,
    verbose: bool,
    installation_id: int | None,
) -> None:
    """Exchange an App JWT for an installation access token and print it."""
    config = _setup(
        verbose,
        config_path,
        {
            "app_id": app_id,
            "private_key": private_key,
            "base_url": base_url,
            "installation_id": installation_id,
        },
    )
    if config.installation_id is None:
        raise click.UsageError(
            "--installation-id or GITHUB_APP_INSTALLATION_ID is required"
        )

    async def _fetch(installation_id: int) -> str:
        async with config.build_app().installation_authenticator(installation_id) as auth:
            return await auth.access_token(config.token_request())

    try:
        access_token = asyncio.run(_fetch(config.installation_id))
    except GitHubAuthenticatorError as e:
        raise click.ClickException(str(e)) from e
    click.echo(access_token)
