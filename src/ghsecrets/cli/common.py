"""Helpers shared by CLI commands."""

from __future__ import annotations

import asyncio
from collections.abc import Coroutine, Iterable
from typing import Any, NoReturn, TypeVar

import click
from pydantic import SecretStr
from rich.console import Console
from rich.markup import escape

from ghsecrets.backends.base import KeyedBlobStoreBase
from ghsecrets.backends.factory import create_blob_store
from ghsecrets.core.config import Settings
from ghsecrets.core.exceptions import ConfigMissingError, ConfigurationError, GhSecretsError
from ghsecrets.core.types import BackupTarget
from ghsecrets.github.auth import resolve_github_token
from ghsecrets.github.client import GitHubSecretsClient
from ghsecrets.observability.logging import configure_logging, get_logger

console = Console()
err_console = Console(stderr=True)
logger = get_logger(__name__)

T = TypeVar("T")

BACKUP_CHOICES = [t.value for t in BackupTarget]
STORE_CHOICES = [t.value for t in BackupTarget.stores()]


def load_settings(ctx: click.Context, **overrides: Any) -> Settings:
    """
    Load settings for a command and configure logging from them.

    Global options stored on the click context (``--config``,
    ``--log-level``, ``--log-format``) are applied here.
    """
    obj = ctx.ensure_object(dict)
    observability = {
        "log_level": obj.get("log_level"),
        "log_format": obj.get("log_format"),
    }
    try:
        settings = Settings.load(obj.get("config_file"), observability=observability, **overrides)
    except ConfigurationError as e:
        fail(e)

    configure_logging(settings.observability.log_level, settings.observability.log_format)
    if settings.config_file:
        logger.info("Using config file", config_file=settings.config_file)
    return settings


def with_github_token(settings: Settings) -> Settings:
    """Fill in the GitHub token from the environment or gh CLI if unset."""
    configured = settings.github.token.get_secret_value() if settings.github.token else None
    try:
        token = resolve_github_token(configured)
    except ConfigurationError as e:
        logger.debug("No GitHub token available", error=e.message)
        return settings

    github = settings.github.model_copy(update={"token": SecretStr(token)})
    return settings.model_copy(update={"github": github})


def build_primary(settings: Settings) -> GitHubSecretsClient:
    """GitHub client for the configured repository."""
    token = settings.github.token.get_secret_value() if settings.github.token else ""
    return GitHubSecretsClient(
        owner=settings.github.owner or "",
        repo=settings.github.repo or "",
        token=token,
        api_url=settings.github.api_url,
        timeout=settings.github.timeout,
    )


def build_backups(
    settings: Settings, targets: Iterable[BackupTarget]
) -> dict[BackupTarget, KeyedBlobStoreBase]:
    """Backup stores for the targets whose settings are complete."""
    stores = {}
    for target in targets:
        if target is BackupTarget.NONE or settings.missing_backend_fields(target):
            continue
        stores[target] = create_blob_store(target, settings)
    return stores


def run(coro: Coroutine[Any, Any, T]) -> T:
    """Run a coroutine, turning ghsecrets errors into a clean exit."""
    try:
        return asyncio.run(coro)
    except GhSecretsError as e:
        fail(e)


def fail(error: GhSecretsError | str) -> NoReturn:
    """Print an error and exit with status 1."""
    message = error.message if isinstance(error, GhSecretsError) else error
    err_console.print(f"[red]✗[/red] {escape(message)}", highlight=False)
    if isinstance(error, ConfigMissingError) and "github.token" in error.fields:
        err_console.print(
            "  Set GITHUB_TOKEN, configure github.token in ghsecrets.yaml, "
            "or login with 'gh auth login'"
        )
    raise SystemExit(1)
