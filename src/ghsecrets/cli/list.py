"""List CLI commands."""

from __future__ import annotations

import click
from rich.table import Table

from ghsecrets.cli.common import (
    STORE_CHOICES,
    build_backups,
    build_primary,
    console,
    fail,
    load_settings,
    run,
    with_github_token,
)
from ghsecrets.core.types import BackupTarget
from ghsecrets.sync.orchestrator import SyncOrchestrator


@click.group("list")
def list_secrets() -> None:
    """List secret names. Values are never shown."""
    pass


@list_secrets.command("backup")
@click.option(
    "--backup",
    "-b",
    type=click.Choice(STORE_CHOICES, case_sensitive=False),
    required=True,
    help="Backup store to list",
)
@click.option("--owner", "-o", help="GitHub repository owner")
@click.option("--repo", "-r", help="GitHub repository name")
@click.option("--format", "output_format", type=click.Choice(["table", "plain"]), default="table")
@click.pass_context
def list_backup(
    ctx: click.Context,
    backup: str,
    owner: str | None,
    repo: str | None,
    output_format: str,
) -> None:
    """List secrets stored in a backup collection."""
    settings = load_settings(ctx, github={"owner": owner, "repo": repo})
    source = BackupTarget(backup.lower())

    async def _list() -> list[str]:
        async with build_primary(settings) as primary:
            orchestrator = SyncOrchestrator(settings, primary, build_backups(settings, [source]))
            return await orchestrator.list_backup_keys(source)

    names = run(_list())
    _print_names(names, f"{source.value}: {settings.collection_name(source)}", output_format)


@list_secrets.command("github")
@click.option("--owner", "-o", help="GitHub repository owner")
@click.option("--repo", "-r", help="GitHub repository name")
@click.option("--format", "output_format", type=click.Choice(["table", "plain"]), default="table")
@click.pass_context
def list_github(
    ctx: click.Context,
    owner: str | None,
    repo: str | None,
    output_format: str,
) -> None:
    """List secret names on the GitHub repository."""
    settings = with_github_token(load_settings(ctx, github={"owner": owner, "repo": repo}))
    missing = settings.missing_github_fields()
    if missing:
        fail(f"Missing configuration for list: {', '.join(missing)}")

    async def _list() -> list[str]:
        async with build_primary(settings) as primary:
            return await primary.list_secret_names()

    names = run(_list())
    _print_names(names, f"GitHub: {settings.github.repository}", output_format)


def _print_names(names: list[str], title: str, output_format: str) -> None:
    if output_format == "plain":
        for name in names:
            console.print(name, highlight=False)
        return

    if not names:
        console.print(f"[yellow]No secrets found ({title})[/yellow]")
        return

    table = Table(title=title)
    table.add_column("Secret", style="cyan")
    for name in names:
        table.add_row(name)
    console.print(table)
