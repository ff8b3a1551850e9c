"""Restore CLI command."""

from __future__ import annotations

import click
from rich.markup import escape

from ghsecrets.cli.common import (
    STORE_CHOICES,
    build_backups,
    build_primary,
    console,
    load_settings,
    run,
    with_github_token,
)
from ghsecrets.core.types import BackupTarget, RestoreState
from ghsecrets.sync.models import SyncResult
from ghsecrets.sync.orchestrator import SyncOrchestrator


@click.command()
@click.option(
    "--backup",
    "-b",
    type=click.Choice(STORE_CHOICES, case_sensitive=False),
    required=True,
    help="Backup source to restore from",
)
@click.option("--owner", "-o", help="GitHub repository owner")
@click.option("--repo", "-r", help="GitHub repository name")
@click.option("--aws-region", help="AWS region")
@click.option("--aws-profile", help="AWS profile name")
@click.option("--gcp-project", help="GCP project ID")
@click.pass_context
def restore(
    ctx: click.Context,
    backup: str,
    owner: str | None,
    repo: str | None,
    aws_region: str | None,
    aws_profile: str | None,
    gcp_project: str | None,
) -> None:
    """
    Restore GitHub Secrets from a backup collection.

    Every secret is restored independently; the command exits with status 1
    if any of them failed.
    """
    settings = load_settings(
        ctx,
        github={"owner": owner, "repo": repo},
        aws={"region": aws_region, "profile": aws_profile},
        gcp={"project": gcp_project},
    )
    settings = with_github_token(settings)
    source = BackupTarget(backup.lower())

    def progress(key: str, state: RestoreState, error: Exception | None) -> None:
        if state is RestoreState.WRITING:
            console.print(f"Restoring secret: {key}... ", end="")
        elif state is RestoreState.SUCCEEDED:
            console.print("[green]OK[/green]")
        elif state is RestoreState.FAILED:
            console.print(f"[red]FAILED[/red]: {escape(str(error))}", highlight=False)

    async def _restore() -> SyncResult:
        async with build_primary(settings) as primary:
            orchestrator = SyncOrchestrator(settings, primary, build_backups(settings, [source]))
            return await orchestrator.restore(source, on_progress=progress)

    console.print(
        f"Restoring secrets from {source.value} to GitHub repository "
        f"{settings.github.repository or '?'}"
    )
    result = run(_restore())

    if result.attempted == 0:
        console.print(f"No secrets found in {source.value} collection '{result.collection}'")

    console.print(f"\nRestore complete: {result.summary()}")

    if not result.ok:
        console.print("[red]Failed secrets:[/red]")
        for failure in result.failures:
            console.print(f"  - {escape(failure.key)}: {escape(failure.error)}", highlight=False)
        raise SystemExit(1)
