"""Push CLI command."""

from __future__ import annotations

import click

from ghsecrets.cli.common import (
    BACKUP_CHOICES,
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


@click.command()
@click.option("--key", "-k", help="Secret key name (will prompt if not provided)")
@click.option("--value", "-v", help="Secret value (will prompt if not provided)")
@click.option(
    "--backup",
    "-b",
    type=click.Choice(BACKUP_CHOICES, case_sensitive=False),
    default=BackupTarget.NONE.value,
    show_default=True,
    help="Backup destination",
)
@click.option("--owner", "-o", help="GitHub repository owner")
@click.option("--repo", "-r", help="GitHub repository name")
@click.option("--aws-region", help="AWS region for Secrets Manager")
@click.option("--aws-profile", help="AWS profile to use")
@click.option("--gcp-project", help="GCP project ID")
@click.pass_context
def push(
    ctx: click.Context,
    key: str | None,
    value: str | None,
    backup: str,
    owner: str | None,
    repo: str | None,
    aws_region: str | None,
    aws_profile: str | None,
    gcp_project: str | None,
) -> None:
    """
    Push a secret to GitHub, optionally backing it up first.

    The backup is written before GitHub; if it fails, GitHub is not touched.

    \b
    Examples:
      ghsecrets push -k API_KEY -v "secret-value" -b aws
      ghsecrets push -k DATABASE_URL -b gcp   # prompts for the value
    """
    settings = load_settings(
        ctx,
        github={"owner": owner, "repo": repo},
        aws={"region": aws_region, "profile": aws_profile},
        gcp={"project": gcp_project},
    )
    settings = with_github_token(settings)
    target = BackupTarget(backup.lower())

    if not key:
        key = click.prompt("Enter secret key name").strip()
        if not key:
            fail("secret key cannot be empty")
    if not value:
        value = click.prompt(f"Enter value for secret '{key}'", hide_input=True)
        if not value:
            fail("secret value cannot be empty")

    async def _push() -> None:
        async with build_primary(settings) as primary:
            orchestrator = SyncOrchestrator(settings, primary, build_backups(settings, [target]))
            await orchestrator.push(key, value, target)

    repository = settings.github.repository or "?"
    if target is BackupTarget.NONE:
        console.print(f"Pushing secret '{key}' to GitHub repository {repository}...")
    else:
        console.print(
            f"Backing up secret '{key}' to {target.value}, then pushing to GitHub repository {repository}..."
        )
    run(_push())

    if target is not BackupTarget.NONE:
        console.print(f"[green]✓[/green] Backed up to {target.value}")
    console.print("[green]✓[/green] Pushed to GitHub Secrets")
