"""Main CLI entry point."""

from __future__ import annotations

import json

import click
import yaml

from ghsecrets import __version__
from ghsecrets.cli.common import build_backups, console, load_settings, run
from ghsecrets.core.config import LogLevel
from ghsecrets.core.types import BackupTarget


@click.group()
@click.version_option(version=__version__, prog_name="ghsecrets")
@click.option(
    "--config",
    "config_file",
    type=click.Path(dir_okay=False),
    help="Config file (default is ./ghsecrets.yaml)",
)
@click.option(
    "--log-level",
    type=click.Choice([level.value for level in LogLevel], case_sensitive=False),
    help="Log level",
)
@click.option("--log-format", type=click.Choice(["console", "json"]), help="Log output format")
@click.pass_context
def cli(
    ctx: click.Context,
    config_file: str | None,
    log_level: str | None,
    log_format: str | None,
) -> None:
    """
    ghsecrets - Manage GitHub Secrets with cloud backups.

    Secrets are pushed to GitHub Actions and can be backed up to AWS Secrets
    Manager, GCP Secret Manager or HashiCorp Vault, then restored from there.

    Use 'ghsecrets COMMAND --help' for more information on a command.
    """
    ctx.ensure_object(dict)
    ctx.obj["config_file"] = config_file
    ctx.obj["log_level"] = log_level.upper() if log_level else None
    ctx.obj["log_format"] = log_format


# Import and register commands
from ghsecrets.cli.list import list_secrets  # noqa: E402
from ghsecrets.cli.push import push  # noqa: E402
from ghsecrets.cli.restore import restore  # noqa: E402

cli.add_command(push)
cli.add_command(restore)
cli.add_command(list_secrets)


@cli.command()
@click.option("--check", is_flag=True, help="Check that each configured backup store is reachable")
@click.pass_context
def info(ctx: click.Context, check: bool) -> None:
    """Show application information."""
    settings = load_settings(ctx)

    console.print(f"[bold]ghsecrets[/bold] v{__version__}")
    console.print(f"Config file: {settings.config_file or '(none)'}")
    console.print(f"GitHub repository: {settings.github.repository or '(not configured)'}")
    for target in BackupTarget.stores():
        name = settings.collection_name(target) or "(not configured)"
        console.print(f"{target.value} collection: {name}")

    if not check:
        return

    stores = build_backups(settings, BackupTarget.stores())
    if not stores:
        console.print("No backup stores configured")
        return

    async def _check() -> dict[BackupTarget, bool]:
        return {target: await store.health_check() for target, store in stores.items()}

    for target, healthy in run(_check()).items():
        status = "[green]reachable[/green]" if healthy else "[red]unreachable[/red]"
        console.print(f"{target.value}: {status}")


@cli.command()
@click.option("--format", "output_format", type=click.Choice(["yaml", "json"]), default="yaml")
@click.pass_context
def config(ctx: click.Context, output_format: str) -> None:
    """Show current configuration (tokens redacted)."""
    settings = load_settings(ctx)

    config_dict = settings.model_dump(mode="json", exclude={"config_file"})

    def redact(obj):
        if isinstance(obj, dict):
            return {
                k: ("***" if v is not None else None) if "token" in k.lower() else redact(v)
                for k, v in obj.items()
            }
        return obj

    redacted = redact(config_dict)

    if output_format == "json":
        console.print(json.dumps(redacted, indent=2), highlight=False)
    else:
        console.print(yaml.safe_dump(redacted, default_flow_style=False), highlight=False)


def main() -> None:
    cli(obj={})


if __name__ == "__main__":
    main()
