"""GitHub token discovery."""

from __future__ import annotations

import os
import shutil
import subprocess

from ghsecrets.core.exceptions import ConfigurationError
from ghsecrets.observability.logging import get_logger

logger = get_logger(__name__)

GH_CLI_TIMEOUT = 10.0


def resolve_github_token(configured: str | None = None) -> str:
    """
    Find a GitHub token.

    Sources, in order: the configured value, the ``GITHUB_TOKEN``
    environment variable, then ``gh auth token`` if the gh CLI is logged in.

    Raises:
        ConfigurationError: If no source yields a token.
    """
    if configured:
        return configured

    token = os.environ.get("GITHUB_TOKEN", "").strip()
    if token:
        logger.debug("Using GitHub token from environment")
        return token

    token = gh_cli_token()
    if token:
        logger.debug("Using GitHub token from gh CLI")
        return token

    raise ConfigurationError(
        "GitHub token not found. Please use one of the following methods:\n"
        "1. Set GITHUB_TOKEN environment variable\n"
        "2. Configure github.token in ghsecrets.yaml\n"
        "3. Login with 'gh auth login'"
    )


def gh_cli_token() -> str | None:
    """Return the gh CLI's token, or None if gh is missing or logged out."""
    gh = shutil.which("gh")
    if gh is None:
        return None

    try:
        result = subprocess.run(
            [gh, "auth", "token"],
            capture_output=True,
            text=True,
            timeout=GH_CLI_TIMEOUT,
            check=False,
        )
    except (OSError, subprocess.TimeoutExpired) as e:
        logger.debug("gh CLI token lookup failed", error=str(e))
        return None

    if result.returncode != 0:
        return None
    return result.stdout.strip() or None
