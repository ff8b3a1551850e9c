"""GitHub Actions secrets client."""

from ghsecrets.github.auth import resolve_github_token
from ghsecrets.github.client import GitHubSecretsClient

__all__ = ["GitHubSecretsClient", "resolve_github_token"]
