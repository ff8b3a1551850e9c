"""Pytest configuration and fixtures."""

from __future__ import annotations

import os
from base64 import b64encode

import pytest
from nacl.public import PrivateKey
from pydantic import SecretStr

from ghsecrets.backends.memory import InMemorySecretsBackend
from ghsecrets.core.config import AWSSettings, GitHubSettings, Settings
from ghsecrets.core.exceptions import PrimaryStoreError
from ghsecrets.sync.models import RecipientPublicKey

COLLECTION = "github-secrets-octo-demo"


class FakeGitHub:
    """Primary store double that records writes and can fail on demand."""

    def __init__(self, public_key: RecipientPublicKey, fail_on_nth_call: int | None = None) -> None:
        self.public_key = public_key
        self.fail_on_nth_call = fail_on_nth_call
        self.error: Exception | None = None
        self.secrets: dict[str, str] = {}
        self.key_fetches = 0
        self.write_calls: list[str] = []

    async def get_encryption_key(self) -> RecipientPublicKey:
        self.key_fetches += 1
        return self.public_key

    async def write_encrypted_secret(self, name: str, encrypted_value: str, key_id: str) -> None:
        self.write_calls.append(name)
        if self.fail_on_nth_call == len(self.write_calls):
            raise PrimaryStoreError(f"failed to create secret: {name}")
        if self.error is not None:
            raise self.error
        assert key_id == self.public_key.key_id
        self.secrets[name] = encrypted_value

    async def list_secret_names(self) -> list[str]:
        return sorted(self.secrets)


@pytest.fixture(autouse=True)
def clean_env(monkeypatch: pytest.MonkeyPatch, tmp_path) -> None:
    """Keep the developer's environment and config file out of tests."""
    for var in ("GITHUB_TOKEN", "VAULT_TOKEN"):
        monkeypatch.delenv(var, raising=False)
    for var in list(os.environ):
        if var.startswith("GHSECRETS_"):
            monkeypatch.delenv(var)
    monkeypatch.chdir(tmp_path)


@pytest.fixture
def private_key() -> PrivateKey:
    """Recipient private key standing in for GitHub's."""
    return PrivateKey.generate()


@pytest.fixture
def public_key(private_key: PrivateKey) -> RecipientPublicKey:
    """Public half of ``private_key`` as the GitHub API returns it."""
    return RecipientPublicKey(
        key_id="568250167242549743",
        key=b64encode(bytes(private_key.public_key)).decode("ascii"),
    )


@pytest.fixture
def github(public_key: RecipientPublicKey) -> FakeGitHub:
    return FakeGitHub(public_key)


@pytest.fixture
def settings() -> Settings:
    """Settings for the octo/demo repository with an AWS collection."""
    return Settings(
        github=GitHubSettings(owner="octo", repo="demo", token=SecretStr("ghp_test")),
        aws=AWSSettings(secret_name=COLLECTION),
    )


@pytest.fixture
def store() -> InMemorySecretsBackend:
    """Backup store with an empty, provisioned collection."""
    return InMemorySecretsBackend({COLLECTION: "{}"}, name="aws")
