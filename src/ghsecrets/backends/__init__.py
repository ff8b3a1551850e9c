"""Backup store adapters."""

from ghsecrets.backends.base import KeyedBlobStoreBase
from ghsecrets.backends.aws import AWSSecretsBackend
from ghsecrets.backends.gcp import GCPSecretsBackend
from ghsecrets.backends.vault import VaultSecretsBackend
from ghsecrets.backends.memory import InMemorySecretsBackend
from ghsecrets.backends.factory import create_blob_store

__all__ = [
    "KeyedBlobStoreBase",
    "AWSSecretsBackend",
    "GCPSecretsBackend",
    "VaultSecretsBackend",
    "InMemorySecretsBackend",
    "create_blob_store",
]
