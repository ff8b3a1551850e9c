"""Core module for ghsecrets."""

from ghsecrets.core.config import Settings
from ghsecrets.core.exceptions import GhSecretsError
from ghsecrets.core.types import (
    BackupTarget,
    KeyedBlobStore,
    PrimaryStoreClient,
    StoreErrorKind,
)

__all__ = [
    "Settings",
    "GhSecretsError",
    "BackupTarget",
    "KeyedBlobStore",
    "PrimaryStoreClient",
    "StoreErrorKind",
]
