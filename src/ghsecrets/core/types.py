"""Protocols and type definitions for ghsecrets."""

from __future__ import annotations

from enum import Enum
from typing import TYPE_CHECKING, Protocol, runtime_checkable

if TYPE_CHECKING:
    from ghsecrets.sync.models import RecipientPublicKey


class BackupTarget(str, Enum):
    """Backup stores a secret can be written to or restored from."""

    NONE = "none"
    AWS = "aws"
    GCP = "gcp"
    VAULT = "vault"

    @classmethod
    def stores(cls) -> list[BackupTarget]:
        """Targets that are backed by a real store."""
        return [t for t in cls if t is not cls.NONE]


class StoreErrorKind(str, Enum):
    """Classification of errors raised by a store."""

    NOT_FOUND = "not_found"
    AUTH_FAILURE = "auth_failure"
    OTHER = "other"


class EncryptionErrorReason(str, Enum):
    """Why sealing a secret failed."""

    INVALID_KEY = "invalid_key"
    ENCRYPT_FAILED = "encrypt_failed"


class AggregationErrorKind(str, Enum):
    """Failure categories of the JSON aggregation layer."""

    COLLECTION_NOT_FOUND = "collection_not_found"
    CORRUPT_FORMAT = "corrupt_format"
    KEY_NOT_FOUND = "key_not_found"
    AUTH_FAILURE = "auth_failure"
    OTHER = "other"


class OrchestrationErrorKind(str, Enum):
    """Failure categories of push and restore."""

    CONFIG_MISSING = "config_missing"
    BACKUP_FAILED = "backup_failed"
    PRIMARY_WRITE_FAILED = "primary_write_failed"
    PARTIAL_RESTORE_FAILURE = "partial_restore_failure"


class RestoreState(str, Enum):
    """Per-key state during a restore."""

    PENDING = "pending"
    WRITING = "writing"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@runtime_checkable
class KeyedBlobStore(Protocol):
    """Protocol for backup stores holding one opaque string per name."""

    @property
    def backend_name(self) -> str:
        """Short backend identifier used in logs and errors."""
        ...

    async def get(self, name: str) -> str:
        """
        Read the value stored under a name.

        Raises:
            SecretNotFoundError: If the slot does not exist.
            BackendAuthError: If the backend rejected the credentials.
            BackendError: For any other failure.
        """
        ...

    async def put(self, name: str, value: str) -> None:
        """Replace the whole value stored under a name."""
        ...


@runtime_checkable
class PrimaryStoreClient(Protocol):
    """Protocol for the primary store, which only accepts sealed ciphertext."""

    async def get_encryption_key(self) -> RecipientPublicKey:
        """Fetch the current recipient public key."""
        ...

    async def write_encrypted_secret(
        self,
        name: str,
        encrypted_value: str,
        key_id: str,
    ) -> None:
        """Store an already sealed value under a name."""
        ...
