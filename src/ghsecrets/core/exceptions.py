"""Exception hierarchy for ghsecrets."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from ghsecrets.core.types import (
    AggregationErrorKind,
    EncryptionErrorReason,
    OrchestrationErrorKind,
    StoreErrorKind,
)

if TYPE_CHECKING:
    from ghsecrets.sync.models import SyncResult


class GhSecretsError(Exception):
    """Base exception for all ghsecrets errors."""

    def __init__(self, message: str, details: dict[str, Any] | None = None) -> None:
        super().__init__(message)
        self.message = message
        self.details = details or {}

    def __str__(self) -> str:
        if self.details:
            return f"{self.message} - {self.details}"
        return self.message


# Configuration Errors
class ConfigurationError(GhSecretsError):
    """Error in configuration."""

    pass


# Backend (KeyedBlobStore) Errors
class BackendError(GhSecretsError):
    """Error raised by a backup store adapter."""

    kind: StoreErrorKind = StoreErrorKind.OTHER

    def __init__(
        self,
        message: str,
        backend: str,
        name: str | None = None,
        kind: StoreErrorKind | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        all_details = {"backend": backend}
        if name:
            all_details["name"] = name
        all_details.update(details or {})
        super().__init__(message, all_details)
        self.backend = backend
        self.name = name
        if kind is not None:
            self.kind = kind


class SecretNotFoundError(BackendError):
    """Named slot does not exist in the backend."""

    kind = StoreErrorKind.NOT_FOUND

    def __init__(self, name: str, backend: str) -> None:
        super().__init__(f"Secret '{name}' not found in backend '{backend}'", backend, name)


class BackendAuthError(BackendError):
    """Backend rejected the caller's credentials."""

    kind = StoreErrorKind.AUTH_FAILURE


# Primary Store Errors
class PrimaryStoreError(GhSecretsError):
    """Error returned by the GitHub secrets API."""

    def __init__(
        self,
        message: str,
        kind: StoreErrorKind = StoreErrorKind.OTHER,
        status_code: int | None = None,
        details: dict[str, Any] | None = None,
    ) -> None:
        all_details = details or {}
        if status_code is not None:
            all_details["status_code"] = status_code
        super().__init__(message, all_details)
        self.kind = kind
        self.status_code = status_code


# Encryption Errors
class EncryptionError(GhSecretsError):
    """Sealing a secret for the primary store failed."""

    def __init__(self, message: str, reason: EncryptionErrorReason) -> None:
        super().__init__(message, {"reason": reason.value})
        self.reason = reason


# Aggregation Errors
class AggregationError(GhSecretsError):
    """Error reading or writing a JSON secret collection."""

    def __init__(
        self,
        message: str,
        kind: AggregationErrorKind,
        collection: str,
        backend: str | None = None,
        key: str | None = None,
    ) -> None:
        details: dict[str, Any] = {"kind": kind.value, "collection": collection}
        if backend:
            details["backend"] = backend
        if key:
            details["key"] = key
        super().__init__(message, details)
        self.kind = kind
        self.collection = collection
        self.backend = backend
        self.key = key


# Orchestration Errors
class OrchestrationError(GhSecretsError):
    """Push or restore could not complete."""

    def __init__(
        self,
        message: str,
        kind: OrchestrationErrorKind,
        details: dict[str, Any] | None = None,
    ) -> None:
        super().__init__(message, details)
        self.kind = kind

    @property
    def cause(self) -> BaseException | None:
        """The underlying component error, if any."""
        return self.__cause__


class ConfigMissingError(OrchestrationError, ConfigurationError):
    """Required configuration is absent."""

    def __init__(self, fields: list[str], operation: str) -> None:
        super().__init__(
            f"Missing configuration for {operation}: {', '.join(fields)}",
            OrchestrationErrorKind.CONFIG_MISSING,
            {"fields": fields},
        )
        self.fields = fields


class PartialRestoreError(OrchestrationError):
    """Some secrets were restored, others were not."""

    def __init__(self, result: SyncResult) -> None:
        super().__init__(
            f"{result.failed} of {result.attempted} secrets failed to restore",
            OrchestrationErrorKind.PARTIAL_RESTORE_FAILURE,
            {"failed_keys": [f.key for f in result.failures]},
        )
        self.result = result
