"""Pydantic models for secrets moving between stores."""

from __future__ import annotations

from pydantic import BaseModel, ConfigDict, Field, computed_field

from ghsecrets.core.exceptions import PartialRestoreError
from ghsecrets.core.types import BackupTarget


class SecretEntry(BaseModel):
    """A single key/value secret."""

    model_config = ConfigDict(frozen=True)

    key: str = Field(..., min_length=1, description="Case-sensitive secret name")
    value: str = Field(..., repr=False, description="Secret value")


class RecipientPublicKey(BaseModel):
    """Public key the primary store encrypts secrets for."""

    model_config = ConfigDict(frozen=True)

    key_id: str = Field(..., description="Identifier of the matching private key")
    key: str = Field(..., description="Base64-encoded 32-byte Curve25519 key")


class KeyFailure(BaseModel):
    """A secret that could not be restored."""

    model_config = ConfigDict(frozen=True)

    key: str
    error: str
    error_type: str


class SyncResult(BaseModel):
    """Outcome of a restore batch."""

    model_config = ConfigDict(frozen=True)

    source: BackupTarget
    collection: str
    attempted: int = Field(default=0, ge=0)
    succeeded: int = Field(default=0, ge=0)
    failures: tuple[KeyFailure, ...] = Field(default_factory=tuple)

    @computed_field  # type: ignore[prop-decorator]
    @property
    def failed(self) -> int:
        return self.attempted - self.succeeded

    @property
    def ok(self) -> bool:
        """True when every attempted secret was restored."""
        return self.succeeded == self.attempted

    def summary(self) -> str:
        return f"{self.succeeded}/{self.attempted} secrets restored"

    def raise_for_failures(self) -> None:
        """
        Raise if any secret failed to restore.

        Raises:
            PartialRestoreError: If ``succeeded < attempted``.
        """
        if not self.ok:
            raise PartialRestoreError(self)
