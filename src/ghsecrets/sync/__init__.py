"""Synchronization between GitHub and backup stores."""

from ghsecrets.sync.models import KeyFailure, RecipientPublicKey, SecretEntry, SyncResult
from ghsecrets.sync.orchestrator import SyncOrchestrator

__all__ = [
    "KeyFailure",
    "RecipientPublicKey",
    "SecretEntry",
    "SyncResult",
    "SyncOrchestrator",
]
