"""Push and restore secrets between GitHub and backup stores."""

from __future__ import annotations

from collections.abc import Callable, Mapping

from ghsecrets.aggregation.json_collection import JsonSecretCollection
from ghsecrets.core.config import Settings
from ghsecrets.core.exceptions import (
    AggregationError,
    ConfigMissingError,
    OrchestrationError,
    PrimaryStoreError,
)
from ghsecrets.core.types import (
    BackupTarget,
    KeyedBlobStore,
    OrchestrationErrorKind,
    PrimaryStoreClient,
    RestoreState,
)
from ghsecrets.crypto.sealed_box import SealedSecretEncryptor
from ghsecrets.observability.logging import LogContext, get_logger
from ghsecrets.sync.models import KeyFailure, SecretEntry, SyncResult

logger = get_logger(__name__)

ProgressCallback = Callable[[str, RestoreState, Exception | None], None]


class SyncOrchestrator:
    """
    Moves secrets between the primary store and backup collections.

    Push writes the backup first and only then the primary store, so a
    recoverable copy exists before the value is exposed. Restore reads a
    whole collection and writes each secret independently, so one rejected
    secret never blocks the others.
    """

    def __init__(
        self,
        settings: Settings,
        primary: PrimaryStoreClient,
        backups: Mapping[BackupTarget, KeyedBlobStore] | None = None,
        encryptor: SealedSecretEncryptor | None = None,
    ) -> None:
        self._settings = settings
        self._primary = primary
        self._backups = dict(backups or {})
        self._encryptor = encryptor or SealedSecretEncryptor()

    def _collection(self, target: BackupTarget) -> tuple[JsonSecretCollection, str]:
        """Aggregation layer and collection name for a target."""
        store = self._backups.get(target)
        if store is None:
            raise OrchestrationError(
                f"No backup store configured for '{target.value}'",
                OrchestrationErrorKind.CONFIG_MISSING,
                {"target": target.value},
            )
        name = self._settings.collection_name(target)
        if name is None:
            raise ConfigMissingError(self._settings.missing_backend_fields(target), target.value)
        return JsonSecretCollection(store), name

    async def _write_primary(self, entry: SecretEntry) -> None:
        """Seal a value for the current public key and write it."""
        public_key = await self._primary.get_encryption_key()
        encrypted = self._encryptor.seal(public_key.key, entry.value)
        await self._primary.write_encrypted_secret(entry.key, encrypted, public_key.key_id)

    async def push(
        self,
        key: str,
        value: str,
        backup_target: BackupTarget = BackupTarget.NONE,
    ) -> None:
        """
        Push one secret, backing it up first when a target is given.

        Args:
            key: Secret name.
            value: Secret value.
            backup_target: Where to back the secret up before pushing.

        Raises:
            ConfigMissingError: Required settings are absent.
            OrchestrationError: ``BACKUP_FAILED`` (the primary store was not
                touched) or ``PRIMARY_WRITE_FAILED``.
            EncryptionError: The value could not be sealed.
        """
        missing = []
        if not key:
            missing.append("key")
        if not value:
            missing.append("value")
        missing += self._settings.missing_github_fields()
        missing += self._settings.missing_backend_fields(backup_target)
        if missing:
            raise ConfigMissingError(missing, "push")
        entry = SecretEntry(key=key, value=value)

        with LogContext(operation="push", secret_name=key, backup=backup_target.value):
            if backup_target is not BackupTarget.NONE:
                collection, name = self._collection(backup_target)
                try:
                    await collection.add_or_update(name, key, value)
                except AggregationError as e:
                    logger.error("Backup failed, not pushing", collection=name, error=e.message)
                    raise OrchestrationError(
                        f"Failed to backup to {backup_target.value}: {e.message}",
                        OrchestrationErrorKind.BACKUP_FAILED,
                        {"target": backup_target.value, "collection": name},
                    ) from e
                logger.info("Backed up secret", collection=name)

            try:
                await self._write_primary(entry)
            except PrimaryStoreError as e:
                raise OrchestrationError(
                    f"Failed to push to GitHub: {e.message}",
                    OrchestrationErrorKind.PRIMARY_WRITE_FAILED,
                    {"secret_name": key},
                ) from e

            logger.info("Pushed secret")

    async def restore(
        self,
        source: BackupTarget,
        on_progress: ProgressCallback | None = None,
    ) -> SyncResult:
        """
        Restore every secret of a backup collection to the primary store.

        Per-key failures are recorded and do not stop the batch. Keys are
        processed in sorted order.

        Args:
            source: Backup store to read from.
            on_progress: Called with each key's state transitions.

        Returns:
            The result tally; call ``raise_for_failures()`` to turn a
            partial restore into an error.

        Raises:
            ConfigMissingError: Required settings are absent (checked before
                any network call).
            OrchestrationError: ``BACKUP_FAILED`` if the collection cannot be read.
        """
        if source is BackupTarget.NONE:
            raise ConfigMissingError(["backup source"], "restore")

        missing = self._settings.missing_backend_fields(source)
        missing += self._settings.missing_github_fields()
        if missing:
            raise ConfigMissingError(missing, "restore")

        collection, name = self._collection(source)

        with LogContext(operation="restore", source=source.value, collection=name):
            try:
                secrets = await collection.get_all(name)
            except AggregationError as e:
                raise OrchestrationError(
                    f"Failed to retrieve secrets from {source.value}: {e.message}",
                    OrchestrationErrorKind.BACKUP_FAILED,
                    {"source": source.value, "collection": name},
                ) from e

            if not secrets:
                logger.info("Backup collection is empty")
                return SyncResult(source=source, collection=name)

            logger.info("Restoring secrets", count=len(secrets))

            succeeded = 0
            failures: list[KeyFailure] = []
            keys = sorted(secrets)
            for key in keys:
                _notify(on_progress, key, RestoreState.PENDING)

            for key in keys:
                _notify(on_progress, key, RestoreState.WRITING)
                try:
                    await self._write_primary(SecretEntry(key=key, value=secrets[key]))
                except Exception as e:
                    logger.warning(
                        "Failed to restore secret",
                        secret_name=key,
                        error=str(e),
                        error_type=type(e).__name__,
                    )
                    failures.append(
                        KeyFailure(key=key, error=str(e), error_type=type(e).__name__)
                    )
                    _notify(on_progress, key, RestoreState.FAILED, e)
                    continue

                succeeded += 1
                _notify(on_progress, key, RestoreState.SUCCEEDED)

            result = SyncResult(
                source=source,
                collection=name,
                attempted=len(secrets),
                succeeded=succeeded,
                failures=tuple(failures),
            )
            logger.info("Restore complete", attempted=result.attempted, succeeded=succeeded)
            return result

    async def list_backup_keys(self, source: BackupTarget) -> list[str]:
        """
        Names of the secrets stored in a backup collection.

        Raises:
            ConfigMissingError: Required settings are absent.
            AggregationError: The collection cannot be read.
        """
        missing = self._settings.missing_backend_fields(source)
        if source is BackupTarget.NONE or missing:
            raise ConfigMissingError(missing or ["backup source"], "list")

        collection, name = self._collection(source)
        return await collection.keys(name)


def _notify(
    callback: ProgressCallback | None,
    key: str,
    state: RestoreState,
    error: Exception | None = None,
) -> None:
    if callback is not None:
        callback(key, state, error)
