"""Factory for creating backup stores from settings."""

from __future__ import annotations

from ghsecrets.backends.aws import AWSSecretsBackend
from ghsecrets.backends.base import KeyedBlobStoreBase
from ghsecrets.backends.gcp import GCPSecretsBackend
from ghsecrets.backends.vault import VaultSecretsBackend
from ghsecrets.core.config import Settings
from ghsecrets.core.exceptions import ConfigMissingError, ConfigurationError
from ghsecrets.core.types import BackupTarget


def create_blob_store(target: BackupTarget, settings: Settings) -> KeyedBlobStoreBase:
    """
    Create the backup store for a target.

    Args:
        target: Which backend to build.
        settings: Loaded settings.

    Returns:
        A configured KeyedBlobStoreBase instance.

    Raises:
        ConfigurationError: If ``target`` is ``none``.
        ConfigMissingError: If the backend's required settings are absent.
    """
    if target is BackupTarget.NONE:
        raise ConfigurationError("Backup target 'none' has no store")

    if target is BackupTarget.AWS:
        return AWSSecretsBackend(
            region_name=settings.aws.region,
            profile_name=settings.aws.profile,
        )

    if target is BackupTarget.GCP:
        if not settings.gcp.project:
            raise ConfigMissingError(["gcp.project"], "gcp backend")
        return GCPSecretsBackend(
            project_id=settings.gcp.project,
            credentials_path=settings.gcp.credentials_path,
        )

    if not settings.vault.url:
        raise ConfigMissingError(["vault.url"], "vault backend")
    token = settings.vault.token.get_secret_value() if settings.vault.token else None
    return VaultSecretsBackend(
        url=settings.vault.url,
        token=token,
        mount_point=settings.vault.mount_point,
        namespace=settings.vault.namespace,
    )
