"""HashiCorp Vault secrets backend."""

from __future__ import annotations

from typing import Any

from ghsecrets.backends.base import KeyedBlobStoreBase, looks_like_auth_error, sdk_error_message
from ghsecrets.core.exceptions import BackendError, SecretNotFoundError
from ghsecrets.observability.logging import get_logger

logger = get_logger(__name__)

VALUE_FIELD = "value"
AUTH_HINT = "Please check your Vault token"


class VaultSecretsBackend(KeyedBlobStoreBase):
    """
    Backup store using HashiCorp Vault's KV v2 engine.

    Each name is a KV path; the blob lives in the path's ``value`` field.
    """

    def __init__(
        self,
        url: str,
        token: str | None = None,
        mount_point: str = "secret",
        namespace: str | None = None,
        client: Any = None,
    ) -> None:
        """
        Initialize Vault secrets backend.

        Args:
            url: Vault server URL.
            token: Authentication token.
            mount_point: KV secrets engine mount point.
            namespace: Optional Vault namespace.
            client: Pre-built ``hvac.Client`` (mainly for tests).
        """
        self._url = url
        self._token = token
        self._mount_point = mount_point
        self._namespace = namespace
        self._client: Any = client

    @property
    def backend_name(self) -> str:
        return "vault"

    def _get_client(self) -> Any:
        """Get or create Vault client."""
        if self._client is None:
            import hvac

            self._client = hvac.Client(
                url=self._url,
                token=self._token,
                namespace=self._namespace,
            )

        return self._client

    async def get(self, name: str) -> str:
        """Read the ``value`` field of a KV path."""
        try:
            response = self._get_client().secrets.kv.v2.read_secret_version(
                path=name,
                mount_point=self._mount_point,
                raise_on_deleted_version=True,
            )
        except Exception as e:
            raise self._classify(name, e) from e

        data = response.get("data", {}).get("data") or {}
        if not data:
            return ""
        if VALUE_FIELD not in data:
            raise BackendError(
                f"Vault path '{name}' has no '{VALUE_FIELD}' field",
                self.backend_name,
                name,
                details={"fields": sorted(data)},
            )

        logger.debug("Retrieved secret from Vault", path=name)
        return str(data[VALUE_FIELD])

    async def put(self, name: str, value: str) -> None:
        """Write a new version of a KV path."""
        try:
            self._get_client().secrets.kv.v2.create_or_update_secret(
                path=name,
                secret={VALUE_FIELD: value},
                mount_point=self._mount_point,
            )
        except Exception as e:
            raise self._classify(name, e) from e

        logger.info("Updated Vault secret", path=name)

    async def health_check(self) -> bool:
        """Check Vault connectivity."""
        try:
            return bool(self._get_client().is_authenticated())
        except Exception:
            return False

    def _classify(self, name: str, error: Exception) -> BackendError:
        """Map an hvac error onto the store error taxonomy."""
        from hvac import exceptions as hvac_exc

        if isinstance(error, (hvac_exc.Forbidden, hvac_exc.Unauthorized)):
            return self._auth_error(name, error, AUTH_HINT)

        if isinstance(error, hvac_exc.InvalidPath):
            return SecretNotFoundError(name, self.backend_name)

        if looks_like_auth_error(sdk_error_message(error)):
            return self._auth_error(name, error, AUTH_HINT)

        logger.error("Vault error", path=name, error=str(error))
        return BackendError(f"Failed to access Vault: {error}", self.backend_name, name)
