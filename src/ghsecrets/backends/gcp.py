"""GCP Secret Manager backend."""

from __future__ import annotations

from typing import Any

from ghsecrets.backends.base import KeyedBlobStoreBase, looks_like_auth_error, sdk_error_message
from ghsecrets.core.exceptions import BackendError, SecretNotFoundError
from ghsecrets.observability.logging import get_logger

logger = get_logger(__name__)

AUTH_HINT = "Please run 'gcloud auth application-default login' or set gcp.credentials_path"


class GCPSecretsBackend(KeyedBlobStoreBase):
    """
    Backup store using GCP Secret Manager.

    Each name is a secret ID in the project; reads use the ``latest``
    version and writes add a new version.
    """

    def __init__(
        self,
        project_id: str,
        credentials_path: str | None = None,
        client: Any = None,
    ) -> None:
        """
        Initialize GCP Secret Manager backend.

        Args:
            project_id: GCP project ID.
            credentials_path: Optional service account JSON file.
            client: Pre-built ``SecretManagerServiceClient`` (mainly for tests).
        """
        self._project_id = project_id
        self._credentials_path = credentials_path
        self._client: Any = client

    @property
    def backend_name(self) -> str:
        return "gcp"

    def _get_client(self) -> Any:
        """Get or create Secret Manager client."""
        if self._client is None:
            from google.cloud import secretmanager

            if self._credentials_path:
                self._client = secretmanager.SecretManagerServiceClient.from_service_account_file(
                    self._credentials_path
                )
            else:
                self._client = secretmanager.SecretManagerServiceClient()

        return self._client

    def _secret_path(self, name: str) -> str:
        return f"projects/{self._project_id}/secrets/{name}"

    async def get(self, name: str) -> str:
        """Get the latest version of a secret."""
        try:
            client = self._get_client()
            response = client.access_secret_version(
                request={"name": f"{self._secret_path(name)}/versions/latest"}
            )
        except Exception as e:
            raise self._classify(name, e) from e

        logger.debug("Retrieved secret from GCP", secret_name=name)
        return response.payload.data.decode("utf-8")

    async def put(self, name: str, value: str) -> None:
        """Add a new version to an existing secret."""
        try:
            client = self._get_client()
            client.add_secret_version(
                request={
                    "parent": self._secret_path(name),
                    "payload": {"data": value.encode("utf-8")},
                }
            )
        except Exception as e:
            raise self._classify(name, e) from e

        logger.info("Added GCP secret version", secret_name=name)

    async def health_check(self) -> bool:
        """Check GCP Secret Manager connectivity."""
        try:
            client = self._get_client()
            client.list_secrets(
                request={"parent": f"projects/{self._project_id}", "page_size": 1}
            )
            return True
        except Exception:
            return False

    def _classify(self, name: str, error: Exception) -> BackendError:
        """Map a google-api-core error onto the store error taxonomy."""
        from google.api_core import exceptions as gexc
        from google.auth import exceptions as auth_exc

        if isinstance(
            error,
            (gexc.PermissionDenied, gexc.Unauthenticated, auth_exc.DefaultCredentialsError),
        ):
            return self._auth_error(name, error, AUTH_HINT)

        # NotFound messages embed the resource name
        if isinstance(error, gexc.NotFound):
            return SecretNotFoundError(name, self.backend_name)

        if looks_like_auth_error(sdk_error_message(error)):
            return self._auth_error(name, error, AUTH_HINT)

        logger.error("GCP Secret Manager error", secret_name=name, error=str(error))
        return BackendError(
            f"Failed to access GCP Secret Manager: {error}",
            self.backend_name,
            name,
        )
