"""AWS Secrets Manager backend."""

from __future__ import annotations

from typing import Any

from botocore.exceptions import BotoCoreError, ClientError, NoCredentialsError

from ghsecrets.backends.base import KeyedBlobStoreBase, looks_like_auth_error, sdk_error_message
from ghsecrets.core.exceptions import BackendError, SecretNotFoundError
from ghsecrets.observability.logging import get_logger

logger = get_logger(__name__)

AUTH_ERROR_CODES = frozenset(
    {
        "AccessDeniedException",
        "ExpiredTokenException",
        "InvalidClientTokenId",
        "InvalidSignatureException",
        "UnrecognizedClientException",
        "UnauthorizedException",
    }
)

AUTH_HINT = "Please check your AWS credentials or run 'aws sso login' if using SSO"


class AWSSecretsBackend(KeyedBlobStoreBase):
    """
    Backup store using AWS Secrets Manager.

    Each name is a secret ID; the value is its SecretString.
    """

    def __init__(
        self,
        region_name: str = "us-east-1",
        profile_name: str | None = None,
        client: Any = None,
    ) -> None:
        """
        Initialize AWS Secrets Manager backend.

        Args:
            region_name: AWS region.
            profile_name: Optional AWS profile name.
            client: Pre-built ``secretsmanager`` client (mainly for tests).
        """
        self._region_name = region_name
        self._profile_name = profile_name
        self._client: Any = client

    @property
    def backend_name(self) -> str:
        return "aws"

    def _get_client(self) -> Any:
        """Get or create Secrets Manager client."""
        if self._client is None:
            import boto3

            session_kwargs: dict[str, Any] = {
                "region_name": self._region_name,
            }
            if self._profile_name:
                session_kwargs["profile_name"] = self._profile_name

            session = boto3.Session(**session_kwargs)
            self._client = session.client("secretsmanager")

        return self._client

    async def get(self, name: str) -> str:
        """Get a secret's current value from AWS Secrets Manager."""
        try:
            response = self._get_client().get_secret_value(SecretId=name)
        except Exception as e:
            raise self._classify(name, e) from e

        if "SecretString" in response:
            value = response["SecretString"]
        elif "SecretBinary" in response:
            value = response["SecretBinary"].decode("utf-8")
        else:
            value = ""

        logger.debug("Retrieved secret from AWS", secret_name=name)
        return value

    async def put(self, name: str, value: str) -> None:
        """Store a new current version of an existing secret."""
        try:
            self._get_client().put_secret_value(SecretId=name, SecretString=value)
        except Exception as e:
            raise self._classify(name, e) from e

        logger.info("Updated AWS secret", secret_name=name)

    async def health_check(self) -> bool:
        """Check AWS Secrets Manager connectivity."""
        try:
            self._get_client().list_secrets(MaxResults=1)
            return True
        except (BotoCoreError, ClientError):
            return False

    def _classify(self, name: str, error: Exception) -> BackendError:
        """Map a boto error onto the store error taxonomy."""
        code = ""
        message = sdk_error_message(error)
        if isinstance(error, ClientError):
            code = error.response.get("Error", {}).get("Code", "")
            message = error.response.get("Error", {}).get("Message", "")

        # Auth problems first: AWS can answer ResourceNotFound to callers
        # that are not allowed to see the secret.
        if (
            isinstance(error, NoCredentialsError)
            or code in AUTH_ERROR_CODES
            or looks_like_auth_error(message)
        ):
            return self._auth_error(name, error, AUTH_HINT)

        if code == "ResourceNotFoundException":
            return SecretNotFoundError(name, self.backend_name)

        logger.error("AWS Secrets Manager error", secret_name=name, error=str(error))
        return BackendError(
            f"Failed to access AWS Secrets Manager: {error}",
            self.backend_name,
            name,
        )
