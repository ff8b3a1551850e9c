"""Unit tests for backup store adapters."""

from __future__ import annotations

from types import SimpleNamespace
from unittest.mock import MagicMock

import boto3
import pytest
from botocore.exceptions import NoCredentialsError
from botocore.stub import Stubber
from google.api_core import exceptions as gexc
from hvac import exceptions as hvac_exc
from pydantic import SecretStr

from ghsecrets.backends.aws import AWSSecretsBackend
from ghsecrets.backends.factory import create_blob_store
from ghsecrets.backends.gcp import GCPSecretsBackend
from ghsecrets.backends.memory import InMemorySecretsBackend
from ghsecrets.backends.vault import VaultSecretsBackend
from ghsecrets.core.config import Settings
from ghsecrets.core.exceptions import (
    BackendAuthError,
    BackendError,
    ConfigMissingError,
    ConfigurationError,
    SecretNotFoundError,
)
from ghsecrets.core.types import BackupTarget, StoreErrorKind

SECRET_ID = "github-secrets-octo-demo"


@pytest.fixture
def secretsmanager():
    client = boto3.client(
        "secretsmanager",
        region_name="us-east-1",
        aws_access_key_id="testing",
        aws_secret_access_key="testing",
    )
    with Stubber(client) as stubber:
        yield client, stubber
        stubber.assert_no_pending_responses()


@pytest.mark.asyncio
class TestAWSSecretsBackend:
    """Tests for AWSSecretsBackend against a stubbed client."""

    async def test_get_secret_string(self, secretsmanager):
        client, stubber = secretsmanager
        stubber.add_response(
            "get_secret_value",
            {"Name": SECRET_ID, "SecretString": '{"A": "1"}'},
            {"SecretId": SECRET_ID},
        )

        backend = AWSSecretsBackend(client=client)
        assert await backend.get(SECRET_ID) == '{"A": "1"}'

    async def test_get_secret_binary(self, secretsmanager):
        client, stubber = secretsmanager
        stubber.add_response(
            "get_secret_value",
            {"Name": SECRET_ID, "SecretBinary": b'{"A": "1"}'},
            {"SecretId": SECRET_ID},
        )

        assert await AWSSecretsBackend(client=client).get(SECRET_ID) == '{"A": "1"}'

    async def test_put(self, secretsmanager):
        client, stubber = secretsmanager
        stubber.add_response(
            "put_secret_value",
            {"Name": SECRET_ID, "VersionId": "v2" + "0" * 30},
            {"SecretId": SECRET_ID, "SecretString": "{}"},
        )

        await AWSSecretsBackend(client=client).put(SECRET_ID, "{}")

    async def test_not_found(self, secretsmanager):
        client, stubber = secretsmanager
        stubber.add_client_error(
            "get_secret_value",
            service_error_code="ResourceNotFoundException",
            service_message="Secrets Manager can't find the specified secret.",
            http_status_code=400,
        )

        with pytest.raises(SecretNotFoundError) as exc_info:
            await AWSSecretsBackend(client=client).get(SECRET_ID)

        assert exc_info.value.kind is StoreErrorKind.NOT_FOUND
        assert exc_info.value.name == SECRET_ID

    @pytest.mark.parametrize(
        "code", ["AccessDeniedException", "ExpiredTokenException", "UnrecognizedClientException"]
    )
    async def test_auth_error_codes(self, secretsmanager, code):
        client, stubber = secretsmanager
        stubber.add_client_error("put_secret_value", service_error_code=code, http_status_code=400)

        with pytest.raises(BackendAuthError) as exc_info:
            await AWSSecretsBackend(client=client).put(SECRET_ID, "{}")

        assert "aws sso login" in exc_info.value.message

    async def test_other_error(self, secretsmanager):
        client, stubber = secretsmanager
        stubber.add_client_error(
            "get_secret_value", service_error_code="InternalServiceError", http_status_code=500
        )

        with pytest.raises(BackendError) as exc_info:
            await AWSSecretsBackend(client=client).get(SECRET_ID)

        assert exc_info.value.kind is StoreErrorKind.OTHER

    async def test_no_credentials(self):
        client = MagicMock()
        client.get_secret_value.side_effect = NoCredentialsError()

        with pytest.raises(BackendAuthError):
            await AWSSecretsBackend(client=client).get(SECRET_ID)

    async def test_health_check(self, secretsmanager):
        client, stubber = secretsmanager
        stubber.add_response("list_secrets", {"SecretList": []}, {"MaxResults": 1})

        assert await AWSSecretsBackend(client=client).health_check() is True

    async def test_not_found_for_name_with_auth_marker(self, secretsmanager):
        """Test the secret name plays no part in auth detection."""
        client, stubber = secretsmanager
        stubber.add_client_error(
            "get_secret_value",
            service_error_code="ResourceNotFoundException",
            service_message="Secrets Manager can't find the specified secret.",
        )

        with pytest.raises(SecretNotFoundError):
            await AWSSecretsBackend(client=client).get("github-secrets-acme-unauthenticated-api")

    async def test_auth_marker_in_service_message(self, secretsmanager):
        client, stubber = secretsmanager
        stubber.add_client_error(
            "get_secret_value",
            service_error_code="ValidationException",
            service_message="The security token included in the request is invalid: ExpiredToken",
        )

        with pytest.raises(BackendAuthError):
            await AWSSecretsBackend(client=client).get(SECRET_ID)


@pytest.mark.asyncio
class TestGCPSecretsBackend:
    """Tests for GCPSecretsBackend with a fake client."""

    @pytest.fixture
    def client(self):
        return MagicMock()

    @pytest.fixture
    def backend(self, client):
        return GCPSecretsBackend("my-project", client=client)

    async def test_get_latest_version(self, backend, client):
        client.access_secret_version.return_value = SimpleNamespace(
            payload=SimpleNamespace(data=b'{"A": "1"}')
        )

        assert await backend.get(SECRET_ID) == '{"A": "1"}'
        client.access_secret_version.assert_called_once_with(
            request={"name": f"projects/my-project/secrets/{SECRET_ID}/versions/latest"}
        )

    async def test_put_adds_version(self, backend, client):
        await backend.put(SECRET_ID, '{"A": "1"}')

        client.add_secret_version.assert_called_once_with(
            request={
                "parent": f"projects/my-project/secrets/{SECRET_ID}",
                "payload": {"data": b'{"A": "1"}'},
            }
        )

    async def test_not_found(self, backend, client):
        client.access_secret_version.side_effect = gexc.NotFound("Secret not found")

        with pytest.raises(SecretNotFoundError):
            await backend.get(SECRET_ID)

    async def test_not_found_message_with_auth_marker(self, backend, client):
        name = "github-secrets-acme-unauthenticated-api"
        client.access_secret_version.side_effect = gexc.NotFound(
            f"Secret [projects/my-project/secrets/{name}] not found or has no versions."
        )

        with pytest.raises(SecretNotFoundError):
            await backend.get(name)

    @pytest.mark.parametrize("error", [gexc.PermissionDenied, gexc.Unauthenticated])
    async def test_auth_error(self, backend, client, error):
        client.add_secret_version.side_effect = error("caller lacks access")

        with pytest.raises(BackendAuthError) as exc_info:
            await backend.put(SECRET_ID, "{}")

        assert "gcloud auth application-default login" in exc_info.value.message

    async def test_other_error(self, backend, client):
        client.access_secret_version.side_effect = gexc.InternalServerError("boom")

        with pytest.raises(BackendError) as exc_info:
            await backend.get(SECRET_ID)

        assert exc_info.value.kind is StoreErrorKind.OTHER


@pytest.mark.asyncio
class TestVaultSecretsBackend:
    """Tests for VaultSecretsBackend with a fake hvac client."""

    @pytest.fixture
    def kv(self):
        return MagicMock()

    @pytest.fixture
    def backend(self, kv):
        client = SimpleNamespace(secrets=SimpleNamespace(kv=SimpleNamespace(v2=kv)))
        return VaultSecretsBackend("http://vault:8200", client=client)

    async def test_get_value_field(self, backend, kv):
        kv.read_secret_version.return_value = {"data": {"data": {"value": '{"A": "1"}'}}}

        assert await backend.get("github/demo") == '{"A": "1"}'
        kv.read_secret_version.assert_called_once_with(
            path="github/demo", mount_point="secret", raise_on_deleted_version=True
        )

    async def test_get_empty_path(self, backend, kv):
        kv.read_secret_version.return_value = {"data": {"data": {}}}

        assert await backend.get("github/demo") == ""

    async def test_get_without_value_field(self, backend, kv):
        kv.read_secret_version.return_value = {"data": {"data": {"other": "x"}}}

        with pytest.raises(BackendError) as exc_info:
            await backend.get("github/demo")

        assert exc_info.value.kind is StoreErrorKind.OTHER

    async def test_put(self, backend, kv):
        await backend.put("github/demo", "{}")

        kv.create_or_update_secret.assert_called_once_with(
            path="github/demo", secret={"value": "{}"}, mount_point="secret"
        )

    async def test_invalid_path(self, backend, kv):
        kv.read_secret_version.side_effect = hvac_exc.InvalidPath("no secret at path")

        with pytest.raises(SecretNotFoundError):
            await backend.get("github/demo")

    async def test_invalid_path_url_with_auth_marker(self, backend, kv):
        kv.read_secret_version.side_effect = hvac_exc.InvalidPath(
            None, method="get", url="http://vault:8200/v1/secret/data/accessdenied-api"
        )

        with pytest.raises(SecretNotFoundError):
            await backend.get("accessdenied-api")

    @pytest.mark.parametrize("error", [hvac_exc.Forbidden, hvac_exc.Unauthorized])
    async def test_auth_error(self, backend, kv, error):
        kv.read_secret_version.side_effect = error("1 error occurred")

        with pytest.raises(BackendAuthError):
            await backend.get("github/demo")


@pytest.mark.asyncio
class TestInMemorySecretsBackend:
    async def test_missing_slot(self):
        with pytest.raises(SecretNotFoundError):
            await InMemorySecretsBackend().get("absent")

    async def test_injected_error(self):
        store = InMemorySecretsBackend({"a": ""})
        store.set_error("get", BackendError("down", "memory"))

        with pytest.raises(BackendError):
            await store.get("a")

        store.set_error("get", None)
        assert await store.get("a") == ""


class TestCreateBlobStore:
    """Tests for create_blob_store()."""

    def test_aws(self):
        settings = Settings(aws={"region": "eu-west-1", "profile": "prod"})

        assert isinstance(create_blob_store(BackupTarget.AWS, settings), AWSSecretsBackend)

    def test_gcp_requires_project(self):
        with pytest.raises(ConfigMissingError) as exc_info:
            create_blob_store(BackupTarget.GCP, Settings())

        assert exc_info.value.fields == ["gcp.project"]

    def test_gcp(self):
        store = create_blob_store(BackupTarget.GCP, Settings(gcp={"project": "p"}))
        assert store.backend_name == "gcp"

    def test_vault(self):
        settings = Settings(vault={"url": "http://vault:8200", "token": SecretStr("s.x")})
        assert isinstance(create_blob_store(BackupTarget.VAULT, settings), VaultSecretsBackend)

    def test_vault_requires_url(self):
        with pytest.raises(ConfigMissingError):
            create_blob_store(BackupTarget.VAULT, Settings())

    def test_none(self):
        with pytest.raises(ConfigurationError):
            create_blob_store(BackupTarget.NONE, Settings())
