"""Async client for GitHub Actions repository secrets."""

from __future__ import annotations

from typing import Any
from urllib.parse import quote

import httpx

from ghsecrets.core.exceptions import PrimaryStoreError
from ghsecrets.core.types import StoreErrorKind
from ghsecrets.observability.logging import get_logger
from ghsecrets.sync.models import RecipientPublicKey

logger = get_logger(__name__)

API_VERSION = "2022-11-28"
PAGE_SIZE = 100


class GitHubSecretsClient:
    """Async client for one repository's Actions secrets."""

    def __init__(
        self,
        owner: str,
        repo: str,
        token: str,
        api_url: str = "https://api.github.com",
        timeout: float = 30.0,
        transport: httpx.AsyncBaseTransport | None = None,
    ) -> None:
        """Initialize the client.

        Args:
            owner: Repository owner (user or organization).
            repo: Repository name.
            token: Token with permission to manage repository secrets.
            api_url: Base URL of the REST API.
            timeout: Request timeout in seconds.
            transport: Custom httpx transport (mainly for tests).
        """
        self.owner = owner
        self.repo = repo
        self.api_url = api_url.rstrip("/")
        self.timeout = timeout
        self._token = token
        self._transport = transport
        self._client: httpx.AsyncClient | None = None

    @property
    def repository(self) -> str:
        return f"{self.owner}/{self.repo}"

    @property
    def _secrets_path(self) -> str:
        return f"/repos/{quote(self.owner, safe='')}/{quote(self.repo, safe='')}/actions/secrets"

    async def __aenter__(self) -> GitHubSecretsClient:
        """Enter async context."""
        await self._ensure_client()
        return self

    async def __aexit__(self, exc_type, exc_val, exc_tb) -> None:
        """Exit async context."""
        await self.close()

    async def _ensure_client(self) -> httpx.AsyncClient:
        """Ensure HTTP client is created."""
        if self._client is None:
            self._client = httpx.AsyncClient(
                base_url=self.api_url,
                headers={
                    "Accept": "application/vnd.github+json",
                    "Authorization": f"Bearer {self._token}",
                    "X-GitHub-Api-Version": API_VERSION,
                },
                timeout=httpx.Timeout(self.timeout),
                transport=self._transport,
            )
        return self._client

    async def close(self) -> None:
        """Close the HTTP client."""
        if self._client is not None:
            await self._client.aclose()
            self._client = None

    async def _request(
        self,
        method: str,
        path: str,
        **kwargs: Any,
    ) -> httpx.Response:
        """Make an HTTP request, translating failures to PrimaryStoreError."""
        client = await self._ensure_client()
        try:
            response = await client.request(method, path, **kwargs)
        except httpx.HTTPError as e:
            raise PrimaryStoreError(
                f"Request to GitHub failed: {e}",
                details={"method": method, "path": path},
            ) from e

        if response.is_error:
            raise self._error_from_response(response, method, path)
        return response

    @staticmethod
    def _error_from_response(
        response: httpx.Response, method: str, path: str
    ) -> PrimaryStoreError:
        try:
            api_message = response.json().get("message", "")
        except ValueError:
            api_message = response.text

        status = response.status_code
        if status in (401, 403):
            kind = StoreErrorKind.AUTH_FAILURE
        elif status == 404:
            kind = StoreErrorKind.NOT_FOUND
        else:
            kind = StoreErrorKind.OTHER

        return PrimaryStoreError(
            f"GitHub API returned {status} for {method} {path}: {api_message}",
            kind=kind,
            status_code=status,
        )

    async def get_encryption_key(self) -> RecipientPublicKey:
        """Fetch the repository's current public key for sealing secrets."""
        path = f"{self._secrets_path}/public-key"
        response = await self._request("GET", path)
        try:
            data = response.json()
            return RecipientPublicKey(key_id=data["key_id"], key=data["key"])
        except (KeyError, TypeError, ValueError) as e:
            raise PrimaryStoreError(
                f"GitHub returned a malformed public key for {self.repository}: {e}",
                details={"method": "GET", "path": path},
            ) from e

    async def write_encrypted_secret(
        self,
        name: str,
        encrypted_value: str,
        key_id: str,
    ) -> None:
        """Create or update a secret from an already sealed value.

        Args:
            name: Secret name.
            encrypted_value: Base64 sealed box.
            key_id: ID of the public key the value was sealed for.
        """
        await self._request(
            "PUT",
            f"{self._secrets_path}/{quote(name, safe='')}",
            json={"encrypted_value": encrypted_value, "key_id": key_id},
        )
        logger.info("Wrote GitHub secret", repository=self.repository, secret_name=name)

    async def list_secret_names(self) -> list[str]:
        """List the names of all repository secrets.

        The API never returns secret values.
        """
        names: list[str] = []
        page = 1
        while True:
            response = await self._request(
                "GET",
                self._secrets_path,
                params={"per_page": PAGE_SIZE, "page": page},
            )
            try:
                data = response.json()
                batch = [s["name"] for s in data.get("secrets", [])]
            except (AttributeError, KeyError, TypeError, ValueError) as e:
                raise PrimaryStoreError(
                    f"GitHub returned a malformed secret list for {self.repository}: {e}",
                    details={"method": "GET", "path": self._secrets_path, "page": page},
                ) from e
            names.extend(batch)
            if len(batch) < PAGE_SIZE or len(names) >= data.get("total_count", 0):
                break
            page += 1
        return names
