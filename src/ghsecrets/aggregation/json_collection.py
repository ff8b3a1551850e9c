"""
Many key/value secrets stored in one backup slot.

Backup stores keep one opaque string per name. A *collection* packs any
number of secrets into that string as a flat JSON object::

    {
      "API_KEY": "...",
      "DATABASE_URL": "..."
    }

Writes are read-modify-write cycles that replace the whole blob. There is
no locking: two processes updating the same collection concurrently can
lose one of the updates (last write wins).
"""

from __future__ import annotations

import json
from typing import Any

from ghsecrets.backends.base import looks_like_auth_error, sdk_error_message
from ghsecrets.core.exceptions import AggregationError, BackendError
from ghsecrets.core.types import AggregationErrorKind, KeyedBlobStore, StoreErrorKind
from ghsecrets.observability.logging import get_logger

logger = get_logger(__name__)


def decode_collection(blob: str, collection: str, backend: str | None = None) -> dict[str, str]:
    """
    Parse a stored blob into a key -> value mapping.

    An empty (or whitespace-only) blob is an empty collection.

    Raises:
        AggregationError: ``CORRUPT_FORMAT`` if the blob is not a flat JSON
            object of string values.
    """
    if not blob.strip():
        return {}

    try:
        data: Any = json.loads(blob)
    except json.JSONDecodeError as e:
        raise AggregationError(
            f"Secret '{collection}' exists but is not in valid JSON format: {e}",
            AggregationErrorKind.CORRUPT_FORMAT,
            collection,
            backend,
        ) from e

    if not isinstance(data, dict):
        raise AggregationError(
            f"Secret '{collection}' must hold a JSON object, found {type(data).__name__}",
            AggregationErrorKind.CORRUPT_FORMAT,
            collection,
            backend,
        )

    non_strings = sorted(k for k, v in data.items() if not isinstance(v, str))
    if non_strings:
        raise AggregationError(
            f"Secret '{collection}' has non-string values for: {', '.join(non_strings)}",
            AggregationErrorKind.CORRUPT_FORMAT,
            collection,
            backend,
        )

    return data


def encode_collection(mapping: dict[str, str]) -> str:
    """Serialize a collection with sorted keys so stored blobs diff cleanly."""
    return json.dumps(mapping, indent=2, sort_keys=True, ensure_ascii=False)


class JsonSecretCollection:
    """
    JSON aggregation layer over a KeyedBlobStore.

    The backing slot must already exist; it is never created implicitly, so
    a misconfigured collection name fails loudly instead of silently
    starting a new, empty backup.
    """

    def __init__(self, store: KeyedBlobStore) -> None:
        self._store = store

    @property
    def backend_name(self) -> str:
        return self._store.backend_name

    async def add_or_update(self, collection: str, key: str, value: str) -> None:
        """
        Set one key in a collection, keeping every other key.

        Args:
            collection: Backend slot name.
            key: Secret name.
            value: Secret value.

        Raises:
            AggregationError: ``COLLECTION_NOT_FOUND``, ``CORRUPT_FORMAT``,
                ``AUTH_FAILURE`` or ``OTHER``. The stored blob is unchanged
                whenever this raises.
        """
        self._check_encodable(collection, key, value)

        mapping = await self._read(collection)
        mapping[key] = value

        try:
            await self._store.put(collection, encode_collection(mapping))
        except Exception as e:
            raise self._wrap_store_error(e, collection, "write") from e

        logger.info(
            "Updated secret collection",
            collection=collection,
            backend=self.backend_name,
            key=key,
            size=len(mapping),
        )

    async def get(self, collection: str, key: str) -> str:
        """
        Read one key from a collection.

        Raises:
            AggregationError: ``KEY_NOT_FOUND`` if the key is absent, otherwise
                as for ``get_all``.
        """
        mapping = await self._read(collection)
        if key not in mapping:
            raise AggregationError(
                f"Key '{key}' not found in secret '{collection}'",
                AggregationErrorKind.KEY_NOT_FOUND,
                collection,
                self.backend_name,
                key,
            )
        return mapping[key]

    async def get_all(self, collection: str) -> dict[str, str]:
        """Read every key/value pair of a collection."""
        return await self._read(collection)

    async def keys(self, collection: str) -> list[str]:
        """Sorted secret names in a collection."""
        return sorted(await self._read(collection))

    async def _read(self, collection: str) -> dict[str, str]:
        try:
            blob = await self._store.get(collection)
        except Exception as e:
            raise self._wrap_store_error(e, collection, "read") from e

        return decode_collection(blob, collection, self.backend_name)

    def _wrap_store_error(
        self, error: Exception, collection: str, operation: str
    ) -> AggregationError:
        """Map a store error onto the aggregation error kinds."""
        backend = self.backend_name
        if isinstance(error, BackendError):
            # Already classified by the adapter
            kind = error.kind
            message = error.message
        else:
            message = sdk_error_message(error)
            kind = (
                StoreErrorKind.AUTH_FAILURE
                if looks_like_auth_error(message)
                else StoreErrorKind.OTHER
            )
            message = message or str(error)

        if kind is StoreErrorKind.AUTH_FAILURE:
            return AggregationError(
                f"{backend} authentication error while accessing secret '{collection}': "
                f"{message}",
                AggregationErrorKind.AUTH_FAILURE,
                collection,
                backend,
            )

        if kind is StoreErrorKind.NOT_FOUND:
            return AggregationError(
                f"{backend} secret '{collection}' not found. Please create it first "
                "or configure a different secret name",
                AggregationErrorKind.COLLECTION_NOT_FOUND,
                collection,
                backend,
            )

        return AggregationError(
            f"Failed to {operation} secret '{collection}' in {backend}: {message}",
            AggregationErrorKind.OTHER,
            collection,
            backend,
        )

    def _check_encodable(self, collection: str, key: str, value: str) -> None:
        for label, text in (("key", key), ("value", value)):
            try:
                text.encode("utf-8")
            except UnicodeEncodeError as e:
                raise AggregationError(
                    f"Secret {label} for {key!r} is not valid UTF-8 text",
                    AggregationErrorKind.OTHER,
                    collection,
                    self.backend_name,
                ) from e
