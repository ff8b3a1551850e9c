"""Unit tests for JSON secret collections."""

from __future__ import annotations

import json

import pytest

from ghsecrets.aggregation.json_collection import (
    JsonSecretCollection,
    decode_collection,
    encode_collection,
)
from ghsecrets.backends.memory import InMemorySecretsBackend
from ghsecrets.core.exceptions import (
    AggregationError,
    BackendAuthError,
    BackendError,
)
from ghsecrets.core.types import AggregationErrorKind, StoreErrorKind

COLLECTION = "github-secrets-octo-demo"


class TestDecodeCollection:
    """Tests for decode_collection()."""

    @pytest.mark.parametrize("blob", ["", "   ", "\n"])
    def test_empty_blob_is_empty_collection(self, blob):
        assert decode_collection(blob, COLLECTION) == {}

    def test_flat_object(self):
        assert decode_collection('{"A": "1", "B": ""}', COLLECTION) == {"A": "1", "B": ""}

    @pytest.mark.parametrize(
        "blob",
        ["not-json", "[1, 2]", '"text"', '{"A": 1}', '{"A": {"nested": "x"}}', '{"A": null}'],
    )
    def test_corrupt_blob(self, blob):
        """Test anything but a flat string mapping is corrupt."""
        with pytest.raises(AggregationError) as exc_info:
            decode_collection(blob, COLLECTION, "aws")

        assert exc_info.value.kind is AggregationErrorKind.CORRUPT_FORMAT
        assert exc_info.value.collection == COLLECTION


class TestEncodeCollection:
    def test_sorted_indented_unescaped(self):
        blob = encode_collection({"b": "ü", "a": "1"})

        assert blob == '{\n  "a": "1",\n  "b": "ü"\n}'


@pytest.mark.asyncio
class TestJsonSecretCollection:
    """Tests for JsonSecretCollection over an in-memory store."""

    @pytest.fixture
    def collection(self, store):
        return JsonSecretCollection(store)

    async def test_add_then_get(self, collection):
        """Test a stored value reads back unchanged."""
        await collection.add_or_update(COLLECTION, "API_KEY", "s3cr3t")

        assert await collection.get(COLLECTION, "API_KEY") == "s3cr3t"

    async def test_update_preserves_other_keys(self, collection, store):
        """Test updating one key leaves the rest untouched."""
        store.create(COLLECTION, json.dumps({"A": "1", "B": "2"}))

        await collection.add_or_update(COLLECTION, "B", "changed")
        await collection.add_or_update(COLLECTION, "C", "3")

        assert await collection.get_all(COLLECTION) == {"A": "1", "B": "changed", "C": "3"}

    async def test_idempotent_write(self, collection, store):
        """Test writing the same value twice stores the same blob."""
        await collection.add_or_update(COLLECTION, "K", "v")
        first = store.slots[COLLECTION]
        await collection.add_or_update(COLLECTION, "K", "v")

        assert store.slots[COLLECTION] == first

    async def test_stored_blob_is_sorted_json(self, collection, store):
        await collection.add_or_update(COLLECTION, "Z", "26")
        await collection.add_or_update(COLLECTION, "A", "1")

        assert list(json.loads(store.slots[COLLECTION])) == ["A", "Z"]

    async def test_empty_slot_accepts_first_key(self, collection, store):
        store.create(COLLECTION, "")

        await collection.add_or_update(COLLECTION, "FIRST", "1")

        assert await collection.get_all(COLLECTION) == {"FIRST": "1"}

    async def test_special_characters(self, collection):
        value = 'line1\nline2 "quoted" \\ ✓'
        await collection.add_or_update(COLLECTION, "MULTI", value)

        assert await collection.get(COLLECTION, "MULTI") == value

    async def test_missing_collection_not_created(self, collection, store):
        """Test a missing slot is reported, never created."""
        with pytest.raises(AggregationError) as exc_info:
            await collection.add_or_update("does-not-exist", "K", "v")

        assert exc_info.value.kind is AggregationErrorKind.COLLECTION_NOT_FOUND
        assert "does-not-exist" not in store.slots
        assert store.put_calls == []

    async def test_corrupt_collection_left_unchanged(self, collection, store):
        """Test a corrupt blob is rejected and not overwritten."""
        store.create(COLLECTION, "not-json")

        with pytest.raises(AggregationError) as exc_info:
            await collection.add_or_update(COLLECTION, "K", "v")

        assert exc_info.value.kind is AggregationErrorKind.CORRUPT_FORMAT
        assert store.slots[COLLECTION] == "not-json"
        assert store.put_calls == []

    async def test_get_missing_key(self, collection):
        with pytest.raises(AggregationError) as exc_info:
            await collection.get(COLLECTION, "ABSENT")

        assert exc_info.value.kind is AggregationErrorKind.KEY_NOT_FOUND
        assert exc_info.value.key == "ABSENT"

    async def test_keys_sorted(self, collection, store):
        store.create(COLLECTION, json.dumps({"b": "2", "a": "1", "C": "3"}))

        assert await collection.keys(COLLECTION) == ["C", "a", "b"]

    async def test_auth_error_on_read(self, collection, store):
        store.set_error("get", BackendAuthError("ExpiredToken: token expired", "aws", COLLECTION))

        with pytest.raises(AggregationError) as exc_info:
            await collection.get_all(COLLECTION)

        assert exc_info.value.kind is AggregationErrorKind.AUTH_FAILURE

    @pytest.mark.parametrize(
        "name",
        [
            "github-secrets-acme-unauthenticated-api",
            "github-secrets-acme-accessdenied",
            "github-secrets-octo-invalidtoken",
        ],
    )
    async def test_missing_collection_named_like_auth_error(self, collection, store, name):
        """Test the collection name never makes a missing slot look like an auth failure."""
        with pytest.raises(AggregationError) as exc_info:
            await collection.add_or_update(name, "K", "v")

        assert exc_info.value.kind is AggregationErrorKind.COLLECTION_NOT_FOUND
        assert store.put_calls == []

    async def test_adapter_classification_trusted(self, collection, store):
        """Test a classified backend error keeps its kind whatever its message says."""
        store.set_error(
            "get", BackendError("AccessDenied in upstream log line", "aws", kind=StoreErrorKind.OTHER)
        )

        with pytest.raises(AggregationError) as exc_info:
            await collection.get_all(COLLECTION)

        assert exc_info.value.kind is AggregationErrorKind.OTHER

    async def test_unclassified_error_with_auth_message(self, collection, store):
        store.set_error("get", RuntimeError("ExpiredToken: the security token has expired"))

        with pytest.raises(AggregationError) as exc_info:
            await collection.get_all(COLLECTION)

        assert exc_info.value.kind is AggregationErrorKind.AUTH_FAILURE

    async def test_auth_error_on_write(self, collection, store):
        store.set_error("put", BackendError("boom", "aws", kind=StoreErrorKind.AUTH_FAILURE))

        with pytest.raises(AggregationError) as exc_info:
            await collection.add_or_update(COLLECTION, "K", "v")

        assert exc_info.value.kind is AggregationErrorKind.AUTH_FAILURE
        assert store.slots[COLLECTION] == "{}"

    async def test_other_store_error(self, collection, store):
        store.set_error("get", RuntimeError("connection reset"))

        with pytest.raises(AggregationError) as exc_info:
            await collection.get_all(COLLECTION)

        assert exc_info.value.kind is AggregationErrorKind.OTHER
        assert isinstance(exc_info.value.__cause__, RuntimeError)

    async def test_unencodable_value_rejected(self, collection, store):
        with pytest.raises(AggregationError) as exc_info:
            await collection.add_or_update(COLLECTION, "K", "bad\udcff")

        assert exc_info.value.kind is AggregationErrorKind.OTHER
        assert store.get_calls == []

    async def test_backend_name(self):
        assert JsonSecretCollection(InMemorySecretsBackend(name="vault")).backend_name == "vault"
