"""JSON aggregation of many secrets into one backup slot."""

from ghsecrets.aggregation.json_collection import (
    JsonSecretCollection,
    decode_collection,
    encode_collection,
)

__all__ = ["JsonSecretCollection", "decode_collection", "encode_collection"]
