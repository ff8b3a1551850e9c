"""Sealed-box encryption for the primary store."""

from ghsecrets.crypto.sealed_box import SealedSecretEncryptor, decode_public_key, seal

__all__ = ["SealedSecretEncryptor", "decode_public_key", "seal"]
