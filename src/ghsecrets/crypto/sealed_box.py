"""
Anonymous sealed-box encryption for GitHub Actions secrets.

GitHub only accepts secret values encrypted for the repository's
Curve25519 public key using libsodium's ``crypto_box_seal``: an ephemeral
key pair is generated per call, the shared key is derived with X25519, the
payload is authenticated with XSalsa20-Poly1305 and the ephemeral public
key is prepended to the ciphertext. Only the holder of the private key can
open it, and sealing the same value twice yields different ciphertexts.
"""

from __future__ import annotations

import binascii
from base64 import b64decode, b64encode

from nacl import exceptions as nacl_exceptions
from nacl.public import PublicKey, SealedBox

from ghsecrets.core.exceptions import EncryptionError
from ghsecrets.core.types import EncryptionErrorReason

PUBLIC_KEY_SIZE = PublicKey.SIZE


def decode_public_key(public_key: str | bytes) -> bytes:
    """
    Decode a recipient public key to its raw 32 bytes.

    Args:
        public_key: Base64 text as returned by the GitHub API, or raw bytes.

    Raises:
        EncryptionError: If the key is not valid base64 or not 32 bytes long.
    """
    if isinstance(public_key, str):
        try:
            raw = b64decode(public_key.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as e:
            raise EncryptionError(
                f"Public key is not valid base64: {e}",
                EncryptionErrorReason.INVALID_KEY,
            ) from e
    else:
        raw = bytes(public_key)

    if len(raw) != PUBLIC_KEY_SIZE:
        raise EncryptionError(
            f"Public key must be {PUBLIC_KEY_SIZE} bytes, got {len(raw)}",
            EncryptionErrorReason.INVALID_KEY,
        )
    return raw


def seal(public_key: str | bytes, plaintext: str) -> str:
    """
    Encrypt a secret value for the holder of ``public_key``.

    Args:
        public_key: Recipient key, base64 text or raw bytes.
        plaintext: Secret value.

    Returns:
        Base64-encoded sealed box.

    Raises:
        EncryptionError: ``INVALID_KEY`` for a malformed key,
            ``ENCRYPT_FAILED`` for any failure inside the crypto library.
    """
    raw_key = decode_public_key(public_key)

    try:
        sealed = SealedBox(PublicKey(raw_key)).encrypt(plaintext.encode("utf-8"))
    except (nacl_exceptions.CryptoError, UnicodeEncodeError) as e:
        raise EncryptionError(
            f"Failed to encrypt secret: {e}",
            EncryptionErrorReason.ENCRYPT_FAILED,
        ) from e

    return b64encode(sealed).decode("ascii")


class SealedSecretEncryptor:
    """Stateless encryptor handed to clients that need to seal values."""

    def seal(self, public_key: str | bytes, plaintext: str) -> str:
        return seal(public_key, plaintext)
