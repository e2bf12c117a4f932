"""
MindVault Backend — Field Cipher (Encryption at Rest)
=======================================================

What:  Encrypts individual string fields into self-describing tokens and back.
Why:   Journal text, chat messages and wellness answers must never sit in the
       database as plaintext, yet every caller should keep treating them as
       ordinary strings.
How:   AES-256-GCM with a fresh 16-byte nonce per call. The key is derived once
       per instance from the configured secret with scrypt.
Who:   Services call protect() before writing a sensitive column and reveal()
       right after reading it.

Token Format:
    <nonce hex>:<auth tag hex>:<ciphertext hex>

    The token is a plain string, so it fits any TEXT column without schema
    changes. No "is encrypted" flag is stored anywhere: a value without a
    colon is legacy plaintext and is returned as-is by reveal().

Key Lifetime:
    One key per FieldCipher instance, immutable after construction. The
    instance holds no other state, so protect()/reveal() are safe to call
    from any number of concurrent request tasks.
"""

import binascii
import logging
import os
import re
from typing import Any

from cryptography.exceptions import InternalError, InvalidTag
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.scrypt import Scrypt

from mindvault.exceptions import DecodeFormatError, DecryptionError, EncryptionError

logger = logging.getLogger(__name__)

KEY_LENGTH = 32
NONCE_LENGTH = 16
TAG_LENGTH = 16

# Scrypt parameters tokens were originally produced with; changing any of
# them invalidates every stored token exactly like changing the secret.
KDF_SALT = b"salt"
KDF_N = 2 ** 14
KDF_R = 8
KDF_P = 1

TOKEN_SEPARATOR = ":"
_TOKEN_PATTERN = re.compile(
    r"^(?:[0-9a-fA-F]{2})+:(?:[0-9a-fA-F]{2})+:(?:[0-9a-fA-F]{2})+$"
)


def derive_key(secret: str) -> bytes:
    """Derives the 32-byte AES key from the configured secret."""
    kdf = Scrypt(salt=KDF_SALT, length=KEY_LENGTH, n=KDF_N, r=KDF_R, p=KDF_P)
    return kdf.derive(secret.encode("utf-8"))


def new_key_material() -> str:
    """Returns a fresh random key as 64 hex characters, for ENCRYPTION_KEY."""
    return os.urandom(KEY_LENGTH).hex()


def is_protected(value: Any) -> bool:
    """True if value has the shape of a token (three non-empty hex segments)."""
    return isinstance(value, str) and bool(_TOKEN_PATTERN.match(value))


class FieldCipher:
    """
    Transparent encryption for single string fields.

    Args:
        secret: Passphrase to derive the key from. Empty means no secret is
                configured: a random key is used for the lifetime of this
                instance and a warning is logged.
    """

    def __init__(self, secret: str = ""):
        if secret:
            key = derive_key(secret)
            self.ephemeral = False
        else:
            logger.warning(
                "ENCRYPTION_KEY is not set. Using a temporary random key; "
                "encrypted data WILL NOT BE RECOVERABLE after restart."
            )
            key = os.urandom(KEY_LENGTH)
            self.ephemeral = True
        self._aead = AESGCM(key)

    @classmethod
    def from_settings(cls, settings) -> "FieldCipher":
        return cls(settings.encryption_key)

    def protect(self, value: Any) -> Any:
        """
        Encrypts a string into a token.

        Anything that is not a non-empty string (None, numbers, "") is
        returned unchanged.

        Raises:
            EncryptionError: the cipher primitive failed; nothing is returned.
        """
        if not isinstance(value, str) or not value:
            return value

        nonce = os.urandom(NONCE_LENGTH)
        try:
            sealed = self._aead.encrypt(nonce, value.encode("utf-8"), None)
        except (ValueError, OverflowError, InternalError) as e:
            logger.error("Field encryption failed: %s", type(e).__name__)
            raise EncryptionError(context={"error_type": type(e).__name__}) from e

        # AESGCM appends the tag to the ciphertext
        ciphertext, tag = sealed[:-TAG_LENGTH], sealed[-TAG_LENGTH:]
        return TOKEN_SEPARATOR.join((nonce.hex(), tag.hex(), ciphertext.hex()))

    def reveal(self, token: Any) -> Any:
        """
        Decrypts a token back to its string.

        Non-strings and "" are returned unchanged. A string without any colon
        is legacy plaintext written before encryption existed and is also
        returned unchanged.

        Raises:
            DecodeFormatError: not exactly three segments, or a segment is not hex.
            DecryptionError: tag segment not 16 bytes, tag mismatch (wrong key or
                             tampered token) or any other cipher failure.
        """
        if not isinstance(token, str) or not token:
            return token
        if TOKEN_SEPARATOR not in token:
            return token

        parts = token.split(TOKEN_SEPARATOR)
        if len(parts) != 3:
            raise DecodeFormatError(segments=len(parts))

        try:
            nonce, tag, ciphertext = (binascii.unhexlify(part) for part in parts)
        except (binascii.Error, ValueError) as e:
            raise DecodeFormatError(
                message="Invalid encrypted data format: segment is not hex",
                segments=3,
            ) from e

        if len(tag) != TAG_LENGTH:
            # The tag must sit in its own segment, not be borrowed from the ciphertext
            logger.error("Field decryption failed: tag segment is %d bytes", len(tag))
            raise DecryptionError(context={"reason": "tag_length", "tag_bytes": len(tag)})

        try:
            plaintext = self._aead.decrypt(nonce, ciphertext + tag, None)
            return plaintext.decode("utf-8")
        except InvalidTag as e:
            logger.error("Field decryption failed: authentication tag mismatch")
            raise DecryptionError(context={"reason": "tag_mismatch"}) from e
        except (ValueError, InternalError) as e:
            # Bad nonce length, non UTF-8 plaintext or a backend failure
            logger.error("Field decryption failed: %s", type(e).__name__)
            raise DecryptionError(context={"error_type": type(e).__name__}) from e
