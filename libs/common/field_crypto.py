"""
AES-256-GCM codec for sensitive single-value fields (IC numbers).

A fresh random nonce is used for every encryption, so the same plaintext
encrypts to different ciphertexts. Lookups therefore decrypt and compare
rather than matching ciphertext.

Stored format: base64(nonce[12] + ciphertext + tag[16]).

Usage:
    cipher = FieldCipher.from_secret(settings.KHAIRAT_ENCRYPTION_KEY)
    token = cipher.encrypt("800101125555")
    cipher.decrypt(token)  # "800101125555"
"""

import binascii
import os
import string
from base64 import b64decode, b64encode

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM
from cryptography.hazmat.primitives.kdf.pbkdf2 import PBKDF2HMAC

NONCE_SIZE = 12
TAG_SIZE = 16
KEY_SIZE = 32

# Fixed salt so the same secret always derives the same key across restarts
KDF_SALT = b"khairat_field_encryption_salt"
KDF_ITERATIONS = 100_000


class CryptoError(Exception):
    """Raised when a ciphertext cannot be decrypted with the configured key."""

    status_code = 500

    def __init__(self, message: str = "Gagal menyahsulit data"):
        self.message = message
        super().__init__(message)


def derive_key(secret: str) -> bytes:
    """Turn the configured secret into a 32-byte AES key.

    A 64 character hex string is used as the raw key. Anything else is
    stretched with PBKDF2-HMAC-SHA256.
    """
    if not secret:
        raise ValueError("Encryption secret must not be empty")

    if len(secret) == KEY_SIZE * 2 and all(c in string.hexdigits for c in secret):
        return bytes.fromhex(secret)

    kdf = PBKDF2HMAC(
        algorithm=hashes.SHA256(),
        length=KEY_SIZE,
        salt=KDF_SALT,
        iterations=KDF_ITERATIONS,
    )
    return kdf.derive(secret.encode("utf-8"))


class FieldCipher:
    """Encrypts and decrypts one text field at a time with a fixed key."""

    def __init__(self, key: bytes):
        if len(key) != KEY_SIZE:
            raise ValueError(f"Encryption key must be {KEY_SIZE} bytes")
        self._aesgcm = AESGCM(key)

    @classmethod
    def from_secret(cls, secret: str) -> "FieldCipher":
        return cls(derive_key(secret))

    def encrypt(self, plaintext: str) -> str:
        if not plaintext:
            raise ValueError("Cannot encrypt an empty value")

        nonce = os.urandom(NONCE_SIZE)
        ciphertext = self._aesgcm.encrypt(nonce, plaintext.encode("utf-8"), None)
        return b64encode(nonce + ciphertext).decode("ascii")

    def decrypt(self, token: str) -> str:
        if not token:
            raise CryptoError("Nilai tersulit kosong")

        try:
            data = b64decode(token.encode("ascii"), validate=True)
        except (binascii.Error, UnicodeEncodeError) as exc:
            raise CryptoError("Format data tersulit tidak sah") from exc

        if len(data) <= NONCE_SIZE + TAG_SIZE:
            raise CryptoError("Format data tersulit tidak sah")

        nonce, ciphertext = data[:NONCE_SIZE], data[NONCE_SIZE:]
        try:
            plaintext = self._aesgcm.decrypt(nonce, ciphertext, None)
            return plaintext.decode("utf-8")
        except (InvalidTag, UnicodeDecodeError) as exc:
            raise CryptoError() from exc
