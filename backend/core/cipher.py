# ---------------------------------------------------------------------------
# Author  : Kyle <kyle@hacking-linux.com>
# Version : 20260206v1
# ---------------------------------------------------------------------------
"""
Credential cipher – AES-256-CBC encryption of stored credential passwords.

Envelope format
---------------
    hex(iv) + ":" + hex(ciphertext)

A fresh random 16-byte IV is drawn for every ``encrypt`` call, PKCS7 padding
brings the plaintext to a block multiple.

Stored values carry the ``encrypted:`` sentinel in front of the envelope.
:meth:`CredentialCipher.seal` only encrypts values that do not carry it yet,
so saving an unmodified credential twice never double-encrypts.

The key is not read from configuration here.  The caller injects a key
provider (and optionally an IV source) so tests can run with deterministic
material; :func:`get_cipher` wires the production provider.
"""

import base64
import binascii
import secrets
from functools import lru_cache
from typing import Callable

from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from core.config import settings
from core.exceptions import DecryptionError

SENTINEL = "encrypted:"

KEY_LENGTH = 32
IV_LENGTH = 16
_BLOCK_BITS = 128

KeyProvider = Callable[[], bytes]
IvSource = Callable[[int], bytes]


def settings_key_provider() -> bytes:
    """
    Decode the base64-encoded ENCRYPTION_KEY from configuration.
    Called at use-time (not import-time) so the key is never cached at module
    load.  Must be exactly 32 bytes after decoding.
    """
    try:
        key = base64.b64decode(settings.encryption_key, validate=True)
    except binascii.Error as exc:
        raise RuntimeError("ENCRYPTION_KEY must be valid base64") from exc
    if len(key) != KEY_LENGTH:
        raise RuntimeError("ENCRYPTION_KEY must decode to exactly 32 bytes")
    return key


class CredentialCipher:
    def __init__(self, key_provider: KeyProvider, iv_source: IvSource = secrets.token_bytes):
        self._key_provider = key_provider
        self._iv_source = iv_source

    def _key(self) -> bytes:
        key = self._key_provider()
        if len(key) != KEY_LENGTH:
            raise RuntimeError("Encryption key must be exactly 32 bytes")
        return key

    # -- raw envelope ------------------------------------------------------

    def encrypt(self, plaintext: str) -> str:
        iv = self._iv_source(IV_LENGTH)
        padder = padding.PKCS7(_BLOCK_BITS).padder()
        padded = padder.update(plaintext.encode("utf-8")) + padder.finalize()

        encryptor = Cipher(algorithms.AES(self._key()), modes.CBC(iv)).encryptor()
        ciphertext = encryptor.update(padded) + encryptor.finalize()
        return iv.hex() + ":" + ciphertext.hex()

    def decrypt(self, envelope: str) -> str:
        """
        Reverse :meth:`encrypt`.  Every malformed input (missing separator,
        bad hex, wrong IV length, truncated ciphertext, bad padding, non
        UTF-8 result) raises :class:`DecryptionError`.
        """
        iv_hex, sep, ct_hex = envelope.partition(":")
        if not sep:
            raise DecryptionError("Malformed envelope: missing ':' separator")
        try:
            iv = bytes.fromhex(iv_hex)
            ciphertext = bytes.fromhex(ct_hex)
        except ValueError as exc:
            raise DecryptionError("Malformed envelope: invalid hex") from exc
        if len(iv) != IV_LENGTH:
            raise DecryptionError("Malformed envelope: IV must be 16 bytes")
        if not ciphertext or len(ciphertext) % IV_LENGTH:
            raise DecryptionError("Malformed envelope: ciphertext is not block aligned")

        decryptor = Cipher(algorithms.AES(self._key()), modes.CBC(iv)).decryptor()
        padded = decryptor.update(ciphertext) + decryptor.finalize()
        unpadder = padding.PKCS7(_BLOCK_BITS).unpadder()
        try:
            plain = unpadder.update(padded) + unpadder.finalize()
            return plain.decode("utf-8")
        except (ValueError, UnicodeDecodeError) as exc:
            raise DecryptionError("Decryption failed – wrong key or tampered data") from exc

    # -- stored values (with sentinel) -------------------------------------

    @staticmethod
    def is_sealed(value: str) -> bool:
        return value.startswith(SENTINEL)

    def seal(self, value: str) -> str:
        """Encrypt *value* for storage unless it is already encrypted."""
        if self.is_sealed(value):
            return value
        return self.seal_plaintext(value)

    def seal_plaintext(self, value: str) -> str:
        """Encrypt user input for storage, even when it starts with the sentinel."""
        return SENTINEL + self.encrypt(value)

    def unseal(self, value: str) -> str:
        """Return the plaintext of a stored value."""
        if not self.is_sealed(value):
            return value
        return self.decrypt(value[len(SENTINEL):])


@lru_cache
def get_cipher() -> CredentialCipher:
    """Process-wide cipher bound to the configured key.  Usable as a dependency."""
    return CredentialCipher(settings_key_provider)
