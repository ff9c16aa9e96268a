# mdstore/crypto.py
from __future__ import annotations

import base64
import binascii
import hashlib
import logging
import os
from typing import Optional, Protocol

from cryptography.exceptions import InvalidTag
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes
from cryptography.hazmat.primitives.ciphers.aead import AESGCM

from mdstore.errors import DecryptionFailure, KeyUnavailable

log = logging.getLogger(__name__)

ENVELOPE_PREFIX = "MDE1$"
NONCE_SIZE = 12
TAG_SIZE = 16
LEGACY_IV_SIZE = 16
BLOCK_BITS = 128
KEY_SIZES = (16, 24, 32)


# ---- Key management --------------------------------------------------------
class KeyProvider(Protocol):
    def get_key(self) -> bytes: ...


def _check_key(key: bytes) -> bytes:
    if len(key) not in KEY_SIZES:
        raise KeyUnavailable(f"AES key must be 16, 24 or 32 bytes, got {len(key)}")
    return key


class StaticKeyProvider:
    def __init__(self, key: bytes):
        self._key = _check_key(bytes(key))

    def get_key(self) -> bytes:
        return self._key


class EnvKeyProvider:
    """Reads a hex-encoded key from the environment on every call."""

    def __init__(self, var: str = "MDSTORE_SECRET_KEY"):
        self.var = var

    def get_key(self) -> bytes:
        raw = os.getenv(self.var, "").strip()
        if not raw:
            raise KeyUnavailable(f"{self.var} is not set")
        try:
            key = bytes.fromhex(raw)
        except ValueError:
            raise KeyUnavailable(f"{self.var} is not a hex string") from None
        return _check_key(key)


def legacy_key_from_passphrase(passphrase: str) -> bytes:
    """Key of the old scheme: md5 digest of the passphrase (also used as IV)."""
    return hashlib.md5(passphrase.encode("utf-8")).digest()


# ---- Cipher primitives -----------------------------------------------------
def _seal(plaintext: bytes, key: bytes) -> bytes:
    nonce = os.urandom(NONCE_SIZE)
    return nonce + AESGCM(key).encrypt(nonce, plaintext, None)


def _decrypt_cbc(ciphertext: bytes, key: bytes, iv: bytes) -> bytes:
    decryptor = Cipher(algorithms.AES(key), modes.CBC(iv)).decryptor()
    padded = decryptor.update(ciphertext) + decryptor.finalize()
    unpadder = padding.PKCS7(BLOCK_BITS).unpadder()
    return unpadder.update(padded) + unpadder.finalize()


# ---- Codec -----------------------------------------------------------------
class DocumentCodec:
    """
    Transparent encryption for secure documents.

    Payload: ENVELOPE_PREFIX + base64(nonce || AES-GCM(utf-8 text) || tag), with
    a fresh random nonce per call to `encrypt`. A modified payload fails the
    tag check. Payloads without the prefix belong to the old AES-CBC key-as-IV
    scheme and are only read when `allow_legacy` is set and a `legacy_key` is
    available.
    """

    def __init__(
        self,
        key_provider: KeyProvider,
        *,
        legacy_key: Optional[bytes] = None,
        allow_legacy: bool = False,
    ):
        self.key_provider = key_provider
        self.legacy_key = legacy_key
        self.allow_legacy = allow_legacy

    def encrypt(self, text: str) -> str:
        key = self.key_provider.get_key()
        blob = _seal(text.encode("utf-8"), key)
        return ENVELOPE_PREFIX + base64.b64encode(blob).decode("ascii")

    def decrypt(self, payload: str, *, path: Optional[str] = None) -> str:
        data = payload.strip()
        if not data:
            # a freshly created secure file holds no ciphertext yet
            return ""
        if data.startswith(ENVELOPE_PREFIX):
            return self._decrypt_envelope(data[len(ENVELOPE_PREFIX):], path)
        if self.allow_legacy and self.legacy_key is not None:
            log.warning("Reading %s with the legacy key-as-IV scheme", path or "payload")
            return self._decrypt_legacy(data, path)
        raise DecryptionFailure(path, "payload is not a recognized encrypted envelope")

    def _decrypt_envelope(self, body: str, path: Optional[str]) -> str:
        key = self.key_provider.get_key()
        blob = self._b64(body, path)
        if len(blob) < NONCE_SIZE + TAG_SIZE:
            raise DecryptionFailure(path, "payload too short")
        nonce, sealed = blob[:NONCE_SIZE], blob[NONCE_SIZE:]
        try:
            plaintext = AESGCM(key).decrypt(nonce, sealed, None)
        except InvalidTag:
            raise DecryptionFailure(path, "authentication failed (wrong key or modified file)") from None
        return self._text(plaintext, path)

    def _decrypt_legacy(self, body: str, path: Optional[str]) -> str:
        key = _check_key(self.legacy_key)  # type: ignore[arg-type]
        ciphertext = self._b64(body, path)
        try:
            plaintext = _decrypt_cbc(ciphertext, key, key[:LEGACY_IV_SIZE])
        except ValueError as e:
            raise DecryptionFailure(path, str(e) or "bad padding") from e
        return self._text(plaintext, path)

    @staticmethod
    def _b64(body: str, path: Optional[str]) -> bytes:
        try:
            return base64.b64decode(body, validate=True)
        except (binascii.Error, ValueError) as e:
            raise DecryptionFailure(path, f"invalid base64: {e}") from e

    @staticmethod
    def _text(plaintext: bytes, path: Optional[str]) -> str:
        try:
            return plaintext.decode("utf-8")
        except UnicodeDecodeError as e:
            raise DecryptionFailure(path, "decrypted bytes are not UTF-8 text (wrong key?)") from e


__all__ = [
    "ENVELOPE_PREFIX",
    "KeyProvider",
    "StaticKeyProvider",
    "EnvKeyProvider",
    "legacy_key_from_passphrase",
    "DocumentCodec",
]
