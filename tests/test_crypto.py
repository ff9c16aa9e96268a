import base64

import pytest
from cryptography.hazmat.primitives import padding
from cryptography.hazmat.primitives.ciphers import Cipher, algorithms, modes

from mdstore.crypto import (
    ENVELOPE_PREFIX,
    DocumentCodec,
    EnvKeyProvider,
    NONCE_SIZE,
    StaticKeyProvider,
    legacy_key_from_passphrase,
)
from mdstore.errors import DecryptionFailure, KeyUnavailable


@pytest.mark.parametrize("text", ["", "hello", "# Title\n\nUnicode: ✓ ü 漢字\n", "x" * 4096])
def test_decrypt_inverts_encrypt(codec, text):
    assert codec.decrypt(codec.encrypt(text)) == text


def test_fresh_iv_per_encryption(codec):
    a = codec.encrypt("same content")
    b = codec.encrypt("same content")
    assert a != b
    iv_a = base64.b64decode(a[len(ENVELOPE_PREFIX):])[:NONCE_SIZE]
    iv_b = base64.b64decode(b[len(ENVELOPE_PREFIX):])[:NONCE_SIZE]
    assert iv_a != iv_b


def test_iv_is_not_the_key(codec, key):
    blob = base64.b64decode(codec.encrypt("x")[len(ENVELOPE_PREFIX):])
    assert blob[:NONCE_SIZE] != key[:NONCE_SIZE]


def test_wrong_key_is_a_failure(codec):
    payload = codec.encrypt("secret notes\n")
    other = DocumentCodec(StaticKeyProvider(bytes(range(16))))
    with pytest.raises(DecryptionFailure):
        other.decrypt(payload)


@pytest.mark.parametrize(
    "payload",
    [
        "not encrypted at all",
        ENVELOPE_PREFIX + "!!!not-base64!!!",
        ENVELOPE_PREFIX + base64.b64encode(b"short").decode(),
        ENVELOPE_PREFIX + base64.b64encode(b"\x00" * 40).decode(),
    ],
)
def test_garbage_never_comes_back_as_plaintext(codec, payload):
    with pytest.raises(DecryptionFailure):
        codec.decrypt(payload, path="/tmp/x.mde")


def test_modified_payload_fails_authentication(codec):
    blob = bytearray(base64.b64decode(codec.encrypt("# secret\n\nbody\n")[len(ENVELOPE_PREFIX):]))
    blob[-1] ^= 0x01
    tampered = ENVELOPE_PREFIX + base64.b64encode(bytes(blob)).decode("ascii")
    with pytest.raises(DecryptionFailure) as ei:
        codec.decrypt(tampered, path="/tmp/x.mde")
    assert ei.value.path == "/tmp/x.mde"
    assert "authentication failed" in ei.value.reason


def test_decryption_failure_carries_path_and_reason():
    err = DecryptionFailure("/tmp/a.mde", "payload too short")
    assert err.path == "/tmp/a.mde"
    assert err.reason == "payload too short"
    assert str(err) == "Cannot decrypt '/tmp/a.mde': payload too short"


def test_empty_payload_is_an_empty_document(codec):
    assert codec.decrypt("") == ""
    assert codec.decrypt("\n") == ""


def _legacy_payload(text: str, passphrase: str) -> str:
    key = legacy_key_from_passphrase(passphrase)
    padder = padding.PKCS7(128).padder()
    padded = padder.update(text.encode("utf-8")) + padder.finalize()
    encryptor = Cipher(algorithms.AES(key), modes.CBC(key)).encryptor()
    return base64.b64encode(encryptor.update(padded) + encryptor.finalize()).decode("ascii")


def test_legacy_payload_needs_opt_in(key):
    payload = _legacy_payload("old file\n", "pass")
    legacy_key = legacy_key_from_passphrase("pass")

    strict = DocumentCodec(StaticKeyProvider(key), legacy_key=legacy_key)
    with pytest.raises(DecryptionFailure):
        strict.decrypt(payload)

    migrating = DocumentCodec(StaticKeyProvider(key), legacy_key=legacy_key, allow_legacy=True)
    assert migrating.decrypt(payload) == "old file\n"
    # re-encrypting always produces the new envelope
    assert migrating.encrypt("old file\n").startswith(ENVELOPE_PREFIX)


def test_legacy_with_wrong_passphrase_fails(key):
    payload = _legacy_payload("old file\n", "pass")
    codec = DocumentCodec(
        StaticKeyProvider(key), legacy_key=legacy_key_from_passphrase("other"), allow_legacy=True
    )
    with pytest.raises(DecryptionFailure):
        codec.decrypt(payload)


def test_static_key_size_checked():
    with pytest.raises(KeyUnavailable):
        StaticKeyProvider(b"too short")


def test_env_key_provider(monkeypatch, key):
    provider = EnvKeyProvider("TEST_MDSTORE_KEY")
    monkeypatch.delenv("TEST_MDSTORE_KEY", raising=False)
    with pytest.raises(KeyUnavailable):
        provider.get_key()
    monkeypatch.setenv("TEST_MDSTORE_KEY", "zz")
    with pytest.raises(KeyUnavailable):
        provider.get_key()
    monkeypatch.setenv("TEST_MDSTORE_KEY", key.hex())
    assert provider.get_key() == key
