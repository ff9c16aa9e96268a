import codecs

import chardet
import pytest

from mdstore.document import EncodingInfo
from mdstore.encoding import decode, detect_encoding, encode, ensure_supported
from mdstore.errors import UnsupportedEncoding


def test_guessing_disabled_returns_default():
    info = detect_encoding(codecs.BOM_UTF16_LE + "hi".encode("utf-16-le"), auto_guess=False)
    assert info == EncodingInfo("utf-8", False)


def test_guessing_disabled_still_flags_utf8_bom():
    info = detect_encoding(codecs.BOM_UTF8 + b"hi", auto_guess=False)
    assert info == EncodingInfo("utf-8", True)


@pytest.mark.parametrize(
    "bom, name",
    [
        (codecs.BOM_UTF8, "utf-8"),
        (codecs.BOM_UTF16_LE, "utf-16le"),
        (codecs.BOM_UTF16_BE, "utf-16be"),
    ],
)
def test_bom_detection(bom, name):
    info = detect_encoding(bom + b"x\x00", auto_guess=True)
    assert info.encoding == name
    assert info.is_bom is True


def test_ascii_and_empty_map_to_default():
    assert detect_encoding(b"plain ascii text\n").encoding == "utf-8"
    assert detect_encoding(b"").encoding == "utf-8"


def test_utf8_guess():
    raw = ("Привет, мир! Это документ в кодировке UTF-8.\n" * 10).encode("utf-8")
    assert detect_encoding(raw).encoding == "utf-8"


def test_weak_guess_falls_back_to_default(monkeypatch):
    monkeypatch.setattr(chardet, "detect", lambda raw: {"encoding": "windows-1252", "confidence": 0.3})
    assert detect_encoding(b"caf\xe9\n") == EncodingInfo("utf-8", False)
    assert detect_encoding(b"caf\xe9\n", default="latin-1") == EncodingInfo("latin-1", False)


def test_confident_guess_is_kept(monkeypatch):
    monkeypatch.setattr(chardet, "detect", lambda raw: {"encoding": "windows-1252", "confidence": 0.9})
    assert detect_encoding(b"caf\xe9\n") == EncodingInfo("windows-1252", False)


def test_unsupported_encoding():
    with pytest.raises(UnsupportedEncoding) as ei:
        ensure_supported("no-such-encoding")
    assert ei.value.encoding == "no-such-encoding"


def test_decode_strips_bom_and_encode_restores_it():
    info = EncodingInfo("utf-8", True)
    raw = codecs.BOM_UTF8 + "héllo".encode("utf-8")
    text = decode(raw, info)
    assert text == "héllo"
    assert encode(text, info) == raw


def test_utf16_roundtrip_with_bom():
    info = EncodingInfo("utf-16le", True)
    raw = codecs.BOM_UTF16_LE + "a\nb".encode("utf-16-le")
    assert decode(raw, info) == "a\nb"
    assert encode("a\nb", info) == raw


def test_decode_replaces_invalid_bytes():
    assert decode(b"ok\xff", EncodingInfo("utf-8", False)) == "ok�"
