# mdstore/encoding.py
from __future__ import annotations

import codecs
from typing import Optional, Tuple

import chardet

from mdstore.document import EncodingInfo
from mdstore.errors import UnsupportedEncoding

DEFAULT_ENCODING = "utf-8"
MIN_CONFIDENCE = 0.5

_BOMS: Tuple[Tuple[bytes, str], ...] = (
    (codecs.BOM_UTF8, "utf-8"),
    (codecs.BOM_UTF16_LE, "utf-16le"),
    (codecs.BOM_UTF16_BE, "utf-16be"),
)

_BOM_FOR_CODEC = {
    "utf-8": codecs.BOM_UTF8,
    "utf-16-le": codecs.BOM_UTF16_LE,
    "utf-16-be": codecs.BOM_UTF16_BE,
}


def _codec_name(encoding: str) -> str:
    return codecs.lookup(encoding).name


def detect_bom(raw: bytes) -> Optional[str]:
    for bom, name in _BOMS:
        if raw.startswith(bom):
            return name
    return None


def detect_encoding(raw: bytes, auto_guess: bool = True, default: str = DEFAULT_ENCODING) -> EncodingInfo:
    """
    Infer the encoding of `raw`.
    - guessing disabled: the fixed default (BOM flagged only for a UTF-8 default)
    - a UTF-8/UTF-16 byte-order mark wins
    - otherwise chardet; ASCII and weak guesses collapse to the default
    """
    if not auto_guess:
        is_bom = default.lower().replace("_", "-") in {"utf-8", "utf8"} and raw.startswith(codecs.BOM_UTF8)
        return EncodingInfo(encoding=default, is_bom=is_bom)

    bom_encoding = detect_bom(raw)
    if bom_encoding:
        return EncodingInfo(encoding=bom_encoding, is_bom=True)

    if not raw:
        return EncodingInfo(encoding=default, is_bom=False)

    guess = chardet.detect(raw)  # {'encoding': 'utf-8', 'confidence': 0.99, ...}
    enc = (guess.get("encoding") or "").lower()
    confidence = guess.get("confidence") or 0.0
    if not enc or enc == "ascii" or confidence < MIN_CONFIDENCE:
        return EncodingInfo(encoding=default, is_bom=False)
    return EncodingInfo(encoding=enc, is_bom=False)


def ensure_supported(encoding: str) -> str:
    """Returns the canonical codec name or raises UnsupportedEncoding."""
    try:
        return _codec_name(encoding)
    except (LookupError, TypeError, ValueError):
        raise UnsupportedEncoding(encoding) from None


def decode(raw: bytes, info: EncodingInfo) -> str:
    name = ensure_supported(info.encoding)
    bom = _BOM_FOR_CODEC.get(name)
    if bom and raw.startswith(bom):
        raw = raw[len(bom):]
    return raw.decode(name, errors="replace")


def encode(text: str, info: EncodingInfo) -> bytes:
    name = ensure_supported(info.encoding)
    data = text.encode(name)
    if info.is_bom:
        bom = _BOM_FOR_CODEC.get(name)
        if bom and not data.startswith(bom):
            data = bom + data
    return data


__all__ = [
    "DEFAULT_ENCODING",
    "detect_bom",
    "detect_encoding",
    "ensure_supported",
    "decode",
    "encode",
]
