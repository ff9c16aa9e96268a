# mdstore/config.py
from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Optional

from mdstore.document import LineEnding, TrailingNewline
from mdstore.encoding import DEFAULT_ENCODING


def _env_bool(name: str, default: bool) -> bool:
    raw = os.getenv(name)
    if raw is None or not raw.strip():
        return default
    return raw.strip().lower() in {"1", "true", "yes", "on"}


def os_line_ending() -> LineEnding:
    return LineEnding.CRLF if os.name == "nt" else LineEnding.LF


@dataclass
class StoreConfig:
    preferred_line_ending: LineEnding = LineEnding.LF
    auto_guess_encoding: bool = True
    default_encoding: str = DEFAULT_ENCODING
    trailing_newline: Optional[TrailingNewline] = None  # None: classify per file
    secret_key_var: str = "MDSTORE_SECRET_KEY"
    legacy_passphrase: Optional[str] = None
    allow_legacy_decrypt: bool = False


def load_config_from_env() -> StoreConfig:
    eol_raw = os.getenv("MDSTORE_PREFERRED_EOL", "").strip()
    preferred = LineEnding.parse(eol_raw) if eol_raw else os_line_ending()

    return StoreConfig(
        preferred_line_ending=preferred,
        auto_guess_encoding=_env_bool("MDSTORE_AUTO_GUESS_ENCODING", True),
        default_encoding=os.getenv("MDSTORE_DEFAULT_ENCODING", DEFAULT_ENCODING).strip() or DEFAULT_ENCODING,
        trailing_newline=TrailingNewline.parse(os.getenv("MDSTORE_TRAILING_NEWLINE")),
        legacy_passphrase=os.getenv("MDSTORE_LEGACY_PASSPHRASE") or None,
        allow_legacy_decrypt=_env_bool("MDSTORE_ALLOW_LEGACY_DECRYPT", False),
    )


__all__ = ["StoreConfig", "load_config_from_env", "os_line_ending"]
