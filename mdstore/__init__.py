# mdstore/__init__.py
from __future__ import annotations

from mdstore.assets import collect_orphans, scan_references
from mdstore.document import (
    Document,
    EncodingInfo,
    LineEnding,
    SaveOptions,
    SaveResult,
    TrailingNewline,
)
from mdstore.errors import (
    DecryptionFailure,
    KeyUnavailable,
    MdStoreError,
    PartialDeletionFailure,
    UnsupportedEncoding,
)
from mdstore.store import DocumentStore

__all__ = [
    "Document",
    "EncodingInfo",
    "LineEnding",
    "SaveOptions",
    "SaveResult",
    "TrailingNewline",
    "DocumentStore",
    "scan_references",
    "collect_orphans",
    "MdStoreError",
    "UnsupportedEncoding",
    "DecryptionFailure",
    "KeyUnavailable",
    "PartialDeletionFailure",
]
