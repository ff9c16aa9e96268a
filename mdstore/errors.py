# mdstore/errors.py
from __future__ import annotations

from typing import List, Optional, Tuple


# ---- Exceptions ------------------------------------------------------------
class MdStoreError(Exception):
    """Base error for document persistence."""


class UnsupportedEncoding(MdStoreError):
    """Raised when no Python codec exists for the detected or forced encoding."""

    def __init__(self, encoding: str):
        self.encoding = encoding
        super().__init__(f'"{encoding}" encoding is not supported.')


class DecryptionFailure(MdStoreError):
    """
    Raised when a secure document cannot be decrypted.
    Recoverable: the caller decides whether to prompt for another key or abort.
    """

    def __init__(self, path: Optional[str], reason: str):
        self.path = path
        self.reason = reason
        msg = f"Cannot decrypt document: {reason}"
        if path:
            msg = f"Cannot decrypt '{path}': {reason}"
        super().__init__(msg)


class KeyUnavailable(MdStoreError):
    """Raised when the key provider has no usable key for the secure codec."""


class PartialDeletionFailure(MdStoreError):
    """
    Raised after a removal batch when at least one path could not be removed.
    Sibling removals are still attempted; `removed` lists the ones that went through.
    """

    def __init__(self, failures: List[Tuple[str, BaseException]], removed: Optional[List[str]] = None):
        self.failures = list(failures)
        self.removed = list(removed or [])
        lines = [f"{path}: {err}" for path, err in self.failures]
        super().__init__(
            f"Failed to delete {len(self.failures)} path(s):\n" + "\n".join(lines)
        )


__all__ = [
    "MdStoreError",
    "UnsupportedEncoding",
    "DecryptionFailure",
    "KeyUnavailable",
    "PartialDeletionFailure",
]
