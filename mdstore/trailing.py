# mdstore/trailing.py
from __future__ import annotations

from mdstore.document import TrailingNewline


def classify_trailing_newline(content: str) -> TrailingNewline:
    """
    Infer the trailing-newline convention of canonical (LF) content:
      ""          -> DISABLED (nothing to manage)
      "...\\n\\n" -> DISABLED (a blank last line is kept as-is)
      "...\\n"    -> ENSURE_SINGLE
      "...x"      -> TRIM_ALL
    """
    if not content:
        return TrailingNewline.DISABLED
    if content.endswith("\n\n"):
        return TrailingNewline.DISABLED
    if content.endswith("\n"):
        return TrailingNewline.ENSURE_SINGLE
    return TrailingNewline.TRIM_ALL


def apply_trailing_newline(content: str, policy: TrailingNewline) -> str:
    if policy is TrailingNewline.ENSURE_SINGLE:
        return content.rstrip("\n") + "\n"
    if policy is TrailingNewline.TRIM_ALL:
        return content.rstrip("\n")
    return content


__all__ = ["classify_trailing_newline", "apply_trailing_newline"]
