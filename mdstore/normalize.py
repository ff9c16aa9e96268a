# mdstore/normalize.py
from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Union

from mdstore.document import LineEnding


_NEWLINES_RE = re.compile(r"\r\n?")  # CRLF or CR -> LF
_LINE_ENDING_RE = re.compile(r"\r\n|\n")
_LF_RE = re.compile(r"(?<!\r)\n")
_CRLF_RE = re.compile(r"\r\n")


@dataclass(frozen=True)
class LineEndingReport:
    line_ending: LineEnding
    is_mixed: bool
    is_unknown: bool
    adjust_line_ending_on_save: bool


def detect_line_endings(text: str, preferred: Union[LineEnding, str] = LineEnding.LF) -> LineEndingReport:
    """
    Classify the line endings of decoded text.
    Uniform text keeps its own style; mixed or newline-free text takes `preferred`.
    """
    is_lf = _LF_RE.search(text) is not None
    is_crlf = _CRLF_RE.search(text) is not None
    is_mixed = is_lf and is_crlf
    is_unknown = not is_lf and not is_crlf

    line_ending = LineEnding.parse(preferred)
    if is_lf and not is_crlf:
        line_ending = LineEnding.LF
    elif is_crlf and not is_lf:
        line_ending = LineEnding.CRLF

    adjust = is_mixed or is_unknown or line_ending is not LineEnding.LF
    return LineEndingReport(
        line_ending=line_ending,
        is_mixed=is_mixed,
        is_unknown=is_unknown,
        adjust_line_ending_on_save=adjust,
    )


def normalize_text(s: str) -> str:
    """Canonical form: CRLF and lone CR become LF."""
    return _NEWLINES_RE.sub("\n", s)


def convert_line_endings(text: str, line_ending: Union[LineEnding, str]) -> str:
    return _LINE_ENDING_RE.sub(LineEnding.parse(line_ending).sequence, text)


def apply_line_ending(text: str, line_ending: Union[LineEnding, str], adjust: bool) -> str:
    """Save path: canonical LF text is converted only when `adjust` is set."""
    if not adjust:
        return text
    return convert_line_endings(text, line_ending)


__all__ = [
    "LineEndingReport",
    "detect_line_endings",
    "normalize_text",
    "convert_line_endings",
    "apply_line_ending",
]
