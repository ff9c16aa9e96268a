# mdstore/document.py
from __future__ import annotations

import logging
from dataclasses import dataclass, field, replace
from enum import Enum
from typing import List, Optional, Union

log = logging.getLogger(__name__)


class LineEnding(str, Enum):
    LF = "lf"
    CRLF = "crlf"

    @property
    def sequence(self) -> str:
        return "\r\n" if self is LineEnding.CRLF else "\n"

    @classmethod
    def parse(cls, value: Union["LineEnding", str, None]) -> "LineEnding":
        """
        Accepts a member or its name ("lf"/"crlf"). Anything else is logged and
        treated as LF.
        """
        if isinstance(value, cls):
            return value
        try:
            return cls(str(value).strip().lower())
        except ValueError:
            log.error('Invalid end of line character: expected "lf" or "crlf" but got "%s".', value)
            return cls.LF


class TrailingNewline(str, Enum):
    DISABLED = "disabled"           # leave the tail alone
    ENSURE_SINGLE = "ensure_single" # exactly one trailing LF
    TRIM_ALL = "trim_all"           # no trailing LF

    @classmethod
    def parse(cls, value: Union["TrailingNewline", str, None]) -> Optional["TrailingNewline"]:
        if value is None or isinstance(value, cls):
            return value
        v = str(value).strip().lower().replace("-", "_")
        if v in {"", "unset", "auto"}:
            return None
        return cls(v)


@dataclass(frozen=True)
class EncodingInfo:
    encoding: str = "utf-8"
    is_bom: bool = False


@dataclass(frozen=True)
class SaveOptions:
    encoding: EncodingInfo = field(default_factory=EncodingInfo)
    line_ending: LineEnding = LineEnding.LF
    adjust_line_ending_on_save: bool = False
    trailing_newline: TrailingNewline = TrailingNewline.DISABLED


@dataclass(frozen=True)
class Document:
    """
    A loaded document. `content` is canonical (LF only); the remaining fields
    describe how to turn it back into the bytes it came from.
    """
    content: str
    filename: str
    pathname: str
    encoding: EncodingInfo
    line_ending: LineEnding
    is_mixed_line_endings: bool
    adjust_line_ending_on_save: bool
    trailing_newline: TrailingNewline
    is_encrypted: bool = False

    def save_options(self) -> SaveOptions:
        return SaveOptions(
            encoding=self.encoding,
            line_ending=self.line_ending,
            adjust_line_ending_on_save=self.adjust_line_ending_on_save,
            trailing_newline=self.trailing_newline,
        )

    def with_content(self, content: str) -> "Document":
        from mdstore.normalize import normalize_text

        return replace(self, content=normalize_text(content))

    def reencode(self, encoding: str, is_bom: Optional[bool] = None) -> "Document":
        bom = self.encoding.is_bom if is_bom is None else is_bom
        return replace(self, encoding=EncodingInfo(encoding=encoding, is_bom=bom))

    def with_line_ending(self, line_ending: Union[LineEnding, str]) -> "Document":
        style = LineEnding.parse(line_ending)
        # LF needs no conversion unless the source was mixed
        adjust = style is not LineEnding.LF or self.is_mixed_line_endings
        return replace(self, line_ending=style, adjust_line_ending_on_save=adjust)


@dataclass
class SaveResult:
    pathname: str
    bytes_written: int
    references: List[str]
    candidates: List[str]


__all__ = [
    "LineEnding",
    "TrailingNewline",
    "EncodingInfo",
    "SaveOptions",
    "Document",
    "SaveResult",
]
