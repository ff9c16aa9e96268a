# mdstore/formats.py
from __future__ import annotations

import logging
import os
from dataclasses import dataclass
from pathlib import Path
from typing import Dict, FrozenSet, Optional, Tuple, Union

log = logging.getLogger(__name__)

SECURE_EXTENSION = ".mde"
ASSET_DIR_SUFFIX = ".assets"
DEFAULT_EXTENSION = ".md"

MARKDOWN_EXTENSIONS: Tuple[str, ...] = (
    "markdown",
    "mdown",
    "mkdn",
    "md",
    "mde",
    "mkd",
    "mdwn",
    "mdtxt",
    "mdtext",
    "mdx",
    "text",
    "txt",
)

PathLike = Union[str, "os.PathLike[str]"]


@dataclass(frozen=True)
class FileFormat:
    """What a file extension means for load/save."""
    name: str
    exts: FrozenSet[str]
    encrypted: bool = False


MARKDOWN = FileFormat(
    name="markdown",
    exts=frozenset("." + e for e in MARKDOWN_EXTENSIONS if "." + e != SECURE_EXTENSION),
)
SECURE_MARKDOWN = FileFormat(name="secure-markdown", exts=frozenset({SECURE_EXTENSION}), encrypted=True)
PLAIN = FileFormat(name="plain", exts=frozenset())

# Registry (ext -> format)
_REGISTRY: Dict[str, FileFormat] = {}


def _register(fmt: FileFormat) -> None:
    for ext in fmt.exts:
        _REGISTRY[ext.lower()] = fmt


for _fmt in (MARKDOWN, SECURE_MARKDOWN):
    _register(_fmt)


def available_formats() -> Dict[str, str]:
    """Extension -> format name, for inspection."""
    return {ext: fmt.name for ext, fmt in sorted(_REGISTRY.items())}


def format_for_path(path: PathLike) -> FileFormat:
    """Descriptor for the extension of `path`; unknown extensions pass through as PLAIN."""
    ext = os.path.splitext(os.fspath(path))[1].lower()
    return _REGISTRY.get(ext, PLAIN)


def is_secure_path(path: PathLike) -> bool:
    return format_for_path(path).encrypted


def has_markdown_extension(filename: Optional[str]) -> bool:
    if not filename or not isinstance(filename, str):
        return False
    lowered = filename.lower()
    return any(lowered.endswith(f".{ext}") for ext in MARKDOWN_EXTENSIONS)


def normalize_markdown_path(pathname: PathLike) -> Optional[Tuple[bool, str]]:
    """
    Returns (is_dir, resolved_path) for directories and markdown files, or None
    for anything else or when the path cannot be resolved.
    """
    p = Path(pathname)
    is_dir = p.is_dir()
    if not (is_dir or has_markdown_extension(p.name)):
        return None
    try:
        return is_dir, str(p.resolve(strict=True))
    except (OSError, RuntimeError):
        log.error('Cannot resolve "%s".', pathname)
        return None


def resolve_save_path(pathname: PathLike) -> str:
    """Absolute save target; a name without extension gets `.md`."""
    resolved = os.path.abspath(os.fspath(pathname))
    if not os.path.splitext(resolved)[1]:
        resolved += DEFAULT_EXTENSION
    return resolved


def strip_document_extension(pathname: PathLike) -> str:
    return os.path.splitext(os.fspath(pathname))[0]


__all__ = [
    "SECURE_EXTENSION",
    "ASSET_DIR_SUFFIX",
    "DEFAULT_EXTENSION",
    "MARKDOWN_EXTENSIONS",
    "FileFormat",
    "MARKDOWN",
    "SECURE_MARKDOWN",
    "PLAIN",
    "available_formats",
    "format_for_path",
    "is_secure_path",
    "has_markdown_extension",
    "normalize_markdown_path",
    "resolve_save_path",
    "strip_document_extension",
]
