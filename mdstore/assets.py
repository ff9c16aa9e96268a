# mdstore/assets.py
from __future__ import annotations

import logging
import os
import re
from typing import Callable, Iterable, List, Sequence
from urllib.parse import unquote

from mdstore.formats import ASSET_DIR_SUFFIX, PathLike, strip_document_extension

log = logging.getLogger(__name__)

# Greedy on purpose: with two links on one line the capture runs to the last ')'.
_LINK_RE = re.compile(r"\[.*?\]\((.+)\)")
_SRC_RE = re.compile(r"\ssrc\s*=\s*\"(.+?)\"")

ReferencePredicate = Callable[[str, Sequence[str]], bool]


def scan_references(content: str) -> List[str]:
    """
    Asset paths referenced by `content`, percent-decoded, in order of appearance:
    all `[label](target)` targets first, then all `src="..."` values.
    Duplicates are kept. An empty `src=""` does not match on its own; the
    capture runs on to the next quote, so `<img src="" alt="x.png">` yields
    `" alt=`.
    """
    found = _LINK_RE.findall(content) + _SRC_RE.findall(content)
    return [unquote(ref) for ref in found]


def asset_dir_for(pathname: PathLike) -> str:
    """`/x/notes.md` and `/x/notes.mde` both map to `/x/notes.assets`."""
    return strip_document_extension(pathname) + ASSET_DIR_SUFFIX


def is_referenced(name: str, references: Sequence[str]) -> bool:
    """Loose match: the entry counts as used if any reference contains its name."""
    return any(name in ref for ref in references)


def is_referenced_exact(name: str, references: Sequence[str]) -> bool:
    """Strict alternative: the last path component of a reference must equal `name`."""
    return any(ref.replace("\\", "/").rstrip("/").rsplit("/", 1)[-1] == name for ref in references)


def collect_orphans(
    pathname: PathLike,
    references: Iterable[str],
    *,
    predicate: ReferencePredicate = is_referenced,
) -> List[str]:
    """
    Deletion candidates in the asset directory of `pathname`:
    - no asset directory: nothing
    - no references at all: the whole directory
    - otherwise every entry that `predicate` does not find in `references`
    Nothing is removed here.
    """
    asset_dir = asset_dir_for(pathname)
    if not os.path.isdir(asset_dir):
        return []

    refs = list(references)
    if not refs:
        log.info("No asset references left; %s is a deletion candidate", asset_dir)
        return [asset_dir]

    candidates = [
        os.path.join(asset_dir, entry)
        for entry in sorted(os.listdir(asset_dir))
        if not predicate(entry, refs)
    ]
    if candidates:
        log.info("Found %d unreferenced asset(s) in %s", len(candidates), asset_dir)
    return candidates


__all__ = [
    "scan_references",
    "asset_dir_for",
    "is_referenced",
    "is_referenced_exact",
    "collect_orphans",
]
