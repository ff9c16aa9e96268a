# mdstore/removal.py
from __future__ import annotations

import logging
import os
import shutil
from typing import Callable, Iterable, List, Optional, Tuple

from mdstore.errors import PartialDeletionFailure

log = logging.getLogger(__name__)

Remover = Callable[[str], None]


def delete_path(path: str) -> None:
    """Permanent removal of a file or a whole directory tree."""
    if os.path.isdir(path) and not os.path.islink(path):
        shutil.rmtree(path)
    else:
        os.unlink(path)


def remove_paths(paths: Iterable[str], remover: Optional[Remover] = None) -> List[str]:
    """
    Remove every path independently. One failure does not stop the others;
    all failures are raised together as PartialDeletionFailure afterwards.
    Pass a trash-style `remover` to make removal reversible.
    """
    remove = remover or delete_path
    removed: List[str] = []
    failures: List[Tuple[str, BaseException]] = []
    for path in paths:
        try:
            remove(path)
            removed.append(path)
        except OSError as e:
            log.error("An error occurred while deleting %s: %s", path, e)
            failures.append((path, e))
    if failures:
        raise PartialDeletionFailure(failures, removed)
    return removed


__all__ = ["Remover", "delete_path", "remove_paths"]
