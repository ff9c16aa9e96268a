# mdstore/store.py
from __future__ import annotations

import contextlib
import logging
import os
import stat
import tempfile
from functools import partial
from pathlib import Path
from typing import Optional, Union

from anyio import to_thread

from mdstore.assets import collect_orphans, scan_references
from mdstore.config import StoreConfig, load_config_from_env
from mdstore.crypto import DocumentCodec, EnvKeyProvider, legacy_key_from_passphrase
from mdstore.document import (
    Document,
    EncodingInfo,
    LineEnding,
    SaveOptions,
    SaveResult,
    TrailingNewline,
)
from mdstore.encoding import decode, detect_bom, detect_encoding, encode, ensure_supported
from mdstore.formats import PathLike, format_for_path, resolve_save_path
from mdstore.normalize import apply_line_ending, detect_line_endings, normalize_text
from mdstore.trailing import apply_trailing_newline, classify_trailing_newline

log = logging.getLogger(__name__)

DEFAULT_FILE_MODE = 0o644


def atomic_write_bytes(path: str, data: bytes) -> int:
    """
    Write `data` to a temporary file next to `path`, fsync it, then rename it
    into place. The temporary file is removed if anything fails before the
    rename; an existing target keeps its permission bits. A symlinked `path` is
    followed, so the link survives and its target receives the data.
    """
    path = os.path.realpath(path)
    directory = os.path.dirname(path) or "."
    try:
        mode = stat.S_IMODE(os.stat(path).st_mode)
    except FileNotFoundError:
        mode = DEFAULT_FILE_MODE

    tmp = tempfile.NamedTemporaryFile(
        delete=False, dir=directory, prefix=f".{os.path.basename(path)}.", suffix=".tmp"
    )
    try:
        with tmp:
            tmp.write(data)
            tmp.flush()
            os.fsync(tmp.fileno())
        os.chmod(tmp.name, mode)
        os.replace(tmp.name, path)
    except BaseException:
        with contextlib.suppress(OSError):
            os.unlink(tmp.name)
        raise
    return len(data)


class DocumentStore:
    """
    Load bytes into canonical Documents and save them back.

    Operations on the same path are not serialized: two concurrent saves race
    and the last rename wins.
    """

    def __init__(self, config: Optional[StoreConfig] = None, codec: Optional[DocumentCodec] = None):
        self.config = config or load_config_from_env()
        self._codec = codec

    @property
    def codec(self) -> DocumentCodec:
        if self._codec is None:
            legacy_key = None
            if self.config.legacy_passphrase:
                legacy_key = legacy_key_from_passphrase(self.config.legacy_passphrase)
            self._codec = DocumentCodec(
                EnvKeyProvider(self.config.secret_key_var),
                legacy_key=legacy_key,
                allow_legacy=self.config.allow_legacy_decrypt,
            )
        return self._codec

    # ---- load --------------------------------------------------------------
    def load(
        self,
        pathname: PathLike,
        preferred_line_ending: Union[LineEnding, str, None] = None,
        auto_guess_encoding: Optional[bool] = None,
        trailing_newline: Union[TrailingNewline, str, None] = None,
        encoding: Optional[str] = None,
    ) -> Document:
        """
        Read and decode a document.
        `encoding` forces a codec and skips detection; `trailing_newline`
        overrides the per-file classification.
        """
        path = os.path.realpath(os.fspath(pathname))
        preferred = LineEnding.parse(preferred_line_ending or self.config.preferred_line_ending)
        guess = self.config.auto_guess_encoding if auto_guess_encoding is None else auto_guess_encoding
        override = TrailingNewline.parse(trailing_newline) or self.config.trailing_newline

        raw = Path(path).read_bytes()

        if encoding:
            name = ensure_supported(encoding)
            bom_encoding = detect_bom(raw)
            is_bom = bom_encoding is not None and ensure_supported(bom_encoding) == name
            info = EncodingInfo(encoding=encoding, is_bom=is_bom)
        else:
            info = detect_encoding(raw, guess, default=self.config.default_encoding)
            ensure_supported(info.encoding)

        text = decode(raw, info)

        fmt = format_for_path(path)
        if fmt.encrypted:
            text = self.codec.decrypt(text, path=path)

        report = detect_line_endings(text, preferred)
        if report.is_mixed:
            log.warning("%s has mixed line endings; using %s", path, report.line_ending.value)
        text = normalize_text(text)

        policy = override if override is not None else classify_trailing_newline(text)

        return Document(
            content=text,
            filename=os.path.basename(path),
            pathname=path,
            encoding=info,
            line_ending=report.line_ending,
            is_mixed_line_endings=report.is_mixed,
            adjust_line_ending_on_save=report.adjust_line_ending_on_save,
            trailing_newline=policy,
            is_encrypted=fmt.encrypted,
        )

    # ---- save --------------------------------------------------------------
    def render(self, pathname: PathLike, content: str, options: Optional[SaveOptions] = None) -> bytes:
        """The exact bytes `save` would write for `content`."""
        options = options or SaveOptions()
        text = apply_trailing_newline(normalize_text(content), options.trailing_newline)
        text = apply_line_ending(text, options.line_ending, options.adjust_line_ending_on_save)
        if format_for_path(pathname).encrypted:
            text = self.codec.encrypt(text)
        return encode(text, options.encoding)

    def save(self, pathname: PathLike, content: str, options: Optional[SaveOptions] = None) -> SaveResult:
        """
        Write `content` atomically, then report unreferenced assets.
        A target without extension is saved as `.md`. The returned candidates
        are never deleted here.
        """
        path = os.path.realpath(resolve_save_path(pathname))
        data = self.render(path, content, options)
        written = atomic_write_bytes(path, data)
        log.info("Saved %s (%d bytes)", path, written)

        references = scan_references(content)
        candidates = collect_orphans(path, references)
        return SaveResult(pathname=path, bytes_written=written, references=references, candidates=candidates)

    def save_document(self, document: Document, pathname: Optional[PathLike] = None) -> SaveResult:
        """Save (or save-as, when `pathname` is given) with the document's own formatting."""
        return self.save(pathname or document.pathname, document.content, document.save_options())

    # ---- async -------------------------------------------------------------
    async def load_async(self, pathname: PathLike, **kwargs) -> Document:
        return await to_thread.run_sync(partial(self.load, pathname, **kwargs))

    async def save_async(self, pathname: PathLike, content: str, options: Optional[SaveOptions] = None) -> SaveResult:
        return await to_thread.run_sync(partial(self.save, pathname, content, options))


__all__ = [
    "atomic_write_bytes",
    "DocumentStore",
]
