# cli/main.py
from __future__ import annotations

import json
import time
from pathlib import Path
from typing import List, Optional

import typer

from mdstore.assets import collect_orphans, scan_references
from mdstore.document import Document, LineEnding
from mdstore.errors import PartialDeletionFailure
from mdstore.formats import SECURE_EXTENSION, DEFAULT_EXTENSION, normalize_markdown_path, strip_document_extension
from mdstore.pushgw import push_load, push_orphans, push_save
from mdstore.removal import remove_paths
from mdstore.store import DocumentStore

app = typer.Typer(add_completion=False, no_args_is_help=True, help="mdstore CLI")


def _fail(tag: str, e: Exception, event: str) -> None:
    (push_load if event == "load" else push_save)("fail", duration_s=None, extra_labels={"source": "cli"})
    typer.secho(f"[{tag}] ERROR: {e}", fg=typer.colors.RED)
    raise typer.Exit(code=1)


def _load(store: DocumentStore, path: Path, tag: str, **kwargs) -> Document:
    t0 = time.perf_counter()
    resolved = normalize_markdown_path(path)
    if resolved is None or resolved[0]:
        _fail(tag, ValueError(f"not a markdown document: {path}"), "load")
    try:
        doc = store.load(resolved[1], **kwargs)
    except Exception as e:
        _fail(tag, e, "load")
    push_load("ok", duration_s=time.perf_counter() - t0, extra_labels={"source": "cli"})
    return doc


def _doc_summary(doc: Document) -> dict:
    return {
        "filename": doc.filename,
        "pathname": doc.pathname,
        "encoding": doc.encoding.encoding,
        "bom": doc.encoding.is_bom,
        "line_ending": doc.line_ending.value,
        "mixed_line_endings": doc.is_mixed_line_endings,
        "adjust_line_ending_on_save": doc.adjust_line_ending_on_save,
        "trailing_newline": doc.trailing_newline.value,
        "encrypted": doc.is_encrypted,
        "chars": len(doc.content),
    }


def _confirm_and_remove(candidates: List[str], yes: bool) -> None:
    """Ask before deleting; removal failures are reported together."""
    if not candidates:
        return
    typer.echo(f"Do you want to delete {len(candidates)} {'file' if len(candidates) == 1 else 'files'}?\n")
    for c in candidates:
        typer.echo(f"  {c}")
    if not yes and not typer.confirm("Yes, delete", default=False):
        typer.echo("(nothing deleted)")
        return
    try:
        removed = remove_paths(candidates)
    except PartialDeletionFailure as e:
        for path in e.removed:
            typer.echo(f"[orphans] deleted {path}")
        for path, err in e.failures:
            typer.secho(f"[orphans] An error occurred while deleting {path}: {err}", fg=typer.colors.RED)
        raise typer.Exit(code=1)
    for path in removed:
        typer.echo(f"[orphans] deleted {path}")


def _save(store: DocumentStore, doc: Document, target: Path, tag: str, yes: bool, delete: bool) -> None:
    t0 = time.perf_counter()
    try:
        res = store.save_document(doc, target)
    except Exception as e:
        _fail(tag, e, "save")
    push_save("ok", duration_s=time.perf_counter() - t0, extra_labels={"source": "cli"})
    push_orphans(len(res.candidates), extra_labels={"source": "cli"})
    typer.echo(f"saved {res.pathname} bytes={res.bytes_written} orphans={len(res.candidates)}")
    if delete:
        _confirm_and_remove(res.candidates, yes)


@app.command("info")
def cli_info(
    path: Path,
    eol: Optional[str] = typer.Option(None, "--eol", help="Preferred line ending (lf|crlf)"),
    no_guess: bool = typer.Option(False, "--no-guess", help="Do not guess the encoding"),
    encoding: Optional[str] = typer.Option(None, "--encoding", help="Force an encoding"),
    as_json: bool = typer.Option(False, "--json"),
):
    """Show how a document was detected (encoding, BOM, line endings, trailing newline)."""
    store = DocumentStore()
    doc = _load(
        store,
        path,
        "info",
        preferred_line_ending=eol,
        auto_guess_encoding=False if no_guess else None,
        encoding=encoding,
    )
    summary = _doc_summary(doc)
    if as_json:
        typer.echo(json.dumps(summary, ensure_ascii=False))
        return
    for k, v in summary.items():
        typer.echo(f"{k:28} {v}")


@app.command("cat")
def cli_cat(
    path: Path,
    encoding: Optional[str] = typer.Option(None, "--encoding"),
):
    """Print the canonical (LF, decrypted) content."""
    store = DocumentStore()
    doc = _load(store, path, "cat", encoding=encoding)
    typer.echo(doc.content, nl=False)


@app.command("refs")
def cli_refs(path: Path):
    """List asset references found in a document, in scan order."""
    store = DocumentStore()
    doc = _load(store, path, "refs")
    refs = scan_references(doc.content)
    if not refs:
        typer.echo("(no references)")
        return
    for r in refs:
        typer.echo(r)


@app.command("orphans")
def cli_orphans(
    path: Path,
    delete: bool = typer.Option(False, "--delete", help="Offer to delete the candidates"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask before deleting"),
):
    """List files in <name>.assets that the document no longer references."""
    store = DocumentStore()
    doc = _load(store, path, "orphans")
    candidates = collect_orphans(doc.pathname, scan_references(doc.content))
    if not candidates:
        typer.echo("(no orphans)")
        return
    if delete:
        _confirm_and_remove(candidates, yes)
        return
    for c in candidates:
        typer.echo(c)


@app.command("resave")
def cli_resave(
    path: Path,
    eol: Optional[str] = typer.Option(None, "--eol", help="Write with this line ending (lf|crlf)"),
    encoding: Optional[str] = typer.Option(None, "--encoding", help="Re-encode to this encoding"),
    bom: Optional[bool] = typer.Option(None, "--bom/--no-bom"),
    trailing_newline: Optional[str] = typer.Option(
        None, "--trailing-newline", help="disabled | ensure_single | trim_all"
    ),
    delete: bool = typer.Option(False, "--delete-orphans"),
    yes: bool = typer.Option(False, "--yes", "-y"),
):
    """Load and save a document, optionally changing its formatting."""
    store = DocumentStore()
    doc = _load(store, path, "resave", trailing_newline=trailing_newline)
    if eol:
        doc = doc.with_line_ending(LineEnding.parse(eol))
    if encoding or bom is not None:
        doc = doc.reencode(encoding or doc.encoding.encoding, is_bom=bom)
    _save(store, doc, Path(doc.pathname), "resave", yes, delete)


@app.command("lock")
def cli_lock(
    path: Path,
    out: Optional[Path] = typer.Option(None, "--out", help=f"Target path (default: <name>{SECURE_EXTENSION})"),
):
    """Write an encrypted copy of a document. Needs MDSTORE_SECRET_KEY."""
    store = DocumentStore()
    doc = _load(store, path, "lock")
    target = out or Path(strip_document_extension(doc.pathname) + SECURE_EXTENSION)
    _save(store, doc, target, "lock", yes=False, delete=False)


@app.command("unlock")
def cli_unlock(
    path: Path,
    out: Optional[Path] = typer.Option(None, "--out", help=f"Target path (default: <name>{DEFAULT_EXTENSION})"),
):
    """Write a decrypted copy of a secure document."""
    store = DocumentStore()
    doc = _load(store, path, "unlock")
    target = out or Path(strip_document_extension(doc.pathname) + DEFAULT_EXTENSION)
    _save(store, doc, target, "unlock", yes=False, delete=False)


def main():
    app()


if __name__ == "__main__":
    main()
