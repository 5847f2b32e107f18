"""Typer-based command line interface.

Commands
--------
analyze   analyse a PDF or image and print the section export as JSON
redact    write a redacted copy of a document (PDF) or its redacted text
patterns  list the active pattern catalog
select    change section selection flags of an analysed document
export    print the JSON export of an analysed document

Exit codes
----------
0 success
3 I/O error (missing file, unsupported format, unknown document id)
4 configuration error
5 pipeline error (unexpected exception during analysis or redaction)
6 encrypted document
"""

from __future__ import annotations

import json
import os
import sys
from pathlib import Path
from typing import List, NoReturn, Optional

import typer
from pydantic import ValidationError

from .config import ConfigModel, load_config
from .detect.patterns import PatternCatalog
from .io import guess_mime_type
from .service import DocumentGuard
from .store.sqlite_store import SQLiteStore
from .utils.errors import (
    ConfigError,
    DocShieldError,
    DocumentNotFoundError,
    EncryptedDocumentError,
    IOFormatError,
    PatternError,
)
from .utils.logging import configure_logging

if not sys.stdout.isatty():  # pragma: no cover - CLI test context
    os.environ.setdefault("NO_COLOR", "1")
    os.environ.setdefault("RICH_DISABLE_NO_COLOR", "1")

app = typer.Typer(
    name="docshield",
    help="Find and redact sensitive content before a document leaves the device.",
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------


def _safe_exit(code: int, msg: str | None = None) -> NoReturn:
    """Exit the CLI with ``code`` emitting ``msg`` to stderr if provided."""

    if msg:
        typer.echo(msg, err=True)
    raise typer.Exit(code)


def _load(config_path: Optional[Path], db_path: Optional[Path], verbose: bool) -> ConfigModel:
    try:
        cfg = load_config(config_path)
    except (ValidationError, ConfigError, OSError, ValueError) as exc:
        _safe_exit(4, str(exc).splitlines()[0])
    if db_path is not None:
        cfg.storage.path = str(db_path)
    configure_logging("INFO" if verbose else cfg.logging.level)
    return cfg


def _guard(cfg: ConfigModel, store: SQLiteStore | None = None) -> DocumentGuard:
    try:
        return DocumentGuard.from_config(cfg, store=store)
    except PatternError as exc:
        _safe_exit(4, str(exc))
    except DocShieldError as exc:
        _safe_exit(3, str(exc))


def _read(path: Path) -> bytes:
    try:
        return path.read_bytes()
    except OSError as exc:
        _safe_exit(3, f"Cannot read {path}: {exc}")


def _fail(exc: Exception, verbose: bool) -> NoReturn:
    if isinstance(exc, EncryptedDocumentError):
        _safe_exit(6, str(exc))
    if isinstance(exc, (IOFormatError, DocumentNotFoundError, OSError)):
        _safe_exit(3, str(exc))
    msg = f"{type(exc).__name__}: {exc}" if verbose else str(exc)
    _safe_exit(5, msg)


def _parse_assignment(item: str) -> tuple[str, bool]:
    section_id, sep, value = item.partition("=")
    flag = value.strip().lower()
    if not sep or flag not in {"true", "false", "1", "0", "yes", "no"}:
        raise typer.BadParameter(f"expected SECTION_ID=true|false, got {item!r}")
    return section_id.strip(), flag in {"true", "1", "yes"}


ConfigOpt = typer.Option(None, "--config", help="YAML config to override defaults")  # noqa: B008
DbOpt = typer.Option(None, "--db", help="SQLite database path")  # noqa: B008
VerboseOpt = typer.Option(  # noqa: B008
    False, "--verbose", "-v", help="Emit progress messages to stderr"
)


@app.callback()
def main() -> None:
    """Entry point for the docshield command group."""
    pass


@app.command()
def analyze(
    in_path: Path = typer.Argument(..., help="PDF or image file"),  # noqa: B008
    file_type: Optional[str] = typer.Option(  # noqa: B008
        None, "--type", help="MIME type; guessed from the extension when omitted"
    ),
    config_path: Optional[Path] = ConfigOpt,
    db_path: Optional[Path] = DbOpt,
    verbose: bool = VerboseOpt,
) -> None:
    """Analyse ``in_path`` and print its sections as JSON."""

    cfg = _load(config_path, db_path, verbose)
    buffer = _read(in_path)
    mime = file_type or guess_mime_type(in_path)
    with _guard(cfg) as guard:
        try:
            analysis = guard.analyze_document(buffer, in_path.name, mime)
            payload = guard.export_annotations_as_json(analysis.document_id)
        except Exception as exc:  # noqa: BLE001 - mapped to exit codes
            _fail(exc, verbose)
    if verbose:
        typer.echo(
            f"{analysis.document_id}: {analysis.total_sections} sections, "
            f"{analysis.sensitive_sections} sensitive",
            err=True,
        )
    typer.echo(payload)


@app.command()
def redact(
    in_path: Path = typer.Argument(..., help="PDF, image or text file"),  # noqa: B008
    out_path: Path = typer.Option(..., "--out", help="Output file"),  # noqa: B008
    file_type: Optional[str] = typer.Option(  # noqa: B008
        None, "--type", help="MIME type; guessed from the extension when omitted"
    ),
    config_path: Optional[Path] = ConfigOpt,
    verbose: bool = VerboseOpt,
) -> None:
    """Redact ``in_path`` and write the result to ``out_path``.

    PDFs are written as redacted PDFs; other inputs as redacted text.  The
    redaction summary is printed as JSON.
    """

    cfg = _load(config_path, None, verbose)
    buffer = _read(in_path)
    mime = file_type or guess_mime_type(in_path)
    with _guard(cfg, SQLiteStore()) as guard:
        try:
            if mime.startswith("text/"):
                result = guard.redact_text(buffer.decode("utf-8-sig"))
            else:
                result = guard.redact_document(buffer, mime)
        except Exception as exc:  # noqa: BLE001 - mapped to exit codes
            _fail(exc, verbose)

    try:
        if result.document_bytes is not None:
            out_path.write_bytes(result.document_bytes)
        else:
            out_path.write_text(result.redacted_text, encoding="utf-8")
    except OSError as exc:
        _safe_exit(3, str(exc))
    typer.echo(json.dumps(result.redaction_summary.to_dict(), indent=2))


@app.command()
def patterns(
    config_path: Optional[Path] = ConfigOpt,
) -> None:
    """List the patterns of the configured catalog."""

    cfg = _load(config_path, None, False)
    try:
        catalog = PatternCatalog.from_config(cfg)
    except PatternError as exc:
        _safe_exit(4, str(exc))
    for pattern in catalog.list():
        typer.echo(f"{pattern.name}\t{pattern.category.value}\t{pattern.severity.value}")


@app.command()
def select(
    document_id: str = typer.Argument(..., help="Analysed document id"),  # noqa: B008
    assignments: Optional[List[str]] = typer.Argument(  # noqa: B008
        None, help="SECTION_ID=true|false pairs"
    ),
    deselect_sensitive: bool = typer.Option(  # noqa: B008
        False, "--deselect-sensitive", help="Deselect every flagged section first"
    ),
    config_path: Optional[Path] = ConfigOpt,
    db_path: Optional[Path] = DbOpt,
) -> None:
    """Change selection flags and print the resulting state as JSON."""

    cfg = _load(config_path, db_path, False)
    flags = dict(_parse_assignment(item) for item in assignments or [])
    with _guard(cfg) as guard:
        try:
            if deselect_sensitive:
                guard.selection.deselect_sensitive(document_id)
            update = guard.update_section_selections(document_id, flags)
            state = guard.selection.get_selection_state(document_id)
        except Exception as exc:  # noqa: BLE001 - mapped to exit codes
            _fail(exc, False)
    for section_id in update.unknown:
        typer.echo(f"Unknown section id: {section_id}", err=True)
    typer.echo(json.dumps(state, indent=2))


@app.command()
def export(
    document_id: str = typer.Argument(..., help="Analysed document id"),  # noqa: B008
    config_path: Optional[Path] = ConfigOpt,
    db_path: Optional[Path] = DbOpt,
) -> None:
    """Print the JSON export of an analysed document."""

    cfg = _load(config_path, db_path, False)
    with _guard(cfg) as guard:
        try:
            payload = guard.export_annotations_as_json(document_id)
        except Exception as exc:  # noqa: BLE001 - mapped to exit codes
            _fail(exc, False)
    typer.echo(payload)
