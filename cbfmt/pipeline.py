"""Runs documents through parse, dispatch and splice."""

from __future__ import annotations

from pathlib import Path
from typing import Optional, Sequence, TextIO

from .config import CbfmtConfig
from .dispatcher import dispatch
from .discovery import resolve_dialect
from .errors import DocumentIOError, FormatError, UnsupportedDialectError
from .formatter import FormatterAdapter
from .logging import get_logger
from .models import FormatResult, FormatStatus, SpliceResult
from .query import QueryEngine, extract
from .reassembly import splice
from .utils import split_lines

logger = get_logger("pipeline")

STDIN_NAME = "stdin"


def format_document(
    lines: Sequence[str],
    config: CbfmtConfig,
    dialect: str,
    *,
    fail_fast: bool = False,
    best_effort: bool = False,
    adapter: FormatterAdapter | None = None,
    engine: QueryEngine | None = None,
) -> SpliceResult:
    """Format every configured codeblock of ``lines``.

    Parse failures raise before any output exists. The buffer is only touched
    after every formatter task has finished.
    """
    source = "\n".join(lines)
    codeblocks = engine.extract(dialect, source) if engine else extract(dialect, source)
    outcomes = dispatch(lines, codeblocks, config.languages, adapter=adapter)
    return splice(lines, outcomes, fail_fast=fail_fast, best_effort=best_effort)


def run_file(
    config: CbfmtConfig,
    filename: str,
    *,
    parser: Optional[str] = None,
    write: bool = False,
    check: bool = False,
    best_effort: bool = False,
    adapter: FormatterAdapter | None = None,
    engine: QueryEngine | None = None,
) -> FormatResult:
    """Format one file, writing it back when ``write`` is set and it changed."""
    dialect = resolve_dialect(filename, parser)
    if dialect is None:
        logger.debug("No dialect for %s; ignoring", filename)
        return FormatResult(status=FormatStatus.IGNORED, filename=filename)

    path = Path(filename)
    try:
        lines = split_lines(path.read_text(encoding="utf-8"))
    except (OSError, UnicodeDecodeError) as exc:
        return _error_result(DocumentIOError(str(exc)), filename)

    try:
        result = format_document(
            lines,
            config,
            dialect,
            fail_fast=check and not write,
            best_effort=best_effort,
            adapter=adapter,
            engine=engine,
        )
    except FormatError as exc:
        return _error_result(exc, filename)
    _log_skipped(result, filename)

    if not result.changed:
        return FormatResult(status=FormatStatus.UNCHANGED, filename=filename, output=result.text)

    if write:
        try:
            path.write_text(result.text, encoding="utf-8")
        except OSError as exc:
            return _error_result(DocumentIOError(str(exc)), filename)
        logger.debug("Wrote %s", filename)
    return FormatResult(status=FormatStatus.CHANGED, filename=filename, output=result.text)


def run_stdin(
    config: CbfmtConfig,
    stream: TextIO,
    *,
    filename: Optional[str] = None,
    parser: Optional[str] = None,
    check: bool = False,
    best_effort: bool = False,
    adapter: FormatterAdapter | None = None,
    engine: QueryEngine | None = None,
) -> FormatResult:
    """Format a document read from ``stream``.

    The result always carries output text: the formatted document, or the
    original input when formatting failed.
    """
    text = stream.read()
    lines = split_lines(text)
    dialect = resolve_dialect(filename, parser)
    if dialect is None:
        error = UnsupportedDialectError(
            "Could not determine the parser; pass --parser or --stdin-filepath."
        )
        return FormatResult(
            status=FormatStatus.ERROR, filename=STDIN_NAME, output=text, error=error
        )

    try:
        result = format_document(
            lines,
            config,
            dialect,
            fail_fast=check,
            best_effort=best_effort,
            adapter=adapter,
            engine=engine,
        )
    except FormatError as exc:
        if filename:
            exc.attach(filename=filename)
        logger.debug("Formatting stdin failed: %s", exc.message)
        return FormatResult(status=FormatStatus.ERROR, filename=STDIN_NAME, output=text, error=exc)
    _log_skipped(result, filename or STDIN_NAME)

    status = FormatStatus.CHANGED if result.changed else FormatStatus.UNCHANGED
    return FormatResult(status=status, filename=STDIN_NAME, output=result.text)


def _log_skipped(result: SpliceResult, filename: str) -> None:
    for error in result.errors:
        error.attach(filename=filename)
        logger.warning("Left codeblock unformatted: %s", error)


def _error_result(error: FormatError, filename: str) -> FormatResult:
    error.attach(filename=filename)
    logger.debug("Formatting %s failed: %s", filename, error.message)
    return FormatResult(status=FormatStatus.ERROR, filename=filename, error=error)


__all__ = ["STDIN_NAME", "format_document", "run_file", "run_stdin"]
