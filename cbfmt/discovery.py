"""File discovery and dialect detection."""

from __future__ import annotations

import os
from pathlib import Path
from typing import Iterable, List, Optional, Set

from .logging import get_logger

_DIALECT_BY_SUFFIX = {
    ".md": "markdown",
    ".org": "org",
    ".rst": "restructuredtext",
}

_EXCLUDED_DIRS = {
    ".git",
    ".hg",
    ".svn",
    ".venv",
    "node_modules",
    "__pycache__",
    ".pytest_cache",
    ".mypy_cache",
}

logger = get_logger("discovery")


def dialect_for_filename(filename: str) -> Optional[str]:
    """Map a filename to its markup dialect by suffix, case-insensitively."""
    return _DIALECT_BY_SUFFIX.get(Path(filename).suffix.lower())


def resolve_dialect(filename: Optional[str], override: Optional[str]) -> Optional[str]:
    """An explicit ``--parser`` wins over the filename suffix."""
    if override:
        return override
    if filename:
        return dialect_for_filename(filename)
    return None


def collect_files(paths: Iterable[str]) -> List[str]:
    """Expand files and directories into a sorted, de-duplicated file list."""
    found: Set[str] = set()
    for raw in paths:
        path = Path(raw)
        if path.is_file():
            found.add(str(path))
            continue
        if not path.is_dir():
            logger.warning("Can't open '%s': no such file or directory", raw)
            continue
        for dirpath, dirnames, filenames in os.walk(path, onerror=_log_walk_error):
            dirnames[:] = sorted(d for d in dirnames if d not in _EXCLUDED_DIRS)
            for filename in filenames:
                candidate = Path(dirpath) / filename
                if candidate.is_file():
                    found.add(str(candidate))
    return sorted(found)


def _log_walk_error(error: OSError) -> None:
    logger.warning("Can't open '%s': %s", error.filename, error.strerror or error)


__all__ = ["collect_files", "dialect_for_filename", "resolve_dialect"]
