"""Core data models shared across cbfmt components."""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import List, Optional, Tuple

from .errors import FormatError, FormatterError

FormatterChain = Tuple[str, ...]


@dataclass
class Codeblock:
    """An embedded fragment located by the query engine.

    ``start``/``end`` delimit the content rows as a half-open range computed
    against the unedited document. ``indent_row`` names the row whose leading
    whitespace is re-applied to formatted output.
    """

    language: str
    start: int
    end: int
    codeblock_start: int
    indent_row: int
    content: str
    input_fingerprint: Optional[int] = None

    @property
    def position(self) -> str:
        """One-based line marker used in error records."""
        return f":{self.start + 1}"


@dataclass
class FormatOutcome:
    """Result of running one codeblock through its formatter chain."""

    codeblock: Codeblock
    content: Optional[str] = None
    error: Optional[FormatterError] = None

    @property
    def ok(self) -> bool:
        return self.error is None


@dataclass
class SpliceResult:
    """Reassembled document lines plus the change verdict."""

    lines: List[str]
    changed: bool
    errors: List[FormatterError] = field(default_factory=list)

    @property
    def text(self) -> str:
        return "\n".join(self.lines) + "\n"


class FormatStatus(str, Enum):
    CHANGED = "changed"
    UNCHANGED = "unchanged"
    IGNORED = "ignored"
    ERROR = "error"


@dataclass
class FormatResult:
    """Per-document verdict returned to the command line layer."""

    status: FormatStatus
    filename: str
    output: Optional[str] = None
    error: Optional[FormatError] = None
