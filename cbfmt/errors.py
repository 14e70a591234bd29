"""Structured error records raised while formatting documents."""

from __future__ import annotations

from typing import Optional


class FormatError(RuntimeError):
    """Base error carrying whichever context fields are known.

    ``filename`` is attached by the caller that owns file identity; the
    formatter layer fills ``command``, ``language`` and ``start``.
    """

    def __init__(
        self,
        message: str,
        *,
        filename: Optional[str] = None,
        command: Optional[str] = None,
        language: Optional[str] = None,
        start: Optional[str] = None,
    ) -> None:
        super().__init__(message)
        self.message = message
        self.filename = filename
        self.command = command
        self.language = language
        self.start = start

    def attach(self, **context: Optional[str]) -> "FormatError":
        """Fill missing context fields in place and return the error."""
        for key, value in context.items():
            if key not in {"filename", "command", "language", "start"}:
                raise TypeError(f"Unknown error context field '{key}'")
            if value is not None and getattr(self, key) is None:
                setattr(self, key, value)
        return self

    def __str__(self) -> str:
        header = ""
        if self.filename:
            header += self.filename
        if self.start:
            header += self.start
        if self.language:
            header += f" [{self.language}] ->"
        if self.command:
            header += f" [{self.command}] "
        if not header:
            return self.message
        return f"{header}\n{self.message}"


class UnsupportedDialectError(FormatError):
    """Raised when no structural query exists for the requested dialect."""


class DocumentIOError(FormatError):
    """Raised when a document cannot be read or written."""


class DocumentError(FormatError):
    """Raised when a formatting task crashes and the document run must abort."""


class FormatterError(FormatError):
    """Raised when a formatter chain fails for a single codeblock."""


class FormatterSpawnError(FormatterError):
    """The external command could not be started."""


class FormatterExecutionError(FormatterError):
    """The external command exited with a non-zero status."""


class FormatterChannelError(FormatterError):
    """Streaming content to or from the external command failed."""


__all__ = [
    "DocumentError",
    "DocumentIOError",
    "FormatError",
    "FormatterChannelError",
    "FormatterError",
    "FormatterExecutionError",
    "FormatterSpawnError",
    "UnsupportedDialectError",
]
