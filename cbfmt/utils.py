"""Line helpers shared by the query, dispatch and reassembly stages."""

from __future__ import annotations

from typing import Iterable, List


def leading_whitespace(text: str) -> str:
    """Return the run of whitespace characters that starts ``text``."""
    for index, char in enumerate(text):
        if not char.isspace():
            return text[:index]
    return text


def split_lines(text: str) -> List[str]:
    """Split on ``\\n`` without a trailing empty entry, dropping ``\\r`` line ends."""
    if not text:
        return []
    lines = text.split("\n")
    if lines[-1] == "":
        lines.pop()
    return [line[:-1] if line.endswith("\r") else line for line in lines]


def strip_prefix(text: str, prefix: str) -> str:
    """Remove ``prefix`` from every line after the first one that carries it."""
    if not prefix:
        return text
    lines = text.split("\n")
    for index in range(1, len(lines)):
        if lines[index].startswith(prefix):
            lines[index] = lines[index][len(prefix) :]
    return "\n".join(lines)


def indent_lines(lines: Iterable[str], prefix: str) -> List[str]:
    """Prefix every line, blank ones included."""
    return [f"{prefix}{line}" for line in lines]


__all__ = ["indent_lines", "leading_whitespace", "split_lines", "strip_prefix"]
