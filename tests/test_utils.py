"""Tests for cbfmt.utils line helpers."""

from __future__ import annotations

from cbfmt.utils import indent_lines, leading_whitespace, split_lines, strip_prefix


def test_leading_whitespace_stops_at_first_visible_character() -> None:
    assert leading_whitespace("    - item") == "    "
    assert leading_whitespace("\t code") == "\t "
    assert leading_whitespace("text") == ""
    assert leading_whitespace("   ") == "   "


def test_split_lines_drops_trailing_terminator_and_carriage_returns() -> None:
    assert split_lines("a\nb\n") == ["a", "b"]
    assert split_lines("a\r\nb") == ["a", "b"]
    assert split_lines("a\n\n") == ["a", ""]
    assert split_lines("") == []


def test_strip_prefix_leaves_first_line_alone() -> None:
    assert strip_prefix("a\n    b\n      c\n", "    ") == "a\nb\n  c\n"
    assert strip_prefix("a\nb\n", "") == "a\nb\n"


def test_indent_lines_prefixes_blank_lines_too() -> None:
    assert indent_lines(["a", "", "b"], "  ") == ["  a", "  ", "  b"]
    assert indent_lines(["a"], "") == ["a"]
