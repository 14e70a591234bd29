"""Tree-sitter powered codeblock extraction for markup dialects."""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Dict, Iterator, List, Optional, Pattern, Tuple

from tree_sitter import Language, Node, Parser
from tree_sitter_language_pack import get_language

from .errors import UnsupportedDialectError
from .logging import get_logger
from .models import Codeblock
from .utils import leading_whitespace

# A path step is either ("field", name) or ("type", node_type).
_Step = Tuple[str, str]

_CLOSING_FENCES = (b"```", b"~~~")


def _field(name: str) -> _Step:
    return ("field", name)


def _child(node_type: str) -> _Step:
    return ("type", node_type)


@dataclass(frozen=True)
class DialectQuery:
    """Describes how to find codeblocks in one grammar's syntax tree."""

    grammar: str
    block_type: str
    language: Tuple[_Step, ...]
    content: Tuple[_Step, ...]
    name_field: Optional[str] = None
    name_pattern: Optional[Pattern[str]] = None
    end_row_adjustment: int = 0
    indent_from_content: bool = False
    trim_closing_fence: bool = False


DIALECTS: Dict[str, DialectQuery] = {
    "markdown": DialectQuery(
        grammar="markdown",
        block_type="fenced_code_block",
        language=(_child("info_string"), _child("language")),
        content=(_child("code_fence_content"),),
        trim_closing_fence=True,
    ),
    "org": DialectQuery(
        grammar="org",
        block_type="block",
        language=(_field("parameter"),),
        content=(_field("contents"),),
        name_field="name",
        name_pattern=re.compile(r"^src$", re.IGNORECASE),
    ),
    "restructuredtext": DialectQuery(
        grammar="rst",
        block_type="directive",
        language=(_field("body"), _child("arguments")),
        content=(_field("body"), _child("content")),
        name_field="name",
        name_pattern=re.compile(r"code"),
        # The content node stops at the end of its last line, not the start of the next.
        end_row_adjustment=1,
        indent_from_content=True,
    ),
}


class QueryEngine:
    """Parses documents and yields their codeblocks in document order."""

    def __init__(self) -> None:
        self._languages: Dict[str, Language] = {}
        self.logger = get_logger("query")

    @staticmethod
    def supports(dialect: str) -> bool:
        return dialect in DIALECTS

    def extract(self, dialect: str, source: str) -> List[Codeblock]:
        """Return the codeblocks of ``source`` ordered by row."""
        query = DIALECTS.get(dialect)
        if query is None:
            raise UnsupportedDialectError(f"No parser found for {dialect}.")

        # Parsers are not shared between threads; languages are.
        parser = Parser(self._get_language(query.grammar))
        source_bytes = source.encode("utf-8")
        tree = parser.parse(source_bytes)
        lines = source.split("\n")

        codeblocks: List[Codeblock] = []
        for node in self._iter_blocks(query, tree.root_node, source_bytes):
            codeblock = self._build_codeblock(query, node, source_bytes, lines)
            if codeblock is None:
                continue
            if codeblocks and codeblock.start < codeblocks[-1].end:
                self.logger.debug(
                    "Skipping overlapping codeblock at row %d", codeblock.codeblock_start
                )
                continue
            codeblocks.append(codeblock)
        self.logger.debug("Found %d %s codeblocks", len(codeblocks), dialect)
        return codeblocks

    def _get_language(self, grammar: str) -> Language:
        language = self._languages.get(grammar)
        if language is None:
            language = get_language(grammar)  # type: ignore[arg-type]
            self._languages[grammar] = language
        return language

    def _iter_blocks(
        self, query: DialectQuery, node: Node, source_bytes: bytes
    ) -> Iterator[Node]:
        for child in node.children:
            if child.type == query.block_type and self._name_matches(
                query, child, source_bytes
            ):
                yield child
                continue
            yield from self._iter_blocks(query, child, source_bytes)

    def _name_matches(self, query: DialectQuery, node: Node, source_bytes: bytes) -> bool:
        if query.name_field is None or query.name_pattern is None:
            return True
        name_node = node.child_by_field_name(query.name_field)
        if name_node is None:
            return False
        name = self._node_text(name_node, source_bytes).strip()
        return query.name_pattern.search(name) is not None

    def _build_codeblock(
        self,
        query: DialectQuery,
        node: Node,
        source_bytes: bytes,
        lines: List[str],
    ) -> Optional[Codeblock]:
        language_node = self._resolve(node, query.language)
        content_node = self._resolve(node, query.content)
        if language_node is None or content_node is None:
            return None
        language = self._node_text(language_node, source_bytes).strip()
        if not language:
            return None

        start_byte = content_node.start_byte
        end_byte = content_node.end_byte
        # The markdown grammar folds the closing fence into the content when the
        # block ends the buffer.
        if query.trim_closing_fence and end_byte - start_byte >= 3:
            if source_bytes[end_byte - 3 : end_byte] in _CLOSING_FENCES:
                end_byte -= 3
        content = source_bytes[start_byte:end_byte].decode("utf-8")
        # Content covers whole rows: drop a whitespace-only tail (the indentation
        # of a nested closing fence) and terminate the last row.
        if content and not content.endswith("\n"):
            head, sep, tail = content.rpartition("\n")
            content = head + sep if sep and not tail.strip() else content + "\n"

        start = content_node.start_point[0]
        end = min(content_node.end_point[0] + query.end_row_adjustment, len(lines))
        codeblock_start = node.start_point[0]
        indent_row = start if query.indent_from_content else codeblock_start

        # The content node may start inside the row's indentation (a fence
        # indented past a list item's content column), so the first line is
        # rebuilt from the whole source row.
        prefix = leading_whitespace(lines[indent_row])
        if content and start < len(lines):
            head, sep, rest = content.partition("\n")
            row = lines[start]
            if row.endswith(head):
                if row.startswith(prefix):
                    row = row[len(prefix) :]
                content = row + sep + rest

        return Codeblock(
            language=language,
            start=start,
            end=end,
            codeblock_start=codeblock_start,
            indent_row=indent_row,
            content=content,
        )

    @staticmethod
    def _resolve(node: Node, path: Tuple[_Step, ...]) -> Optional[Node]:
        current: Optional[Node] = node
        for kind, name in path:
            if current is None:
                return None
            if kind == "field":
                current = current.child_by_field_name(name)
            else:
                current = next(
                    (child for child in current.children if child.type == name), None
                )
        return current

    @staticmethod
    def _node_text(node: Node, source_bytes: bytes) -> str:
        return source_bytes[node.start_byte : node.end_byte].decode("utf-8", errors="ignore")


_DEFAULT_ENGINE = QueryEngine()


def extract(dialect: str, source: str) -> List[Codeblock]:
    """Extract codeblocks from ``source`` with the shared engine."""
    return _DEFAULT_ENGINE.extract(dialect, source)


__all__ = ["DIALECTS", "DialectQuery", "QueryEngine", "extract"]
