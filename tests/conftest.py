from __future__ import annotations

from pathlib import Path
from typing import Callable

import pytest

from cbfmt.formatter import FormatterAdapter
from cbfmt.query import DIALECTS, QueryEngine
from tests._fixtures.document_builder import DocumentBuilder
from tests._fixtures.fake_runner import FakeRunner


@pytest.fixture
def document_builder(tmp_path: Path) -> DocumentBuilder:
    """Provide a reusable document builder rooted at the pytest tmp_path."""
    return DocumentBuilder(tmp_path)


@pytest.fixture
def fake_runner() -> FakeRunner:
    return FakeRunner()


@pytest.fixture
def fake_adapter(fake_runner: FakeRunner) -> FormatterAdapter:
    """A formatter adapter whose commands run in-process."""
    return FormatterAdapter(runner=fake_runner)


@pytest.fixture
def query_engine() -> QueryEngine:
    return QueryEngine()


@pytest.fixture
def require_grammar(query_engine: QueryEngine) -> Callable[[str], QueryEngine]:
    """Return a helper that skips the test when a dialect grammar cannot be loaded."""

    def _require(dialect: str) -> QueryEngine:
        try:
            query_engine._get_language(DIALECTS[dialect].grammar)
        except Exception as exc:  # pragma: no cover - depends on installed grammars
            pytest.skip(f"tree-sitter grammar for {dialect} unavailable: {exc}")
        return query_engine

    return _require
