"""End-to-end tests for document runs."""

from __future__ import annotations

import io
import logging
import textwrap
from typing import Callable

import pytest

from cbfmt.config import CbfmtConfig
from cbfmt.errors import DocumentIOError, FormatterExecutionError, UnsupportedDialectError
from cbfmt.formatter import FormatterAdapter
from cbfmt.models import FormatStatus
from cbfmt.pipeline import format_document, run_file, run_stdin
from cbfmt.query import QueryEngine
from cbfmt.utils import split_lines
from tests._fixtures.document_builder import DocumentBuilder

RequireGrammar = Callable[[str], QueryEngine]

README = """
# Title

Some prose.

```python
a = 1
b = 2
```

More prose.

```unknownlang
keep  this
as is
```
"""

REVERSED_README = """
# Title

Some prose.

```python
b = 2
a = 1
```

More prose.

```unknownlang
keep  this
as is
```
"""


def _doc(text: str) -> str:
    return textwrap.dedent(text).lstrip("\n")


def _config(**languages: tuple[str, ...]) -> CbfmtConfig:
    return CbfmtConfig(languages=dict(languages))


def test_only_configured_block_is_modified(
    require_grammar: RequireGrammar, fake_adapter: FormatterAdapter
) -> None:
    engine = require_grammar("markdown")
    lines = split_lines(_doc(README))

    result = format_document(
        lines, _config(python=("reverse",)), "markdown", adapter=fake_adapter, engine=engine
    )

    assert result.changed is True
    assert result.text == _doc(REVERSED_README)


def test_rerun_on_formatted_output_is_unchanged(
    require_grammar: RequireGrammar, fake_adapter: FormatterAdapter
) -> None:
    engine = require_grammar("markdown")
    config = _config(python=("upper",))

    first = format_document(split_lines(_doc(README)), config, "markdown", adapter=fake_adapter, engine=engine)
    second = format_document(first.lines, config, "markdown", adapter=fake_adapter, engine=engine)

    assert first.changed is True
    assert second.changed is False
    assert second.text == first.text


def test_offsets_across_growing_equal_and_shrinking_blocks(
    require_grammar: RequireGrammar, fake_adapter: FormatterAdapter
) -> None:
    engine = require_grammar("markdown")
    source = _doc(
        """
        Start

        ```grow
        one
        two
        ```

        ```same
        three
        ```

        ```shrink
        four
        five
        six
        ```

        End
        """
    )
    config = _config(grow=("double",), same=("upper",), shrink=("first",))

    result = format_document(split_lines(source), config, "markdown", adapter=fake_adapter, engine=engine)

    assert result.text == _doc(
        """
        Start

        ```grow
        one
        one
        two
        two
        ```

        ```same
        THREE
        ```

        ```shrink
        four
        ```

        End
        """
    )


def test_nested_block_keeps_container_indentation(
    require_grammar: RequireGrammar, fake_adapter: FormatterAdapter
) -> None:
    engine = require_grammar("markdown")
    source = _doc(
        """
        -   item

            ```python
            if x:
                y()
            ```
        """
    )

    unchanged = format_document(
        split_lines(source), _config(python=("identity",)), "markdown", adapter=fake_adapter, engine=engine
    )
    changed = format_document(
        split_lines(source), _config(python=("upper",)), "markdown", adapter=fake_adapter, engine=engine
    )

    assert unchanged.changed is False
    assert unchanged.text == source
    assert changed.lines[3:5] == ["    IF X:", "        Y()"]


def test_fence_indented_past_list_content_is_stable(
    require_grammar: RequireGrammar, fake_adapter: FormatterAdapter
) -> None:
    engine = require_grammar("markdown")
    source = "1. item\n\n    ```python\n    a\n    b\n    ```\nend\n"
    config = _config(python=("identity",))

    text = source
    for _ in range(3):
        result = format_document(split_lines(text), config, "markdown", adapter=fake_adapter, engine=engine)
        assert result.changed is False
        assert result.text == source
        text = result.text


def test_whitespace_only_blank_line_in_nested_block_is_unchanged(
    require_grammar: RequireGrammar, fake_adapter: FormatterAdapter
) -> None:
    engine = require_grammar("markdown")
    source = "-   item\n\n    ```python\n    a\n    \n    b\n    ```\n"

    result = format_document(
        split_lines(source), _config(python=("identity",)), "markdown", adapter=fake_adapter, engine=engine
    )

    assert result.changed is False
    assert result.text == source


def test_run_file_writes_changed_documents(
    require_grammar: RequireGrammar,
    document_builder: DocumentBuilder,
    fake_adapter: FormatterAdapter,
) -> None:
    require_grammar("markdown")
    document_builder.write({"README.md": README})
    path = str(document_builder.path("README.md"))

    result = run_file(_config(python=("reverse",)), path, write=True, adapter=fake_adapter)

    assert result.status is FormatStatus.CHANGED
    assert result.filename == path
    assert document_builder.read("README.md") == _doc(REVERSED_README)


def test_run_file_without_write_leaves_file_alone(
    require_grammar: RequireGrammar,
    document_builder: DocumentBuilder,
    fake_adapter: FormatterAdapter,
) -> None:
    require_grammar("markdown")
    document_builder.write({"README.md": README})
    path = str(document_builder.path("README.md"))

    result = run_file(_config(python=("reverse",)), path, adapter=fake_adapter)

    assert result.status is FormatStatus.CHANGED
    assert document_builder.read("README.md") == _doc(README)


def test_run_file_attaches_filename_to_formatter_errors(
    require_grammar: RequireGrammar,
    document_builder: DocumentBuilder,
    fake_adapter: FormatterAdapter,
) -> None:
    require_grammar("markdown")
    document_builder.write({"README.md": README})
    path = str(document_builder.path("README.md"))

    strict = run_file(_config(python=("fail syntax error",)), path, adapter=fake_adapter)
    lenient = run_file(
        _config(python=("fail syntax error",)), path, best_effort=True, adapter=fake_adapter
    )

    assert strict.status is FormatStatus.ERROR
    assert isinstance(strict.error, FormatterExecutionError)
    assert strict.error.filename == path
    assert strict.error.language == "python"
    assert str(strict.error).startswith(f"{path}:6 [python] -> [fail] ")
    assert lenient.status is FormatStatus.UNCHANGED


def test_run_file_ignores_unknown_suffixes(document_builder: DocumentBuilder) -> None:
    document_builder.write({"notes.txt": "plain text"})

    result = run_file(_config(python=("upper",)), str(document_builder.path("notes.txt")))

    assert result.status is FormatStatus.IGNORED


def test_run_file_reports_missing_files(document_builder: DocumentBuilder) -> None:
    path = str(document_builder.path("missing.md"))

    result = run_file(_config(python=("upper",)), path)

    assert result.status is FormatStatus.ERROR
    assert isinstance(result.error, DocumentIOError)
    assert result.error.filename == path


def test_run_stdin_returns_formatted_text(
    require_grammar: RequireGrammar, fake_adapter: FormatterAdapter
) -> None:
    require_grammar("markdown")

    result = run_stdin(
        _config(python=("reverse",)), io.StringIO(_doc(README)), parser="markdown", adapter=fake_adapter
    )

    assert result.status is FormatStatus.CHANGED
    assert result.filename == "stdin"
    assert result.output == _doc(REVERSED_README)


def test_run_stdin_echoes_input_on_error(
    require_grammar: RequireGrammar, fake_adapter: FormatterAdapter
) -> None:
    require_grammar("markdown")

    result = run_stdin(
        _config(python=("fail nope",)),
        io.StringIO(_doc(README)),
        filename="docs/README.md",
        adapter=fake_adapter,
    )

    assert result.status is FormatStatus.ERROR
    assert result.output == _doc(README)
    assert result.error is not None
    assert result.error.filename == "docs/README.md"


def test_run_stdin_requires_a_dialect() -> None:
    result = run_stdin(_config(), io.StringIO("text"))

    assert result.status is FormatStatus.ERROR
    assert isinstance(result.error, UnsupportedDialectError)
    assert result.output == "text"


def test_best_effort_logs_skipped_codeblocks(
    require_grammar: RequireGrammar,
    document_builder: DocumentBuilder,
    fake_adapter: FormatterAdapter,
    caplog: pytest.LogCaptureFixture,
    monkeypatch: pytest.MonkeyPatch,
) -> None:
    require_grammar("markdown")
    document_builder.write({"README.md": README})
    path = str(document_builder.path("README.md"))
    monkeypatch.setattr(logging.getLogger("cbfmt"), "propagate", True)

    with caplog.at_level(logging.WARNING, logger="cbfmt.pipeline"):
        result = run_file(
            _config(python=("fail syntax error",)), path, best_effort=True, adapter=fake_adapter
        )

    assert result.status is FormatStatus.UNCHANGED
    messages = [record.getMessage() for record in caplog.records]
    assert any(f"{path}:6 [python]" in message and "syntax error" in message for message in messages)


def test_best_effort_stdin_formats_the_other_codeblocks(
    require_grammar: RequireGrammar, fake_adapter: FormatterAdapter
) -> None:
    engine = require_grammar("markdown")
    source = _doc(
        """
        ```python
        a
        ```

        ```sh
        echo hi
        ```
        """
    )
    config = _config(python=("fail broken",), sh=("upper",))

    result = run_stdin(
        config, io.StringIO(source), parser="markdown", best_effort=True, adapter=fake_adapter, engine=engine
    )

    assert result.status is FormatStatus.CHANGED
    assert result.output == source.replace("echo hi", "ECHO HI")
