"""Splices formatted codeblocks back into their document."""

from __future__ import annotations

from typing import Iterable, List, Sequence

from .errors import FormatterError
from .fingerprint import fingerprint
from .logging import get_logger
from .models import FormatOutcome, SpliceResult
from .utils import indent_lines, leading_whitespace, split_lines

logger = get_logger("reassembly")


def splice(
    document: Sequence[str],
    outcomes: Iterable[FormatOutcome],
    *,
    fail_fast: bool = False,
    best_effort: bool = False,
) -> SpliceResult:
    """Apply ``outcomes`` to a copy of ``document`` strictly in order.

    Spans were computed against the unedited document, so every replacement
    is shifted by the line-count drift of the replacements before it.

    In fail-fast mode processing stops at the first codeblock whose content
    changed, before it is spliced. A failed outcome raises its
    :class:`FormatterError` unless ``best_effort`` is set, in which case the
    codeblock is left as it was and the error is recorded on the result.
    """
    lines: List[str] = list(document)
    changed = False
    errors: List[FormatterError] = []
    offset = 0

    for outcome in outcomes:
        codeblock = outcome.codeblock
        if outcome.error is not None:
            if not best_effort:
                raise outcome.error
            logger.debug("Keeping codeblock at row %d: %s", codeblock.start, outcome.error)
            errors.append(outcome.error)
            continue

        prefix = leading_whitespace(lines[codeblock.indent_row + offset])
        new_lines = indent_lines(split_lines(outcome.content or ""), prefix)

        indented = "".join(f"{line}\n" for line in new_lines)
        # The captured content never includes the first line's indentation.
        comparable = indented[len(prefix) :] if indented.startswith(prefix) else indented
        if fingerprint(comparable) != codeblock.input_fingerprint:
            changed = True
            if fail_fast:
                logger.debug("Codeblock at row %d differs; failing fast", codeblock.start)
                break

        start = codeblock.start + offset
        end = codeblock.end + offset
        lines[start:end] = new_lines
        offset += len(new_lines) - (codeblock.end - codeblock.start)

    return SpliceResult(lines=lines, changed=changed, errors=errors)


__all__ = ["splice"]
