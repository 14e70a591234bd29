"""Concurrent, order-preserving dispatch of codeblocks to formatter chains."""

from __future__ import annotations

from concurrent.futures import Future, ThreadPoolExecutor
from typing import List, Mapping, Optional, Sequence, Tuple

from .errors import DocumentError, FormatterError
from .fingerprint import fingerprint
from .formatter import FormatterAdapter
from .logging import get_logger
from .models import Codeblock, FormatOutcome, FormatterChain
from .utils import leading_whitespace, strip_prefix

_MAX_WORKERS = 32

logger = get_logger("dispatcher")


def dispatch(
    document: Sequence[str],
    codeblocks: Sequence[Codeblock],
    languages: Mapping[str, Sequence[str]],
    *,
    adapter: FormatterAdapter | None = None,
    max_workers: Optional[int] = None,
) -> List[FormatOutcome]:
    """Format every configured codeblock and return outcomes in submission order.

    Codeblocks whose language has no chain in ``languages`` are skipped and
    produce no outcome. Each task receives its own copy of the content and a
    read-only reference to its chain.
    """
    adapter = adapter or FormatterAdapter()

    jobs: List[Tuple[Codeblock, FormatterChain, str]] = []
    for codeblock in codeblocks:
        chain = languages.get(codeblock.language)
        if chain is None:
            logger.debug(
                "No formatter for [%s] at row %d; leaving it untouched",
                codeblock.language,
                codeblock.codeblock_start,
            )
            continue
        codeblock.input_fingerprint = fingerprint(codeblock.content)
        prefix = leading_whitespace(document[codeblock.indent_row])
        jobs.append((codeblock, tuple(chain), strip_prefix(codeblock.content, prefix)))

    if not jobs:
        return []

    workers = max_workers or min(_MAX_WORKERS, len(jobs))
    with ThreadPoolExecutor(max_workers=workers, thread_name_prefix="cbfmt") as executor:
        # One slot per codeblock, indexed by submission order.
        futures: List[Future[FormatOutcome]] = [
            executor.submit(_format_codeblock, adapter, codeblock, chain, content)
            for codeblock, chain, content in jobs
        ]

    outcomes: List[FormatOutcome] = []
    for future in futures:
        try:
            outcomes.append(future.result())
        except Exception as exc:
            raise DocumentError(f"Formatting task failed: {exc}") from exc
    return outcomes


def _format_codeblock(
    adapter: FormatterAdapter,
    codeblock: Codeblock,
    chain: FormatterChain,
    content: str,
) -> FormatOutcome:
    try:
        formatted = adapter.run(
            chain,
            content,
            language=codeblock.language,
            start=codeblock.position,
        )
    except FormatterError as exc:
        return FormatOutcome(codeblock=codeblock, error=exc)
    return FormatOutcome(codeblock=codeblock, content=formatted)


__all__ = ["dispatch"]
