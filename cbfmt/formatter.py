"""Runs formatter chains of external commands over codeblock content."""

from __future__ import annotations

import subprocess
from dataclasses import dataclass
from typing import Callable, Optional, Sequence

from .errors import (
    FormatterChannelError,
    FormatterError,
    FormatterExecutionError,
    FormatterSpawnError,
)
from .logging import get_logger


@dataclass(frozen=True)
class ProcessOutput:
    """Captured result of a single formatter stage."""

    returncode: int
    stdout: str
    stderr: str


ProcessRunner = Callable[[Sequence[str], str], ProcessOutput]


class FormatterAdapter:
    """Pipes content through each stage of a formatter chain in order.

    Every stage string is split on whitespace into an executable and its
    arguments. The content is written to the stage's stdin and its stdout
    feeds the next stage. There is no timeout: a formatter that never exits
    blocks its task indefinitely.
    """

    def __init__(self, runner: ProcessRunner | None = None) -> None:
        self._runner = runner or self._default_runner
        self.logger = get_logger("formatter")

    def run(
        self,
        chain: Sequence[str],
        content: str,
        *,
        language: Optional[str] = None,
        start: Optional[str] = None,
    ) -> str:
        """Return ``content`` after every non-empty stage of ``chain`` ran over it."""
        result = content
        for stage in chain:
            args = stage.split()
            if not args:
                continue
            command = args[0]
            self.logger.debug("Running %s for [%s]%s", stage, language, start or "")
            try:
                output = self._runner(args, result)
            except FormatterError as exc:
                raise exc.attach(command=command, language=language, start=start)
            if output.returncode != 0:
                raise FormatterExecutionError(
                    output.stderr,
                    command=command,
                    language=language,
                    start=start,
                )
            result = output.stdout
        return result

    @staticmethod
    def _default_runner(args: Sequence[str], input_text: str) -> ProcessOutput:
        try:
            process = subprocess.Popen(
                list(args),
                stdin=subprocess.PIPE,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                encoding="utf-8",
            )
        except (OSError, ValueError) as exc:
            raise FormatterSpawnError(str(exc)) from exc

        if process.stdin is None:  # pragma: no cover - Popen always pipes stdin here
            process.kill()
            process.wait()
            raise FormatterChannelError("Child process stdin has not been captured.")

        try:
            stdout, stderr = process.communicate(input_text)
        except (OSError, UnicodeError) as exc:
            process.kill()
            process.wait()
            raise FormatterChannelError(str(exc)) from exc
        return ProcessOutput(returncode=process.returncode, stdout=stdout, stderr=stderr)


__all__ = ["FormatterAdapter", "ProcessOutput", "ProcessRunner"]
