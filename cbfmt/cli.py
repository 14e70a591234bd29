"""CLI entrypoint for cbfmt."""

from __future__ import annotations

import argparse
import sys
from concurrent.futures import Future, ThreadPoolExecutor, as_completed
from pathlib import Path
from typing import List, Optional, TextIO

from .config import CbfmtConfig, ConfigError, find_closest_config, load_config
from .discovery import collect_files
from .logging import configure_logging
from .models import FormatResult, FormatStatus
from .pipeline import run_file, run_stdin


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="cbfmt",
        description=(
            "Format codeblocks inside markdown, org and restructuredtext documents. "
            "Every codeblock is piped through the formatter(s) configured for its language."
        ),
    )
    parser.add_argument(
        "--config",
        metavar="FILE",
        help="Path to the config file (defaults to the closest codeblock-format.toml).",
    )
    parser.add_argument(
        "-c",
        "--check",
        action="store_true",
        help="Check if the given files are formatted. Print the path to unformatted files and exit with code 1 if any are not.",
    )
    parser.add_argument(
        "--fail-fast",
        action="store_true",
        help="Exit as soon as one file is not formatted correctly.",
    )
    parser.add_argument(
        "-w",
        "--write",
        action="store_true",
        help="Edit files in-place.",
    )
    parser.add_argument(
        "--best-effort",
        action="store_true",
        help="Ignore formatting errors and continue with the next codeblock.",
    )
    parser.add_argument(
        "-p",
        "--parser",
        choices=("markdown", "org", "restructuredtext"),
        help="Parser to use instead of detecting it from the file name.",
    )
    parser.add_argument(
        "--stdin-filepath",
        help="Path to the file to pretend that stdin comes from.",
    )
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Increase log verbosity for troubleshooting.",
    )
    parser.add_argument(
        "--log-file",
        type=Path,
        metavar="FILE",
        help="Also write log records to FILE.",
    )
    parser.add_argument(
        "files",
        nargs="*",
        metavar="file/dir",
        help="Files or directories to process. Reads from stdin when none are given.",
    )
    return parser


def main(
    argv: list[str] | None = None,
    *,
    stdin: TextIO | None = None,
    stdout: TextIO | None = None,
    stderr: TextIO | None = None,
) -> int:
    """CLI entrypoint for cbfmt; returns the process exit code."""
    parser = _build_parser()
    args = parser.parse_args(argv)
    stdin = stdin or sys.stdin
    stdout = stdout or sys.stdout
    stderr = stderr or sys.stderr

    configure_logging(verbose=bool(args.verbose), log_file=args.log_file)

    if not args.files and stdin.isatty():
        parser.print_help(stdout)
        return 0

    try:
        config = _load_config(args.config)
    except ConfigError as exc:
        print(f"[Error]: {exc}", file=stderr)
        return 1

    if args.files:
        return _use_files(args, config, stdout=stdout, stderr=stderr)
    return _use_stdin(args, config, stdin=stdin, stdout=stdout, stderr=stderr)


def _load_config(path: Optional[str]) -> CbfmtConfig:
    if path:
        return load_config(Path(path))
    closest = find_closest_config()
    if closest is None:
        raise ConfigError("Could not find config file.")
    return load_config(closest)


def _use_files(
    args: argparse.Namespace, config: CbfmtConfig, *, stdout: TextIO, stderr: TextIO
) -> int:
    files = collect_files(args.files)

    error_count = 0
    unchanged_count = 0
    changed_count = 0

    executor = ThreadPoolExecutor(thread_name_prefix="cbfmt-file")
    futures: List[Future[FormatResult]] = [
        executor.submit(
            run_file,
            config,
            filename,
            parser=args.parser,
            write=args.write,
            check=args.check,
            best_effort=args.best_effort,
        )
        for filename in files
    ]
    try:
        # All terminal output happens here, on the main thread.
        for future in as_completed(futures):
            result = future.result()
            if result.status is FormatStatus.IGNORED:
                continue
            if result.status is FormatStatus.UNCHANGED:
                unchanged_count += 1
                if args.check:
                    continue
                label = "Unchanged" if args.write else "OK"
                print(f"[{label}]: {result.filename}", file=stdout)
            elif result.status is FormatStatus.CHANGED:
                changed_count += 1
                if args.check:
                    print(result.filename, file=stderr)
                elif args.write:
                    print(f"[OK]: {result.filename}", file=stdout)
                else:
                    print(f"[Fail]: {result.filename}", file=stderr)
                if args.fail_fast and not args.write:
                    print("Failed fast...", file=stdout)
                    break
            else:
                error_count += 1
                if args.check:
                    print(result.filename, file=stderr)
                else:
                    print(f"[Error]: {result.error}", file=stderr)
                if args.fail_fast:
                    print("Failed fast...", file=stdout)
                    break
    finally:
        executor.shutdown(wait=True, cancel_futures=True)

    total_count = unchanged_count + changed_count + error_count
    if args.write:
        print(f"\n[{changed_count}/{total_count}] files were written.", file=stdout)
    elif not args.check:
        print(f"\n[{unchanged_count}/{total_count}] files are formatted correctly.", file=stdout)

    if error_count > 0 or (changed_count > 0 and not args.write):
        return 1
    return 0


def _use_stdin(
    args: argparse.Namespace,
    config: CbfmtConfig,
    *,
    stdin: TextIO,
    stdout: TextIO,
    stderr: TextIO,
) -> int:
    result = run_stdin(
        config,
        stdin,
        filename=args.stdin_filepath,
        parser=args.parser,
        check=args.check,
        best_effort=args.best_effort,
    )
    if result.status is FormatStatus.ERROR:
        if not args.check and result.output is not None:
            stdout.write(result.output)
        print(f"[Error]: {result.error}", file=stderr)
        return 1
    if args.check:
        if result.status is FormatStatus.CHANGED:
            print(args.stdin_filepath or result.filename, file=stderr)
            return 1
        return 0
    stdout.write(result.output or "")
    return 0


if __name__ == "__main__":
    sys.exit(main(sys.argv[1:]))
