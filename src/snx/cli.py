from __future__ import annotations

import argparse
import json
import sys
import threading
from functools import partial
from pathlib import Path
from typing import Any, Never, Sequence

from rich.console import Console
from rich.panel import Panel
from rich.table import Table
from rich.text import Text
from rich_argparse import RawTextRichHelpFormatter
from snippet_exec import CodeRunner, ExecutionRequest, ExecutionResult, ExecutorSettings, RuntimeKind
from snippet_exec.log import configure_logging

_CONSOLE = Console(no_color=False)


class _CLIHelpFormatter(RawTextRichHelpFormatter):
    """Rich formatter with explicit high-contrast CLI styles.

    Example:
        ```python
        parser = argparse.ArgumentParser(formatter_class=_CLIHelpFormatter)
        ```
    """

    styles = {
        "argparse.args": "bold cyan",
        "argparse.groups": "bold magenta",
        "argparse.help": "white",
        "argparse.metavar": "bold yellow",
        "argparse.prog": "bold bright_blue",
        "argparse.syntax": "bold bright_white",
        "argparse.text": "bright_white",
    }


_HELP_FORMATTER = partial(
    _CLIHelpFormatter,
    max_help_position=34,
    width=120,
)


class _RichArgumentParser(argparse.ArgumentParser):
    """ArgumentParser that renders errors via Rich.

    Example:
        ```python
        parser = _RichArgumentParser(prog="python -m snx")
        ```
    """

    def error(self, message: str) -> Never:
        """Render parse errors with Rich and exit.

        Example:
            ```python
            # parser.error("invalid usage")
            ```
        """
        _CONSOLE.print(Panel.fit(f"[bold red]Error:[/bold red] {message}", border_style="red"))
        self.print_help()
        raise SystemExit(2)

    def print_help(self, file: Any | None = None) -> None:
        """Render help text to the target stream.

        Example:
            ```python
            parser.print_help()
            ```
        """
        super().print_help(file=file)


def build_parser() -> argparse.ArgumentParser:
    """Build CLI parser for running snippets and inspecting runtimes.

    Example:
        ```python
        parser = build_parser()
        ```
    """
    parser = _RichArgumentParser(
        prog="python -m snx",
        description=(
            "snippet-exec CLI\n"
            "Run code snippets in a persistent Python session or under an external\n"
            "shell interpreter and print a uniform {status, output} result."
        ),
        epilog=(
            "Quick Examples:\n"
            "  python -m snx run -c \"1 + 1\"\n"
            "  python -m snx run --runtime bash -c \"echo hello\"\n"
            "  python -m snx run --runtime bash script.sh --timeout 10\n"
            "  echo 'print(42)' | python -m snx run -\n"
            "  python -m snx runtimes\n\n"
            "Configuration:\n"
            "  python -m snx --config snippet_exec.toml run --runtime bash -c \"ls\""
        ),
        formatter_class=_HELP_FORMATTER,
    )
    parser.add_argument(
        "--config",
        help=(
            "Path to a settings TOML file.\n"
            "Example: --config ./snippet_exec.toml"
        ),
    )
    parser.add_argument(
        "--log-level",
        default="WARNING",
        choices=["DEBUG", "INFO", "WARNING", "ERROR"],
        help="Diagnostic log level written to stderr (default: WARNING).",
    )

    sub = parser.add_subparsers(
        dest="command",
        required=True,
        parser_class=_RichArgumentParser,
    )

    run_cmd = sub.add_parser(
        "run",
        help="Execute one snippet and print its result.",
        description=(
            "Execute one snippet.\n"
            "Code comes from -c, from a file path, or from stdin when the path is '-'."
        ),
        epilog=(
            "Examples:\n"
            "  python -m snx run -c \"x = 5; x * 2\"\n"
            "  python -m snx run --runtime powershell -c \"Get-Date\"\n"
            "  python -m snx run --runtime bash --pretty -c \"exit 3\""
        ),
        formatter_class=_HELP_FORMATTER,
    )
    run_cmd.add_argument(
        "--runtime",
        default=RuntimeKind.PYTHON.value,
        help=(
            "Runtime to execute with (default: python).\n"
            "Known: " + ", ".join(kind.value for kind in RuntimeKind) + ".\n"
            "Unknown names fall back to the platform default shell."
        ),
    )
    run_cmd.add_argument("-c", "--code", help="Snippet text to execute.")
    run_cmd.add_argument(
        "source",
        nargs="?",
        help="Path to a file holding the snippet, or '-' for stdin.",
    )
    run_cmd.add_argument(
        "--timeout",
        type=float,
        help="Kill an external interpreter after this many seconds.",
    )
    run_cmd.add_argument(
        "--pretty",
        action="store_true",
        help="Render the result as a panel instead of JSON.",
    )

    sub.add_parser(
        "runtimes",
        help="List runtimes available on this platform.",
        description=(
            "Show how each runtime is staged and launched on this platform.\n"
            "Includes extension, command and prologue."
        ),
        formatter_class=_HELP_FORMATTER,
    )

    return parser


def build_runner(args: argparse.Namespace) -> CodeRunner:
    """Create a CodeRunner from global CLI flags.

    Example:
        ```python
        runner = build_runner(args)
        ```
    """
    settings = ExecutorSettings.from_file(args.config) if args.config else ExecutorSettings()
    return CodeRunner(settings)


def _read_code(args: argparse.Namespace, parser: argparse.ArgumentParser) -> str:
    """Return the snippet named by ``-c``, a file path, or stdin.

    Example:
        ```python
        code = _read_code(args, parser)
        ```
    """
    if args.code is not None and args.source is not None:
        parser.error("Provide either -c/--code or a source path, not both")
    if args.code is not None:
        return str(args.code)
    if args.source is None or args.source == "-":
        return sys.stdin.read()
    path = Path(args.source)
    if not path.is_file():
        parser.error(f"Source file not found: {args.source}")
    return path.read_text(encoding="utf-8")


def _run_with_timeout(
    runner: CodeRunner,
    request: ExecutionRequest,
    timeout: float | None,
) -> ExecutionResult:
    """Run a request, killing its child process once ``timeout`` elapses.

    Example:
        ```python
        result = _run_with_timeout(runner, ExecutionRequest("bash", "sleep 60"), 1.0)
        ```
    """
    if timeout is None:
        return runner.run(request)

    timers: list[threading.Timer] = []

    def _arm(process: Any) -> None:
        """Start a kill timer for the launched process.

        Example:
            ```python
            _arm(process)
            ```
        """
        timer = threading.Timer(timeout, process.kill)
        timer.daemon = True
        timer.start()
        timers.append(timer)

    try:
        return runner.run(request, on_launch=_arm)
    finally:
        for timer in timers:
            timer.cancel()


def _print_result(result: ExecutionResult, pretty: bool) -> None:
    """Print a result as JSON or as a Rich panel.

    Example:
        ```python
        _print_result(result, pretty=True)
        ```
    """
    if not pretty:
        print(json.dumps(result.to_dict(), ensure_ascii=False))
        return
    style = "green" if result.ok else "red"
    _CONSOLE.print(
        Panel(Text(result.output), title=result.status.value, border_style=style)
    )


def _print_runtimes(runner: CodeRunner) -> None:
    """Render the runtime table for this platform.

    Example:
        ```python
        _print_runtimes(CodeRunner())
        ```
    """
    table = Table(title="Runtimes")
    table.add_column("Runtime", style="cyan")
    table.add_column("Extension", style="magenta")
    table.add_column("Command")
    table.add_column("Prologue")
    table.add_row(RuntimeKind.PYTHON.value, "-", "(in-process session)", "-")
    script_executor = runner.script_executor
    runtimes = script_executor.runtimes() if hasattr(script_executor, "runtimes") else {}
    for name, spec in runtimes.items():
        prologue = " / ".join(spec.prologue.splitlines()) or "-"
        table.add_row(name, spec.extension, " ".join(spec.command), prologue)
    _CONSOLE.print(table)


def main(argv: Sequence[str] | None = None) -> int:
    """Run the `snx` CLI command handler.

    Example:
        ```python
        code = main(["run", "--runtime", "bash", "-c", "echo hello"])
        ```
    """
    parser = build_parser()
    args = parser.parse_args(list(argv) if argv is not None else None)
    configure_logging(args.log_level)

    try:
        runner = build_runner(args)
    except ValueError as exc:
        parser.error(str(exc))

    with runner:
        if args.command == "run":
            code = _read_code(args, parser)
            request = ExecutionRequest(runtime=args.runtime, code=code)
            result = _run_with_timeout(runner, request, args.timeout)
            _print_result(result, args.pretty)
            return 0 if result.ok else 1
        if args.command == "runtimes":
            _print_runtimes(runner)
            return 0

    parser.error("Unhandled command")
    return 2
