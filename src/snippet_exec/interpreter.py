"""Persistent in-process Python session with REPL-style auto-print.

Every call runs against one shared namespace, so names a snippet defines stay
visible to later snippets of the same session.  Output is captured by
redirecting ``sys.stdout``/``sys.stderr``.  That redirection is process-global,
so redirected runs are serialized across every session in the process.  Calls
on one executor are additionally serialized by that executor's own lock.
"""

from __future__ import annotations

import ast
import builtins
import contextlib
import io
import itertools
import linecache
import threading
import traceback
from types import CodeType, TracebackType
from typing import Any, cast

from .errors import SessionClosedError, SessionInitError
from .log import get_logger
from .result import ExecutionResult, build_result, empty_input_result, error_result

logger = get_logger(__name__)

SNIPPET_CODE = "__snippet_code__"
SNIPPET_STDOUT = "__snippet_stdout__"
SNIPPET_STDERR = "__snippet_stderr__"
RESERVED_NAMES = (SNIPPET_CODE, SNIPPET_STDOUT, SNIPPET_STDERR)

SNIPPET_FILENAME_PREFIX = "<snippet-"
DEFAULT_BOOTSTRAP = "import sys\nimport io\n"

# sys.stdout and sys.stderr are shared by every thread, so only one snippet may
# hold them at a time.  Reentrant so a snippet can drive another executor.
_REDIRECT_LOCK = threading.RLock()

# linecache is process-wide, so pseudo-filenames are unique across sessions.
_SNIPPET_IDS = itertools.count(1)

_LONG_LIVED_NODES = (
    ast.FunctionDef,
    ast.AsyncFunctionDef,
    ast.ClassDef,
    ast.Lambda,
    ast.GeneratorExp,
)


class InterpreterSession:
    """Owned global namespace that persists across snippet executions.

    Example:
        ```python
        with InterpreterSession() as session:
            executor = InterpreterExecutor(session)
        ```
    """

    def __init__(self, *, bootstrap: str = DEFAULT_BOOTSTRAP) -> None:
        """Create the namespace and run the bootstrap code in it.

        Raises :class:`SessionInitError` if the bootstrap fails.

        Example:
            ```python
            session = InterpreterSession(bootstrap="import math\\n")
            ```
        """
        self._namespace: dict[str, Any] = {
            "__name__": "__main__",
            "__builtins__": builtins,
        }
        self._filenames: list[str] = []
        self._closed = False
        try:
            exec(compile(bootstrap, "<session-bootstrap>", "exec"), self._namespace)
        except Exception as exc:
            raise SessionInitError(f"Failed to initialize interpreter session: {exc}") from exc
        logger.debug("Interpreter session ready")

    @property
    def closed(self) -> bool:
        """Return True once :meth:`close` has run.

        Example:
            ```python
            assert not session.closed
            ```
        """
        return self._closed

    @property
    def namespace(self) -> dict[str, Any]:
        """Return the live global namespace.

        Example:
            ```python
            value = session.namespace["x"]
            ```
        """
        if self._closed:
            raise SessionClosedError("Interpreter session is closed")
        return self._namespace

    def register_source(self, code: str) -> str:
        """Register snippet source with ``linecache`` and return its pseudo-filename.

        Example:
            ```python
            filename = session.register_source("x = 1")
            ```
        """
        filename = f"{SNIPPET_FILENAME_PREFIX}{next(_SNIPPET_IDS)}>"
        linecache.cache[filename] = (len(code), None, code.splitlines(True), filename)
        self._filenames.append(filename)
        return filename

    def release_source(self, filename: str) -> None:
        """Forget a snippet source registered with :meth:`register_source`.

        Example:
            ```python
            session.release_source(filename)
            ```
        """
        linecache.cache.pop(filename, None)
        with contextlib.suppress(ValueError):
            self._filenames.remove(filename)

    def close(self) -> None:
        """Drop the namespace and the registered snippet sources.

        Example:
            ```python
            session.close()
            ```
        """
        if self._closed:
            return
        self._namespace.clear()
        for filename in self._filenames:
            linecache.cache.pop(filename, None)
        self._filenames.clear()
        self._closed = True
        logger.debug("Interpreter session closed")

    def __enter__(self) -> "InterpreterSession":
        """Return the session for use in a ``with`` block.

        Example:
            ```python
            with InterpreterSession() as session:
                ...
            ```
        """
        return self

    def __exit__(self, *exc_info: object) -> None:
        """Close the session when the ``with`` block exits.

        Example:
            ```python
            session.__exit__(None, None, None)
            ```
        """
        self.close()


def _parse(code: str, filename: str) -> ast.Module | None:
    """Parse a snippet, returning None when it is not valid Python.

    Example:
        ```python
        tree = _parse("1 + 1", "<snippet-1>")
        ```
    """
    try:
        return ast.parse(code, filename=filename, mode="exec")
    except (SyntaxError, ValueError):
        return None


def _keeps_source(code: str) -> bool:
    """Return True when a snippet can leave code objects behind in the namespace.

    Functions, classes, lambdas and generators defined by the snippet may raise
    later, and their tracebacks need the registered source lines.

    Example:
        ```python
        assert _keeps_source("def f():\\n    return 1")
        ```
    """
    tree = _parse(code, "<check>")
    if tree is None:
        return False
    return any(isinstance(node, _LONG_LIVED_NODES) for node in ast.walk(tree))


def _compile_stages(
    tree: ast.Module | None,
    code: str,
    filename: str,
) -> tuple[CodeType | None, CodeType | None]:
    """Split a snippet into a statement block and an optional trailing expression.

    Example:
        ```python
        body, expr = _compile_stages(_parse("x = 1\\nx", "<s>"), "x = 1\\nx", "<s>")
        ```
    """
    if tree is None or not tree.body or not isinstance(tree.body[-1], ast.Expr):
        return compile(code, filename, "exec"), None
    last = cast(ast.Expr, tree.body.pop())
    body = compile(tree, filename, "exec") if tree.body else None
    expr = compile(ast.Expression(last.value), filename, "eval")
    return body, expr


def _run_stages(code: str, filename: str, namespace: dict[str, Any]) -> BaseException | None:
    """Run a snippet against ``namespace`` and return the failure, if any.

    Example:
        ```python
        failure = _run_stages("1 / 0", "<snippet-1>", {})
        ```
    """
    try:
        body, expr = _compile_stages(_parse(code, filename), code, filename)
        if body is not None:
            exec(body, namespace)
        if expr is not None:
            value = eval(expr, namespace)
            if value is not None:
                print(repr(value))
    except SystemExit as exc:
        if exc.code in (None, 0):
            return None
        return exc
    except Exception as exc:
        return exc
    return None


def _snippet_traceback(tb: TracebackType | None) -> TracebackType | None:
    """Skip driver frames so a traceback starts at the snippet's own code.

    Example:
        ```python
        tb = _snippet_traceback(exc.__traceback__)
        ```
    """
    while tb is not None and not tb.tb_frame.f_code.co_filename.startswith(
        SNIPPET_FILENAME_PREFIX
    ):
        tb = tb.tb_next
    return tb


def _format_failure(exc: BaseException) -> str:
    """Format a captured snippet failure for the stderr buffer.

    Example:
        ```python
        text = _format_failure(ZeroDivisionError("division by zero"))
        ```
    """
    if isinstance(exc, SystemExit):
        return f"SystemExit: {exc.code}\n"
    return "".join(
        traceback.format_exception(type(exc), exc, _snippet_traceback(exc.__traceback__))
    )


def _format_host_error(exc: BaseException) -> str:
    """Format a driver-level fault, falling back to ``repr`` if formatting fails.

    Example:
        ```python
        text = _format_host_error(RuntimeError("lost stdout"))
        ```
    """
    try:
        return "".join(traceback.format_exception(exc)).rstrip("\n")
    except Exception:
        return repr(exc)


class InterpreterExecutor:
    """Execute snippets against one persistent :class:`InterpreterSession`.

    Example:
        ```python
        executor = InterpreterExecutor()
        executor.execute("x = 5")
        result = executor.execute("x")  # success, "5"
        ```
    """

    def __init__(self, session: InterpreterSession | None = None) -> None:
        """Bind the session, creating a fresh one when none is given.

        Example:
            ```python
            executor = InterpreterExecutor(InterpreterSession())
            ```
        """
        self._session = session if session is not None else InterpreterSession()
        self._lock = threading.Lock()

    @property
    def session(self) -> InterpreterSession:
        """Return the owned session.

        Example:
            ```python
            names = executor.session.namespace.keys()
            ```
        """
        return self._session

    def execute(self, code: str) -> ExecutionResult:
        """Run one snippet and return its classified, captured output.

        A trailing bare expression is echoed with ``repr`` unless it is None.
        User-code exceptions never escape.  They are written to stderr and
        reported as an error result.

        Example:
            ```python
            result = executor.execute("1 + 1")  # success, "2"
            ```
        """
        trimmed = (code or "").strip()
        if not trimmed:
            return empty_input_result()

        with self._lock:
            try:
                stdout, stderr = self._drive(trimmed)
            except Exception as exc:
                logger.debug("Interpreter driver failed: %r", exc)
                return error_result(f"Execution wrapper failed: {_format_host_error(exc)}")
        return build_result(stdout, stderr)

    def close(self) -> None:
        """Tear down the owned session.

        Example:
            ```python
            executor.close()
            ```
        """
        self._session.close()

    def _drive(self, code: str) -> tuple[str, str]:
        """Stage the snippet in the namespace, run it with redirected streams, unstage.

        The source stays registered only when the snippet defines code that can
        run after this call returns.

        Example:
            ```python
            out, err = executor._drive("print('hi')")
            ```
        """
        namespace = self._session.namespace
        filename = self._session.register_source(code)
        captured_stdout = io.StringIO()
        captured_stderr = io.StringIO()
        namespace[SNIPPET_CODE] = code
        namespace[SNIPPET_STDOUT] = captured_stdout
        namespace[SNIPPET_STDERR] = captured_stderr
        try:
            snippet = namespace[SNIPPET_CODE]
            with (
                _REDIRECT_LOCK,
                contextlib.redirect_stdout(captured_stdout),
                contextlib.redirect_stderr(captured_stderr),
            ):
                failure = _run_stages(snippet, filename, namespace)
                if failure is not None:
                    captured_stderr.write(_format_failure(failure))
        finally:
            for name in RESERVED_NAMES:
                namespace.pop(name, None)
            if not _keeps_source(code):
                self._session.release_source(filename)
        return captured_stdout.getvalue(), captured_stderr.getvalue()
