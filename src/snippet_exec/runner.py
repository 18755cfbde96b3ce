from __future__ import annotations

from .execution.engine import LaunchCallback, ScriptEngine
from .execution.process_executor import default_script_executor
from .execution.types import ExecutionRequest, RuntimeKind
from .interpreter import InterpreterExecutor, InterpreterSession
from .log import get_logger
from .result import ExecutionResult, empty_input_result, is_blank
from .settings import ExecutorSettings, resolve_settings

logger = get_logger(__name__)


class CodeRunner:
    """Route snippets to the embedded session or to an external interpreter.

    The embedded session is created lazily on the first Python request and
    lives until :meth:`close`.

    Example:
        ```python
        with CodeRunner() as runner:
            runner.run_code("x = 5")
            result = runner.run_code("x")  # success, "5"
        ```
    """

    def __init__(
        self,
        settings: ExecutorSettings | None = None,
        *,
        session: InterpreterSession | None = None,
        script_executor: ScriptEngine | None = None,
    ) -> None:
        """Bind settings, an optional session and an optional script executor.

        Example:
            ```python
            runner = CodeRunner(ExecutorSettings(poll_interval_seconds=0.05))
            ```
        """
        self._settings = settings or ExecutorSettings()
        self._session = session
        self._interpreter: InterpreterExecutor | None = None
        self._script_executor = script_executor

    @property
    def interpreter(self) -> InterpreterExecutor:
        """Return the embedded executor, creating its session on first use.

        Example:
            ```python
            executor = runner.interpreter
            ```
        """
        if self._interpreter is None:
            self._interpreter = InterpreterExecutor(self._session)
        return self._interpreter

    @property
    def script_executor(self) -> ScriptEngine:
        """Return the out-of-process executor, defaulting to the platform one.

        Example:
            ```python
            engine = runner.script_executor
            ```
        """
        if self._script_executor is None:
            self._script_executor = default_script_executor(self._settings)
        return self._script_executor

    def run(
        self,
        request: ExecutionRequest,
        *,
        on_launch: LaunchCallback | None = None,
    ) -> ExecutionResult:
        """Execute one request and return its two-field result.

        ``on_launch`` is handed to the script executor and is ignored for the
        embedded runtime, which has no child process.

        Example:
            ```python
            result = runner.run(ExecutionRequest(RuntimeKind.BASH, "echo hello"))
            ```
        """
        if is_blank(request.code):
            return empty_input_result()
        if request.embedded:
            return self.interpreter.execute(request.code)
        logger.debug("Routing %s snippet to script executor", request.runtime)
        return self.script_executor.execute(request.runtime, request.code, on_launch=on_launch)

    def run_code(self, code: str, runtime: RuntimeKind | str = RuntimeKind.PYTHON) -> ExecutionResult:
        """Execute ``code`` on ``runtime``.

        Example:
            ```python
            result = runner.run_code("echo hello", "bash")
            ```
        """
        return self.run(ExecutionRequest(runtime=runtime, code=code))

    def close(self) -> None:
        """Tear down the embedded session if one was created.

        Example:
            ```python
            runner.close()
            ```
        """
        if self._interpreter is not None:
            self._interpreter.close()
        elif self._session is not None:
            self._session.close()

    def __enter__(self) -> "CodeRunner":
        """Return the runner for use in a ``with`` block.

        Example:
            ```python
            with CodeRunner() as runner:
                ...
            ```
        """
        return self

    def __exit__(self, *exc_info: object) -> None:
        """Close the runner when the ``with`` block exits.

        Example:
            ```python
            runner.__exit__(None, None, None)
            ```
        """
        self.close()


def run_code(
    code: str,
    runtime: RuntimeKind | str = RuntimeKind.PYTHON,
    *,
    settings: ExecutorSettings | None = None,
    settings_file: str | None = None,
) -> ExecutionResult:
    """Execute one snippet with a fresh runner and a fresh embedded session.

    Example:
        ```python
        from snippet_exec import run_code
        result = run_code("echo hello", runtime="bash")
        ```
    """
    resolved = resolve_settings(settings, settings_file)
    with CodeRunner(resolved) as runner:
        return runner.run_code(code, runtime)
