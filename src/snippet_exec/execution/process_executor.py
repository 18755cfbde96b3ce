from __future__ import annotations

import abc
import os
import subprocess

from ..errors import StagingError
from ..log import get_logger
from ..result import (
    ExecutionResult,
    build_result,
    empty_input_result,
    error_result,
    is_blank,
)
from ..settings import ExecutorSettings
from .drain import drain_polling, drain_threaded
from .encoding import EncodingNormalizer
from .engine import LaunchCallback
from .runtimes import POSIX, WINDOWS, RuntimeSpec, resolve_runtime, runtimes_for_platform
from .staging import TempScript, stage_script
from .types import RuntimeKind, runtime_name

logger = get_logger(__name__)


class ProcessScriptExecutor(abc.ABC):
    """Run snippets as temp scripts under an external interpreter.

    Subclasses supply the platform family, the draining strategy and the
    wording of abnormal exits.

    Example:
        ```python
        executor = default_script_executor()
        result = executor.execute("bash", "echo hello")
        ```
    """

    family: str = ""

    def __init__(
        self,
        settings: ExecutorSettings | None = None,
        *,
        normalizer: EncodingNormalizer | None = None,
    ) -> None:
        """Bind settings and the output normalizer.

        Example:
            ```python
            executor = PosixScriptExecutor(ExecutorSettings(poll_interval_seconds=0.05))
            ```
        """
        self._settings = settings or ExecutorSettings()
        self._normalizer = normalizer or EncodingNormalizer(placeholder=self._settings.placeholder)

    @property
    def settings(self) -> ExecutorSettings:
        """Return the settings this executor was built with.

        Example:
            ```python
            interval = executor.settings.poll_interval_seconds
            ```
        """
        return self._settings

    def runtimes(self) -> dict[str, RuntimeSpec]:
        """Return the effective runtime table, overrides applied.

        Example:
            ```python
            for name, spec in executor.runtimes().items():
                print(name, spec.command)
            ```
        """
        return {
            name: self.resolve(name)
            for name in runtimes_for_platform(self.family)
        }

    def resolve(self, runtime: RuntimeKind | str) -> RuntimeSpec:
        """Resolve a runtime kind to its spec on this platform family.

        Example:
            ```python
            spec = executor.resolve(RuntimeKind.POWERSHELL)
            ```
        """
        return resolve_runtime(runtime_name(runtime), self.family, self._settings.interpreters)

    def execute(
        self,
        runtime: RuntimeKind | str,
        code: str,
        *,
        on_launch: LaunchCallback | None = None,
    ) -> ExecutionResult:
        """Stage, launch, drain, classify and clean up one snippet.

        ``on_launch`` receives the running process right after it starts, so a
        caller can layer its own timeout by terminating it.

        Example:
            ```python
            result = executor.execute("bash", "exit 3")
            ```
        """
        if is_blank(code):
            return empty_input_result()

        spec = self.resolve(runtime)
        try:
            with stage_script(
                code,
                spec,
                directory=self._settings.temp_dir,
                encode_native=self._normalizer.encode_native,
            ) as script:
                return self._run(script, on_launch)
        except StagingError as exc:
            logger.debug("Staging failed for %s: %s", spec.name, exc)
            return error_result(f"Failed to stage script: {exc}")

    def _run(self, script: TempScript, on_launch: LaunchCallback | None) -> ExecutionResult:
        """Launch the staged script and turn its outcome into a result.

        Example:
            ```python
            result = executor._run(script, None)
            ```
        """
        command = script.command
        logger.debug("Launching %s", command)
        try:
            process = subprocess.Popen(
                command,
                stdin=None,
                stdout=subprocess.PIPE,
                stderr=subprocess.PIPE,
                **self._popen_options(),
            )
        except OSError as exc:
            return error_result(f"Failed to launch {command[0]}: {exc}")

        with process:
            try:
                if on_launch is not None:
                    on_launch(process)
                raw_out, raw_err = self._drain(process)
                returncode = process.wait()
            except BaseException:
                if process.poll() is None:
                    process.kill()
                raise
        logger.debug("%s exited with %s", command[0], returncode)

        stdout = self._normalizer.normalize(raw_out)
        stderr = self._normalizer.normalize(raw_err)
        return build_result(
            stdout,
            stderr,
            exit_code=returncode,
            exit_note=self._describe_exit(returncode),
        )

    def _popen_options(self) -> dict[str, object]:
        """Return extra platform keyword arguments for ``subprocess.Popen``.

        Example:
            ```python
            options = executor._popen_options()
            ```
        """
        return {}

    @abc.abstractmethod
    def _drain(self, process: subprocess.Popen[bytes]) -> tuple[bytes, bytes]:
        """Read both output channels to completion.

        Example:
            ```python
            out, err = executor._drain(process)
            ```
        """
        raise NotImplementedError

    @abc.abstractmethod
    def _describe_exit(self, returncode: int) -> str | None:
        """Return a trailing line for abnormal exits, or None.

        Example:
            ```python
            note = executor._describe_exit(3)
            ```
        """
        raise NotImplementedError


class PosixScriptExecutor(ProcessScriptExecutor):
    """Script executor for Linux and macOS, draining with a selector poll loop.

    Example:
        ```python
        result = PosixScriptExecutor().execute("bash", "echo hello")
        ```
    """

    family = POSIX

    def _drain(self, process: subprocess.Popen[bytes]) -> tuple[bytes, bytes]:
        """Drain both pipes with the polling strategy.

        Example:
            ```python
            out, err = executor._drain(process)
            ```
        """
        return drain_polling(
            process,
            poll_interval=self._settings.poll_interval_seconds,
            chunk_size=self._settings.read_chunk_size,
        )

    def _describe_exit(self, returncode: int) -> str | None:
        """Describe non-zero statuses and signal terminations.

        Example:
            ```python
            assert executor._describe_exit(-9) == "Process terminated by signal: 9"
            ```
        """
        if returncode == 0:
            return None
        if returncode < 0:
            return f"Process terminated by signal: {-returncode}"
        return f"Process exited with status: {returncode}"


class WindowsScriptExecutor(ProcessScriptExecutor):
    """Script executor for Windows, draining with one reader thread per pipe.

    Example:
        ```python
        result = WindowsScriptExecutor().execute("batch", "echo hello")
        ```
    """

    family = WINDOWS

    def _popen_options(self) -> dict[str, object]:
        """Suppress the console window of the child process.

        Example:
            ```python
            options = executor._popen_options()
            ```
        """
        return {"creationflags": getattr(subprocess, "CREATE_NO_WINDOW", 0)}

    def _drain(self, process: subprocess.Popen[bytes]) -> tuple[bytes, bytes]:
        """Drain both pipes with reader threads.

        Example:
            ```python
            out, err = executor._drain(process)
            ```
        """
        return drain_threaded(process, chunk_size=self._settings.read_chunk_size)

    def _describe_exit(self, returncode: int) -> str | None:
        """Describe any non-zero exit code.

        Example:
            ```python
            assert executor._describe_exit(1) == "Process exited with code: 1"
            ```
        """
        if returncode == 0:
            return None
        return f"Process exited with code: {returncode}"


def default_script_executor(settings: ExecutorSettings | None = None) -> ProcessScriptExecutor:
    """Return the script executor for the current platform family.

    Example:
        ```python
        executor = default_script_executor()
        ```
    """
    if os.name == "nt":
        return WindowsScriptExecutor(settings)
    return PosixScriptExecutor(settings)
