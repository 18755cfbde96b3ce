from __future__ import annotations

from dataclasses import dataclass
from enum import Enum

NO_OUTPUT = "[No output]"
NO_CODE = "[No code to execute]"
STDERR_SEPARATOR = "--- STDERR ---"

_LINE_TERMINATORS = "\r\n"


class ExecutionStatus(str, Enum):
    """Two-state outcome shared by every executor.

    Example:
        ```python
        status = ExecutionStatus("success")
        ```
    """

    SUCCESS = "success"
    ERROR = "error"


@dataclass(frozen=True, slots=True)
class ExecutionResult:
    """Uniform status/output pair returned for every executed snippet.

    Example:
        ```python
        result = ExecutionResult(ExecutionStatus.SUCCESS, "hello")
        ```
    """

    status: ExecutionStatus
    output: str

    @property
    def ok(self) -> bool:
        """Return True when the snippet ran without error.

        Example:
            ```python
            if result.ok:
                print(result.output)
            ```
        """
        return self.status is ExecutionStatus.SUCCESS

    def to_dict(self) -> dict[str, str]:
        """Return the plain two-field mapping used by callers for serialization.

        Example:
            ```python
            payload = json.dumps(result.to_dict())
            ```
        """
        return {"status": self.status.value, "output": self.output}


def is_blank(code: str | None) -> bool:
    """Return True for missing, empty or whitespace-only snippets.

    Example:
        ```python
        assert is_blank("  \\n\\t")
        ```
    """
    return not code or not code.strip()


def empty_input_result() -> ExecutionResult:
    """Return the short-circuit result for blank snippets.

    Example:
        ```python
        result = empty_input_result()
        ```
    """
    return ExecutionResult(ExecutionStatus.SUCCESS, NO_CODE)


def error_result(message: str) -> ExecutionResult:
    """Return an error result carrying a host-side diagnostic.

    Example:
        ```python
        result = error_result("Failed to stage script: disk full")
        ```
    """
    return ExecutionResult(ExecutionStatus.ERROR, message or NO_OUTPUT)


def classify(stdout: str, stderr: str, exit_code: int | None = None) -> ExecutionStatus:
    """Classify captured output into success or error.

    Without an exit code (embedded path) any stderr text is an error.  With an
    exit code (subprocess path) a non-zero code is an error as well.

    Example:
        ```python
        status = classify("hello", "", exit_code=0)
        ```
    """
    if stderr:
        return ExecutionStatus.ERROR
    if exit_code is not None and exit_code != 0:
        return ExecutionStatus.ERROR
    return ExecutionStatus.SUCCESS


def format_output(stdout: str, stderr: str, exit_note: str | None = None) -> str:
    """Join stdout, stderr and an optional abnormal-exit line into one text.

    Example:
        ```python
        text = format_output("partial", "boom", "Process exited with status: 3")
        ```
    """
    parts: list[str] = []
    if stdout:
        parts.append(stdout)
    if stderr:
        if parts:
            parts.append(STDERR_SEPARATOR)
        parts.append(stderr)
    if exit_note:
        parts.append(exit_note)
    return "\n".join(parts) or NO_OUTPUT


def build_result(
    stdout: str,
    stderr: str,
    *,
    exit_code: int | None = None,
    exit_note: str | None = None,
) -> ExecutionResult:
    """Trim trailing line terminators, classify and format captured output.

    Example:
        ```python
        result = build_result("hello\\n", "", exit_code=0)
        ```
    """
    stdout = stdout.rstrip(_LINE_TERMINATORS)
    stderr = stderr.rstrip(_LINE_TERMINATORS)
    status = classify(stdout, stderr, exit_code)
    note = exit_note if status is ExecutionStatus.ERROR else None
    return ExecutionResult(status, format_output(stdout, stderr, note))
