from __future__ import annotations

from dataclasses import dataclass
from enum import Enum


class RuntimeKind(str, Enum):
    """Execution backends a request can target.

    Example:
        ```python
        kind = RuntimeKind("bash")
        ```
    """

    PYTHON = "python"
    BASH = "bash"
    POWERSHELL = "powershell"
    BATCH = "batch"

    @property
    def embedded(self) -> bool:
        """Return True for the in-process interpreter session.

        Example:
            ```python
            assert RuntimeKind.PYTHON.embedded
            ```
        """
        return self is RuntimeKind.PYTHON


def runtime_name(runtime: RuntimeKind | str) -> str:
    """Return the lower-case runtime name for an enum member or plain string.

    Example:
        ```python
        name = runtime_name(RuntimeKind.BASH)
        ```
    """
    if isinstance(runtime, RuntimeKind):
        return runtime.value
    return str(runtime).strip().lower()


@dataclass(frozen=True, slots=True)
class ExecutionRequest:
    """One snippet addressed to one runtime.

    Example:
        ```python
        req = ExecutionRequest(runtime=RuntimeKind.BASH, code="echo hello")
        ```
    """

    runtime: RuntimeKind | str
    code: str

    @property
    def embedded(self) -> bool:
        """Return True when the request targets the embedded session.

        Example:
            ```python
            assert ExecutionRequest("python", "1 + 1").embedded
            ```
        """
        return runtime_name(self.runtime) == RuntimeKind.PYTHON.value
