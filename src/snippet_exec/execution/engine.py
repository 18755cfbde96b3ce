from __future__ import annotations

import subprocess
from typing import Callable, Protocol

from ..result import ExecutionResult
from .types import RuntimeKind

LaunchCallback = Callable[["subprocess.Popen[bytes]"], None]


class ScriptEngine(Protocol):
    def execute(
        self,
        runtime: RuntimeKind | str,
        code: str,
        *,
        on_launch: LaunchCallback | None = None,
    ) -> ExecutionResult:
        """Execute one snippet with an out-of-process interpreter.

        Example:
            ```python
            result = engine.execute(RuntimeKind.BASH, "echo hello")
            ```
        """
        ...
