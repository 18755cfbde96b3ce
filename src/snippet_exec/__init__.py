from .errors import SessionClosedError, SessionInitError, SnippetExecError, StagingError
from .execution.encoding import EncodingNormalizer
from .execution.process_executor import (
    PosixScriptExecutor,
    ProcessScriptExecutor,
    WindowsScriptExecutor,
    default_script_executor,
)
from .execution.types import ExecutionRequest, RuntimeKind
from .interpreter import InterpreterExecutor, InterpreterSession
from .log import configure_logging
from .result import NO_CODE, NO_OUTPUT, ExecutionResult, ExecutionStatus
from .runner import CodeRunner, run_code
from .settings import ExecutorSettings

__all__ = [
    "NO_CODE",
    "NO_OUTPUT",
    "CodeRunner",
    "EncodingNormalizer",
    "ExecutionRequest",
    "ExecutionResult",
    "ExecutionStatus",
    "ExecutorSettings",
    "InterpreterExecutor",
    "InterpreterSession",
    "PosixScriptExecutor",
    "ProcessScriptExecutor",
    "RuntimeKind",
    "SessionClosedError",
    "SessionInitError",
    "SnippetExecError",
    "StagingError",
    "WindowsScriptExecutor",
    "configure_logging",
    "default_script_executor",
    "run_code",
]
