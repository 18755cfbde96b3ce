from .encoding import EncodingNormalizer
from .engine import ScriptEngine
from .process_executor import (
    PosixScriptExecutor,
    ProcessScriptExecutor,
    WindowsScriptExecutor,
    default_script_executor,
)
from .runtimes import RuntimeSpec, resolve_runtime
from .staging import TempScript, stage_script
from .types import ExecutionRequest, RuntimeKind

__all__ = [
    "EncodingNormalizer",
    "ExecutionRequest",
    "PosixScriptExecutor",
    "ProcessScriptExecutor",
    "RuntimeKind",
    "RuntimeSpec",
    "ScriptEngine",
    "TempScript",
    "WindowsScriptExecutor",
    "default_script_executor",
    "resolve_runtime",
    "stage_script",
]
