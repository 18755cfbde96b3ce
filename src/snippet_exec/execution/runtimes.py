from __future__ import annotations

from dataclasses import dataclass, replace
from typing import Mapping

POSIX = "posix"
WINDOWS = "windows"


@dataclass(frozen=True, slots=True)
class RuntimeSpec:
    """How one runtime is staged and launched on one platform family.

    Example:
        ```python
        spec = RuntimeSpec("bash", ".sh", ("bash",), prologue="#!/bin/bash\\n")
        ```
    """

    name: str
    extension: str
    command: tuple[str, ...]
    prologue: str = ""
    native_encoding: bool = False
    executable: bool = False

    def command_for(self, script_path: str) -> list[str]:
        """Return the full argument vector that runs ``script_path``.

        Example:
            ```python
            argv = spec.command_for("/tmp/code_exec_1.sh")
            ```
        """
        return [*self.command, script_path]


_POSIX_RUNTIMES = {
    "bash": RuntimeSpec(
        "bash",
        ".sh",
        ("bash",),
        prologue="#!/bin/bash\n",
        executable=True,
    ),
    "powershell": RuntimeSpec(
        "powershell",
        ".ps1",
        ("pwsh", "-ExecutionPolicy", "Bypass", "-File"),
        executable=True,
    ),
}

_WINDOWS_RUNTIMES = {
    "powershell": RuntimeSpec(
        "powershell",
        ".ps1",
        (
            "powershell.exe",
            "-ExecutionPolicy",
            "Bypass",
            "-OutputFormat",
            "Text",
            "-NonInteractive",
            "-File",
        ),
    ),
    "batch": RuntimeSpec(
        "batch",
        ".bat",
        ("cmd.exe", "/c"),
        prologue="@echo off\nchcp 65001 >nul 2>&1\n",
        native_encoding=True,
    ),
}

_DEFAULT_RUNTIME = {POSIX: "bash", WINDOWS: "batch"}
_TABLES = {POSIX: _POSIX_RUNTIMES, WINDOWS: _WINDOWS_RUNTIMES}


def runtimes_for_platform(family: str) -> dict[str, RuntimeSpec]:
    """Return the runtime table for a platform family.

    Example:
        ```python
        table = runtimes_for_platform("posix")
        ```
    """
    if family not in _TABLES:
        raise ValueError(f"Unknown platform family: {family}")
    return dict(_TABLES[family])


def default_runtime(family: str) -> str:
    """Return the runtime name used when a request names an unknown runtime.

    Example:
        ```python
        name = default_runtime("windows")
        ```
    """
    if family not in _DEFAULT_RUNTIME:
        raise ValueError(f"Unknown platform family: {family}")
    return _DEFAULT_RUNTIME[family]


def resolve_runtime(
    name: str,
    family: str,
    overrides: Mapping[str, list[str]] | None = None,
) -> RuntimeSpec:
    """Resolve a runtime name to its spec, falling back to the platform default.

    ``overrides`` replaces the command prefix of a runtime (the script path is
    still appended).

    Example:
        ```python
        spec = resolve_runtime("bash", "posix", {"bash": ["/opt/bash5/bin/bash"]})
        ```
    """
    table = runtimes_for_platform(family)
    spec = table.get(name) or table[default_runtime(family)]
    if overrides and spec.name in overrides:
        spec = replace(spec, command=tuple(overrides[spec.name]))
    return spec
