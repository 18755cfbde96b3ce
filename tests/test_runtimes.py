import pytest

from snippet_exec.execution.runtimes import (
    default_runtime,
    resolve_runtime,
    runtimes_for_platform,
)


def test_posix_runtimes() -> None:
    bash = resolve_runtime("bash", "posix")
    assert bash.extension == ".sh"
    assert bash.prologue == "#!/bin/bash\n"
    assert bash.executable
    assert bash.command_for("/tmp/s.sh") == ["bash", "/tmp/s.sh"]

    pwsh = resolve_runtime("powershell", "posix")
    assert pwsh.extension == ".ps1"
    assert pwsh.command_for("/tmp/s.ps1") == ["pwsh", "-ExecutionPolicy", "Bypass", "-File", "/tmp/s.ps1"]


def test_windows_runtimes() -> None:
    batch = resolve_runtime("batch", "windows")
    assert batch.extension == ".bat"
    assert batch.native_encoding
    assert batch.prologue.startswith("@echo off\n")
    assert "chcp 65001" in batch.prologue
    assert batch.command == ("cmd.exe", "/c")

    powershell = resolve_runtime("powershell", "windows")
    assert "-NonInteractive" in powershell.command
    assert not powershell.native_encoding


def test_unknown_runtime_falls_back_to_platform_default() -> None:
    assert resolve_runtime("fish", "posix").name == default_runtime("posix") == "bash"
    assert resolve_runtime("bash", "windows").name == default_runtime("windows") == "batch"


def test_command_override_keeps_other_fields() -> None:
    spec = resolve_runtime("bash", "posix", {"bash": ["/opt/bash/bin/bash", "--norc"]})
    assert spec.command == ("/opt/bash/bin/bash", "--norc")
    assert spec.extension == ".sh"
    assert spec.prologue == "#!/bin/bash\n"


def test_unknown_platform_family() -> None:
    with pytest.raises(ValueError, match="Unknown platform family"):
        runtimes_for_platform("plan9")
