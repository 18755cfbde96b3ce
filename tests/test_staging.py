import os
import stat
from pathlib import Path

import pytest

from snippet_exec.errors import StagingError
from snippet_exec.execution.runtimes import RuntimeSpec, resolve_runtime
from snippet_exec.execution.staging import SCRIPT_PREFIX, script_payload, stage_script

BASH = resolve_runtime("bash", "posix")
BATCH = resolve_runtime("batch", "windows")


def test_payload_has_prologue_and_trailing_newline() -> None:
    assert script_payload("echo hi", BASH) == b"#!/bin/bash\necho hi\n"
    assert script_payload("echo hi\n", BASH) == b"#!/bin/bash\necho hi\n"


def test_payload_is_transcoded_for_native_runtimes() -> None:
    payload = script_payload("echo café", BATCH, lambda text: text.encode("cp1252"))
    assert payload == b"@echo off\nchcp 65001 >nul 2>&1\necho caf\xe9\n"


def test_payload_without_transcoder_stays_utf8() -> None:
    assert script_payload("echo café", BATCH).endswith("café\n".encode("utf-8"))


def test_staged_script_exists_only_inside_block(tmp_path: Path) -> None:
    with stage_script("echo hi", BASH, directory=str(tmp_path)) as script:
        assert script.path.exists()
        assert script.path.parent == tmp_path
        assert script.path.name.startswith(f"{SCRIPT_PREFIX}{os.getpid()}_")
        assert script.path.suffix == ".sh"
        assert script.path.read_bytes() == b"#!/bin/bash\necho hi\n"
        assert script.command == ["bash", str(script.path)]
    assert not script.path.exists()
    assert list(tmp_path.iterdir()) == []


@pytest.mark.skipif(os.name == "nt", reason="POSIX permission bits")
def test_staged_script_is_owner_executable(tmp_path: Path) -> None:
    with stage_script("echo hi", BASH, directory=str(tmp_path)) as script:
        mode = stat.S_IMODE(script.path.stat().st_mode)
        assert mode == 0o700


def test_staged_script_removed_when_block_raises(tmp_path: Path) -> None:
    with pytest.raises(RuntimeError, match="interrupted"):
        with stage_script("echo hi", BASH, directory=str(tmp_path)):
            raise RuntimeError("interrupted")
    assert list(tmp_path.iterdir()) == []


def test_concurrent_stagings_get_distinct_paths(tmp_path: Path) -> None:
    with stage_script("a", BASH, directory=str(tmp_path)) as first:
        with stage_script("b", BASH, directory=str(tmp_path)) as second:
            assert first.path != second.path
    assert list(tmp_path.iterdir()) == []


def test_missing_directory_raises_staging_error(tmp_path: Path) -> None:
    with pytest.raises(StagingError, match="could not create temp script"):
        with stage_script("echo hi", BASH, directory=str(tmp_path / "missing")):
            pass


def test_write_failure_raises_staging_error_and_cleans_up(tmp_path: Path) -> None:
    def _broken(text: str) -> bytes:
        raise OSError("device full")

    spec = RuntimeSpec("batch", ".bat", ("cmd.exe", "/c"), native_encoding=True)
    with pytest.raises(StagingError, match="device full"):
        with stage_script("echo hi", spec, directory=str(tmp_path), encode_native=_broken):
            pass
    assert list(tmp_path.iterdir()) == []
