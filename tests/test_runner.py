from pathlib import Path

import pytest

from snippet_exec import (
    NO_CODE,
    CodeRunner,
    ExecutionRequest,
    ExecutionResult,
    ExecutionStatus,
    ExecutorSettings,
    InterpreterSession,
    RuntimeKind,
    run_code,
)


class _FakeScriptEngine:
    def __init__(self) -> None:
        self.calls: list[tuple[str, str, object]] = []

    def execute(self, runtime, code, *, on_launch=None) -> ExecutionResult:
        self.calls.append((str(getattr(runtime, "value", runtime)), code, on_launch))
        return ExecutionResult(ExecutionStatus.SUCCESS, f"ran {code}")


def test_python_requests_use_the_embedded_session() -> None:
    engine = _FakeScriptEngine()
    with CodeRunner(script_executor=engine) as runner:
        runner.run_code("x = 5")
        result = runner.run(ExecutionRequest(RuntimeKind.PYTHON, "x"))
    assert result == ExecutionResult(ExecutionStatus.SUCCESS, "5")
    assert engine.calls == []


def test_shell_requests_go_to_the_script_executor() -> None:
    engine = _FakeScriptEngine()
    marker = object()
    with CodeRunner(script_executor=engine) as runner:
        result = runner.run(ExecutionRequest("bash", "echo hello"), on_launch=marker)  # type: ignore[arg-type]
    assert result.output == "ran echo hello"
    assert engine.calls == [("bash", "echo hello", marker)]


def test_blank_input_never_reaches_an_executor() -> None:
    engine = _FakeScriptEngine()
    runner = CodeRunner(script_executor=engine)
    for runtime in RuntimeKind:
        result = runner.run_code("  \n ", runtime)
        assert result == ExecutionResult(ExecutionStatus.SUCCESS, NO_CODE)
    assert engine.calls == []
    assert runner._interpreter is None


def test_runtime_names_are_case_insensitive() -> None:
    engine = _FakeScriptEngine()
    runner = CodeRunner(script_executor=engine)
    assert runner.run_code("1 + 1", "Python").output == "2"
    assert engine.calls == []
    runner.close()


def test_close_tears_down_injected_session() -> None:
    session = InterpreterSession()
    runner = CodeRunner(session=session)
    runner.run_code("value = 1")
    runner.close()
    assert session.closed


def test_close_without_use_still_closes_injected_session() -> None:
    session = InterpreterSession()
    CodeRunner(session=session).close()
    assert session.closed


def test_run_code_helper_uses_fresh_session() -> None:
    assert run_code("1 + 1").output == "2"
    assert run_code("counter = 1").ok
    result = run_code("counter")
    assert result.status is ExecutionStatus.ERROR
    assert "NameError" in result.output


def test_run_code_rejects_settings_and_settings_file_together(tmp_path: Path) -> None:
    settings_file = tmp_path / "settings.toml"
    settings_file.write_text("[settings]\nread_chunk_size = 1024\n", encoding="utf-8")

    with pytest.raises(ValueError, match="Provide either 'settings' or 'settings_file'"):
        run_code("1", settings=ExecutorSettings(), settings_file=str(settings_file))
