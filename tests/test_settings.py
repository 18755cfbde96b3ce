from pathlib import Path

import pytest

from snippet_exec.settings import ExecutorSettings, resolve_settings


def test_bundled_defaults() -> None:
    settings = ExecutorSettings()
    assert settings.temp_dir is None
    assert settings.poll_interval_seconds == 0.1
    assert settings.read_chunk_size == 4096
    assert settings.placeholder == "?"
    assert settings.interpreters == {}


def test_settings_file_overrides_values(tmp_path: Path) -> None:
    settings_file = tmp_path / "snippet_exec.toml"
    settings_file.write_text(
        (
            "[settings]\n"
            f"temp_dir = \"{tmp_path.as_posix()}\"\n"
            "poll_interval_seconds = 0.25\n"
            "read_chunk_size = 1024\n"
            "\n"
            "[settings.interpreters]\n"
            "Bash = [\"/usr/local/bin/bash\", \"--noprofile\"]\n"
        ),
        encoding="utf-8",
    )

    settings = ExecutorSettings.from_file(str(settings_file))
    assert settings.temp_dir == tmp_path.as_posix()
    assert settings.poll_interval_seconds == 0.25
    assert settings.read_chunk_size == 1024
    assert settings.placeholder == "?"
    assert settings.interpreters == {"bash": ["/usr/local/bin/bash", "--noprofile"]}
    assert settings.config_path == str(settings_file)


def test_settings_file_without_table_header(tmp_path: Path) -> None:
    settings_file = tmp_path / "flat.toml"
    settings_file.write_text("placeholder = \"#\"\n", encoding="utf-8")
    assert ExecutorSettings.from_file(str(settings_file)).placeholder == "#"


def test_missing_settings_file_is_rejected(tmp_path: Path) -> None:
    with pytest.raises(ValueError, match="Settings file not found"):
        ExecutorSettings.from_file(str(tmp_path / "nope.toml"))


@pytest.mark.parametrize(
    "kwargs, message",
    [
        ({"poll_interval_seconds": 0}, "poll_interval_seconds"),
        ({"read_chunk_size": -1}, "read_chunk_size"),
        ({"placeholder": "??"}, "placeholder"),
        ({"placeholder": "é"}, "placeholder"),
    ],
)
def test_invalid_values_are_rejected(kwargs: dict, message: str) -> None:
    with pytest.raises(ValueError, match=message):
        ExecutorSettings(**kwargs)


def test_invalid_interpreter_table_is_rejected(tmp_path: Path) -> None:
    settings_file = tmp_path / "bad.toml"
    settings_file.write_text("[settings.interpreters]\nbash = []\n", encoding="utf-8")
    with pytest.raises(ValueError, match="non-empty list"):
        ExecutorSettings.from_file(str(settings_file))


def test_resolve_settings() -> None:
    explicit = ExecutorSettings(read_chunk_size=10)
    assert resolve_settings(explicit, None) is explicit
    assert resolve_settings(None, None) == ExecutorSettings()
