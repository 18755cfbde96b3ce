from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any


def _default_settings_path() -> Path:
    """Return bundled default settings TOML path.

    Example:
        ```python
        path = _default_settings_path()
        ```
    """
    return Path(__file__).with_name("default_settings.toml")


def _read_settings_toml(path: Path) -> dict[str, Any]:
    """Read settings TOML and return the settings table.

    Example:
        ```python
        raw = _read_settings_toml(Path("/tmp/snippet_exec.toml"))
        ```
    """
    if not path.exists():
        return {
            "temp_dir": "",
            "poll_interval_seconds": 0.1,
            "read_chunk_size": 4096,
            "placeholder": "?",
            "interpreters": {},
        }
    raw = tomllib.loads(path.read_text(encoding="utf-8"))
    settings_obj = raw.get("settings", raw)
    if not isinstance(settings_obj, dict):
        raise ValueError("Settings config must be a TOML table")
    return settings_obj


def _interpreter_table(value: Any) -> dict[str, list[str]]:
    """Validate and normalize the runtime-name to command-prefix table.

    Example:
        ```python
        table = _interpreter_table({"bash": ["/usr/local/bin/bash"]})
        ```
    """
    if value is None:
        return {}
    if not isinstance(value, dict):
        raise ValueError("'interpreters' must be a table of command lists")
    out: dict[str, list[str]] = {}
    for name, command in value.items():
        if not isinstance(command, list) or not command:
            raise ValueError(f"Interpreter '{name}' must be a non-empty list of strings")
        if not all(isinstance(part, str) and part for part in command):
            raise ValueError(f"Interpreter '{name}' must contain only non-empty strings")
        out[str(name).lower()] = list(command)
    return out


_DEFAULT_SETTINGS_RAW = _read_settings_toml(_default_settings_path())
DEFAULT_TEMP_DIR = str(_DEFAULT_SETTINGS_RAW.get("temp_dir", "")) or None
DEFAULT_POLL_INTERVAL_SECONDS = float(_DEFAULT_SETTINGS_RAW.get("poll_interval_seconds", 0.1))
DEFAULT_READ_CHUNK_SIZE = int(_DEFAULT_SETTINGS_RAW.get("read_chunk_size", 4096))
DEFAULT_PLACEHOLDER = str(_DEFAULT_SETTINGS_RAW.get("placeholder", "?"))
DEFAULT_INTERPRETERS = _interpreter_table(_DEFAULT_SETTINGS_RAW.get("interpreters", {}))


@dataclass(slots=True)
class ExecutorSettings:
    """Tunables for script staging, output draining and output normalization.

    Example:
        ```python
        settings = ExecutorSettings(poll_interval_seconds=0.05, temp_dir="/var/tmp")
        ```
    """

    temp_dir: str | None = DEFAULT_TEMP_DIR
    poll_interval_seconds: float = DEFAULT_POLL_INTERVAL_SECONDS
    read_chunk_size: int = DEFAULT_READ_CHUNK_SIZE
    placeholder: str = DEFAULT_PLACEHOLDER
    interpreters: dict[str, list[str]] = field(
        default_factory=lambda: {k: v.copy() for k, v in DEFAULT_INTERPRETERS.items()}
    )
    config_path: str | None = None

    def __post_init__(self) -> None:
        """Validate numeric and placeholder fields after initialization.

        Example:
            ```python
            ExecutorSettings(read_chunk_size=8192)
            ```
        """
        if self.poll_interval_seconds <= 0:
            raise ValueError("poll_interval_seconds must be positive")
        if self.read_chunk_size <= 0:
            raise ValueError("read_chunk_size must be positive")
        if len(self.placeholder) != 1 or not self.placeholder.isascii():
            raise ValueError("placeholder must be a single ASCII character")

    @classmethod
    def from_file(cls, config_path: str) -> "ExecutorSettings":
        """Create a settings instance from a TOML file.

        Example:
            ```python
            settings = ExecutorSettings.from_file("/tmp/snippet_exec.toml")
            ```
        """
        path = Path(config_path)
        if not path.exists():
            raise ValueError(f"Settings file not found: {config_path}")
        raw = _read_settings_toml(path)
        return cls(
            temp_dir=str(raw.get("temp_dir", DEFAULT_TEMP_DIR or "")) or None,
            poll_interval_seconds=float(
                raw.get("poll_interval_seconds", DEFAULT_POLL_INTERVAL_SECONDS)
            ),
            read_chunk_size=int(raw.get("read_chunk_size", DEFAULT_READ_CHUNK_SIZE)),
            placeholder=str(raw.get("placeholder", DEFAULT_PLACEHOLDER)),
            interpreters=_interpreter_table(raw.get("interpreters", DEFAULT_INTERPRETERS)),
            config_path=config_path,
        )


def resolve_settings(
    settings: ExecutorSettings | None,
    settings_file: str | None,
) -> ExecutorSettings:
    """Resolve the effective settings object from an instance or a file path.

    Example:
        ```python
        settings = resolve_settings(None, "/tmp/snippet_exec.toml")
        ```
    """
    if settings is not None and settings_file is not None:
        raise ValueError("Provide either 'settings' or 'settings_file', not both")
    if settings_file is not None:
        return ExecutorSettings.from_file(settings_file)
    if settings is None:
        return ExecutorSettings()
    return settings
