from __future__ import annotations

import contextlib
import os
import tempfile
from dataclasses import dataclass
from pathlib import Path
from typing import Callable, Iterator

from ..errors import StagingError
from ..log import get_logger
from .runtimes import RuntimeSpec

logger = get_logger(__name__)

SCRIPT_PREFIX = "code_exec_"


@dataclass(frozen=True, slots=True)
class TempScript:
    """A staged script file together with the runtime that will run it.

    Example:
        ```python
        script = TempScript(Path("/tmp/code_exec_42_x.sh"), spec)
        ```
    """

    path: Path
    runtime: RuntimeSpec

    @property
    def command(self) -> list[str]:
        """Return the argument vector that runs this script.

        Example:
            ```python
            argv = script.command
            ```
        """
        return self.runtime.command_for(str(self.path))


def script_payload(
    code: str,
    spec: RuntimeSpec,
    encode_native: Callable[[str], bytes] | None = None,
) -> bytes:
    """Build the on-disk bytes of a script: prologue, snippet, trailing newline.

    Example:
        ```python
        data = script_payload("echo hi", spec)
        ```
    """
    text = spec.prologue + code
    if not text.endswith("\n"):
        text += "\n"
    if spec.native_encoding and encode_native is not None:
        return encode_native(text)
    return text.encode("utf-8")


def _remove(path: Path) -> None:
    """Delete a staged artifact, logging instead of raising on failure.

    Example:
        ```python
        _remove(Path("/tmp/code_exec_42_x.sh"))
        ```
    """
    try:
        path.unlink(missing_ok=True)
    except OSError as exc:
        logger.warning("Could not remove staged script %s: %s", path, exc)
    else:
        logger.debug("Removed staged script %s", path)


@contextlib.contextmanager
def stage_script(
    code: str,
    spec: RuntimeSpec,
    *,
    directory: str | None = None,
    encode_native: Callable[[str], bytes] | None = None,
) -> Iterator[TempScript]:
    """Write ``code`` to a fresh temp script and delete it when the block exits.

    The file name is unique per call (``mkstemp``), so concurrent invocations
    can share one directory.  Write or permission failures raise
    :class:`StagingError` after the partial file has been removed.

    Example:
        ```python
        with stage_script("echo hi", spec) as script:
            subprocess.run(script.command)
        ```
    """
    try:
        fd, raw_path = tempfile.mkstemp(
            prefix=f"{SCRIPT_PREFIX}{os.getpid()}_",
            suffix=spec.extension,
            dir=directory,
        )
    except OSError as exc:
        raise StagingError(f"could not create temp script: {exc}") from exc

    path = Path(raw_path)
    try:
        try:
            with os.fdopen(fd, "wb") as handle:
                handle.write(script_payload(code, spec, encode_native))
            if spec.executable and os.name != "nt":
                path.chmod(0o700)
        except OSError as exc:
            raise StagingError(f"could not write temp script {path}: {exc}") from exc
        logger.debug("Staged %s script at %s", spec.name, path)
        yield TempScript(path=path, runtime=spec)
    finally:
        _remove(path)
