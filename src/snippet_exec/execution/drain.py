"""Concurrent draining of a child's stdout and stderr pipes.

A child that fills one pipe blocks until the parent reads it.  Reading one
pipe to EOF before touching the other therefore deadlocks as soon as the
child writes enough to the second one.  Both strategies here read whatever is
available on either pipe and keep each channel's bytes in order.
"""

from __future__ import annotations

import os
import selectors
import subprocess
import threading
from typing import IO


def _pipes(process: subprocess.Popen[bytes]) -> tuple[IO[bytes], IO[bytes]]:
    """Return the child's stdout and stderr pipes.

    Raises ValueError when the process was not started with both pipes.

    Example:
        ```python
        stdout, stderr = _pipes(process)
        ```
    """
    if process.stdout is None or process.stderr is None:
        raise ValueError("process must be started with stdout=PIPE and stderr=PIPE")
    return process.stdout, process.stderr


def drain_polling(
    process: subprocess.Popen[bytes],
    *,
    poll_interval: float,
    chunk_size: int,
) -> tuple[bytes, bytes]:
    """Poll both pipes with a selector until the child is done writing.

    The loop ends when both pipes reach EOF, or when the process has exited
    and a zero-timeout poll finds nothing left to read on either pipe.  That
    second condition stops a background grandchild holding the pipes open from
    keeping the call alive.

    Example:
        ```python
        out, err = drain_polling(process, poll_interval=0.1, chunk_size=4096)
        ```
    """
    stdout, stderr = _pipes(process)
    buffers = {stdout.fileno(): bytearray(), stderr.fileno(): bytearray()}

    with selectors.DefaultSelector() as selector:
        for fd in buffers:
            selector.register(fd, selectors.EVENT_READ)

        while selector.get_map():
            exited = process.poll() is not None
            events = selector.select(timeout=0 if exited else poll_interval)
            if not events:
                if exited:
                    break
                continue
            for key, _ in events:
                chunk = os.read(key.fd, chunk_size)
                if chunk:
                    buffers[key.fd].extend(chunk)
                else:
                    selector.unregister(key.fd)

    return bytes(buffers[stdout.fileno()]), bytes(buffers[stderr.fileno()])


def _pump(stream: IO[bytes], sink: bytearray, chunk_size: int) -> None:
    """Copy ``stream`` into ``sink`` until EOF.

    Example:
        ```python
        _pump(process.stdout, buffer, 4096)
        ```
    """
    read = getattr(stream, "read1", stream.read)
    while True:
        chunk = read(chunk_size)
        if not chunk:
            return
        sink.extend(chunk)


def drain_threaded(
    process: subprocess.Popen[bytes],
    *,
    chunk_size: int,
) -> tuple[bytes, bytes]:
    """Drain both pipes on two reader threads, joined after the process exits.

    Used where pipes cannot be registered with a selector (Windows).

    Example:
        ```python
        out, err = drain_threaded(process, chunk_size=4096)
        ```
    """
    stdout, stderr = _pipes(process)
    out_buf = bytearray()
    err_buf = bytearray()
    readers = [
        threading.Thread(
            target=_pump,
            args=(stdout, out_buf, chunk_size),
            name="snippet-exec-stdout",
            daemon=True,
        ),
        threading.Thread(
            target=_pump,
            args=(stderr, err_buf, chunk_size),
            name="snippet-exec-stderr",
            daemon=True,
        ),
    ]
    for reader in readers:
        reader.start()
    process.wait()
    for reader in readers:
        reader.join()
    return bytes(out_buf), bytes(err_buf)
