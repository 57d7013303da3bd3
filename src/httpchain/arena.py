"""Reusable byte-buffer pool for body staging and response draining.

Request bodies are encoded into a pooled :class:`io.BytesIO` before they are
handed to the transport, and error responses are captured into one before
their snippet is attached to an :class:`~httpchain.exceptions.Error`.  The
pool keeps those buffers around between calls instead of allocating a new one
for every request.

Buffers are always borrowed through :meth:`BufferArena.buffer`, a context
manager, so every acquire is paired with exactly one release on every exit
path, errors included.  A buffer is reset before it goes back into the pool.
"""

from __future__ import annotations

import io
import threading
from collections.abc import Iterator
from contextlib import contextmanager
from typing import Optional

import httpx

DEFAULT_MAX_IDLE = 64
"""Maximum number of idle buffers kept by an arena."""

DEFAULT_MAX_RETAINED = 64 * 1024
"""Buffers that grew beyond this many bytes are dropped instead of pooled."""


class BufferArena:
    """A bounded, thread-safe pool of :class:`io.BytesIO` buffers.

    Args:
        max_idle: Upper bound on idle buffers held by the pool.  Buffers
            released while the pool is full are discarded.
        max_retained: Buffers whose size exceeds this many bytes are not
            returned to the pool, so one large body does not pin memory.

    Example::

        arena = BufferArena()
        with arena.buffer() as buf:
            buf.write(b"payload")
            data = buf.getvalue()
    """

    def __init__(
        self,
        max_idle: int = DEFAULT_MAX_IDLE,
        max_retained: int = DEFAULT_MAX_RETAINED,
    ) -> None:
        self._max_idle = max_idle
        self._max_retained = max_retained
        self._idle: list[io.BytesIO] = []
        self._lock = threading.Lock()

    @property
    def idle(self) -> int:
        """Number of buffers currently waiting in the pool."""
        with self._lock:
            return len(self._idle)

    @contextmanager
    def buffer(self) -> Iterator[io.BytesIO]:
        """Borrow an empty buffer for the duration of the ``with`` block."""
        buf = self._acquire()
        try:
            yield buf
        finally:
            self._release(buf)

    def _acquire(self) -> io.BytesIO:
        with self._lock:
            if self._idle:
                return self._idle.pop()
        return io.BytesIO()

    def _release(self, buf: io.BytesIO) -> None:
        size = buf.seek(0, io.SEEK_END)
        buf.seek(0)
        buf.truncate()
        if size > self._max_retained:
            return
        with self._lock:
            if len(self._idle) < self._max_idle:
                self._idle.append(buf)


DEFAULT_ARENA = BufferArena()
"""Process-wide arena shared by every client."""


def close_body(raw: Optional[httpx.Response]) -> None:
    """Drain what is left of *raw*'s body and close it.

    Does nothing when *raw* is ``None``.  Draining first lets the transport
    put the connection back into its pool.
    """
    if raw is None:
        return
    try:
        if not raw.is_stream_consumed and not raw.is_closed:
            for _ in raw.iter_raw():
                pass
    finally:
        raw.close()
