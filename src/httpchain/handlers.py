"""Status-code scoped response handlers and the dispatcher that picks one.

A handler is a callable ``handler(dst, raw)`` receiving the caller's decode
destination and the raw :class:`httpx.Response`.  Its return value becomes
:attr:`Response.data <httpchain.client.Response.data>`; raising rejects the
response and the exception becomes the terminal error of the call.

Handlers live in a seven-slot :class:`HandlerTable` indexed by
:class:`StatusSlot`.  :func:`select_handler` walks the slots in precedence
order and returns the first one that is set and matches the status code:

1. ``ALL`` -- every response
2. ``H1XX`` ... ``H5XX`` -- responses of that status class; ``H4XX`` is
   skipped for 404 when the 404-ignore flag is on
3. ``DEFAULT`` -- every response no earlier slot took

If no slot matches, the call succeeds without touching the body.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from typing import Any, Callable, Iterator, Optional

import httpx

from httpchain.arena import DEFAULT_ARENA
from httpchain.codec import decode_data, get_content_type
from httpchain.exceptions import Error, HttpChainError

Handler = Callable[[Any, httpx.Response], Any]

ERROR_SNIPPET_LIMIT = 64 * 1024
"""Maximum number of body bytes kept in :attr:`Error.data <httpchain.exceptions.Error.data>`."""


class StatusSlot(enum.IntEnum):
    """Handler slots in precedence order.

    The values of the status-class slots equal the hundreds digit of the
    status codes they cover.
    """

    ALL = 0
    H1XX = 1
    H2XX = 2
    H3XX = 3
    H4XX = 4
    H5XX = 5
    DEFAULT = 6


@dataclass(frozen=True)
class HandlerTable:
    """Immutable seven-slot handler table, indexed by :class:`StatusSlot`.

    Every "mutation" returns a new table, so a table can be shared freely
    between a client and all the requests built from it.
    """

    handlers: tuple[Optional[Handler], ...] = (None,) * len(StatusSlot)

    def __getitem__(self, slot: StatusSlot) -> Optional[Handler]:
        return self.handlers[slot]

    def items(self) -> Iterator[tuple[StatusSlot, Handler]]:
        """Yield ``(slot, handler)`` for every filled slot in precedence order."""
        for slot in StatusSlot:
            handler = self.handlers[slot]
            if handler is not None:
                yield slot, handler

    def with_handler(self, slot: StatusSlot, handler: Optional[Handler]) -> HandlerTable:
        """Return a copy with *slot* set to *handler* (``None`` clears it)."""
        handlers = list(self.handlers)
        handlers[slot] = handler
        return HandlerTable(tuple(handlers))

    def cleared(self) -> HandlerTable:
        """Return an empty table."""
        return HandlerTable()


def _slot_matches(slot: StatusSlot, status: int, ignore_404: bool) -> bool:
    if slot is StatusSlot.ALL or slot is StatusSlot.DEFAULT:
        return True
    if slot is StatusSlot.H4XX and ignore_404 and status == 404:
        return False
    return slot * 100 <= status < (slot + 1) * 100


def select_handler(
    table: HandlerTable,
    status: int,
    ignore_404: bool = False,
) -> Optional[tuple[StatusSlot, Handler]]:
    """Pick the handler for a response with the given *status*.

    Args:
        table: The handler table of the request.
        status: Response status code.
        ignore_404: Skip the ``H4XX`` slot for status 404.  ``ALL`` and
            ``DEFAULT`` are never skipped.

    Returns:
        The ``(slot, handler)`` pair that won, or ``None`` when no handler
        applies.
    """
    for slot in StatusSlot:
        handler = table[slot]
        if handler is not None and _slot_matches(slot, status, ignore_404):
            return slot, handler
    return None


# ---------------------------------------------------------------------- #
# Built-in handlers
# ---------------------------------------------------------------------- #


def request_of(raw: httpx.Response) -> Optional[httpx.Request]:
    """Return the request attached to *raw*, or ``None`` if there is none."""
    try:
        return raw.request
    except RuntimeError:
        return None


def decode_response_body(dst: Any, raw: httpx.Response) -> Any:
    """Decode the body of *raw* into *dst* by the response Content-Type.

    Nothing is decoded, and ``None`` is returned, when *dst* is ``None``,
    the status is ``204 No Content``, the request was a ``HEAD``, or the
    body is empty.

    Raises:
        DecodeError: If the Content-Type is missing or unsupported, or the
            body does not fit *dst*.
    """
    if dst is None or raw.status_code == 204:
        return None
    request = request_of(raw)
    if request is not None and request.method == "HEAD":
        return None

    body = raw.read()
    if not body:
        return None
    return decode_data(dst, get_content_type(raw.headers), body)


def read_response_body_as_error(dst: Any, raw: httpx.Response) -> Any:
    """Turn an error response into a raised :class:`~httpchain.exceptions.Error`.

    3xx responses are not errors and return ``None``.  For everything else
    the body is captured (up to :data:`ERROR_SNIPPET_LIMIT` bytes, the rest
    is drained) and raised together with the method, URL and status code.

    Raises:
        Error: Always, unless the status is 3xx.
    """
    status = raw.status_code
    if 300 <= status < 400:
        return None

    err = Error(code=status, err=HttpChainError(f"got status code {status}"))
    request = request_of(raw)
    if request is not None:
        err = Error(request.method, str(request.url), status, err=err.err)

    with DEFAULT_ARENA.buffer() as buf:
        for chunk in raw.iter_bytes():
            remaining = ERROR_SNIPPET_LIMIT - buf.tell()
            if remaining > 0:
                buf.write(chunk[:remaining])
        data = buf.getvalue().decode("utf-8", errors="replace")

    raise err.with_data(data)
