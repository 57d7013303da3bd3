"""Outcome of a single call: the raw response plus its terminal error.

:meth:`Request.do <httpchain.client.Request.do>` never raises.  Whatever
went wrong (a bad URL, an encode failure, a rejecting hook, a transport
error, a rejecting status handler) is stored on the :class:`Response` and
surfaces when the caller asks for it through :meth:`Response.result` or
:meth:`Response.unwrap`.
"""

from __future__ import annotations

from collections.abc import Iterator
from datetime import timedelta
from typing import Any, BinaryIO, Optional

import httpx

from httpchain.arena import DEFAULT_ARENA, close_body
from httpchain.codec import get_content_type
from httpchain.exceptions import Error


class Response:
    """The result of :meth:`Request.do <httpchain.client.Request.do>`.

    Attributes:
        method: HTTP method of the call.
        url: The resolved request URL.
        elapsed: Time spent in the transport.
        request_body: The body passed to ``set_body``, as given.
        request: The :class:`httpx.Request` that was sent, or ``None`` if
            the call failed before it was built.
        raw: The :class:`httpx.Response`, or ``None`` if none was received.
        error: The terminal error of the call, or ``None``.
        data: Whatever the status handler (or response callback) returned.
    """

    def __init__(self, method: str, url: str, request_body: Any = None) -> None:
        self.method = method
        self.url = url
        self.request_body = request_body
        self.elapsed = timedelta(0)
        self.request: Optional[httpx.Request] = None
        self.raw: Optional[httpx.Response] = None
        self.error: Optional[BaseException] = None
        self.data: Any = None

    def __repr__(self) -> str:
        return (
            f"<Response [{self.method} {self.url}] status={self.status_code} "
            f"error={self.error!r}>"
        )

    # ------------------------------------------------------------------ #
    # Raw response accessors
    # ------------------------------------------------------------------ #

    @property
    def status_code(self) -> int:
        """The response status code, ``0`` when no response was received."""
        return self.raw.status_code if self.raw is not None else 0

    @property
    def content_length(self) -> Optional[int]:
        """The ``Content-Length`` header as an int, if there is one."""
        if self.raw is None:
            return None
        value = self.raw.headers.get("Content-Length")
        if value is None or not value.isdigit():
            return None
        return int(value)

    @property
    def content_type(self) -> str:
        """The response Content-Type without parameters."""
        if self.raw is None:
            return ""
        return get_content_type(self.raw.headers)

    def close(self) -> None:
        """Drain and close the raw response body."""
        close_body(self.raw)

    # ------------------------------------------------------------------ #
    # Error handling
    # ------------------------------------------------------------------ #

    @property
    def error_message(self) -> str:
        """The terminal error as a string, ``""`` on success."""
        return "" if self.error is None else str(self.error)

    def result(self) -> Optional[Error]:
        """Return the terminal error as an :class:`Error`, or ``None``.

        An :class:`Error` is returned as is; any other exception is wrapped
        with the method, URL and status code of this call and stays
        reachable through :attr:`Error.err` and ``__cause__``.
        """
        if self.error is None:
            return None
        if isinstance(self.error, Error):
            return self.error
        return Error(self.method, self.url, self.status_code, err=self.error)

    def unwrap(self) -> Any:
        """Close the body and return :attr:`data`, raising the terminal error."""
        self.close()
        err = self.result()
        if err is not None:
            raise err
        return self.data

    def unwrap_with_status_code(self) -> tuple[int, Any]:
        """Like :meth:`unwrap`, but return ``(status_code, data)``."""
        data = self.unwrap()
        return self.status_code, data

    def _raise_for_error(self) -> httpx.Response:
        err = self.result()
        if err is not None:
            raise err
        if self.raw is None:
            raise Error(self.method, self.url, err=RuntimeError("no response received"))
        return self.raw

    # ------------------------------------------------------------------ #
    # Body access
    # ------------------------------------------------------------------ #

    def iter_body(self) -> Iterator[bytes]:
        """Yield the response body in chunks, closing it at the end."""
        raw = self._raise_for_error()
        try:
            yield from raw.iter_bytes()
        finally:
            self.close()

    def read_body(self) -> bytes:
        """Read the whole response body and close it."""
        with DEFAULT_ARENA.buffer() as buf:
            self.write_to(buf)
            return buf.getvalue()

    def write_to(self, writer: BinaryIO) -> int:
        """Copy the response body into *writer* and return the byte count."""
        total = 0
        for chunk in self.iter_body():
            writer.write(chunk)
            total += len(chunk)
        return total
