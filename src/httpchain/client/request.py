"""Per-call request builder.

A :class:`Request` is created by :meth:`Client.request
<httpchain.client.Client.request>` and aliases its client's configuration
until it mutates something (see :mod:`httpchain.client.common`).  It is a
single-threaded, single-use builder: configure it, call :meth:`Request.do`
once, and inspect the returned :class:`~httpchain.client.Response`.
"""

from __future__ import annotations

import functools
import inspect
import time
from collections.abc import Iterator
from datetime import timedelta
from typing import Any, Optional

import httpx

from httpchain.arena import DEFAULT_ARENA
from httpchain.client.common import CommonSettings, TimeoutValue
from httpchain.client.response import Response
from httpchain.codec import CHUNK_SIZE, BodyShape, classify_body, get_content_type
from httpchain.exceptions import ConfigError
from httpchain.handlers import request_of, select_handler
from httpchain.hooks import run_hook


def _iter_reader(reader: Any) -> Iterator[bytes]:
    while True:
        chunk = reader.read(CHUNK_SIZE)
        if not chunk:
            return
        yield chunk.encode("utf-8") if isinstance(chunk, str) else chunk


def _is_callback(dst: Any) -> bool:
    """Whether *dst* is a response callback rather than a decode target.

    Classes are callable too, so only functions, bound methods and partials
    count as callbacks.
    """
    return (
        inspect.isfunction(dst)
        or inspect.ismethod(dst)
        or isinstance(dst, functools.partial)
    )


class Request(CommonSettings):
    """A single HTTP call under construction.

    Args:
        parent: The settings to start from, aliased copy-on-write.
        method: HTTP method.
        url: The resolved request URL.
        error: A build error to report from :meth:`do` instead of sending.

    Example::

        resp = (
            client.post("/orders")
            .set_header("Idempotency-Key", key)
            .set_body({"sku": "A-1", "qty": 2})
            .do(Order)
        )
        order = resp.unwrap()
    """

    def __init__(
        self,
        parent: CommonSettings,
        method: str,
        url: str,
        error: Optional[BaseException] = None,
    ) -> None:
        self._inherit_settings(parent)
        self._method = method.upper()
        self._url = url
        self._error = error
        self._body: Any = None
        self._content: Any = None

    def __repr__(self) -> str:
        return f"<Request [{self._method} {self._url}]>"

    @property
    def method(self) -> str:
        return self._method

    @property
    def url(self) -> str:
        return self._url

    @property
    def body(self) -> Any:
        """The body passed to :meth:`set_body`, as given."""
        return self._body

    @property
    def error(self) -> Optional[BaseException]:
        """The build error recorded so far, if any."""
        return self._error

    def set_body(self, body: Any) -> Request:
        """Set the request body.

        Readers (objects with ``read``) are streamed as they are read.  Any
        other value is encoded right away with the body encoder, using the
        ``Content-Type`` set at this point.  An encode failure is recorded
        and reported by :meth:`do`.
        """
        if self._error is not None:
            return self
        self._body = body

        shape = classify_body(body)
        if shape is BodyShape.EMPTY:
            self._content = None
        elif shape is BodyShape.READER:
            self._content = _iter_reader(body)
        else:
            try:
                with DEFAULT_ARENA.buffer() as buf:
                    self._encoder(buf, get_content_type(self._headers), body)
                    self._content = buf.getvalue()
            except Exception as exc:
                self._error = exc
        return self

    def _build(self, timeout: TimeoutValue) -> httpx.Request:
        url = httpx.URL(self._url)
        if self._query:
            url = url.copy_merge_params(
                [(key, value) for key, values in self._query.items() for value in values]
            )

        if timeout is None:
            timeout = self._timeout

        transport = self._transport
        if isinstance(transport, httpx.Client):
            kwargs: dict[str, Any] = {} if timeout is None else {"timeout": timeout}
            return transport.build_request(
                self._method, url, headers=self._headers, content=self._content, **kwargs,
            )

        extensions = {} if timeout is None else {"timeout": httpx.Timeout(timeout).as_dict()}
        return httpx.Request(
            self._method, url, headers=self._headers, content=self._content, extensions=extensions,
        )

    def do(self, dst: Any = None, *, timeout: TimeoutValue = None) -> Response:
        """Send the request and dispatch the response.

        Args:
            dst: Where the body goes.  ``None`` skips decoding; a ``dict`` or
                ``list`` is filled in place; a type (pydantic model,
                dataclass, ``list[int]``, ...) is validated into; a function
                is called with the raw :class:`httpx.Response` instead of any
                status handler and its return value becomes the data.
            timeout: Timeout for this call, overriding :meth:`set_timeout`.

        Returns:
            The :class:`~httpchain.client.Response`.  Errors are never
            raised from here; check :attr:`Response.error` or call
            :meth:`Response.unwrap`.
        """
        resp = Response(self._method, self._url, self._body)
        try:
            self._send(resp, dst, timeout)
        finally:
            if self._observer is not None:
                self._observer(resp)
        return resp

    def _send(self, resp: Response, dst: Any, timeout: TimeoutValue) -> None:
        if self._error is not None:
            resp.error = self._error
            return

        try:
            request = self._build(timeout)
        except (httpx.InvalidURL, TypeError, ValueError) as exc:
            error = ConfigError(f"cannot build request to '{self._url}': {exc}")
            error.__cause__ = exc
            resp.error = error
            return

        try:
            request = run_hook(self._hook, request)
        except Exception as exc:
            resp.error = exc
            return
        resp.request = request

        start = time.perf_counter()
        try:
            raw = self._transport.send(request)
        except Exception as exc:
            resp.error = exc
            return
        finally:
            resp.elapsed = timedelta(seconds=time.perf_counter() - start)

        if request_of(raw) is None:
            raw.request = request
        resp.raw = raw

        try:
            if _is_callback(dst):
                resp.data = dst(raw)
                return
            selected = select_handler(self._handlers, raw.status_code, self._ignore_404)
            if selected is not None:
                _, handler = selected
                resp.data = handler(dst, raw)
        except Exception as exc:
            resp.error = exc
