"""Settings shared by :class:`~httpchain.client.Client` and its requests.

:class:`CommonSettings` holds everything a call can be configured with:
transport, timeout, headers, query, hook chain, body encoder, status
handlers, the 404-ignore flag and the response observer.  Both the
long-lived client and the short-lived per-call request inherit from it, so
they expose the same chainable mutators.

Copy-on-write
-------------
A request starts out *aliasing* its client's header map, query map and hook
value.  Three independent ownership flags record whether each of those is
still shared.  The first mutation of a field clones it (every entry is
preserved) and flips its flag; later mutations work on the private copy.  A
client always owns its fields.

The handler table is immutable and the codec registry is process-wide, so
neither needs a flag.
"""

from __future__ import annotations

from collections.abc import Mapping, Sequence
from typing import TYPE_CHECKING, Callable, Optional, TypeVar, Union

import httpx

from httpchain.codec import HEADER_ACCEPT, HEADER_CONTENT_TYPE, Encoder, encode_data
from httpchain.handlers import Handler, HandlerTable, StatusSlot
from httpchain.hooks import Hook, HookValue, Hooks, clone_hook, compose_hook

if TYPE_CHECKING:
    from httpchain.client.response import Response
    from httpchain.client.transport import Transport

Observer = Callable[["Response"], None]
"""Called once per finished call with the populated response."""

TimeoutValue = Union[None, float, httpx.Timeout]

Self = TypeVar("Self", bound="CommonSettings")


class CommonSettings:
    """Chainable configuration common to clients and requests.

    Every mutator returns ``self`` so calls can be chained::

        client.set_header("User-Agent", "billing/1.2").add_query("v", "2")
    """

    _transport: Transport
    _timeout: TimeoutValue
    _ignore_404: bool
    _observer: Optional[Observer]
    _encoder: Encoder
    _handlers: HandlerTable

    _headers: httpx.Headers
    _owns_headers: bool
    _query: dict[str, list[str]]
    _owns_query: bool
    _hook: HookValue
    _owns_hook: bool

    def _init_settings(self, transport: Transport) -> None:
        self._transport = transport
        self._timeout = None
        self._ignore_404 = False
        self._observer = None
        self._encoder = encode_data
        self._handlers = HandlerTable()
        self._headers = httpx.Headers()
        self._owns_headers = True
        self._query = {}
        self._owns_query = True
        self._hook = None
        self._owns_hook = True

    def _inherit_settings(self, parent: CommonSettings) -> None:
        """Alias every field of *parent*, owning none of the mutable ones."""
        self._transport = parent._transport
        self._timeout = parent._timeout
        self._ignore_404 = parent._ignore_404
        self._observer = parent._observer
        self._encoder = parent._encoder
        self._handlers = parent._handlers
        self._headers = parent._headers
        self._owns_headers = False
        self._query = parent._query
        self._owns_query = False
        self._hook = parent._hook
        self._owns_hook = False

    def _copy_settings(self, parent: CommonSettings) -> None:
        """Take private copies of every mutable field of *parent*."""
        self._inherit_settings(parent)
        self._headers = parent._headers.copy()
        self._owns_headers = True
        self._query = {key: list(values) for key, values in parent._query.items()}
        self._owns_query = True
        self._hook = clone_hook(parent._hook)
        self._owns_hook = True

    # ------------------------------------------------------------------ #
    # Plain settings
    # ------------------------------------------------------------------ #

    def ignore_404(self: Self, flag: bool = True) -> Self:
        """Do not route 404 responses to the 4xx handler."""
        self._ignore_404 = flag
        return self

    def on_response(self: Self, callback: Optional[Observer]) -> Self:
        """Set the observer called after every call; ``None`` disables it."""
        self._observer = callback
        return self

    def get_transport(self) -> Transport:
        return self._transport

    def set_transport(self: Self, transport: Transport) -> Self:
        """Send through *transport*, any object with ``send(request)``."""
        if transport is None:
            raise ValueError("set_transport: the transport must not be None")
        self._transport = transport
        return self

    def get_timeout(self) -> TimeoutValue:
        return self._timeout

    def set_timeout(self: Self, timeout: TimeoutValue) -> Self:
        """Set the default timeout in seconds; ``None`` uses the transport's."""
        self._timeout = timeout
        return self

    def set_body_encoder(self: Self, encoder: Encoder) -> Self:
        """Replace the function that serializes request bodies."""
        self._encoder = encoder
        return self

    # ------------------------------------------------------------------ #
    # Hooks
    # ------------------------------------------------------------------ #

    def set_hook(self: Self, hook: HookValue) -> Self:
        """Replace the hook (single, :class:`Hooks`, or ``None``)."""
        self._hook = hook
        self._owns_hook = True
        return self

    def add_hook(self: Self, hook: Hook) -> Self:
        """Append *hook* to the hook chain."""
        self._hook, self._owns_hook = compose_hook(self._hook, hook, self._owns_hook)
        return self

    @property
    def hooks(self) -> list[Hook]:
        """The registered hooks in order, as a new list."""
        if self._hook is None:
            return []
        if isinstance(self._hook, Hooks):
            return list(self._hook)
        return [self._hook]

    # ------------------------------------------------------------------ #
    # Query
    # ------------------------------------------------------------------ #

    def _own_query(self) -> dict[str, list[str]]:
        if not self._owns_query:
            self._query = {key: list(values) for key, values in self._query.items()}
            self._owns_query = True
        return self._query

    @property
    def query(self) -> dict[str, list[str]]:
        """A copy of the query parameters."""
        return {key: list(values) for key, values in self._query.items()}

    def add_queries(self: Self, queries: Mapping[str, Sequence[str]]) -> Self:
        """Set every key of *queries* to its list of values."""
        if queries:
            query = self._own_query()
            for key, values in queries.items():
                query[key] = list(values)
        return self

    def add_query_map(self: Self, queries: Mapping[str, str]) -> Self:
        """Append one value per key of *queries*."""
        if queries:
            query = self._own_query()
            for key, value in queries.items():
                query.setdefault(key, []).append(value)
        return self

    def add_query(self: Self, key: str, value: str) -> Self:
        """Append *value* to the query parameter *key*."""
        self._own_query().setdefault(key, []).append(value)
        return self

    def set_query(self: Self, key: str, value: str) -> Self:
        """Replace every value of the query parameter *key* with *value*."""
        self._own_query()[key] = [value]
        return self

    # ------------------------------------------------------------------ #
    # Headers
    # ------------------------------------------------------------------ #

    def _own_headers(self) -> httpx.Headers:
        if not self._owns_headers:
            self._headers = self._headers.copy()
            self._owns_headers = True
        return self._headers

    def _append_headers(self, items: list[tuple[str, str]]) -> None:
        self._headers = httpx.Headers(self._headers.raw + items)
        self._owns_headers = True

    @property
    def headers(self) -> httpx.Headers:
        """A copy of the request headers."""
        return self._headers.copy()

    def add_headers(self: Self, headers: Mapping[str, Sequence[str]]) -> Self:
        """Set every key of *headers* to its list of values."""
        if headers:
            own = self._own_headers()
            for key, values in headers.items():
                own.pop(key, None)
            self._append_headers([(key, value) for key, values in headers.items() for value in values])
        return self

    def add_header_map(self: Self, headers: Mapping[str, str]) -> Self:
        """Append one value per key of *headers*."""
        if headers:
            self._append_headers(list(headers.items()))
        return self

    def add_header(self: Self, key: str, value: str) -> Self:
        """Append *value* to the header *key*."""
        self._append_headers([(key, value)])
        return self

    def set_header(self: Self, key: str, value: str) -> Self:
        """Replace every value of the header *key* with *value*."""
        self._own_headers()[key] = value
        return self

    def set_content_type(self: Self, content_type: str) -> Self:
        return self.set_header(HEADER_CONTENT_TYPE, content_type)

    def set_accepts(self: Self, *accepts: str) -> Self:
        """Replace the ``Accept`` header with one value per argument."""
        return self.add_headers({HEADER_ACCEPT: accepts})

    def add_accept(self: Self, content_type: str) -> Self:
        return self.add_header(HEADER_ACCEPT, content_type)

    # ------------------------------------------------------------------ #
    # Response handlers
    # ------------------------------------------------------------------ #

    def _set_handler(self: Self, slot: StatusSlot, handler: Optional[Handler]) -> Self:
        self._handlers = self._handlers.with_handler(slot, handler)
        return self

    @property
    def handlers(self) -> HandlerTable:
        return self._handlers

    def clear_all_response_handlers(self: Self) -> Self:
        """Remove every response handler, including the built-in ones."""
        self._handlers = self._handlers.cleared()
        return self

    def set_response_handler(self: Self, handler: Optional[Handler]) -> Self:
        """Handle every response with *handler*, ahead of all other slots."""
        return self._set_handler(StatusSlot.ALL, handler)

    def set_response_handler_1xx(self: Self, handler: Optional[Handler]) -> Self:
        return self._set_handler(StatusSlot.H1XX, handler)

    def set_response_handler_2xx(self: Self, handler: Optional[Handler]) -> Self:
        return self._set_handler(StatusSlot.H2XX, handler)

    def set_response_handler_3xx(self: Self, handler: Optional[Handler]) -> Self:
        return self._set_handler(StatusSlot.H3XX, handler)

    def set_response_handler_4xx(self: Self, handler: Optional[Handler]) -> Self:
        return self._set_handler(StatusSlot.H4XX, handler)

    def set_response_handler_5xx(self: Self, handler: Optional[Handler]) -> Self:
        return self._set_handler(StatusSlot.H5XX, handler)

    def set_response_handler_default(self: Self, handler: Optional[Handler]) -> Self:
        """Handle every response that no other slot took."""
        return self._set_handler(StatusSlot.DEFAULT, handler)
