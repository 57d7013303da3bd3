"""Long-lived, shareable HTTP client.

This module provides :class:`Client`, which holds the configuration shared
by every call: base URL, default headers and query, hook chain, status
handlers, body encoder, transport and response observer.  Calls are built
with :meth:`Client.request` (or the verb helpers), which returns a
:class:`~httpchain.client.Request` that borrows that configuration
copy-on-write, so building a request costs the same no matter how much the
client carries.

A client is safe to share between threads for building requests, as long as
it is no longer being configured.

See Also:
    :mod:`httpchain.default` for module-level helpers around a global client.
"""

from __future__ import annotations

from typing import TYPE_CHECKING, Optional

import httpx

from httpchain.client.common import CommonSettings
from httpchain.client.request import Request
from httpchain.codec import HEADER_ACCEPT, HEADER_CONTENT_TYPE, MIME_JSON, MIME_JSON_UTF8
from httpchain.exceptions import ConfigError
from httpchain.handlers import decode_response_body, read_response_body_as_error
from httpchain.log import log_on_response

if TYPE_CHECKING:
    from httpchain.client.transport import Transport
    from httpchain.models import ClientProfile


class Client(CommonSettings):
    """HTTP client with shared configuration for many calls.

    Defaults:

    - ``Accept: application/json`` and
      ``Content-Type: application/json; charset=UTF-8``
    - 2xx responses are decoded into the destination
      (:func:`~httpchain.handlers.decode_response_body`)
    - every other status except 3xx becomes an
      :class:`~httpchain.exceptions.Error` through the ``DEFAULT`` slot
      (:func:`~httpchain.handlers.read_response_body_as_error`)
    - every call is logged at DEBUG level
      (:func:`~httpchain.log.log_on_response`)

    Args:
        transport: Where prepared requests are sent.  When ``None``, a new
            :class:`httpx.Client` is created and closed by :meth:`close`.

    Example::

        with Client().set_base_url("https://api.example.com") as client:
            user = client.get("/users/42").do(User).unwrap()
    """

    def __init__(self, transport: Optional[Transport] = None) -> None:
        self._owns_transport = transport is None
        self._init_settings(httpx.Client() if transport is None else transport)
        self._base_url = ""

        self._headers[HEADER_ACCEPT] = MIME_JSON
        self._headers[HEADER_CONTENT_TYPE] = MIME_JSON_UTF8
        self.set_response_handler_2xx(decode_response_body)
        self.set_response_handler_default(read_response_body_as_error)
        self.on_response(log_on_response)

    def __repr__(self) -> str:
        return f"<Client base_url={self._base_url!r}>"

    # ------------------------------------------------------------------ #
    # Context manager
    # ------------------------------------------------------------------ #

    def __enter__(self) -> Client:
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close the transport if this client created it."""
        if self._owns_transport:
            close = getattr(self._transport, "close", None)
            if callable(close):
                close()

    # ------------------------------------------------------------------ #
    # Construction
    # ------------------------------------------------------------------ #

    @classmethod
    def from_profile(
        cls,
        profile: ClientProfile,
        transport: Optional[Transport] = None,
    ) -> Client:
        """Build a client configured from a saved :class:`~httpchain.models.ClientProfile`."""
        client = cls(transport)
        if profile.base_url:
            client.set_base_url(profile.base_url)
        if profile.content_type:
            client.set_content_type(profile.content_type)
        if profile.accept:
            client.set_accepts(*profile.accept)
        for key, value in profile.headers.items():
            client.set_header(key, value)
        client.add_query_map(profile.query)
        client.set_timeout(profile.timeout)
        client.ignore_404(profile.ignore_404)
        return client

    def clone(self) -> Client:
        """Return an independent copy of this client.

        Headers, query and the hook chain are copied; the transport is
        shared and stays owned by this client.
        """
        other = Client.__new__(Client)
        other._copy_settings(self)
        other._base_url = self._base_url
        other._owns_transport = False
        return other

    @property
    def base_url(self) -> str:
        return self._base_url

    def set_base_url(self, base_url: str) -> Client:
        """Set the URL relative request paths are resolved against; ``""`` clears it."""
        self._base_url = base_url.rstrip("/")
        return self

    # ------------------------------------------------------------------ #
    # Transport
    # ------------------------------------------------------------------ #

    def send(self, request: httpx.Request) -> httpx.Response:
        """Send *request* through the transport, so a client can be a transport.

        A request without a ``timeout`` extension gets this client's timeout,
        or the :class:`httpx.Client` default; ``httpx.Client.send`` applies
        none of its own.
        """
        if "timeout" not in request.extensions:
            timeout = self._timeout
            if timeout is None and isinstance(self._transport, httpx.Client):
                timeout = self._transport.timeout
            if timeout is not None:
                request.extensions["timeout"] = httpx.Timeout(timeout).as_dict()
        return self._transport.send(request)

    # ------------------------------------------------------------------ #
    # Requests
    # ------------------------------------------------------------------ #

    def _resolve_url(self, url: str) -> str:
        if url.startswith(("http://", "https://")):
            return url
        if not self._base_url:
            raise ConfigError(f"invalid request url '{url}'")
        if not url:
            return self._base_url
        if url.startswith("/"):
            return str(httpx.URL(self._base_url).join(url))
        return f"{self._base_url}/{url}"

    def request(self, method: str, url: str) -> Request:
        """Start building a request.

        *url* is used as is when it starts with ``http://`` or
        ``https://``.  Otherwise it is resolved against :attr:`base_url`: an
        empty *url* means the base URL itself, a leading ``/`` replaces the
        base URL's path, and anything else is appended after a ``/``.

        A URL that cannot be resolved or parsed does not raise here; the
        :class:`~httpchain.exceptions.ConfigError` is reported by
        :meth:`Request.do <httpchain.client.Request.do>`.
        """
        error: Optional[BaseException] = None
        try:
            url = self._resolve_url(url)
            httpx.URL(url)
        except ConfigError as exc:
            error = exc
        except httpx.InvalidURL as exc:
            error = ConfigError(f"invalid request url '{url}': {exc}")
            error.__cause__ = exc
        return Request(self, method, url, error)

    def get(self, url: str) -> Request:
        return self.request("GET", url)

    def put(self, url: str) -> Request:
        return self.request("PUT", url)

    def head(self, url: str) -> Request:
        return self.request("HEAD", url)

    def post(self, url: str) -> Request:
        return self.request("POST", url)

    def patch(self, url: str) -> Request:
        return self.request("PATCH", url)

    def delete(self, url: str) -> Request:
        return self.request("DELETE", url)

    def options(self, url: str) -> Request:
        return self.request("OPTIONS", url)
