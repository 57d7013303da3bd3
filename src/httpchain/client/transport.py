"""The transport capability a client sends prepared requests through.

Anything with a ``send(request) -> response`` method is a transport:
:class:`httpx.Client` is the default one, a :class:`~httpchain.client.Client`
is one too, and :class:`TransportFunc` turns a plain function into one.
"""

from __future__ import annotations

from typing import Callable, Protocol, runtime_checkable

import httpx


@runtime_checkable
class Transport(Protocol):
    """Sends a prepared request and returns the raw response.

    Transport failures are raised, usually as :class:`httpx.TransportError`.
    """

    def send(self, request: httpx.Request) -> httpx.Response: ...


class TransportFunc:
    """Adapt a function ``func(request) -> response`` to :class:`Transport`.

    Example::

        def offline(request):
            return httpx.Response(503, request=request)

        client = Client(TransportFunc(offline))
    """

    def __init__(self, func: Callable[[httpx.Request], httpx.Response]) -> None:
        self.func = func

    def __repr__(self) -> str:
        return f"TransportFunc({self.func!r})"

    def send(self, request: httpx.Request) -> httpx.Response:
        return self.func(request)
