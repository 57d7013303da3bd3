"""HTTP client module for httpchain.

Provides the fluent request builder on top of a pluggable transport.

Classes:
    :class:`Client` -- long-lived, shareable configuration.
    :class:`Request` -- per-call builder, copy-on-write over its client.
    :class:`Response` -- the raw response plus the terminal error of a call.
    :class:`TransportFunc` -- adapts a plain function into a transport.

Example::

    from httpchain.client import Client

    with Client().set_base_url("https://api.example.com") as client:
        resp = client.get("/users").add_query("page", "2").do(list)
        users = resp.unwrap()
"""

from httpchain.client.request import Request
from httpchain.client.response import Response
from httpchain.client.sync_client import Client
from httpchain.client.transport import Transport, TransportFunc

__all__ = ["Client", "Request", "Response", "Transport", "TransportFunc"]
