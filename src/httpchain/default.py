"""Module-level helpers around a process-wide default client.

:data:`DEFAULT_CLIENT` is a plain :class:`~httpchain.client.Client` with the
default configuration.  The verb helpers return a
:class:`~httpchain.client.Request` built from it, and the ``*_data``
helpers send the request and unwrap the result in one go::

    from httpchain import default

    users = default.get_data("https://api.example.com/users", list)
    default.post_data("https://api.example.com/users", None, {"name": "ada"})

Configure the default client at application start-up, before requests are
built from it concurrently.
"""

from __future__ import annotations

from typing import Any

from httpchain.client import Client, Request
from httpchain.client.common import TimeoutValue

DEFAULT_CLIENT = Client()
"""The process-wide default client."""


def clone() -> Client:
    """Return an independent copy of :data:`DEFAULT_CLIENT`."""
    return DEFAULT_CLIENT.clone()


def get(url: str) -> Request:
    return DEFAULT_CLIENT.get(url)


def put(url: str) -> Request:
    return DEFAULT_CLIENT.put(url)


def head(url: str) -> Request:
    return DEFAULT_CLIENT.head(url)


def post(url: str) -> Request:
    return DEFAULT_CLIENT.post(url)


def patch(url: str) -> Request:
    return DEFAULT_CLIENT.patch(url)


def delete(url: str) -> Request:
    return DEFAULT_CLIENT.delete(url)


def options(url: str) -> Request:
    return DEFAULT_CLIENT.options(url)


def get_data(url: str, dst: Any = None, timeout: TimeoutValue = None) -> Any:
    """GET *url*, decode the body into *dst* and return it.

    Raises:
        Error: If the call failed for any reason.
    """
    return get(url).do(dst, timeout=timeout).unwrap()


def put_data(url: str, dst: Any = None, body: Any = None, timeout: TimeoutValue = None) -> Any:
    """PUT *body* to *url* and return the response decoded into *dst*."""
    return put(url).set_body(body).do(dst, timeout=timeout).unwrap()


def post_data(url: str, dst: Any = None, body: Any = None, timeout: TimeoutValue = None) -> Any:
    """POST *body* to *url* and return the response decoded into *dst*."""
    return post(url).set_body(body).do(dst, timeout=timeout).unwrap()


def patch_data(url: str, dst: Any = None, body: Any = None, timeout: TimeoutValue = None) -> Any:
    """PATCH *body* to *url* and return the response decoded into *dst*."""
    return patch(url).set_body(body).do(dst, timeout=timeout).unwrap()


def delete_data(url: str, dst: Any = None, body: Any = None, timeout: TimeoutValue = None) -> Any:
    """DELETE *url* (with an optional *body*) and return the response decoded into *dst*."""
    return delete(url).set_body(body).do(dst, timeout=timeout).unwrap()
