"""httpchain -- a fluent HTTP request builder with status-scoped response handlers.

A :class:`~httpchain.client.Client` holds the configuration shared by many
calls; each call is built from it as a :class:`~httpchain.client.Request`
that borrows that configuration copy-on-write, runs it through a hook
chain, sends it through a pluggable transport, and routes the response to
the handler registered for its status class.

Typical use::

    from httpchain import Client

    client = Client().set_base_url("https://api.example.com")
    user = client.get("/users/42").do(User).unwrap()

Modules:
    client: Client, Request, Response and the transport protocol.
    hooks: Request hooks and the hook chain.
    codec: Content-type driven encoding and decoding.
    handlers: Status-code dispatch and the built-in handlers.
    arena: Pooled byte buffers and response draining.
    default: Module-level helpers around a global client.
    exceptions: Exception hierarchy with exit-code mapping.
    app: Typer application and CLI entry point.
"""

__version__ = "0.1.0"

from httpchain.client import Client, Request, Response, Transport, TransportFunc  # noqa: E402
from httpchain.exceptions import Error, HttpChainError  # noqa: E402
from httpchain.hooks import Hooks  # noqa: E402

__all__ = [
    "Client",
    "Error",
    "HttpChainError",
    "Hooks",
    "Request",
    "Response",
    "Transport",
    "TransportFunc",
    "__version__",
]
