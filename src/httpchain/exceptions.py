"""Exception hierarchy for httpchain.

All exceptions inherit from :class:`HttpChainError`, which carries an
``exit_code`` attribute mapped to a constant from :mod:`httpchain.exit_codes`.
The CLI entry point in :func:`httpchain.app.main` catches ``HttpChainError``
and exits with the appropriate code.

Library code never raises these out of :meth:`~httpchain.client.Request.do`:
every failure of a call is recorded as the terminal error of its
:class:`~httpchain.client.Response` and only raised by
:meth:`~httpchain.client.Response.unwrap`.

Subclass hierarchy::

    HttpChainError (exit 1)
    +-- InvalidUsageError   (exit 2)
    +-- ConfigError         (exit 1)
    +-- EncodeError         (exit 8)
    +-- DecodeError         (exit 9)
    +-- HookError           (exit 10)
    +-- Error               (exit derived from the status code)

Transport failures are not wrapped at all: the :class:`httpx.TransportError`
raised by the transport is stored as is.
"""

from __future__ import annotations

import json
from typing import Any, Optional

import httpx

from httpchain.exit_codes import (
    EXIT_AUTH_FAILURE,
    EXIT_CONNECTION_ERROR,
    EXIT_DECODE_ERROR,
    EXIT_ENCODE_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_HOOK_ERROR,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
)


class HttpChainError(Exception):
    """Base exception for all httpchain errors.

    Every subclass sets a class-level ``exit_code`` corresponding to one of
    the constants in :mod:`httpchain.exit_codes`.

    Args:
        message: Human-readable error description.
        exit_code: Optional override for the class-level exit code.
    """

    exit_code: int = EXIT_GENERIC_FAILURE

    def __init__(self, message: str, exit_code: int | None = None):
        super().__init__(message)
        if exit_code is not None:
            self.exit_code = exit_code


class InvalidUsageError(HttpChainError):
    """Raised for invalid CLI arguments (malformed ``-H`` or ``-q`` values)."""

    exit_code = EXIT_INVALID_USAGE


class ConfigError(HttpChainError):
    """Raised for configuration problems: unresolvable request URLs, bad profiles."""

    exit_code = EXIT_GENERIC_FAILURE


class EncodeError(HttpChainError):
    """Raised when a request body cannot be serialized for its Content-Type."""

    exit_code = EXIT_ENCODE_ERROR


class DecodeError(HttpChainError):
    """Raised when a response body cannot be decoded into the destination."""

    exit_code = EXIT_DECODE_ERROR


class HookError(HttpChainError):
    """Raised by request hooks that refuse to let a request go out.

    Hooks may raise any exception; this type only exists so that the CLI can
    map a rejected request to :data:`~httpchain.exit_codes.EXIT_HOOK_ERROR`.
    """

    exit_code = EXIT_HOOK_ERROR


class Error(HttpChainError):
    """Structured error describing a failed HTTP call.

    Built by :func:`~httpchain.handlers.read_response_body_as_error` for
    error status codes, and by :meth:`~httpchain.client.Response.result`
    around any other terminal error so callers always get the method and
    URL of the failing call.

    Args:
        method: HTTP method of the call.
        url: Full request URL.
        code: Response status code, ``0`` when no response was received.
        data: Snippet of the response body.
        err: The underlying cause. Also available as ``__cause__``.
    """

    def __init__(
        self,
        method: str = "",
        url: str = "",
        code: int = 0,
        data: str = "",
        err: Optional[BaseException] = None,
    ) -> None:
        self.method = method
        self.url = url
        self.code = code
        self.data = data
        self.err = err
        super().__init__(self._render())
        self.__cause__ = err

    def _render(self) -> str:
        parts = [f"method={self.method}, url={self.url}"]
        if self.code > 0:
            parts.append(f", statuscode={self.code}")
        if self.data:
            parts.append(f", data={self.data}")
        if self.err is not None:
            parts.append(f", err={self.err}")
        return "".join(parts)

    def __str__(self) -> str:
        return self._render()

    def __repr__(self) -> str:
        return (
            f"Error(method={self.method!r}, url={self.url!r}, code={self.code!r}, "
            f"data={self.data!r}, err={self.err!r})"
        )

    @property
    def status_code(self) -> int:
        """The response status code, ``0`` if no response was received."""
        return self.code

    @property
    def exit_code(self) -> int:  # type: ignore[override]
        """Exit code derived from the status code, then from the cause.

        401/403, 404 and 5xx map to their own codes.  Otherwise an
        :class:`HttpChainError` cause lends its exit code and an
        :class:`httpx.TransportError` maps to a connection error.
        """
        if self.code in (401, 403):
            return EXIT_AUTH_FAILURE
        if self.code == 404:
            return EXIT_NOT_FOUND
        if self.code >= 500:
            return EXIT_SERVER_ERROR
        if isinstance(self.err, HttpChainError):
            return self.err.exit_code
        if isinstance(self.err, httpx.TransportError):
            return EXIT_CONNECTION_ERROR
        return EXIT_GENERIC_FAILURE

    # ------------------------------------------------------------------ #
    # Enrichment
    # ------------------------------------------------------------------ #

    def with_code(self, code: int) -> Error:
        """Return a copy carrying the status *code*."""
        return Error(self.method, self.url, code, self.data, self.err)

    def with_data(self, data: str) -> Error:
        """Return a copy carrying the response body snippet *data*."""
        return Error(self.method, self.url, self.code, data, self.err)

    def with_err(self, err: Optional[BaseException]) -> Error:
        """Return a copy wrapping the cause *err*."""
        return Error(self.method, self.url, self.code, self.data, err)

    # ------------------------------------------------------------------ #
    # Serialization
    # ------------------------------------------------------------------ #

    def to_dict(self) -> dict[str, Any]:
        """Serialize to a dict, omitting empty optional fields.

        ``method`` and ``url`` are always present. ``code`` and ``data`` are
        dropped when empty, ``err`` when there is no cause. A cause exposing
        its own ``to_dict()`` is embedded as an object; any other cause is
        rendered with ``str()``.
        """
        result: dict[str, Any] = {"method": self.method, "url": self.url}
        if self.code:
            result["code"] = self.code
        if self.data:
            result["data"] = self.data
        if self.err is not None:
            to_dict = getattr(self.err, "to_dict", None)
            result["err"] = to_dict() if callable(to_dict) else str(self.err)
        return result

    def to_json(self) -> str:
        """Serialize to a compact JSON string (see :meth:`to_dict`)."""
        return json.dumps(self.to_dict(), separators=(",", ":"), ensure_ascii=False)
