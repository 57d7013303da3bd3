"""Numeric process exit codes following `clig.dev <https://clig.dev/>`_ conventions.

Each constant maps to a specific error category and is referenced by the
corresponding :class:`~httpchain.exceptions.HttpChainError` subclass.
Shell scripts wrapping ``httpchain request`` can inspect the exit code to
tell a rejected request from an unreachable host without parsing stderr.

Example::

    $ httpchain request GET https://api.example.com/users/42
    $ echo $?
    4   # EXIT_NOT_FOUND -- the server answered 404
"""

EXIT_SUCCESS = 0
"""The command completed successfully."""

EXIT_GENERIC_FAILURE = 1
"""An unclassified error occurred."""

EXIT_INVALID_USAGE = 2
"""The command was invoked with invalid arguments or missing required parameters."""

EXIT_AUTH_FAILURE = 3
"""The server rejected the credentials (HTTP 401 or 403)."""

EXIT_NOT_FOUND = 4
"""The requested resource was not found (HTTP 404)."""

EXIT_SERVER_ERROR = 5
"""The remote server returned an HTTP 5xx error."""

EXIT_CONNECTION_ERROR = 6
"""A transport-level error occurred (timeout, DNS failure, connection refused)."""

EXIT_ENCODE_ERROR = 8
"""The request body could not be encoded for the declared Content-Type."""

EXIT_DECODE_ERROR = 9
"""The response body could not be decoded for its Content-Type."""

EXIT_HOOK_ERROR = 10
"""A request hook rejected or failed to transform the request."""
