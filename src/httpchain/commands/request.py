"""Request command -- send one HTTP request from the command line.

``httpchain request METHOD URL`` builds a :class:`~httpchain.client.Client`
from the active profile, applies the per-call options, sends the request
and renders the decoded response body on stdout.  The status line goes to
stderr, so the body can be piped.
"""

from __future__ import annotations

import sys
from pathlib import Path
from typing import Any, Optional

import httpx
import typer

from httpchain.client import Client, Response
from httpchain.codec import decode_data
from httpchain.exceptions import ConfigError, DecodeError, HttpChainError, InvalidUsageError
from httpchain.exit_codes import EXIT_INVALID_USAGE
from httpchain.handlers import read_response_body_as_error
from httpchain.models import ClientProfile
from httpchain.output import debug, error, format_response, info, success, suggest


def parse_header(value: str) -> tuple[str, str]:
    """Split a ``'Key: Value'`` header argument.

    Raises:
        InvalidUsageError: If there is no ``:`` or the key is empty.
    """
    key, sep, val = value.partition(":")
    if not sep or not key.strip():
        raise InvalidUsageError(f"Invalid header '{value}', expected 'Key: Value'")
    return key.strip(), val.strip()


def parse_query(value: str) -> tuple[str, str]:
    """Split a ``key=value`` query argument.

    Raises:
        InvalidUsageError: If there is no ``=`` or the key is empty.
    """
    key, sep, val = value.partition("=")
    if not sep or not key:
        raise InvalidUsageError(f"Invalid query parameter '{value}', expected 'key=value'")
    return key, val


def read_body_argument(value: str) -> str | bytes:
    """Resolve a ``--data`` argument: ``@path`` reads a file, ``-`` reads stdin."""
    if value == "-":
        return sys.stdin.read()
    if value.startswith("@"):
        path = Path(value[1:]).expanduser()
        try:
            return path.read_bytes()
        except OSError as exc:
            raise InvalidUsageError(f"Cannot read request body from {path}: {exc}") from exc
    return value


def _build_client(profile: Optional[ClientProfile]) -> Client:
    if profile is None:
        return Client()
    return Client.from_profile(profile)


def _error_unless_not_found(dst: Any, raw: httpx.Response) -> Any:
    """Default-slot handler that lets a 404 through as a normal response."""
    if raw.status_code == 404:
        return None
    return read_response_body_as_error(dst, raw)


def _render_body(resp: Response) -> None:
    body = resp.read_body()
    if not body:
        return
    try:
        data = decode_data(None, resp.content_type, body)
    except DecodeError:
        data = body.decode("utf-8", errors="replace")
    format_response(data, resp.content_type)


def request_command(
    ctx: typer.Context,
    method: str = typer.Argument(help="HTTP method, e.g. GET or POST."),
    url: str = typer.Argument(help="Absolute URL, or a path resolved against the base URL."),
    header: Optional[list[str]] = typer.Option(
        None, "--header", "-H", help="Extra header 'Key: Value' (repeatable)."
    ),
    query: Optional[list[str]] = typer.Option(
        None, "--query", "-q", help="Query parameter key=value (repeatable)."
    ),
    data: Optional[str] = typer.Option(
        None, "--data", "-d", help="Request body; '@file' reads a file, '-' reads stdin."
    ),
    content_type: Optional[str] = typer.Option(
        None, "--content-type", help="Content-Type of the request body."
    ),
    timeout: Optional[float] = typer.Option(
        None, "--timeout", help="Timeout in seconds for this request."
    ),
    ignore_404: bool = typer.Option(
        False, "--ignore-404", help="Do not treat 404 as an error."
    ),
    base_url: Optional[str] = typer.Option(
        None, "--base-url", help="Override the profile's base URL."
    ),
    output_file: Optional[Path] = typer.Option(
        None, "--output", "-o", help="Write the raw response body to a file."
    ),
) -> None:
    """Send an HTTP request and print the response body.

    Example::

        httpchain request GET /users -q page=2
        httpchain -p billing request POST invoices -d @invoice.json
        httpchain request GET https://example.com/feed.xml -o feed.xml
    """
    from httpchain.config import resolve_config

    profile_name = ctx.obj.get("profile") if ctx.obj else None

    try:
        _, profile = resolve_config(profile_name, base_url)
        headers = [parse_header(h) for h in header or []]
        queries = [parse_query(q) for q in query or []]
        body = read_body_argument(data) if data is not None else None
    except InvalidUsageError as exc:
        error(str(exc))
        raise typer.Exit(code=EXIT_INVALID_USAGE) from None
    except HttpChainError as exc:
        error(str(exc))
        if isinstance(exc, ConfigError) and profile_name:
            suggest("Run 'httpchain config list' to see saved profiles.")
        raise typer.Exit(code=exc.exit_code) from None

    with _build_client(profile) as client:
        req = client.request(method, url)
        for key, value in headers:
            req.add_header(key, value)
        for key, value in queries:
            req.add_query(key, value)
        if content_type:
            req.set_content_type(content_type)
        if ignore_404 or (profile is not None and profile.ignore_404):
            req.set_response_handler_default(_error_unless_not_found)
        if body is not None:
            req.set_body(body)

        resp = req.do(timeout=timeout)
        if resp.raw is not None:
            info(f"HTTP {resp.status_code} {resp.raw.reason_phrase}")
            debug(f"{resp.method} {resp.url} took {resp.elapsed.total_seconds():.3f}s")

        try:
            if output_file is not None:
                with open(output_file, "wb") as f:
                    size = resp.write_to(f)
                success(f"Wrote {size} bytes to {output_file}")
            else:
                _render_body(resp)
        except HttpChainError as exc:
            error(str(exc))
            raise typer.Exit(code=exc.exit_code) from None
        finally:
            resp.close()
