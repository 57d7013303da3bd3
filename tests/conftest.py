"""Shared test fixtures for httpchain.

Provides fake transports, isolated config environments and output state
management.  These fixtures are automatically discovered by
pytest and available to all test modules without explicit imports.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Callable

import httpx
import pytest

from httpchain.client import Client
from httpchain.output import reset_output


# ---------------------------------------------------------------------------
# Auto-reset global output state between tests
# ---------------------------------------------------------------------------


@pytest.fixture(autouse=True)
def _reset_output_between_tests() -> None:
    """Reset the global OutputManager after every test.

    The OutputManager caches references to sys.stdout/sys.stderr at
    creation time.  When Typer's CliRunner redirects those streams during
    a test and the test finishes, the cached references become stale
    ("I/O operation on closed file").  Resetting forces a fresh manager
    to be created on next use.
    """
    yield
    reset_output()


# ---------------------------------------------------------------------------
# Transports
# ---------------------------------------------------------------------------


def json_response(data: Any, status_code: int = 200, **headers: str) -> httpx.Response:
    """Build an httpx.Response with a JSON body."""
    return httpx.Response(
        status_code=status_code,
        headers={"content-type": "application/json", **headers},
        content=json.dumps(data).encode("utf-8"),
    )


class Recorder:
    """Mock transport handler that records requests and answers from a callable."""

    def __init__(self, respond: Callable[[httpx.Request], httpx.Response]) -> None:
        self.respond = respond
        self.requests: list[httpx.Request] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def recorder() -> Recorder:
    """A recorder answering ``200 {"ok": true}`` to everything."""
    return Recorder(lambda request: json_response({"ok": True}))


@pytest.fixture
def client(recorder: Recorder) -> Client:
    """A default client sending through an httpx.Client with a mock transport."""
    transport = httpx.Client(transport=httpx.MockTransport(recorder))
    c = Client(transport).set_base_url("https://api.example.com")
    yield c
    transport.close()


@pytest.fixture
def make_client() -> Callable[..., tuple[Client, Recorder]]:
    """Factory building a client whose transport answers with *respond*.

    Returns ``(client, recorder)``; every transport created is closed at
    teardown.
    """
    transports: list[httpx.Client] = []

    def _make(
        respond: Callable[[httpx.Request], httpx.Response],
        base_url: str = "https://api.example.com",
    ) -> tuple[Client, Recorder]:
        rec = Recorder(respond)
        transport = httpx.Client(transport=httpx.MockTransport(rec))
        transports.append(transport)
        return Client(transport).set_base_url(base_url), rec

    yield _make
    for transport in transports:
        transport.close()


# ---------------------------------------------------------------------------
# Config isolation fixture
# ---------------------------------------------------------------------------


@pytest.fixture
def isolated_config(tmp_path: Path, monkeypatch: pytest.MonkeyPatch) -> Path:
    """Isolate configuration to a temporary directory.

    Sets XDG_CONFIG_HOME and XDG_DATA_HOME to subdirectories of tmp_path so
    that tests never touch real user config, clears all HTTPCHAIN_*
    environment variables and changes the working directory to tmp_path.

    Returns:
        The tmp_path root directory for additional file creation.
    """
    monkeypatch.setattr("httpchain.config._is_xdg_platform", lambda: True)
    monkeypatch.setenv("XDG_CONFIG_HOME", str(tmp_path / "config"))
    monkeypatch.setenv("XDG_DATA_HOME", str(tmp_path / "data"))

    for var in ["HTTPCHAIN_PROFILE", "HTTPCHAIN_BASE_URL"]:
        monkeypatch.delenv(var, raising=False)

    monkeypatch.chdir(tmp_path)
    return tmp_path

