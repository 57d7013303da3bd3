"""End-to-end tests for the httpchain CLI (request and config commands)."""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, Optional

import httpx
import pytest
from typer.testing import CliRunner

from httpchain import __version__
from httpchain.app import app
from httpchain.client import Client
from httpchain.config import load_global_config, load_profile, profile_exists, save_profile
from httpchain.exit_codes import (
    EXIT_CONNECTION_ERROR,
    EXIT_GENERIC_FAILURE,
    EXIT_INVALID_USAGE,
    EXIT_NOT_FOUND,
    EXIT_SERVER_ERROR,
    EXIT_SUCCESS,
)
from httpchain.models import ClientProfile

runner = CliRunner()


def _invoke(*args: str, input: Optional[str] = None):
    return runner.invoke(app, ["--no-color", *args], input=input)


class FakeApi:
    """Records requests and answers them through a swappable responder."""

    def __init__(self) -> None:
        self.requests: list[httpx.Request] = []
        self.respond: Callable[[httpx.Request], httpx.Response] = lambda request: httpx.Response(
            200, json={"ok": True}
        )

    def __call__(self, request: httpx.Request) -> httpx.Response:
        self.requests.append(request)
        return self.respond(request)

    @property
    def last(self) -> httpx.Request:
        return self.requests[-1]


@pytest.fixture
def api(isolated_config: Path, monkeypatch: pytest.MonkeyPatch) -> FakeApi:
    """Route every client the request command builds to a fake API."""
    fake = FakeApi()
    transports: list[httpx.Client] = []

    def build(profile: Optional[ClientProfile]) -> Client:
        transport = httpx.Client(transport=httpx.MockTransport(fake))
        transports.append(transport)
        if profile is None:
            return Client(transport)
        return Client.from_profile(profile, transport)

    monkeypatch.setattr("httpchain.commands.request._build_client", build)
    yield fake
    for transport in transports:
        transport.close()


# ---------------------------------------------------------------------------
# Root options
# ---------------------------------------------------------------------------


class TestRoot:
    def test_version(self) -> None:
        result = runner.invoke(app, ["--version"])
        assert result.exit_code == 0
        assert f"httpchain {__version__}" in result.output

    def test_help_lists_commands(self) -> None:
        result = runner.invoke(app, ["--help"])
        assert result.exit_code == 0
        assert "request" in result.output
        assert "config" in result.output


# ---------------------------------------------------------------------------
# request
# ---------------------------------------------------------------------------


class TestRequestCommand:
    def test_get_renders_json(self, api: FakeApi) -> None:
        result = _invoke("--json", "--quiet", "request", "GET", "https://api.example.com/items")
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert json.loads(result.output) == {"ok": True}
        assert api.last.method == "GET"
        assert str(api.last.url) == "https://api.example.com/items"

    def test_status_line(self, api: FakeApi) -> None:
        result = _invoke("--plain", "request", "GET", "https://api.example.com/items")
        assert result.exit_code == EXIT_SUCCESS
        assert "HTTP 200 OK" in result.output
        assert "ok\tTrue" in result.output

    def test_headers_query_and_body(self, api: FakeApi) -> None:
        result = _invoke(
            "--quiet",
            "request",
            "post",
            "https://api.example.com/items",
            "-H", "X-Trace: abc",
            "-q", "dry_run=1",
            "-q", "tag=a",
            "-q", "tag=b",
            "-d", '{"name": "ada"}',
        )
        assert result.exit_code == EXIT_SUCCESS, result.output
        sent = api.last
        assert sent.method == "POST"
        assert sent.headers["x-trace"] == "abc"
        assert sent.url.params["dry_run"] == "1"
        assert sent.url.params.get_list("tag") == ["a", "b"]
        assert json.loads(sent.content) == {"name": "ada"}

    def test_body_from_file(self, api: FakeApi, isolated_config: Path) -> None:
        (isolated_config / "body.xml").write_bytes(b"<item/>")
        result = _invoke(
            "--quiet",
            "request",
            "PUT",
            "https://api.example.com/items/1",
            "--content-type", "application/xml",
            "-d", "@body.xml",
        )
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert api.last.content == b"<item/>"
        assert api.last.headers["content-type"] == "application/xml"

    def test_body_file_missing(self, api: FakeApi) -> None:
        result = _invoke("request", "PUT", "https://api.example.com/x", "-d", "@missing.json")
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "Cannot read request body" in result.output
        assert api.requests == []

    def test_output_file(self, api: FakeApi, isolated_config: Path) -> None:
        api.respond = lambda request: httpx.Response(200, content=b"\x00binary\x01")
        result = _invoke("request", "GET", "https://api.example.com/blob", "-o", "blob.bin")
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert (isolated_config / "blob.bin").read_bytes() == b"\x00binary\x01"
        assert "Wrote 8 bytes" in result.output

    def test_text_body_rendered_as_is(self, api: FakeApi) -> None:
        api.respond = lambda request: httpx.Response(200, text="plain words")
        result = _invoke("--quiet", "request", "GET", "https://api.example.com/readme")
        assert result.output == "plain words\n"

    def test_not_found(self, api: FakeApi) -> None:
        api.respond = lambda request: httpx.Response(404, json={"error": "gone"})
        result = _invoke("request", "GET", "https://api.example.com/items/9")
        assert result.exit_code == EXIT_NOT_FOUND
        assert "statuscode=404" in result.output
        assert "gone" in result.output

    def test_ignore_404(self, api: FakeApi) -> None:
        api.respond = lambda request: httpx.Response(404, json={"error": "gone"})
        result = _invoke("--json", "--quiet", "request", "GET", "https://api.example.com/items/9", "--ignore-404")
        assert result.exit_code == EXIT_SUCCESS
        assert json.loads(result.output) == {"error": "gone"}

    def test_ignore_404_keeps_other_errors(self, api: FakeApi) -> None:
        api.respond = lambda request: httpx.Response(500, text="down")
        result = _invoke("request", "GET", "https://api.example.com/items", "--ignore-404")
        assert result.exit_code == EXIT_SERVER_ERROR
        assert "statuscode=500" in result.output

    def test_ignore_404_from_profile(self, api: FakeApi) -> None:
        save_profile(ClientProfile(name="lenient", base_url="https://api.example.com", ignore_404=True))
        api.respond = lambda request: httpx.Response(404, text="nothing here")
        result = _invoke("-p", "lenient", "--quiet", "request", "GET", "items/9")
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert result.output == "nothing here\n"

    def test_connection_error(self, api: FakeApi) -> None:
        def refuse(request: httpx.Request) -> httpx.Response:
            raise httpx.ConnectError("connection refused", request=request)

        api.respond = refuse
        result = _invoke("request", "GET", "https://api.example.com/items")
        assert result.exit_code == EXIT_CONNECTION_ERROR
        assert "connection refused" in result.output

    def test_relative_url_without_base(self, api: FakeApi) -> None:
        result = _invoke("request", "GET", "items")
        assert result.exit_code == EXIT_GENERIC_FAILURE
        assert "invalid request url 'items'" in result.output
        assert api.requests == []

    def test_base_url_option(self, api: FakeApi) -> None:
        result = _invoke("--quiet", "request", "GET", "items", "--base-url", "https://alt.example.com/v2")
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert str(api.last.url) == "https://alt.example.com/v2/items"

    def test_base_url_from_env(self, api: FakeApi, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setenv("HTTPCHAIN_BASE_URL", "https://env.example.com")
        result = _invoke("--quiet", "request", "GET", "ping")
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert str(api.last.url) == "https://env.example.com/ping"

    def test_profile(self, api: FakeApi) -> None:
        save_profile(
            ClientProfile(
                name="billing",
                base_url="https://billing.example.com/api",
                headers={"Authorization": "Bearer t0k"},
                query={"v": "2"},
            )
        )
        result = _invoke("-p", "billing", "--quiet", "request", "GET", "invoices")
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert str(api.last.url) == "https://billing.example.com/api/invoices?v=2"
        assert api.last.headers["authorization"] == "Bearer t0k"

    def test_unknown_profile(self, api: FakeApi) -> None:
        result = _invoke("-p", "ghost", "request", "GET", "invoices")
        assert result.exit_code == EXIT_GENERIC_FAILURE
        assert "Profile 'ghost' not found" in result.output
        assert "httpchain config list" in result.output

    @pytest.mark.parametrize(
        "option, value, message",
        [
            ("-H", "no-colon", "Invalid header"),
            ("-q", "no-equals", "Invalid query parameter"),
        ],
    )
    def test_invalid_arguments(self, api: FakeApi, option: str, value: str, message: str) -> None:
        result = _invoke("request", "GET", "https://api.example.com/x", option, value)
        assert result.exit_code == EXIT_INVALID_USAGE
        assert message in result.output
        assert api.requests == []


# ---------------------------------------------------------------------------
# config
# ---------------------------------------------------------------------------


class TestConfigCommands:
    def test_save_and_show(self, isolated_config: Path) -> None:
        result = _invoke(
            "config", "save", "billing",
            "--base-url", "https://billing.example.com",
            "-H", "Authorization: Bearer abc",
            "-q", "v=2",
            "--accept", "application/xml",
            "--timeout", "2.5",
            "--default",
        )
        assert result.exit_code == EXIT_SUCCESS, result.output
        assert "Saved profile 'billing'" in result.output

        profile = load_profile("billing")
        assert profile.headers == {"Authorization": "Bearer abc"}
        assert profile.query == {"v": "2"}
        assert profile.accept == ["application/xml"]
        assert profile.timeout == 2.5
        assert load_global_config().default_profile == "billing"

        shown = _invoke("--json", "config", "show", "billing")
        assert shown.exit_code == EXIT_SUCCESS
        assert json.loads(shown.output)["base_url"] == "https://billing.example.com"

    def test_save_rejects_bad_base_url(self, isolated_config: Path) -> None:
        result = _invoke("config", "save", "bad", "--base-url", "ftp://x")
        assert result.exit_code == EXIT_INVALID_USAGE
        assert not profile_exists("bad")

    def test_save_rejects_bad_header(self, isolated_config: Path) -> None:
        result = _invoke("config", "save", "bad", "-H", "nope")
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "Invalid header" in result.output

    def test_show_global(self, isolated_config: Path) -> None:
        result = _invoke("--json", "--quiet", "config", "show")
        assert result.exit_code == EXIT_SUCCESS
        assert json.loads(result.output)["default_profile"] is None

    def test_show_missing(self, isolated_config: Path) -> None:
        result = _invoke("config", "show", "ghost")
        assert result.exit_code == EXIT_GENERIC_FAILURE
        assert "not found" in result.output

    def test_list(self, isolated_config: Path) -> None:
        save_profile(ClientProfile(name="b", base_url="https://b.example.com"))
        save_profile(ClientProfile(name="a"))
        _invoke("config", "save", "c", "--default")

        result = _invoke("--json", "config", "list")
        assert result.exit_code == EXIT_SUCCESS
        assert json.loads(result.output[result.output.index("["):]) == [
            {"name": "a", "base_url": "", "default": ""},
            {"name": "b", "base_url": "https://b.example.com", "default": ""},
            {"name": "c", "base_url": "", "default": "*"},
        ]

    def test_list_empty(self, isolated_config: Path) -> None:
        result = _invoke("config", "list")
        assert result.exit_code == EXIT_SUCCESS
        assert "No profiles saved yet." in result.output

    def test_delete_with_confirmation(self, isolated_config: Path) -> None:
        _invoke("config", "save", "old", "--default")
        result = _invoke("config", "delete", "old", input="y\n")
        assert result.exit_code == EXIT_SUCCESS
        assert not profile_exists("old")
        assert load_global_config().default_profile is None
        assert "Warning: 'old' was the default profile" in result.output

    def test_delete_cancelled(self, isolated_config: Path) -> None:
        save_profile(ClientProfile(name="keep"))
        result = _invoke("config", "delete", "keep", input="n\n")
        assert result.exit_code == EXIT_SUCCESS
        assert profile_exists("keep")

    def test_delete_yes(self, isolated_config: Path) -> None:
        save_profile(ClientProfile(name="gone"))
        result = _invoke("config", "delete", "gone", "-y")
        assert result.exit_code == EXIT_SUCCESS
        assert not profile_exists("gone")

    def test_delete_missing(self, isolated_config: Path) -> None:
        result = _invoke("config", "delete", "ghost", "-y")
        assert result.exit_code == EXIT_INVALID_USAGE
        assert "httpchain config list" in result.output
