"""Tests for httpchain.log -- the default response observer."""

from __future__ import annotations

import io
import logging

import httpx
import pytest

from httpchain.client import Client, TransportFunc
from httpchain.log import LOG_MESSAGE, log_on_response


@pytest.fixture
def debug_logs(caplog: pytest.LogCaptureFixture) -> pytest.LogCaptureFixture:
    caplog.set_level(logging.DEBUG, logger="httpchain.log")
    return caplog


def _record(caplog: pytest.LogCaptureFixture) -> logging.LogRecord:
    records = [r for r in caplog.records if r.name == "httpchain.log"]
    assert len(records) == 1
    return records[0]


def _http_fields(caplog: pytest.LogCaptureFixture) -> dict:
    return _record(caplog).http


class TestLogOnResponse:
    def test_success_record(self, client: Client, debug_logs) -> None:
        client.post("items").set_header("X-Trace", "t1").set_body({"name": "ada"}).do()
        fields = _http_fields(debug_logs)

        assert list(fields) == [
            "method",
            "url",
            "reqheaders",
            "reqbody",
            "cost",
            "statuscode",
            "respheaders",
        ]
        assert fields["method"] == "POST"
        assert fields["url"] == "https://api.example.com/items"
        assert fields["reqheaders"]["x-trace"] == "t1"
        assert fields["reqbody"] == {"name": "ada"}
        assert fields["statuscode"] == 200
        assert fields["cost"].endswith("s")
        assert _record(debug_logs).levelno == logging.DEBUG
        assert _record(debug_logs).getMessage().startswith(LOG_MESSAGE)

    def test_error_included(self, make_client, debug_logs) -> None:
        client, _ = make_client(lambda request: httpx.Response(503, text="down"))
        client.get("items").do()
        fields = _http_fields(debug_logs)
        assert fields["statuscode"] == 503
        assert "statuscode=503" in fields["err"]

    def test_failure_before_send(self, debug_logs) -> None:
        Client(TransportFunc(lambda r: httpx.Response(200))).get("relative").do()
        fields = _http_fields(debug_logs)
        assert "reqheaders" not in fields
        assert "respheaders" not in fields
        assert fields["statuscode"] == 0
        assert "invalid request url" in fields["err"]

    def test_stream_bodies_not_logged(self, client: Client, debug_logs) -> None:
        client.put("blob").set_body(io.BytesIO(b"data")).do()
        assert "reqbody" not in _http_fields(debug_logs)

    def test_binary_content_type_not_logged(self, client: Client, debug_logs) -> None:
        client.put("blob").set_content_type("image/png").set_body(b"\x89PNG").do()
        assert "reqbody" not in _http_fields(debug_logs)

    def test_text_body_logged_as_string(self, client: Client, debug_logs) -> None:
        client.post("notes").set_content_type("text/plain").set_body(b"hello").do()
        assert _http_fields(debug_logs)["reqbody"] == "hello"

    def test_silent_when_disabled(self, client: Client, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger="httpchain.log")
        client.get("items").do()
        assert [r for r in caplog.records if r.name == "httpchain.log"] == []

    def test_custom_level_and_extra_fields(self, client: Client, caplog: pytest.LogCaptureFixture) -> None:
        caplog.set_level(logging.INFO, logger="httpchain.log")

        def observer(resp) -> None:
            log_on_response(resp, level=logging.INFO, extra_fields=lambda r: {"tenant": "acme"})

        client.on_response(observer).get("items").do()
        fields = _http_fields(caplog)
        assert fields["tenant"] == "acme"
        assert list(fields)[-1] == "tenant"
        assert _record(caplog).levelno == logging.INFO
