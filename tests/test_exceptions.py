"""Tests for httpchain.exceptions -- exit codes, Error rendering and serialization."""

from __future__ import annotations

import json

import httpx
import pytest

from httpchain.exceptions import (
    ConfigError,
    DecodeError,
    EncodeError,
    Error,
    HookError,
    HttpChainError,
    InvalidUsageError,
)
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


class TestHierarchy:
    @pytest.mark.parametrize(
        "exc_class, code",
        [
            (HttpChainError, EXIT_GENERIC_FAILURE),
            (InvalidUsageError, EXIT_INVALID_USAGE),
            (ConfigError, EXIT_GENERIC_FAILURE),
            (EncodeError, EXIT_ENCODE_ERROR),
            (DecodeError, EXIT_DECODE_ERROR),
            (HookError, EXIT_HOOK_ERROR),
        ],
    )
    def test_exit_codes(self, exc_class: type[HttpChainError], code: int) -> None:
        exc = exc_class("boom")
        assert isinstance(exc, HttpChainError)
        assert exc.exit_code == code
        assert str(exc) == "boom"

    def test_exit_code_override(self) -> None:
        assert ConfigError("bad", exit_code=42).exit_code == 42


class TestErrorRendering:
    def test_minimal(self) -> None:
        assert str(Error("GET", "https://x/a")) == "method=GET, url=https://x/a"

    def test_full(self) -> None:
        err = Error("POST", "https://x/a", 500, "oops", ValueError("bad"))
        assert str(err) == "method=POST, url=https://x/a, statuscode=500, data=oops, err=bad"

    def test_zero_code_and_empty_data_omitted(self) -> None:
        err = Error("GET", "https://x/a", 0, "", RuntimeError("refused"))
        assert str(err) == "method=GET, url=https://x/a, err=refused"

    def test_cause_is_chained(self) -> None:
        cause = ValueError("bad")
        assert Error("GET", "u", err=cause).__cause__ is cause

    def test_status_code_alias(self) -> None:
        assert Error(code=418).status_code == 418


class TestErrorEnrichment:
    def test_with_methods_return_copies(self) -> None:
        base = Error("GET", "https://x/a")
        coded = base.with_code(404)
        assert coded is not base
        assert base.code == 0
        assert coded.code == 404

        with_data = coded.with_data("missing")
        assert with_data.data == "missing"
        assert with_data.code == 404

        cause = RuntimeError("down")
        with_err = with_data.with_err(cause)
        assert with_err.err is cause
        assert with_err.__cause__ is cause
        assert str(with_err) == "method=GET, url=https://x/a, statuscode=404, data=missing, err=down"


class TestErrorExitCode:
    @pytest.mark.parametrize(
        "code, expected",
        [
            (401, EXIT_AUTH_FAILURE),
            (403, EXIT_AUTH_FAILURE),
            (404, EXIT_NOT_FOUND),
            (500, EXIT_SERVER_ERROR),
            (503, EXIT_SERVER_ERROR),
            (400, EXIT_GENERIC_FAILURE),
        ],
    )
    def test_from_status(self, code: int, expected: int) -> None:
        assert Error("GET", "u", code).exit_code == expected

    def test_from_httpchain_cause(self) -> None:
        assert Error("GET", "u", 200, err=DecodeError("bad")).exit_code == EXIT_DECODE_ERROR

    def test_from_transport_cause(self) -> None:
        assert Error("GET", "u", err=httpx.ConnectError("refused")).exit_code == EXIT_CONNECTION_ERROR

    def test_status_wins_over_cause(self) -> None:
        assert Error("GET", "u", 404, err=DecodeError("bad")).exit_code == EXIT_NOT_FOUND


class TestErrorSerialization:
    def test_omits_empty_fields(self) -> None:
        err = Error("GET", "https://x/a", err=RuntimeError("not found"))
        assert json.loads(err.to_json()) == {
            "method": "GET",
            "url": "https://x/a",
            "err": "not found",
        }

    def test_all_fields(self) -> None:
        err = Error("GET", "https://x/a", 502, "bad gateway", RuntimeError("upstream"))
        assert err.to_dict() == {
            "method": "GET",
            "url": "https://x/a",
            "code": 502,
            "data": "bad gateway",
            "err": "upstream",
        }

    def test_nested_error_embedded_as_object(self) -> None:
        inner = Error("GET", "https://x/inner", 500)
        outer = Error("GET", "https://x/outer", err=inner)
        assert outer.to_dict()["err"] == {"method": "GET", "url": "https://x/inner", "code": 500}

    def test_compact_json(self) -> None:
        assert Error("GET", "u").to_json() == '{"method":"GET","url":"u"}'
