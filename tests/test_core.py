"""Tests for request identification helpers: client IP, bearer identity, logging."""

import json
import logging
import time
from unittest.mock import AsyncMock, MagicMock, patch

import jwt
import pytest
from starlette.requests import Request

from storefront.core.auth import user_id_from_token, user_id_of, verify_token
from storefront.core.config import settings
from storefront.core.logging_config import RequestIdFilter, request_id_var, setup_logging
from storefront.core.rate_limit import client_ip


def _request(headers: dict[str, str], host: str = "10.0.0.1") -> Request:
    scope = {
        "type": "http",
        "method": "GET",
        "path": "/",
        "headers": [(k.lower().encode(), v.encode()) for k, v in headers.items()],
        "client": (host, 1234),
    }
    return Request(scope)


class TestClientIp:
    def test_prefers_cdn_header(self) -> None:
        request = _request({"CF-Connecting-IP": "1.1.1.1", "X-Forwarded-For": "2.2.2.2"})
        assert client_ip(request) == "1.1.1.1"

    def test_first_forwarded_address(self) -> None:
        request = _request({"X-Forwarded-For": "2.2.2.2, 3.3.3.3"})
        assert client_ip(request) == "2.2.2.2"

    def test_falls_back_to_peer(self) -> None:
        assert client_ip(_request({})) == "10.0.0.1"


class TestBearerIdentity:
    def test_user_id_of(self) -> None:
        assert user_id_of({"sub": "abc"}) == "abc"
        assert user_id_of({}) is None
        assert user_id_of(None) is None

    @pytest.mark.asyncio
    async def test_invalid_token_is_anonymous(self) -> None:
        client = MagicMock()
        client.get_signing_key_from_jwt.side_effect = jwt.DecodeError("bad token")
        with patch("storefront.core.auth.get_jwks_client", return_value=client):
            assert await verify_token("not-a-jwt") is None

    @pytest.mark.asyncio
    async def test_slow_jwks_lookup_is_abandoned(self, monkeypatch: pytest.MonkeyPatch) -> None:
        monkeypatch.setattr(settings, "auth_timeout_seconds", 0.05)
        client = MagicMock()
        client.get_signing_key_from_jwt.side_effect = lambda _token: time.sleep(0.5)

        started = time.perf_counter()
        with patch("storefront.core.auth.get_jwks_client", return_value=client):
            assert await verify_token("header.payload.signature") is None

        assert time.perf_counter() - started < 0.4

    @pytest.mark.asyncio
    async def test_user_id_from_token(self) -> None:
        assert await user_id_from_token(None) is None
        with patch(
            "storefront.core.auth.verify_token",
            AsyncMock(return_value={"sub": "user-9"}),
        ) as verify:
            assert await user_id_from_token("abc") == "user-9"
        verify.assert_awaited_once_with("abc")


class TestLogging:
    def test_request_id_filter_injects_context(self) -> None:
        token = request_id_var.set("req-123")
        try:
            record = logging.LogRecord("x", logging.INFO, __file__, 1, "hello", None, None)
            assert RequestIdFilter().filter(record) is True
            assert record.request_id == "req-123"  # type: ignore[attr-defined]
        finally:
            request_id_var.reset(token)

    def test_setup_logging_emits_json(self, capsys: pytest.CaptureFixture[str]) -> None:
        root = logging.getLogger()
        previous_handlers, previous_level = root.handlers[:], root.level
        try:
            setup_logging(debug=False)
            logging.getLogger("storefront.test").info("ready")
            line = capsys.readouterr().err.strip().splitlines()[-1]
            payload = json.loads(line)
            assert payload["message"] == "ready"
            assert payload["level"] == "INFO"
            assert "timestamp" in payload
        finally:
            root.handlers[:] = previous_handlers
            root.setLevel(previous_level)
