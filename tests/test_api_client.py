"""Tests for the client HTTP API wrapper."""
import time

import httpx
import jwt as pyjwt
import pytest

from client.api_client import AuthApiClient, read_token_expiry
from client.result import AuthErrorCode

from .conftest import REDIRECT_URI

BASE_URL = "http://api.test/api"


def _token(exp):
    return pyjwt.encode({"userId": "user-1", "exp": exp}, "client-side-tests-do-not-verify-this-key", algorithm="HS256")


def _api(handler):
    return AuthApiClient(base_url=BASE_URL, client=httpx.AsyncClient(transport=httpx.MockTransport(handler)))


def _respond(status_code, body=None):
    return lambda request: httpx.Response(status_code, json=body)


def _unreachable(request):
    raise httpx.ConnectError("connection refused", request=request)


class TestExchangeAuthorizationCode:
    @pytest.mark.asyncio
    async def test_success_reads_expiry(self):
        exp = int(time.time()) + 3600
        seen = []

        def handler(request):
            seen.append(request)
            return httpx.Response(200, json={
                "user": {"id": "user-1", "email": "alice@example.com", "name": "Alice"},
                "token": _token(exp),
                "flow": "code",
            })

        result = await _api(handler).exchange_authorization_code("code", "verifier", REDIRECT_URI)

        assert result.ok
        assert result.value.user.email == "alice@example.com"
        assert result.value.expires_at == exp
        assert seen[0].url == f"{BASE_URL}/auth/google/code"

    @pytest.mark.asyncio
    async def test_server_rejection(self):
        result = await _api(_respond(400, {"error": "Invalid Google authentication"})).exchange_authorization_code(
            "code", "verifier", REDIRECT_URI
        )

        assert not result.ok
        assert result.error.code == AuthErrorCode.CODE_EXCHANGE_FAILED
        assert result.error.message == "Invalid Google authentication"

    @pytest.mark.asyncio
    async def test_network_error(self):
        result = await _api(_unreachable).exchange_authorization_code("code", "verifier", REDIRECT_URI)
        assert result.error.code == AuthErrorCode.NETWORK_ERROR

    @pytest.mark.asyncio
    async def test_malformed_body(self):
        result = await _api(_respond(200, {"token": "t"})).exchange_authorization_code("code", "verifier", REDIRECT_URI)
        assert result.error.code == AuthErrorCode.CODE_EXCHANGE_FAILED


class TestGetCurrentUser:
    @pytest.mark.asyncio
    async def test_success_sends_bearer(self):
        seen = []

        def handler(request):
            seen.append(request.headers.get("Authorization"))
            return httpx.Response(200, json={
                "id": "user-1", "email": "alice@example.com", "name": "Alice", "googleId": "sub",
            })

        result = await _api(handler).get_current_user("tok")

        assert result.ok
        assert result.value.googleId == "sub"
        assert seen == ["Bearer tok"]

    @pytest.mark.asyncio
    async def test_expired(self):
        body = {"error": "Token has expired. Please login again.", "code": "TOKEN_EXPIRED"}
        result = await _api(_respond(401, body)).get_current_user("tok")
        assert result.error.code == AuthErrorCode.TOKEN_EXPIRED

    @pytest.mark.asyncio
    async def test_invalid(self):
        body = {"error": "Invalid token. Please login again.", "code": "INVALID_TOKEN"}
        result = await _api(_respond(401, body)).get_current_user("tok")
        assert result.error.code == AuthErrorCode.INVALID_TOKEN

    @pytest.mark.asyncio
    async def test_server_error(self):
        result = await _api(_respond(500, {"error": "boom"})).get_current_user("tok")
        assert result.error.code == AuthErrorCode.USER_INFO_FAILED

    @pytest.mark.asyncio
    async def test_network_error(self):
        result = await _api(_unreachable).get_current_user("tok")
        assert result.error.code == AuthErrorCode.NETWORK_ERROR


@pytest.mark.asyncio
async def test_logout_failure_is_a_result():
    result = await _api(_unreachable).logout("tok")
    assert not result.ok


@pytest.mark.asyncio
async def test_update_profile():
    result = await _api(_respond(200, {"id": "user-1", "email": "a@example.com", "name": "Ally"})).update_profile(
        "tok", "Ally"
    )
    assert result.value.name == "Ally"


@pytest.mark.asyncio
async def test_health_check_unavailable():
    result = await _api(_unreachable).health_check()
    assert result.error.code == AuthErrorCode.SERVER_UNAVAILABLE


@pytest.mark.asyncio
async def test_health_check_against_app(app):
    transport = httpx.ASGITransport(app=app)
    api = AuthApiClient(base_url="http://testserver/api", client=httpx.AsyncClient(transport=transport))

    result = await api.health_check()

    assert result.ok
    assert result.value["status"] == "ok"


def test_read_token_expiry():
    assert read_token_expiry(_token(1_900_000_000)) == 1_900_000_000
    assert read_token_expiry("garbage") is None


class TestAuthenticateWithGoogle:
    @pytest.mark.asyncio
    async def test_posts_credential(self):
        exp = int(time.time()) + 3600
        seen = []

        def handler(request):
            seen.append((request.url, request.content))
            return httpx.Response(201, json={
                "user": {"id": "user-1", "email": "alice@example.com", "name": "Alice"},
                "token": _token(exp),
            })

        result = await _api(handler).authenticate_with_google("google-id-token")

        assert result.ok
        assert result.value.expires_at == exp
        assert seen[0][0] == f"{BASE_URL}/auth/google"
        assert b'"credential"' in seen[0][1]

    @pytest.mark.asyncio
    async def test_rejected(self):
        result = await _api(_respond(400, {"error": "Email not verified by Google"})).authenticate_with_google("t")

        assert result.error.code == AuthErrorCode.CODE_EXCHANGE_FAILED
        assert result.error.message == "Email not verified by Google"

    @pytest.mark.asyncio
    async def test_network_error(self):
        result = await _api(_unreachable).authenticate_with_google("t")
        assert result.error.code == AuthErrorCode.NETWORK_ERROR
