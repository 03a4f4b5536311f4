"""Tests for the Google token endpoint exchange."""
import httpx
import pytest

from identity.errors import CodeExchangeError
from identity.token_exchange import ProviderTokens, exchange_code_for_id_token

from .conftest import CLIENT_ID, CLIENT_SECRET, REDIRECT_URI, google_token_transport


async def _exchange(transport, client_id=CLIENT_ID, client_secret=CLIENT_SECRET):
    async with httpx.AsyncClient(transport=transport) as client:
        return await exchange_code_for_id_token(
            code="auth-code",
            code_verifier="verifier-123",
            redirect_uri=REDIRECT_URI,
            client_id=client_id,
            client_secret=client_secret,
            client=client,
        )


@pytest.mark.asyncio
async def test_posts_form_with_verifier():
    requests = []
    tokens = await _exchange(google_token_transport(requests))

    assert tokens.id_token == "google-id-token"
    assert requests == [{
        "code": "auth-code",
        "client_id": CLIENT_ID,
        "client_secret": CLIENT_SECRET,
        "redirect_uri": REDIRECT_URI,
        "grant_type": "authorization_code",
        "code_verifier": "verifier-123",
    }]


@pytest.mark.asyncio
async def test_provider_error_status():
    with pytest.raises(CodeExchangeError, match="400"):
        await _exchange(google_token_transport(status_code=400))


@pytest.mark.asyncio
async def test_missing_id_token():
    with pytest.raises(CodeExchangeError, match="No id_token"):
        await _exchange(google_token_transport(body={"access_token": "ya29"}))


@pytest.mark.asyncio
async def test_missing_credentials_skips_network():
    requests = []
    with pytest.raises(CodeExchangeError, match="credentials not set"):
        await _exchange(google_token_transport(requests), client_secret="")
    assert requests == []


@pytest.mark.asyncio
async def test_network_failure():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    with pytest.raises(CodeExchangeError):
        await _exchange(httpx.MockTransport(handler))


def test_provider_tokens_from_response():
    tokens = ProviderTokens.from_response({"id_token": "a", "access_token": "b"})
    assert tokens.id_token == "a"
    assert tokens.access_token == "b"
    assert tokens.refresh_token is None
