"""Google token endpoint exchange (authorization code + PKCE verifier)"""

import logging
from typing import Any, Dict, Optional

import httpx

from oauth.constants import GOOGLE_TOKEN_URL
from settings import HTTP_TIMEOUT
from .errors import CodeExchangeError

logger = logging.getLogger(__name__)


class ProviderTokens:
    """Tokens returned by the provider token endpoint"""

    def __init__(self, id_token: str, access_token: Optional[str] = None, refresh_token: Optional[str] = None):
        self.id_token = id_token
        self.access_token = access_token
        self.refresh_token = refresh_token

    @classmethod
    def from_response(cls, data: Dict[str, Any]) -> "ProviderTokens":
        """Build from the token endpoint JSON body

        Raises:
            CodeExchangeError: If no id_token is present
        """
        id_token = data.get("id_token")
        if not isinstance(id_token, str) or not id_token:
            raise CodeExchangeError("No id_token returned from Google")
        return cls(
            id_token=id_token,
            access_token=data.get("access_token"),
            refresh_token=data.get("refresh_token"),
        )


async def exchange_code_for_id_token(
    code: str,
    code_verifier: str,
    redirect_uri: str,
    client_id: str,
    client_secret: str,
    client: Optional[httpx.AsyncClient] = None,
    token_url: str = GOOGLE_TOKEN_URL,
) -> ProviderTokens:
    """Exchange an authorization code for provider tokens.

    The code is single-use, so there is no retry.

    Args:
        code: Authorization code from the callback
        code_verifier: PKCE verifier bound to the code
        redirect_uri: Redirect URI used in the authorization request
        client_id: OAuth client id
        client_secret: OAuth client secret (server-held)
        client: Optional shared HTTP client
        token_url: Token endpoint

    Returns:
        ProviderTokens with at least an id_token

    Raises:
        CodeExchangeError: On missing credentials, network or provider errors
    """
    if not client_id or not client_secret:
        raise CodeExchangeError("Google OAuth client credentials not set")

    form = {
        "code": code,
        "client_id": client_id,
        "client_secret": client_secret,
        "redirect_uri": redirect_uri,
        "grant_type": "authorization_code",
        "code_verifier": code_verifier,
    }

    owns_client = client is None
    if owns_client:
        client = httpx.AsyncClient(timeout=HTTP_TIMEOUT)

    try:
        response = await client.post(
            token_url,
            data=form,
            headers={"Content-Type": "application/x-www-form-urlencoded"},
        )
    except httpx.HTTPError as e:
        logger.error(f"Token endpoint request failed: {e}")
        raise CodeExchangeError("Code exchange failed") from e
    finally:
        if owns_client:
            await client.aclose()

    if response.status_code != 200:
        logger.error(f"Google token endpoint error: {response.status_code} - {response.text[:200]}")
        raise CodeExchangeError(f"Token exchange failed: {response.status_code}")

    try:
        data = response.json()
    except ValueError as e:
        raise CodeExchangeError("Token endpoint returned invalid JSON") from e

    if not isinstance(data, dict):
        raise CodeExchangeError("Token endpoint returned invalid JSON")

    tokens = ProviderTokens.from_response(data)
    logger.info("Authorization code exchanged for id_token")
    return tokens
