"""HTTP client for the auth API

Every method returns a Result; transport and HTTP failures become Err
values with an AuthErrorCode instead of exceptions.
"""

import logging
from typing import Any, Dict, Optional

import httpx
import jwt as pyjwt
from pydantic import ValidationError

from settings import API_BASE_URL, HTTP_TIMEOUT
from .models import Session, SessionUser
from .result import AuthErrorCode, Result, err, ok, to_auth_error

logger = logging.getLogger(__name__)


def read_token_expiry(token: str) -> Optional[int]:
    """Read exp from an application token without verifying it

    The client cannot verify the signature; exp is only used to stop
    presenting a token that is certain to be rejected.
    """
    try:
        claims = pyjwt.decode(token, options={"verify_signature": False})
    except pyjwt.PyJWTError:
        return None
    exp = claims.get("exp")
    return int(exp) if isinstance(exp, (int, float)) else None


def _error_message(response: httpx.Response, default: str) -> str:
    try:
        body = response.json()
    except ValueError:
        return default
    if isinstance(body, dict) and isinstance(body.get("error"), str):
        return body["error"]
    return default


def _error_code(response: httpx.Response) -> Optional[str]:
    try:
        body = response.json()
    except ValueError:
        return None
    return body.get("code") if isinstance(body, dict) else None


class AuthApiClient:
    """Talks to the auth endpoints of the API"""

    def __init__(
        self,
        base_url: str = API_BASE_URL,
        client: Optional[httpx.AsyncClient] = None,
        timeout: float = HTTP_TIMEOUT,
    ):
        self.base_url = base_url.rstrip("/")
        self.client = client
        self.timeout = timeout

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        url = f"{self.base_url}{path}"
        if self.client is not None:
            return await self.client.request(method, url, **kwargs)
        async with httpx.AsyncClient(timeout=self.timeout) as client:
            return await client.request(method, url, **kwargs)

    @staticmethod
    def _auth_headers(token: str) -> Dict[str, str]:
        return {"Authorization": f"Bearer {token}"}

    def _read_sign_in(self, response: httpx.Response) -> Result[Session]:
        if not response.is_success:
            message = _error_message(response, "Authentication failed")
            logger.warning(f"Sign-in rejected: {response.status_code} {message}")
            return err(to_auth_error(AuthErrorCode.CODE_EXCHANGE_FAILED, message))

        try:
            data = response.json()
            user = SessionUser.model_validate(data["user"])
            token = data["token"]
            session = Session(user=user, token=token, expires_at=read_token_expiry(token))
        except (ValueError, KeyError, TypeError, ValidationError) as e:
            return err(to_auth_error(AuthErrorCode.CODE_EXCHANGE_FAILED, "Malformed sign-in response", e))

        logger.info(f"Signed in as {session.user.email}")
        return ok(session)

    async def authenticate_with_google(self, credential: str) -> Result[Session]:
        """POST /auth/google with a Google ID token"""
        try:
            response = await self._request("POST", "/auth/google", json={"credential": credential})
        except httpx.HTTPError as e:
            logger.error(f"Google sign-in request failed: {e}")
            return err(to_auth_error(AuthErrorCode.NETWORK_ERROR, "Network error during authentication", e))

        return self._read_sign_in(response)

    async def exchange_authorization_code(
        self,
        code: str,
        code_verifier: str,
        redirect_uri: str,
    ) -> Result[Session]:
        """POST /auth/google/code

        Returns:
            Ok(Session) with the expiry read from the token, or Err
        """
        logger.info("Exchanging authorization code with the API")
        try:
            response = await self._request(
                "POST",
                "/auth/google/code",
                json={"code": code, "codeVerifier": code_verifier, "redirectUri": redirect_uri},
            )
        except httpx.HTTPError as e:
            logger.error(f"Code exchange request failed: {e}")
            return err(to_auth_error(AuthErrorCode.NETWORK_ERROR, "Network error during authentication", e))

        return self._read_sign_in(response)

    async def get_current_user(self, token: str) -> Result[SessionUser]:
        """GET /auth/me

        A 401 maps to TOKEN_EXPIRED or INVALID_TOKEN depending on the server's reason.
        """
        try:
            response = await self._request("GET", "/auth/me", headers=self._auth_headers(token))
        except httpx.HTTPError as e:
            logger.error(f"User info request failed: {e}")
            return err(to_auth_error(AuthErrorCode.NETWORK_ERROR, "Failed to validate user token", e))

        if response.status_code == 401:
            if _error_code(response) == AuthErrorCode.TOKEN_EXPIRED.value:
                return err(to_auth_error(AuthErrorCode.TOKEN_EXPIRED, "Token expired"))
            return err(to_auth_error(AuthErrorCode.INVALID_TOKEN, _error_message(response, "Token invalid")))

        if not response.is_success:
            return err(to_auth_error(
                AuthErrorCode.USER_INFO_FAILED,
                _error_message(response, "Failed to get user info"),
            ))

        try:
            user = SessionUser.model_validate(response.json())
        except (ValueError, ValidationError) as e:
            return err(to_auth_error(AuthErrorCode.USER_INFO_FAILED, "Malformed user info response", e))

        return ok(user)

    async def logout(self, token: str) -> Result[None]:
        """POST /auth/logout (best effort; callers may ignore the result)"""
        try:
            response = await self._request("POST", "/auth/logout", headers=self._auth_headers(token))
        except httpx.HTTPError as e:
            logger.warning(f"Logout request failed (continuing): {e}")
            return err(to_auth_error(AuthErrorCode.NETWORK_ERROR, "Logout request failed", e))

        if not response.is_success:
            logger.warning(f"Logout API returned {response.status_code} (continuing)")
            return err(to_auth_error(AuthErrorCode.UNKNOWN, _error_message(response, "Logout failed")))

        return ok(None)

    async def update_profile(self, token: str, display_name: str) -> Result[SessionUser]:
        """PUT /auth/profile"""
        try:
            response = await self._request(
                "PUT",
                "/auth/profile",
                headers=self._auth_headers(token),
                json={"displayName": display_name},
            )
        except httpx.HTTPError as e:
            return err(to_auth_error(AuthErrorCode.NETWORK_ERROR, "Profile update failed", e))

        if response.status_code == 401:
            return err(to_auth_error(AuthErrorCode.INVALID_TOKEN, _error_message(response, "Token invalid")))
        if not response.is_success:
            return err(to_auth_error(AuthErrorCode.UNKNOWN, _error_message(response, "Profile update failed")))

        try:
            return ok(SessionUser.model_validate(response.json()))
        except (ValueError, ValidationError) as e:
            return err(to_auth_error(AuthErrorCode.UNKNOWN, "Malformed profile response", e))

    async def health_check(self) -> Result[Dict[str, Any]]:
        """GET /health"""
        try:
            response = await self._request("GET", "/health")
            response.raise_for_status()
            return ok(response.json())
        except (httpx.HTTPError, ValueError) as e:
            logger.error(f"Health check failed: {e}")
            return err(to_auth_error(
                AuthErrorCode.SERVER_UNAVAILABLE,
                "Authentication server is not available",
                e,
            ))
