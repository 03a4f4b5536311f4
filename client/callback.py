"""Authorization callback handling

Turns the redirect URL the provider sent the browser to into a stored
session. Every outcome is a Result; nothing here raises for a failed login,
and there is no retry (a retry is a fresh login from a new PKCE pair).
"""

import logging
from typing import Optional
from urllib.parse import parse_qs, urlparse

from oauth.constants import CALLBACK_PATH, LOGIN_STATE
from oauth.pkce import PKCEStash
from .api_client import AuthApiClient
from .models import Session
from .result import AuthErrorCode, Result, err, ok, to_auth_error
from .session_store import SessionStorageError, SessionStore

logger = logging.getLogger(__name__)


def callback_redirect_uri(callback_url: str) -> str:
    """<origin>/auth/callback for the origin the callback arrived on"""
    parsed = urlparse(callback_url)
    return f"{parsed.scheme}://{parsed.netloc}{CALLBACK_PATH}"


def _first(params, name: str) -> Optional[str]:
    values = params.get(name)
    return values[0] if values else None


class CallbackCoordinator:
    """Validates the callback and drives the code exchange"""

    def __init__(
        self,
        api: AuthApiClient,
        store: SessionStore,
        stash: Optional[PKCEStash] = None,
        redirect_uri: Optional[str] = None,
    ):
        self.api = api
        self.store = store
        self.stash = stash or PKCEStash()
        self.redirect_uri = redirect_uri

    async def handle(self, callback_url: str) -> Result[Session]:
        """Process a callback URL such as http://localhost:3000/auth/callback?code=...&state=login

        Returns:
            Ok(Session) once the session is stored, or Err with one of
            CODE_MISSING, STATE_MISMATCH, PKCE_VERIFIER_MISSING, CODE_EXCHANGE_FAILED
        """
        params = parse_qs(urlparse(callback_url).query)
        code = _first(params, "code")
        state = _first(params, "state")

        if not code:
            provider_error = _first(params, "error")
            message = f"code missing ({provider_error})" if provider_error else "code missing"
            logger.warning(f"Callback without code: {message}")
            return err(to_auth_error(AuthErrorCode.CODE_MISSING, message))

        stashed = self.stash.load()
        expected_state = stashed.state if stashed and stashed.state else LOGIN_STATE
        if state != expected_state:
            logger.warning("Callback state does not match the pending login")
            return err(to_auth_error(AuthErrorCode.STATE_MISMATCH, "state mismatch"))

        if stashed is None:
            return err(to_auth_error(
                AuthErrorCode.PKCE_VERIFIER_MISSING,
                "verifier missing (restart login)",
            ))

        redirect_uri = self.redirect_uri or callback_redirect_uri(callback_url)
        result = await self.api.exchange_authorization_code(code, stashed.verifier, redirect_uri)

        # The code is single-use, so the verifier is spent either way
        self.stash.clear()

        if not result.ok:
            return err(to_auth_error(
                AuthErrorCode.CODE_EXCHANGE_FAILED,
                result.error.message or "code exchange failed",
                result.error,
            ))

        try:
            self.store.save(result.value)
        except SessionStorageError as e:
            return err(to_auth_error(AuthErrorCode.CODE_EXCHANGE_FAILED, str(e), e))

        logger.info(f"Login complete for {result.value.user.email}")
        return ok(result.value)
