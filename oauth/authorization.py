"""OAuth authorization URL construction"""

import logging
import secrets
import webbrowser
from typing import NamedTuple, Optional
from urllib.parse import urlencode

from settings import OAUTH_RANDOM_STATE
from .constants import (
    CODE_CHALLENGE_METHOD,
    DEFAULT_PROMPT,
    DEFAULT_SCOPE,
    GOOGLE_AUTHORIZE_URL,
    LOGIN_STATE,
)
from .pkce import PKCEPair, PKCEStash, generate_pkce

logger = logging.getLogger(__name__)


class AuthorizationRequest(NamedTuple):
    """Parameters of a single authorization request"""
    client_id: str
    redirect_uri: str
    code_challenge: str
    state: str = LOGIN_STATE
    scope: str = DEFAULT_SCOPE


class AuthorizationFlow(NamedTuple):
    """A started login attempt"""
    pkce: PKCEPair
    state: str
    url: str


def create_state() -> str:
    """
    Generate random state parameter for CSRF protection.

    Returns:
        str: 32-byte random state string
    """
    return secrets.token_urlsafe(32)


def build_authorization_url(
    client_id: str,
    redirect_uri: str,
    code_challenge: str,
    state: str = LOGIN_STATE,
    scope: str = DEFAULT_SCOPE,
    prompt: str = DEFAULT_PROMPT,
) -> str:
    """Construct the Google authorization URL

    The challenge method is always S256. No validation is done here;
    inputs are the caller's responsibility.

    Returns:
        Full authorization URL
    """
    params = {
        "client_id": client_id,
        "redirect_uri": redirect_uri,
        "response_type": "code",
        "scope": scope,
        "state": state,
        "code_challenge": code_challenge,
        "code_challenge_method": CODE_CHALLENGE_METHOD,
        "prompt": prompt,
    }
    return f"{GOOGLE_AUTHORIZE_URL}?{urlencode(params)}"


def build_url_for_request(request: AuthorizationRequest, prompt: str = DEFAULT_PROMPT) -> str:
    """Construct the authorization URL from an AuthorizationRequest"""
    return build_authorization_url(
        client_id=request.client_id,
        redirect_uri=request.redirect_uri,
        code_challenge=request.code_challenge,
        state=request.state,
        scope=request.scope,
        prompt=prompt,
    )


class AuthorizationURLBuilder:
    """Starts login attempts: PKCE pair, stashed verifier and authorization URL"""

    def __init__(
        self,
        client_id: str,
        redirect_uri: str,
        stash: Optional[PKCEStash] = None,
        random_state: bool = OAUTH_RANDOM_STATE,
    ):
        self.client_id = client_id
        self.redirect_uri = redirect_uri
        self.stash = stash or PKCEStash()
        self.random_state = random_state

    def start(self) -> AuthorizationFlow:
        """Generate a fresh PKCE pair, stash the verifier and build the URL

        A new attempt replaces any previously stashed verifier.
        """
        pkce = generate_pkce()
        state = create_state() if self.random_state else LOGIN_STATE

        # The fixed marker is implied, so only a random state needs stashing
        self.stash.save(pkce.verifier, state if self.random_state else None)

        request = AuthorizationRequest(
            client_id=self.client_id,
            redirect_uri=self.redirect_uri,
            code_challenge=pkce.challenge,
            state=state,
        )
        url = build_url_for_request(request)
        logger.debug(f"Authorization URL built for redirect {self.redirect_uri}")
        return AuthorizationFlow(pkce=pkce, state=state, url=url)

    def start_login_flow(self) -> AuthorizationFlow:
        """Start the OAuth login flow by opening browser

        Returns:
            The started AuthorizationFlow
        """
        flow = self.start()

        if not webbrowser.open(flow.url):
            logger.warning("Could not open browser automatically")

        return flow
