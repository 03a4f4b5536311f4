"""Google OAuth (Authorization Code + PKCE) client-side helpers"""

from .constants import (
    GOOGLE_AUTHORIZE_URL,
    GOOGLE_TOKEN_URL,
    GOOGLE_ISSUERS,
    DEFAULT_SCOPE,
    DEFAULT_PROMPT,
    CODE_CHALLENGE_METHOD,
    LOGIN_STATE,
    CALLBACK_PATH,
)
from .pkce import PKCEPair, PKCEStash, StashedLogin, compute_challenge, generate_pkce
from .authorization import (
    AuthorizationFlow,
    AuthorizationRequest,
    AuthorizationURLBuilder,
    build_authorization_url,
    build_url_for_request,
    create_state,
)

__all__ = [
    # Constants
    "GOOGLE_AUTHORIZE_URL",
    "GOOGLE_TOKEN_URL",
    "GOOGLE_ISSUERS",
    "DEFAULT_SCOPE",
    "DEFAULT_PROMPT",
    "CODE_CHALLENGE_METHOD",
    "LOGIN_STATE",
    "CALLBACK_PATH",
    # PKCE
    "PKCEPair",
    "PKCEStash",
    "StashedLogin",
    "compute_challenge",
    "generate_pkce",
    # Authorization
    "AuthorizationFlow",
    "AuthorizationRequest",
    "AuthorizationURLBuilder",
    "build_authorization_url",
    "build_url_for_request",
    "create_state",
]
