"""
Server-side identity: code exchange pieces and application tokens.

CodeExchangeService lives in identity.exchange_service and is imported
from there directly (it depends on the db package).
"""
from .errors import (
    AuthFlowError,
    RedirectURIError,
    CodeExchangeError,
    IdTokenVerificationError,
    EmailNotVerifiedError,
    UserResolutionError,
    JWTConfigurationError,
    AppTokenError,
    TokenExpiredError,
    InvalidTokenError,
)
from .id_token import GoogleIdTokenVerifier, IdTokenClaims, IdTokenVerifier
from .jwt_utils import AppJwtClaims, AppTokenService
from .redirect_validation import compile_patterns, is_allowed_redirect_uri, validate_redirect_uri
from .token_exchange import ProviderTokens, exchange_code_for_id_token

__all__ = [
    # Errors
    "AuthFlowError",
    "RedirectURIError",
    "CodeExchangeError",
    "IdTokenVerificationError",
    "EmailNotVerifiedError",
    "UserResolutionError",
    "JWTConfigurationError",
    "AppTokenError",
    "TokenExpiredError",
    "InvalidTokenError",
    # Identity tokens
    "GoogleIdTokenVerifier",
    "IdTokenClaims",
    "IdTokenVerifier",
    # Application tokens
    "AppJwtClaims",
    "AppTokenService",
    # Redirect validation
    "compile_patterns",
    "is_allowed_redirect_uri",
    "validate_redirect_uri",
    # Token exchange
    "ProviderTokens",
    "exchange_code_for_id_token",
]
