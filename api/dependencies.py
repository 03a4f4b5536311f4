"""
Request-scoped dependencies: services and bearer-token authentication.

require_auth rejects unauthenticated requests with 401; optional_auth
verifies the same way but lets guests through. Both store the verified
claims (or None) on request.state.user.
"""
import logging
from typing import Optional

from fastapi import Depends, Request

from identity.errors import InvalidTokenError, JWTConfigurationError, TokenExpiredError
from identity.exchange_service import CodeExchangeService
from identity.id_token import GoogleIdTokenVerifier
from identity.jwt_utils import AppJwtClaims, AppTokenService
from settings import ALLOWED_REDIRECT_PATTERNS, GOOGLE_CLIENT_ID, GOOGLE_CLIENT_SECRET
from .errors import APIError

logger = logging.getLogger(__name__)

BEARER_PREFIX = "Bearer "

_token_service: Optional[AppTokenService] = None
_id_token_verifier: Optional[GoogleIdTokenVerifier] = None


def get_token_service() -> AppTokenService:
    """Process-wide token service configured from settings"""
    global _token_service
    if _token_service is None:
        _token_service = AppTokenService()
    return _token_service


def get_exchange_service(token_service: AppTokenService = Depends(get_token_service)) -> CodeExchangeService:
    global _id_token_verifier
    if _id_token_verifier is None:
        _id_token_verifier = GoogleIdTokenVerifier()
    return CodeExchangeService(
        client_id=GOOGLE_CLIENT_ID,
        client_secret=GOOGLE_CLIENT_SECRET,
        id_token_verifier=_id_token_verifier,
        token_service=token_service,
        redirect_patterns=ALLOWED_REDIRECT_PATTERNS,
    )


def extract_bearer_token(authorization: Optional[str]) -> str:
    """Pull the token out of an Authorization header value

    Raises:
        APIError: 401 for a missing header, non-Bearer scheme or empty token
    """
    if not authorization:
        raise APIError(401, "Authorization header required")

    if not authorization.startswith(BEARER_PREFIX):
        raise APIError(401, "Bearer token required")

    token = authorization[len(BEARER_PREFIX):].strip()
    if not token:
        raise APIError(401, "Token is empty")

    return token


def verify_bearer_token(token: str, token_service: AppTokenService) -> AppJwtClaims:
    """Verify a bearer token, translating failures into 401 responses"""
    try:
        return token_service.verify(token)
    except TokenExpiredError:
        raise APIError(401, "Token has expired. Please login again.", code="TOKEN_EXPIRED")
    except InvalidTokenError as e:
        logger.info(f"Rejected bearer token: {e}")
        raise APIError(401, "Invalid token. Please login again.", code="INVALID_TOKEN")
    except JWTConfigurationError as e:
        logger.error(f"Cannot verify bearer token: {e}")
        raise APIError(401, "Authentication failed")


async def require_auth(
    request: Request,
    token_service: AppTokenService = Depends(get_token_service),
) -> AppJwtClaims:
    """Reject the request unless it carries a valid application token"""
    token = extract_bearer_token(request.headers.get("Authorization"))
    claims = verify_bearer_token(token, token_service)
    request.state.user = claims
    logger.debug(f"Authenticated request from {claims.email}")
    return claims


async def optional_auth(
    request: Request,
    token_service: AppTokenService = Depends(get_token_service),
) -> Optional[AppJwtClaims]:
    """Authenticate if possible; on any failure continue as a guest"""
    request.state.user = None
    try:
        token = extract_bearer_token(request.headers.get("Authorization"))
        claims = verify_bearer_token(token, token_service)
    except APIError as e:
        logger.debug(f"Optional auth skipped: {e.message}")
        return None

    request.state.user = claims
    return claims
