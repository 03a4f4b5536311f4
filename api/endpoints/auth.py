"""
Authentication endpoints: sign-in, identity, logout, status, profile.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from db.database import get_db
from db.users import AuthUser, get_user_by_id, update_display_name
from identity.errors import (
    EmailNotVerifiedError,
    IdTokenVerificationError,
    RedirectURIError,
    UserResolutionError,
)
from identity.exchange_service import CodeExchangeService
from identity.jwt_utils import AppJwtClaims
from ..dependencies import get_exchange_service, optional_auth, require_auth
from ..errors import APIError
from ..models import (
    CodeExchangeRequest,
    CodeExchangeResponse,
    GoogleCredentialRequest,
    MeResponse,
    MessageResponse,
    ProfileResponse,
    ProfileUpdateRequest,
    SignInResponse,
    UserPayload,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/auth")

DISPLAY_NAME_MAX_LENGTH = 50


def _user_payload(user: AuthUser) -> UserPayload:
    return UserPayload(
        id=user.id,
        email=user.email,
        name=user.display_name,
        picture=user.avatar_url,
    )


@router.post("/google", response_model=SignInResponse, status_code=201)
async def sign_in_with_google(
    body: GoogleCredentialRequest,
    db: Session = Depends(get_db),
    service: CodeExchangeService = Depends(get_exchange_service),
):
    """Sign in with a Google ID token obtained by the client"""
    try:
        result = await service.sign_in_with_id_token(db, body.credential)
    except IdTokenVerificationError:
        raise APIError(400, "Invalid Google authentication")
    except EmailNotVerifiedError:
        raise APIError(400, "Email not verified by Google")
    except UserResolutionError:
        raise APIError(500, "User registration failed")
    except Exception as e:
        logger.exception(f"Google auth error: {e}")
        raise APIError(500, "Authentication failed")

    logger.info(f"Google sign-in complete: {result.user.email}")
    return SignInResponse(user=_user_payload(result.user), token=result.token)


@router.post("/google/code", response_model=CodeExchangeResponse)
async def exchange_google_code(
    body: CodeExchangeRequest,
    db: Session = Depends(get_db),
    service: CodeExchangeService = Depends(get_exchange_service),
):
    """Exchange an authorization code + PKCE verifier for an application session"""
    try:
        result = await service.exchange(db, body.code, body.codeVerifier, body.redirectUri)
    except (RedirectURIError, IdTokenVerificationError):
        raise APIError(400, "Invalid Google authentication")
    except EmailNotVerifiedError:
        raise APIError(400, "Email not verified by Google")
    except UserResolutionError:
        raise APIError(500, "User registration failed")
    except Exception as e:
        logger.exception(f"Code flow auth error: {e}")
        raise APIError(500, "Code flow authentication failed")

    return CodeExchangeResponse(user=_user_payload(result.user), token=result.token)


@router.get("/me", response_model=MeResponse)
def get_me(
    claims: AppJwtClaims = Depends(require_auth),
    db: Session = Depends(get_db),
):
    """Return the current user from the database"""
    row = get_user_by_id(db, claims.user_id)
    if row is None:
        raise APIError(404, "User not found")

    return MeResponse(
        id=row.id,
        email=row.email,
        name=row.display_name,
        googleId=claims.google_id,
    )


@router.post("/logout", response_model=MessageResponse)
async def logout(claims: AppJwtClaims = Depends(require_auth)):
    """Acknowledge logout; tokens are stateless and stay valid until exp"""
    logger.info(f"Logout: {claims.email}")
    return MessageResponse(message="Logged out successfully")


@router.get("/status")
async def auth_status(claims: Optional[AppJwtClaims] = Depends(optional_auth)):
    """Describe the caller's authentication without exposing the token"""
    if claims is None:
        return {"authenticated": False}

    return {
        "authenticated": True,
        "user": {
            "id": claims.user_id,
            "email": claims.email,
            "googleId": claims.google_id,
        },
        "tokenInfo": {
            "issuer": claims.issuer,
            "audience": claims.audience,
            "expiresAt": claims.expires_at,
        },
    }


@router.put("/profile", response_model=ProfileResponse)
def update_profile(
    body: ProfileUpdateRequest,
    claims: AppJwtClaims = Depends(require_auth),
    db: Session = Depends(get_db),
):
    """Change the stored display name"""
    display_name = body.displayName.strip()
    if not display_name:
        raise APIError(400, "Display name cannot be empty")
    if len(display_name) > DISPLAY_NAME_MAX_LENGTH:
        raise APIError(400, f"Display name must be {DISPLAY_NAME_MAX_LENGTH} characters or less")

    row = update_display_name(db, claims.user_id, display_name)
    if row is None:
        raise APIError(404, "User not found")

    return ProfileResponse(id=row.id, email=row.email, name=row.display_name)
