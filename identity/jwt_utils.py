"""
Application JWT issuance and verification.

Tokens are HS256-signed with the server secret and carry only
userId, email and googleId plus iss/aud/exp.
"""
from __future__ import annotations

import logging
import time
from dataclasses import dataclass
from typing import Any, Dict, Optional

import jwt as pyjwt

from settings import JWT_AUDIENCE, JWT_EXPIRY_DAYS, JWT_ISSUER, JWT_SECRET
from .errors import InvalidTokenError, JWTConfigurationError, TokenExpiredError

logger = logging.getLogger(__name__)

ALGORITHM = "HS256"
SECONDS_PER_DAY = 24 * 60 * 60


@dataclass(frozen=True)
class AppJwtClaims:
    """Verified claims of an application token"""
    user_id: str
    email: str
    google_id: str
    issuer: str
    audience: str
    expires_at: int

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> AppJwtClaims:
        user_id = payload.get("userId")
        email = payload.get("email")
        if not isinstance(user_id, str) or not user_id or not isinstance(email, str):
            raise InvalidTokenError("Token payload lacks userId or email")
        return cls(
            user_id=user_id,
            email=email,
            google_id=str(payload.get("googleId") or ""),
            issuer=payload["iss"],
            audience=payload["aud"],
            expires_at=int(payload["exp"]),
        )


class AppTokenService:
    """Issues and verifies application JWTs"""

    def __init__(
        self,
        secret: str = JWT_SECRET,
        issuer: str = JWT_ISSUER,
        audience: str = JWT_AUDIENCE,
        expiry_days: int = JWT_EXPIRY_DAYS,
    ):
        self.secret = secret
        self.issuer = issuer
        self.audience = audience
        self.expiry_seconds = expiry_days * SECONDS_PER_DAY

    def _require_secret(self) -> str:
        if not self.secret:
            raise JWTConfigurationError("JWT_SECRET environment variable is not set")
        return self.secret

    def issue(self, user_id: str, email: str, google_id: str, now: Optional[int] = None) -> str:
        """Sign a token for a resolved user

        Args:
            user_id: Internal user id
            email: User email
            google_id: Provider subject
            now: Override of the current time (seconds)

        Returns:
            Encoded JWT
        """
        secret = self._require_secret()
        issued_at = int(time.time()) if now is None else now
        payload = {
            "userId": user_id,
            "email": email,
            "googleId": google_id,
            "iss": self.issuer,
            "aud": self.audience,
            "exp": issued_at + self.expiry_seconds,
        }
        token = pyjwt.encode(payload, secret, algorithm=ALGORITHM)
        logger.info(f"Issued application token for {email}")
        return token

    def verify(self, token: str) -> AppJwtClaims:
        """Verify signature, issuer, audience and expiry

        Raises:
            TokenExpiredError: Token exp is in the past
            InvalidTokenError: Any other verification failure
        """
        secret = self._require_secret()
        try:
            payload = pyjwt.decode(
                token,
                secret,
                algorithms=[ALGORITHM],
                audience=self.audience,
                issuer=self.issuer,
                options={"require": ["exp", "iss", "aud"]},
            )
        except pyjwt.ExpiredSignatureError as e:
            raise TokenExpiredError("Token has expired") from e
        except pyjwt.PyJWTError as e:
            raise InvalidTokenError(f"Invalid token: {e}") from e

        return AppJwtClaims.from_payload(payload)
