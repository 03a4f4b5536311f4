"""Identity token verification"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Any, Dict, Optional, Protocol

from google.auth import exceptions as google_auth_exceptions
from google.auth.transport import requests as google_requests
from google.oauth2 import id_token as google_id_token

from oauth.constants import GOOGLE_ISSUERS
from .errors import IdTokenVerificationError

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class IdTokenClaims:
    """Verified claims of a provider identity token"""
    subject: str
    email: str
    email_verified: bool
    name: str
    picture: Optional[str]
    audience: str

    @classmethod
    def from_payload(cls, payload: Dict[str, Any]) -> "IdTokenClaims":
        # tokeninfo-style payloads carry email_verified as a string
        verified = payload.get("email_verified")
        if isinstance(verified, str):
            verified = verified.lower() == "true"

        subject = payload.get("sub")
        email = payload.get("email")
        if not subject or not email:
            raise IdTokenVerificationError("Identity token lacks sub or email")

        return cls(
            subject=str(subject),
            email=str(email),
            email_verified=verified is True,
            name=payload.get("name") or email,
            picture=payload.get("picture"),
            audience=str(payload.get("aud", "")),
        )


class IdTokenVerifier(Protocol):
    """Verifies a raw identity token for a given audience"""

    async def verify(self, token: str, audience: str) -> IdTokenClaims:
        ...


class GoogleIdTokenVerifier:
    """Verifies Google ID tokens against Google's published signing keys"""

    def __init__(self, clock_skew_in_seconds: int = 10):
        self.clock_skew_in_seconds = clock_skew_in_seconds
        self._request = google_requests.Request()

    def _verify_sync(self, token: str, audience: str) -> Dict[str, Any]:
        return google_id_token.verify_oauth2_token(
            token,
            self._request,
            audience=audience,
            clock_skew_in_seconds=self.clock_skew_in_seconds,
        )

    async def verify(self, token: str, audience: str) -> IdTokenClaims:
        """Verify signature, issuer and audience

        Raises:
            IdTokenVerificationError: If any check fails
        """
        if not audience:
            raise IdTokenVerificationError("Google client id not configured")

        try:
            # Certificate fetch is blocking
            payload = await asyncio.to_thread(self._verify_sync, token, audience)
        except (ValueError, google_auth_exceptions.GoogleAuthError) as e:
            logger.warning(f"Google token verification failed: {e}")
            raise IdTokenVerificationError("Invalid Google token") from e

        if payload.get("iss") not in GOOGLE_ISSUERS:
            raise IdTokenVerificationError("Invalid Google token issuer")

        claims = IdTokenClaims.from_payload(payload)
        if claims.audience != audience:
            raise IdTokenVerificationError("Token audience mismatch")

        logger.info(f"Google token verified for {claims.email} (verified={claims.email_verified})")
        return claims
