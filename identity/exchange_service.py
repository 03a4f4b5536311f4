"""Server-side sign-in: authorization code or ID token in, application session out"""

import asyncio
import logging
from dataclasses import dataclass
from typing import Iterable, Optional

import httpx
from sqlalchemy.orm import Session

from db.users import AuthUser, find_or_create_user
from .errors import EmailNotVerifiedError
from .id_token import IdTokenClaims, IdTokenVerifier
from .jwt_utils import AppTokenService
from .redirect_validation import compile_patterns, validate_redirect_uri
from .token_exchange import exchange_code_for_id_token

logger = logging.getLogger(__name__)


@dataclass
class ExchangeResult:
    """Resolved user and signed application token"""
    user: AuthUser
    token: str


class CodeExchangeService:
    """Turns a provider sign-in into an application session

    Code flow steps, each raising its own AuthFlowError subclass:
    redirect allow-list, token endpoint call, identity token verification,
    email_verified check, user resolution, token issuance. The ID token
    flow starts at identity token verification.
    """

    def __init__(
        self,
        client_id: str,
        client_secret: str,
        id_token_verifier: IdTokenVerifier,
        token_service: AppTokenService,
        redirect_patterns: Optional[Iterable[str]] = None,
        http_client: Optional[httpx.AsyncClient] = None,
        token_url: Optional[str] = None,
    ):
        self.client_id = client_id
        self.client_secret = client_secret
        self.id_token_verifier = id_token_verifier
        self.token_service = token_service
        self.redirect_patterns = compile_patterns(redirect_patterns)
        self.http_client = http_client
        self.token_url = token_url

    async def exchange(self, db: Session, code: str, code_verifier: str, redirect_uri: str) -> ExchangeResult:
        """Run the full exchange

        Args:
            db: Database session for user resolution
            code: Authorization code
            code_verifier: PKCE verifier
            redirect_uri: Redirect URI the code was issued for

        Returns:
            ExchangeResult with the user and a signed token
        """
        validate_redirect_uri(redirect_uri, self.redirect_patterns)

        kwargs = {}
        if self.token_url:
            kwargs["token_url"] = self.token_url
        provider_tokens = await exchange_code_for_id_token(
            code=code,
            code_verifier=code_verifier,
            redirect_uri=redirect_uri,
            client_id=self.client_id,
            client_secret=self.client_secret,
            client=self.http_client,
            **kwargs,
        )

        result = await self.sign_in_with_id_token(db, provider_tokens.id_token)
        logger.info(f"Code flow sign-in complete: {result.user.email}")
        return result

    async def sign_in_with_id_token(self, db: Session, id_token: str) -> ExchangeResult:
        """Verify a provider ID token and issue an application session for its user"""
        claims = await self.id_token_verifier.verify(id_token, self.client_id)
        return await self._issue_session(db, claims)

    async def _issue_session(self, db: Session, claims: IdTokenClaims) -> ExchangeResult:
        if not claims.email_verified:
            logger.warning(f"Email not verified: {claims.email}")
            raise EmailNotVerifiedError("Email not verified by Google")

        # Blocking database round trips
        user = await asyncio.to_thread(find_or_create_user, db, claims)
        token = self.token_service.issue(user.id, user.email, user.google_id)
        return ExchangeResult(user=user, token=token)
