"""PKCE (Proof Key for Code Exchange) generation and verifier stash"""

import base64
import hashlib
import json
import logging
import secrets
import tempfile
import time
from pathlib import Path
from typing import NamedTuple, Optional

from settings import PKCE_STASH_TTL

logger = logging.getLogger(__name__)


class PKCEPair(NamedTuple):
    """PKCE code verifier and challenge pair"""
    verifier: str
    challenge: str


class StashedLogin(NamedTuple):
    """Verifier and expected state of the pending login attempt"""
    verifier: str
    state: Optional[str]
    created_at: float


def _base64url(data: bytes) -> str:
    return base64.urlsafe_b64encode(data).decode('utf-8').rstrip('=')


def compute_challenge(verifier: str) -> str:
    """Derive the S256 code challenge for a verifier"""
    return _base64url(hashlib.sha256(verifier.encode('utf-8')).digest())


def generate_pkce() -> PKCEPair:
    """
    Generate PKCE code verifier and challenge.

    RFC 7636 PKCE standard:
    - Verifier: 32 random bytes, base64url encoded without padding (43 chars)
    - Challenge: SHA-256 hash of verifier, base64url encoded

    Returns:
        PKCEPair: Tuple of (verifier, challenge)
    """
    verifier = _base64url(secrets.token_bytes(32))
    return PKCEPair(verifier=verifier, challenge=compute_challenge(verifier))


class PKCEStash:
    """Short-lived storage for the verifier of a pending login attempt

    Only one login attempt is pending at a time. Entries older than the TTL
    read as absent, which makes the callback ask for a fresh login.
    """

    def __init__(self, stash_file: Optional[Path] = None, ttl: int = PKCE_STASH_TTL):
        self.ttl = ttl
        self.stash_file = Path(stash_file) if stash_file else Path(tempfile.gettempdir()) / "body_tracker_pkce.json"

    def save(self, verifier: str, state: Optional[str] = None):
        """Stash the verifier (and expected state) for the callback"""
        self.stash_file.write_text(json.dumps({
            "code_verifier": verifier,
            "state": state,
            "created_at": time.time(),
        }))
        self.stash_file.chmod(0o600)
        logger.debug("Stashed PKCE verifier for pending login")

    def load(self) -> Optional[StashedLogin]:
        """Load the stashed login attempt

        Returns:
            StashedLogin, or None if absent, unreadable or expired
        """
        if not self.stash_file.exists():
            return None

        try:
            data = json.loads(self.stash_file.read_text())
        except (json.JSONDecodeError, UnicodeDecodeError, OSError) as e:
            logger.warning(f"Discarding unreadable PKCE stash: {e}")
            self.clear()
            return None

        verifier = data.get("code_verifier") if isinstance(data, dict) else None
        if not isinstance(verifier, str) or not verifier:
            self.clear()
            return None

        created_at = data.get("created_at", 0)
        if not isinstance(created_at, (int, float)) or time.time() - created_at > self.ttl:
            logger.info("PKCE stash expired, login must be restarted")
            self.clear()
            return None

        state = data.get("state")
        return StashedLogin(
            verifier=verifier,
            state=state if isinstance(state, str) else None,
            created_at=float(created_at),
        )

    def clear(self):
        """Clear the stash after use"""
        if self.stash_file.exists():
            self.stash_file.unlink()
