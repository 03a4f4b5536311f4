"""Redirect URI allow-list for the code exchange endpoint"""

import logging
import re
from typing import Iterable, List, Optional, Pattern

from settings import ALLOWED_REDIRECT_PATTERNS
from .errors import RedirectURIError

logger = logging.getLogger(__name__)


def compile_patterns(patterns: Optional[Iterable[str]] = None) -> List[Pattern[str]]:
    """Compile allow-list patterns (defaults to ALLOWED_REDIRECT_PATTERNS)"""
    if patterns is None:
        patterns = ALLOWED_REDIRECT_PATTERNS
    return [re.compile(p) for p in patterns]


def is_allowed_redirect_uri(redirect_uri: str, patterns: Iterable[Pattern[str]]) -> bool:
    """Check a redirect URI against compiled patterns (full match only)"""
    return any(pattern.fullmatch(redirect_uri) for pattern in patterns)


def validate_redirect_uri(redirect_uri: str, patterns: Iterable[Pattern[str]]) -> None:
    """Raise RedirectURIError unless the URI matches the allow-list"""
    if not redirect_uri or not is_allowed_redirect_uri(redirect_uri, patterns):
        logger.warning(f"Rejected redirect URI: {redirect_uri[:80]!r}")
        raise RedirectURIError("Invalid redirectUri")
