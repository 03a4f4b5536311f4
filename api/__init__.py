"""
Body Tracker auth API.

Google Authorization Code + PKCE exchange, application JWT issuance and
bearer-token protected identity endpoints.
"""
from .server import ApiServer
from .version import __version__

__all__ = [
    'ApiServer',
    '__version__',
]
