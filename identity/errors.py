"""Exceptions raised by the server-side sign-in and token code"""


class AuthFlowError(Exception):
    """Base class for failures of the code exchange flow"""


class RedirectURIError(AuthFlowError):
    """Redirect URI is not on the allow-list"""


class CodeExchangeError(AuthFlowError):
    """Provider token endpoint call failed or returned no identity token"""


class IdTokenVerificationError(AuthFlowError):
    """Identity token failed signature, issuer or audience checks"""


class EmailNotVerifiedError(AuthFlowError):
    """Provider did not vouch for the email address"""


class UserResolutionError(AuthFlowError):
    """Local user could not be found or created"""


class JWTConfigurationError(Exception):
    """Signing secret is not configured"""


class AppTokenError(Exception):
    """Base class for application token verification failures"""


class TokenExpiredError(AppTokenError):
    """Token signature is valid but exp is in the past"""


class InvalidTokenError(AppTokenError):
    """Token is malformed, tampered with, or has wrong issuer/audience"""
