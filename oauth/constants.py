"""
Google OAuth constants
"""

# Provider endpoints
GOOGLE_AUTHORIZE_URL = "https://accounts.google.com/o/oauth2/v2/auth"
GOOGLE_TOKEN_URL = "https://oauth2.googleapis.com/token"
GOOGLE_ISSUERS = ("accounts.google.com", "https://accounts.google.com")

# Authorization request defaults
DEFAULT_SCOPE = "openid email profile"
DEFAULT_PROMPT = "consent"
CODE_CHALLENGE_METHOD = "S256"

# Fixed login marker echoed back by the provider (see OAUTH_RANDOM_STATE)
LOGIN_STATE = "login"

# Client callback route
CALLBACK_PATH = "/auth/callback"
