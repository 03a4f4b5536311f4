from pathlib import Path
from config.loader import get_config_loader

config = get_config_loader()

# Server configuration
PORT = config.get("PORT", 8000)
LOG_LEVEL = config.get("LOG_LEVEL", "info")
BIND_ADDRESS = config.get("BIND_ADDRESS", "0.0.0.0")
API_PREFIX = "/api"

# Google OAuth client (secret never leaves the server)
GOOGLE_CLIENT_ID = config.get_secret("GOOGLE_CLIENT_ID")
GOOGLE_CLIENT_SECRET = config.get_secret("GOOGLE_CLIENT_SECRET")

# Application JWT
JWT_SECRET = config.get_secret("JWT_SECRET")
JWT_ISSUER = config.get("JWT_ISSUER", "body-tracker")
JWT_AUDIENCE = config.get("JWT_AUDIENCE", "body-tracker-users")
JWT_EXPIRY_DAYS = config.get("JWT_EXPIRY_DAYS", 30)

# Database
DATABASE_URL = config.get("DATABASE_URL", "sqlite:///body_tracker.db")

# Redirect URIs accepted by the code exchange endpoint
ALLOWED_REDIRECT_PATTERNS = config.get_list("ALLOWED_REDIRECT_PATTERNS", [
    r"^http://localhost:3000/(gsi-test\.html|auth/callback)$",
    r"^https://body-tracker\.pages\.dev/auth/callback$",
    r"^https://[a-z0-9-]+\.body-tracker\.pages\.dev/auth/callback$",  # preview deployments
])

# Timeout for server-to-provider and client-to-server calls
HTTP_TIMEOUT = config.get("HTTP_TIMEOUT", 10.0)

# Client side
FRONTEND_URL = config.get("FRONTEND_URL", "http://localhost:3000")
API_BASE_URL = config.get("API_BASE_URL", "http://localhost:8000/api")
SESSION_FILE = config.get("SESSION_FILE", str(Path.home() / ".body-tracker" / "session.json"))
PKCE_STASH_TTL = config.get("PKCE_STASH_TTL", 600)
OAUTH_RANDOM_STATE = config.get("OAUTH_RANDOM_STATE", False)
CALLBACK_PORT = config.get("CALLBACK_PORT", 3000)
CALLBACK_TIMEOUT = config.get("CALLBACK_TIMEOUT", 300)
