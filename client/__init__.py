"""Client side of the sign-in flow: callback handling, session storage and state"""

from .result import (
    AuthError,
    AuthErrorCode,
    Err,
    Ok,
    Result,
    err,
    get_auth_error_message,
    map_error,
    ok,
    to_auth_error,
)
from .models import LOGGED_OUT, AuthState, Session, SessionUser
from .session_store import (
    AUTH_STORAGE_KEYS,
    FileBackend,
    KeyValueBackend,
    MemoryBackend,
    SessionStorageError,
    SessionStore,
)
from .api_client import AuthApiClient, read_token_expiry
from .callback import CallbackCoordinator, callback_redirect_uri
from .callback_server import CallbackListener
from .reconciler import SessionReconciler, merge

__all__ = [
    # Results
    "AuthError",
    "AuthErrorCode",
    "Err",
    "Ok",
    "Result",
    "err",
    "get_auth_error_message",
    "map_error",
    "ok",
    "to_auth_error",
    # Models
    "LOGGED_OUT",
    "AuthState",
    "Session",
    "SessionUser",
    # Storage
    "AUTH_STORAGE_KEYS",
    "FileBackend",
    "KeyValueBackend",
    "MemoryBackend",
    "SessionStorageError",
    "SessionStore",
    # API / flow
    "AuthApiClient",
    "read_token_expiry",
    "CallbackCoordinator",
    "callback_redirect_uri",
    "CallbackListener",
    "SessionReconciler",
    "merge",
]
