"""Result / error modelling for client auth flows

Client operations return Ok or Err instead of raising, so callers branch
on ``result.ok``.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Callable, Generic, Optional, TypeVar, Union

T = TypeVar("T")


class AuthErrorCode(str, Enum):
    CODE_MISSING = "CODE_MISSING"
    STATE_MISMATCH = "STATE_MISMATCH"
    PKCE_VERIFIER_MISSING = "PKCE_VERIFIER_MISSING"
    CODE_EXCHANGE_FAILED = "CODE_EXCHANGE_FAILED"
    TOKEN_EXPIRED = "TOKEN_EXPIRED"
    INVALID_TOKEN = "INVALID_TOKEN"
    NETWORK_ERROR = "NETWORK_ERROR"
    SERVER_UNAVAILABLE = "SERVER_UNAVAILABLE"
    USER_INFO_FAILED = "USER_INFO_FAILED"
    UNKNOWN = "UNKNOWN"


@dataclass(frozen=True)
class AuthError:
    code: AuthErrorCode
    message: str
    cause: Optional[Any] = None


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    ok: bool = True


@dataclass(frozen=True)
class Err:
    error: AuthError
    ok: bool = False


Result = Union[Ok[T], Err]


def ok(value: T) -> Ok[T]:
    return Ok(value)


def err(error: AuthError) -> Err:
    return Err(error)


def to_auth_error(code: AuthErrorCode, message: str, cause: Optional[Any] = None) -> AuthError:
    return AuthError(code=code, message=message, cause=cause)


def map_error(result: "Result[T]", fn: Callable[[AuthError], AuthError]) -> "Result[T]":
    """Transform the error of a failed result; successes pass through"""
    if result.ok:
        return result
    return err(fn(result.error))


_MESSAGES = {
    AuthErrorCode.CODE_MISSING: "The sign-in response was incomplete. Please return home and try again.",
    AuthErrorCode.STATE_MISMATCH: "The sign-in response could not be verified. Please return home and try again.",
    AuthErrorCode.PKCE_VERIFIER_MISSING: "Your sign-in attempt expired. Please start the login again.",
    AuthErrorCode.CODE_EXCHANGE_FAILED: "Google sign-in failed. Please try again.",
    AuthErrorCode.TOKEN_EXPIRED: "Your session has expired. Please log in again.",
    AuthErrorCode.INVALID_TOKEN: "Your session is no longer valid. Please log in again.",
    AuthErrorCode.NETWORK_ERROR: "A network error occurred. Please check your connection.",
    AuthErrorCode.SERVER_UNAVAILABLE: "The server is unavailable. Please try again later.",
}


def get_auth_error_message(error: Optional[AuthError]) -> str:
    """User-facing message for an auth error"""
    if error is None:
        return "An unknown error occurred."
    return _MESSAGES.get(error.code, error.message or "An unknown error occurred.")
