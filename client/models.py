"""Client-side session models

Stored session data is validated with these models before it is trusted.
"""

from typing import Optional
from pydantic import BaseModel, ConfigDict, Field


class SessionUser(BaseModel):
    """User as known to the client"""
    model_config = ConfigDict(extra="ignore")

    id: str = Field(min_length=1)
    email: str = Field(min_length=1)
    name: Optional[str] = None
    picture: Optional[str] = None
    googleId: Optional[str] = None


class Session(BaseModel):
    """Token, user and optional expiry (epoch seconds)"""
    user: SessionUser
    token: str = Field(min_length=1)
    expires_at: Optional[int] = None


class AuthState(BaseModel):
    """UI-facing authentication state"""
    model_config = ConfigDict(frozen=True)

    user: Optional[SessionUser] = None
    token: Optional[str] = None
    is_authenticated: bool = False
    is_loading: bool = False


LOGGED_OUT = AuthState()
