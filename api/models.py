"""
Pydantic models for the auth API.
"""
from typing import Optional
from pydantic import BaseModel, Field


class CodeExchangeRequest(BaseModel):
    """Authorization code + PKCE verifier sent by the client"""
    code: str = Field(min_length=1)
    codeVerifier: str = Field(min_length=1)
    redirectUri: str = Field(min_length=1)


class UserPayload(BaseModel):
    """User as returned to the client after sign-in"""
    id: str
    email: str
    name: Optional[str] = None
    picture: Optional[str] = None


class GoogleCredentialRequest(BaseModel):
    """Google ID token obtained by the client (e.g. Google Identity Services)"""
    credential: str = Field(min_length=1)


class SignInResponse(BaseModel):
    user: UserPayload
    token: str


class CodeExchangeResponse(SignInResponse):
    flow: str = "code"


class MeResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None
    googleId: str


class ProfileUpdateRequest(BaseModel):
    displayName: str


class ProfileResponse(BaseModel):
    id: str
    email: str
    name: Optional[str] = None


class MessageResponse(BaseModel):
    message: str
