"""Authentication schemas for Supabase JWT tokens and signup."""

from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field


class JWTClaims(BaseModel):
    """JWT claims extracted from a Supabase access token."""

    sub: str = Field(..., description="Subject (user ID)")
    email: str = Field(..., description="User email")
    role: str = Field(default="authenticated", description="User role")
    exp: int = Field(..., description="Expiration timestamp")
    iat: int = Field(..., description="Issued at timestamp")
    iss: str = Field(..., description="Token issuer")

    # Optional Supabase-specific claims
    aud: Optional[str] = Field(None, description="Audience")
    app_metadata: Optional[Dict[str, Any]] = Field(None, description="Application metadata")
    user_metadata: Optional[Dict[str, Any]] = Field(None, description="User metadata")
    session_id: Optional[str] = Field(None, description="Session ID")


class CurrentUser(BaseModel):
    """Current authenticated user information."""

    id: str = Field(..., description="Supabase user ID")
    email: str = Field(..., description="User email")
    role: str = Field(default="user", description="User role")
    user_metadata: Optional[Dict[str, Any]] = Field(None, description="User metadata")


class SignupRequest(BaseModel):
    """Account creation payload."""

    email: EmailStr = Field(..., description="User email address")
    password: str = Field(..., description="Plain text password, checked against the password policy")
    name: str = Field(..., min_length=1, description="Display name")


class SignupUser(BaseModel):
    """Identity created by the auth provider."""

    id: str
    email: str
    user_metadata: Dict[str, Any] = Field(default_factory=dict)
