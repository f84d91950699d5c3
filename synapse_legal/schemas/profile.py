"""User profile schemas."""

from datetime import datetime, timezone
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class Profile(BaseModel):
    """Per-user profile with the analyzed-documents counter."""

    id: str = Field(..., description="Supabase user ID")
    email: str
    name: Optional[str] = None
    created_at: datetime = Field(default_factory=lambda: datetime.now(timezone.utc))
    updated_at: Optional[datetime] = None
    documents_analyzed: int = Field(default=0, ge=0)
    subscription_tier: str = "free"


class ProfileUpdate(BaseModel):
    """Partial profile update; only the fields that are set get merged."""

    model_config = ConfigDict(extra="ignore")

    name: Optional[str] = None
    email: Optional[str] = None
    subscription_tier: Optional[str] = None
