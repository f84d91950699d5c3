"""Legal assistant chat schemas."""

from typing import Any, Dict, List, Optional

from pydantic import BaseModel, Field


class ChatRequest(BaseModel):
    """Message sent to the legal assistant."""

    message: str = Field(..., description="Free-text question")
    document_id: Optional[str] = Field(None, description="Document the question refers to")
    context: Optional[Dict[str, Any]] = Field(None, description="Selected clause or other context")


class ChatResponse(BaseModel):
    """Assistant reply with follow-up suggestions."""

    response: str
    suggestions: List[str]
