"""Pydantic schemas."""
from typing import Any, Dict, Optional

from pydantic import BaseModel, ConfigDict, Field


class AttachmentInfo(BaseModel):
    """Attachment metadata sent alongside a non-text message."""
    model_config = ConfigDict(populate_by_name=True, extra="allow")

    file_id: Optional[str] = Field(default=None, alias="fileId")
    duration: Optional[int] = None
    width: Optional[int] = None
    height: Optional[int] = None
    file_name: Optional[str] = Field(default=None, alias="fileName")


class MessageRequest(BaseModel):
    """Inbound message schema."""
    session_id: str
    merchant_id: str
    message_type: str = "text"  # text, voice, audio, photo, document
    content: str = ""
    attachment_info: Optional[AttachmentInfo] = None

    def attachment_dict(self) -> Dict[str, Any]:
        if self.attachment_info is None:
            return {}
        return self.attachment_info.model_dump(exclude_none=True)


class MessageResponse(BaseModel):
    """Reply payload; handler-specific fields (listing_id, matches, ...) pass through."""
    model_config = ConfigDict(extra="allow")

    ai_response: str
    intent: str
    success: Optional[bool] = None
    error: Optional[str] = None


class HealthResponse(BaseModel):
    status: str
    provider: str
    model: str
    base_url: str
    credential_configured: bool
