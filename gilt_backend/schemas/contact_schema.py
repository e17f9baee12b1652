from datetime import datetime
from typing import Literal, Optional

from pydantic import BaseModel, EmailStr, Field


class ContactForm(BaseModel):
    name: str = Field(..., min_length=1, max_length=120)
    email: EmailStr
    phone: Optional[str] = Field(default=None, max_length=50)
    subject: str = Field(..., min_length=1, max_length=200)
    message: str = Field(..., min_length=1, max_length=5000)
    urgency: Literal["normal", "urgent", "emergency"] = "normal"


class ContactMessageOut(BaseModel):
    id: int
    name: str
    email: str
    phone: Optional[str] = None
    subject: str
    message: str
    urgency: str
    read: bool
    replied: bool
    replied_at: Optional[datetime] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class ContactMessageUpdate(BaseModel):
    read: Optional[bool] = None
    replied: Optional[bool] = None


class MessageReplyRequest(BaseModel):
    """Body de /messages/reply (acepta camelCase o snake_case)."""

    message_id: int = Field(..., alias="messageId", gt=0)
    reply_subject: str = Field(..., alias="replySubject", min_length=1, max_length=200)
    reply_message: str = Field(..., alias="replyMessage", min_length=1, max_length=10000)
    sender_name: Optional[str] = Field(default=None, alias="senderName", max_length=120)

    model_config = {"populate_by_name": True}


class MessageReplyResponse(BaseModel):
    success: bool
    message: str
    replyId: int
