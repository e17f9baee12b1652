from typing import Optional

from pydantic import BaseModel, Field


class BookingMessageRequest(BaseModel):
    """Body de /reminders/custom y /reminders/urgent (acepta bookingId o booking_id)."""

    booking_id: int = Field(..., alias="bookingId", gt=0)
    message: str = Field(..., min_length=1, max_length=5000)
    subject: Optional[str] = Field(default=None, max_length=255)

    model_config = {"populate_by_name": True}


class ReminderRunDetails(BaseModel):
    sent: int
    failed: int
    skipped: int
    deferred: int


class ReminderRunResponse(BaseModel):
    success: bool
    message: str
    details: ReminderRunDetails


class BookingMessageResponse(BaseModel):
    success: bool
    message: str
    messageId: int
