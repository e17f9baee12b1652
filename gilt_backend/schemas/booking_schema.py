from datetime import datetime
from typing import List, Literal, Optional

from pydantic import BaseModel


class BookingMessageOut(BaseModel):
    id: int
    kind: str
    subject: Optional[str] = None
    message: str
    outcome: str
    error: Optional[str] = None
    created_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BookingOut(BaseModel):
    id: int
    booking_reference: Optional[str] = None
    tidycal_booking_id: Optional[str] = None
    user_name: Optional[str] = None
    user_email: str
    user_phone: Optional[str] = None
    service: Optional[str] = None
    scheduled_at: datetime
    duration: Optional[str] = None
    meeting_url: Optional[str] = None
    notes: Optional[str] = None
    status: str
    week_before_reminder: str
    day_before_reminder: str
    two_hours_reminder: str
    admin_notification: str
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    model_config = {"from_attributes": True}


class BookingDetailOut(BookingOut):
    messages: List[BookingMessageOut] = []


class BookingStatusUpdate(BaseModel):
    status: Literal["PENDING", "CONFIRMED", "CANCELLED", "COMPLETED"]
