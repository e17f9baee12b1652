from sqlalchemy import Column, Integer, String, DateTime, Boolean, Text, ForeignKey
from sqlalchemy.orm import relationship

from ..database import Base
from ..utils import utcnow

URGENCY_LEVELS = ("normal", "urgent", "emergency")


class ContactMessage(Base):
    __tablename__ = "contact_messages"

    id = Column(Integer, primary_key=True, index=True)
    name = Column(String(120), nullable=False)
    email = Column(String(255), nullable=False, index=True)
    phone = Column(String(50), nullable=True)
    subject = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    urgency = Column(String(20), default="normal", nullable=False)
    read = Column(Boolean, default=False, nullable=False)
    replied = Column(Boolean, default=False, nullable=False)
    replied_at = Column(DateTime, nullable=True)
    replied_by = Column(String(255), nullable=True)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    replies = relationship(
        "MessageReply",
        back_populates="original_message",
        cascade="all, delete-orphan",
        order_by="MessageReply.sent_at",
    )

    @property
    def is_urgent(self) -> bool:
        return self.urgency in ("urgent", "emergency")


class MessageReply(Base):
    """Respuesta enviada por un admin a un mensaje de contacto."""

    __tablename__ = "message_replies"

    id = Column(Integer, primary_key=True, index=True)
    original_message_id = Column(Integer, ForeignKey("contact_messages.id"), nullable=False, index=True)
    sender_name = Column(String(120), nullable=False)
    sender_email = Column(String(255), nullable=True)
    recipient_email = Column(String(255), nullable=False)
    subject = Column(String(200), nullable=False)
    message = Column(Text, nullable=False)
    sent_at = Column(DateTime, default=utcnow)

    original_message = relationship("ContactMessage", back_populates="replies")
