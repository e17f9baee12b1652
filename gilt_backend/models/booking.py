from sqlalchemy import Column, Integer, String, DateTime, Text, ForeignKey
from sqlalchemy.orm import relationship

from ..database import Base
from ..utils import generate_booking_reference, utcnow

# Estados de la reserva
BOOKING_STATUS_PENDING = "PENDING"
BOOKING_STATUS_CONFIRMED = "CONFIRMED"
BOOKING_STATUS_CANCELLED = "CANCELLED"
BOOKING_STATUS_COMPLETED = "COMPLETED"

BOOKING_STATUSES = (
    BOOKING_STATUS_PENDING,
    BOOKING_STATUS_CONFIRMED,
    BOOKING_STATUS_CANCELLED,
    BOOKING_STATUS_COMPLETED,
)

# Estado de cada recordatorio: NOT_SENT -> SENT, o NOT_SENT -> SENT -> FAILED / REJECTED si el envío falla.
# FAILED (error temporal) vuelve a ser elegible en la siguiente corrida; REJECTED (rechazo permanente) no.
REMINDER_NOT_SENT = "NOT_SENT"
REMINDER_SENT = "SENT"
REMINDER_FAILED = "FAILED"
REMINDER_REJECTED = "REJECTED"

REMINDER_RETRYABLE_STATES = (REMINDER_NOT_SENT, REMINDER_FAILED)


class Booking(Base):
    __tablename__ = "bookings"

    id = Column(Integer, primary_key=True, index=True)
    booking_reference = Column(String(40), unique=True, nullable=True, index=True, default=generate_booking_reference)
    tidycal_booking_id = Column(String(100), nullable=True, index=True)

    # Datos del cliente
    user_name = Column(String(255), nullable=True)
    user_email = Column(String(255), nullable=False, index=True)
    user_phone = Column(String(50), nullable=True)

    # Datos de la cita (scheduled_at siempre en UTC)
    service = Column(String(255), nullable=True)
    scheduled_at = Column(DateTime, nullable=False, index=True)
    duration = Column(String(50), default="60 minutes")
    meeting_url = Column(String(500), nullable=True)
    notes = Column(Text, nullable=True)
    status = Column(String(20), default=BOOKING_STATUS_PENDING, nullable=False, index=True)

    # Un estado por tipo de recordatorio (ver reminder_service.MessageType)
    week_before_reminder = Column(String(20), default=REMINDER_NOT_SENT, nullable=False)
    week_before_reminder_at = Column(DateTime, nullable=True)
    day_before_reminder = Column(String(20), default=REMINDER_NOT_SENT, nullable=False)
    day_before_reminder_at = Column(DateTime, nullable=True)
    two_hours_reminder = Column(String(20), default=REMINDER_NOT_SENT, nullable=False)
    two_hours_reminder_at = Column(DateTime, nullable=True)
    admin_notification = Column(String(20), default=REMINDER_NOT_SENT, nullable=False)
    admin_notification_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    messages = relationship(
        "BookingMessage",
        back_populates="booking",
        cascade="all, delete-orphan",
        order_by="BookingMessage.created_at",
    )

    @property
    def reference(self) -> str:
        return self.booking_reference or str(self.id)


class BookingMessage(Base):
    """Mensajes puntuales (custom / urgent) enviados al cliente de una reserva."""

    __tablename__ = "booking_messages"

    id = Column(Integer, primary_key=True, index=True)
    booking_id = Column(Integer, ForeignKey("bookings.id"), nullable=False, index=True)
    kind = Column(String(20), nullable=False)  # custom, urgent
    subject = Column(String(255), nullable=True)
    message = Column(Text, nullable=False)
    outcome = Column(String(20), nullable=False)  # SENT, FAILED
    error = Column(String(500), nullable=True)
    created_at = Column(DateTime, default=utcnow)

    booking = relationship("Booking", back_populates="messages")
