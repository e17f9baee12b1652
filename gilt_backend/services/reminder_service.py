"""
Despacho de recordatorios y notificaciones de reservas.

Un único dispatcher maneja todos los tipos de mensaje:
- week_before / day_before / two_hours: recordatorios automáticos al cliente (cron)
- admin_notification: aviso a los admins de reservas nuevas (cron)
- custom / urgent: mensajes puntuales del staff a un cliente

Garantía de "a lo sumo una vez": antes de enviar, cada reserva se reclama con
un UPDATE condicional (NOT_SENT/FAILED -> SENT) que se commitea de inmediato.
Solo quien afecta la fila envía el email. Si el envío falla por un error
temporal el estado pasa a FAILED y la reserva vuelve a ser elegible en la
siguiente corrida; si el proveedor rechaza el envío de forma permanente pasa
a REJECTED y no se reintenta.
"""
import logging
import time
from dataclasses import dataclass, asdict
from datetime import datetime, timedelta
from enum import Enum
from typing import Callable, Optional

from sqlalchemy.orm import Session

from ..config import Settings, get_settings
from ..exceptions import BookingNotFoundError, EmailDeliveryError, EmailNotConfiguredError
from ..models.booking import (
    Booking,
    BookingMessage,
    BOOKING_STATUS_PENDING,
    BOOKING_STATUS_CONFIRMED,
    REMINDER_SENT,
    REMINDER_FAILED,
    REMINDER_REJECTED,
    REMINDER_RETRYABLE_STATES,
)
from ..utils import to_utc_naive, utcnow
from . import email_templates

logger = logging.getLogger(__name__)


class MessageType(str, Enum):
    WEEK_BEFORE = "week_before"
    DAY_BEFORE = "day_before"
    TWO_HOURS = "two_hours"
    ADMIN_NOTIFICATION = "admin_notification"
    CUSTOM = "custom"
    URGENT = "urgent"


# Columnas (estado, timestamp) de Booking para cada tipo con marca de envío
STATE_COLUMNS = {
    MessageType.WEEK_BEFORE: ("week_before_reminder", "week_before_reminder_at"),
    MessageType.DAY_BEFORE: ("day_before_reminder", "day_before_reminder_at"),
    MessageType.TWO_HOURS: ("two_hours_reminder", "two_hours_reminder_at"),
    MessageType.ADMIN_NOTIFICATION: ("admin_notification", "admin_notification_at"),
}


@dataclass(frozen=True)
class ReminderWindow:
    """
    Ventana de envío expresada como tiempo restante hasta la cita:
    closes < (scheduled_at - now) <= opens
    Con closes_inclusive el límite inferior también entra (la última ventana llega hasta la hora de la cita).
    """

    message_type: MessageType
    opens: timedelta
    closes: timedelta
    closes_inclusive: bool = False

    def bounds(self, now: datetime) -> tuple[datetime, datetime]:
        return now + self.closes, now + self.opens


# Ventanas disjuntas: una reserva cae como mucho en una por corrida
REMINDER_WINDOWS = (
    ReminderWindow(MessageType.WEEK_BEFORE, opens=timedelta(days=7), closes=timedelta(hours=24)),
    ReminderWindow(MessageType.DAY_BEFORE, opens=timedelta(hours=24), closes=timedelta(hours=2)),
    ReminderWindow(MessageType.TWO_HOURS, opens=timedelta(hours=2), closes=timedelta(0), closes_inclusive=True),
)

ACTIVE_BOOKING_STATUSES = (BOOKING_STATUS_PENDING, BOOKING_STATUS_CONFIRMED)


def _failure_state(exc: Exception) -> str:
    """REJECTED solo para rechazos permanentes del proveedor; el resto se reintenta."""
    if isinstance(exc, EmailDeliveryError) and not exc.transient and not isinstance(exc, EmailNotConfiguredError):
        return REMINDER_REJECTED
    return REMINDER_FAILED


@dataclass
class ReminderResult:
    sent: int = 0
    failed: int = 0
    skipped: int = 0  # reclamadas por otra corrida concurrente
    deferred: int = 0  # no procesadas por timeout del lote

    def as_dict(self) -> dict:
        return asdict(self)


class ReminderDispatcher:
    def __init__(
        self,
        db: Session,
        email_client,
        settings: Optional[Settings] = None,
        monotonic: Callable[[], float] = time.monotonic,
    ):
        self.db = db
        self.email_client = email_client
        self.settings = settings or get_settings()
        self._monotonic = monotonic

    # ------------------------------------------------------------------
    # Recordatorios automáticos
    # ------------------------------------------------------------------

    def send_appointment_reminders(self, now: Optional[datetime] = None) -> ReminderResult:
        """
        Envía un recordatorio por cada reserva activa cuya cita cae dentro de
        alguna ventana y que todavía no recibió ese recordatorio.
        """
        now = to_utc_naive(now) if now else utcnow()
        deadline = self._monotonic() + self.settings.reminder_batch_timeout_seconds
        result = ReminderResult()

        for window in REMINDER_WINDOWS:
            booking_ids = self._due_booking_ids(window, now)
            if booking_ids:
                logger.info(f"⏰ {len(booking_ids)} reservas para recordatorio '{window.message_type.value}'")
            for booking_id in booking_ids:
                if self._monotonic() > deadline:
                    result.deferred += 1
                    continue
                self._dispatch(
                    booking_id,
                    window.message_type,
                    now,
                    result,
                    lambda booking, mt=window.message_type: self._send_appointment_reminder(booking, mt),
                )

        if result.deferred:
            logger.warning(f"⚠️ Timeout del lote: {result.deferred} recordatorios quedan para la próxima corrida")
        logger.info(f"✅ Recordatorios: {result.as_dict()}")
        return result

    def send_admin_notifications(self, now: Optional[datetime] = None) -> ReminderResult:
        """Avisa a los admins de las reservas creadas en las últimas horas que aún no fueron notificadas."""
        now = to_utc_naive(now) if now else utcnow()
        result = ReminderResult()
        recipients = self.settings.admin_emails
        if not recipients:
            logger.warning("ADMIN_EMAIL no configurado, no se enviarán notificaciones de reservas")
            return result

        since = now - timedelta(hours=self.settings.admin_notification_lookback_hours)
        state_column = getattr(Booking, STATE_COLUMNS[MessageType.ADMIN_NOTIFICATION][0])
        rows = (
            self.db.query(Booking.id)
            .filter(
                Booking.created_at >= since,
                Booking.created_at <= now,
                state_column.in_(REMINDER_RETRYABLE_STATES),
            )
            .order_by(Booking.created_at.asc())
            .all()
        )

        deadline = self._monotonic() + self.settings.reminder_batch_timeout_seconds
        for (booking_id,) in rows:
            if self._monotonic() > deadline:
                result.deferred += 1
                continue
            self._dispatch(
                booking_id,
                MessageType.ADMIN_NOTIFICATION,
                now,
                result,
                lambda booking: self._send_admin_notification(booking, recipients),
            )

        logger.info(f"✅ Notificaciones a admins: {result.as_dict()}")
        return result

    # ------------------------------------------------------------------
    # Mensajes puntuales
    # ------------------------------------------------------------------

    def send_custom_reminder(self, booking_id: int, message: str, subject: Optional[str] = None) -> BookingMessage:
        return self.send_booking_message(booking_id, message, subject, MessageType.CUSTOM)

    def send_urgent_reminder(self, booking_id: int, message: str, subject: Optional[str] = None) -> BookingMessage:
        return self.send_booking_message(booking_id, message, subject, MessageType.URGENT)

    def send_booking_message(
        self,
        booking_id: int,
        message: str,
        subject: Optional[str],
        message_type: MessageType,
    ) -> BookingMessage:
        """
        Envía un mensaje al email de contacto de la reserva y lo registra.

        Raises:
            BookingNotFoundError: si la reserva no existe
            EmailDeliveryError: si el envío falla (queda registrado como FAILED)
        """
        if message_type not in (MessageType.CUSTOM, MessageType.URGENT):
            raise ValueError(f"Unsupported message type for booking messages: {message_type}")

        booking = self.db.get(Booking, booking_id)
        if booking is None:
            raise BookingNotFoundError(booking_id)

        email_subject, html = email_templates.booking_message(
            booking, message, subject, urgent=message_type == MessageType.URGENT
        )
        record = BookingMessage(
            booking_id=booking.id,
            kind=message_type.value,
            subject=email_subject,
            message=message,
        )
        try:
            self.email_client.send(booking.user_email, email_subject, html)
        except EmailDeliveryError as e:
            logger.error(f"❌ Falló el mensaje {message_type.value} para la reserva {booking.id}: {e}")
            record.outcome = REMINDER_FAILED
            record.error = str(e)[:500]
            self.db.add(record)
            self.db.commit()
            raise

        record.outcome = REMINDER_SENT
        self.db.add(record)
        self.db.commit()
        self.db.refresh(record)
        logger.info(f"📨 Mensaje {message_type.value} enviado para la reserva {booking.id}")
        return record

    # ------------------------------------------------------------------
    # Internos
    # ------------------------------------------------------------------

    def _due_booking_ids(self, window: ReminderWindow, now: datetime) -> list[int]:
        low, high = window.bounds(now)
        state_column = getattr(Booking, STATE_COLUMNS[window.message_type][0])
        rows = (
            self.db.query(Booking.id)
            .filter(
                Booking.status.in_(ACTIVE_BOOKING_STATUSES),
                Booking.scheduled_at >= low if window.closes_inclusive else Booking.scheduled_at > low,
                Booking.scheduled_at <= high,
                state_column.in_(REMINDER_RETRYABLE_STATES),
            )
            .order_by(Booking.scheduled_at.asc())
            .all()
        )
        return [booking_id for (booking_id,) in rows]

    def _claim(self, booking_id: int, message_type: MessageType, now: datetime) -> bool:
        """UPDATE condicional: True solo para quien pasa la reserva a SENT."""
        state_name, at_name = STATE_COLUMNS[message_type]
        state_column = getattr(Booking, state_name)
        claimed = (
            self.db.query(Booking)
            .filter(Booking.id == booking_id, state_column.in_(REMINDER_RETRYABLE_STATES))
            .update(
                {state_column: REMINDER_SENT, getattr(Booking, at_name): now},
                synchronize_session=False,
            )
        )
        self.db.commit()
        return claimed == 1

    def _mark_failed(self, booking_id: int, message_type: MessageType, state: str = REMINDER_FAILED):
        state_name, _ = STATE_COLUMNS[message_type]
        state_column = getattr(Booking, state_name)
        (
            self.db.query(Booking)
            .filter(Booking.id == booking_id, state_column == REMINDER_SENT)
            .update({state_column: state}, synchronize_session=False)
        )
        self.db.commit()

    def _dispatch(self, booking_id, message_type, now, result: ReminderResult, send):
        if not self._claim(booking_id, message_type, now):
            logger.info(f"Reserva {booking_id} ya reclamada para '{message_type.value}', se omite")
            result.skipped += 1
            return

        booking = self.db.get(Booking, booking_id)
        try:
            send(booking)
        except Exception as e:
            # Un envío fallido no corta el lote
            logger.error(
                f"❌ Falló '{message_type.value}' para la reserva {booking_id}: {e}",
                exc_info=not isinstance(e, EmailDeliveryError),
            )
            self._mark_failed(booking_id, message_type, _failure_state(e))
            result.failed += 1
        else:
            result.sent += 1

    def _send_appointment_reminder(self, booking: Booking, message_type: MessageType):
        subject, html = email_templates.appointment_reminder(booking, message_type.value)
        self.email_client.send(booking.user_email, subject, html)

    def _send_admin_notification(self, booking: Booking, recipients: list[str]):
        dashboard_url = f"{self.settings.app_url}/dashboard/bookings"
        subject, html = email_templates.admin_booking_notification(booking, dashboard_url)
        self.email_client.send(recipients, subject, html, reply_to=booking.user_email)
