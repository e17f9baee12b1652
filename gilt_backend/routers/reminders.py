"""
Router de recordatorios y notificaciones de reservas.

- /reminders/send y /admin-notifications: los dispara el cron con Authorization: Bearer <CRON_SECRET>
- /reminders/custom y /reminders/urgent: requieren sesión de admin
"""
import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from ..database import get_db
from ..exceptions import BookingNotFoundError, EmailDeliveryError
from ..schemas.reminder_schema import BookingMessageRequest, BookingMessageResponse, ReminderRunResponse
from ..security import SessionUser, require_admin, verify_cron_secret
from ..services.email_client import EmailClient, get_email_client
from ..services.reminder_service import MessageType, ReminderDispatcher

logger = logging.getLogger(__name__)
router = APIRouter(tags=["reminders"])


def get_dispatcher(
    db: Session = Depends(get_db),
    email_client: EmailClient = Depends(get_email_client),
) -> ReminderDispatcher:
    return ReminderDispatcher(db, email_client)


@router.post(
    "/reminders/send",
    response_model=ReminderRunResponse,
    dependencies=[Depends(verify_cron_secret)],
)
def send_appointment_reminders(dispatcher: ReminderDispatcher = Depends(get_dispatcher)):
    """
    Envía los recordatorios de citas pendientes.
    Un envío fallido no corta el lote: se reporta en el conteo de fallidos.
    """
    logger.info("⏰ Iniciando envío de recordatorios...")
    try:
        result = dispatcher.send_appointment_reminders()
    except Exception as e:
        logger.error(f"❌ Error en el sistema de recordatorios: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    return ReminderRunResponse(
        success=True,
        message=f"Sent {result.sent} reminders, {result.failed} failed",
        details=result.as_dict(),
    )


@router.post(
    "/admin-notifications",
    response_model=ReminderRunResponse,
    dependencies=[Depends(verify_cron_secret)],
)
def send_admin_notifications(dispatcher: ReminderDispatcher = Depends(get_dispatcher)):
    """Avisa a los admins de las reservas nuevas."""
    try:
        result = dispatcher.send_admin_notifications()
    except Exception as e:
        logger.error(f"❌ Error en notificaciones a admins: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    return ReminderRunResponse(
        success=True,
        message=f"Sent {result.sent} admin notifications",
        details=result.as_dict(),
    )


def _send_booking_message(
    dispatcher: ReminderDispatcher,
    payload: BookingMessageRequest,
    message_type: MessageType,
    admin: SessionUser,
) -> BookingMessageResponse:
    try:
        record = dispatcher.send_booking_message(
            payload.booking_id, payload.message, payload.subject, message_type
        )
    except BookingNotFoundError:
        raise HTTPException(status_code=404, detail="Booking not found")
    except EmailDeliveryError:
        raise HTTPException(status_code=500, detail="Failed to send the message")
    except Exception as e:
        logger.error(f"❌ Error enviando mensaje {message_type.value}: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Internal server error")

    logger.info(f"Mensaje {message_type.value} enviado por {admin.email or admin.id} (reserva {payload.booking_id})")
    label = "Urgent" if message_type == MessageType.URGENT else "Custom"
    return BookingMessageResponse(
        success=True,
        message=f"{label} reminder sent successfully",
        messageId=record.id,
    )


@router.post("/reminders/custom", response_model=BookingMessageResponse)
def send_custom_reminder(
    payload: BookingMessageRequest,
    admin: SessionUser = Depends(require_admin),
    dispatcher: ReminderDispatcher = Depends(get_dispatcher),
):
    return _send_booking_message(dispatcher, payload, MessageType.CUSTOM, admin)


@router.post("/reminders/urgent", response_model=BookingMessageResponse)
@router.post("/urgent-reminder", response_model=BookingMessageResponse, include_in_schema=False)
def send_urgent_reminder(
    payload: BookingMessageRequest,
    admin: SessionUser = Depends(require_admin),
    dispatcher: ReminderDispatcher = Depends(get_dispatcher),
):
    return _send_booking_message(dispatcher, payload, MessageType.URGENT, admin)
