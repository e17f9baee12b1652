import logging

from fastapi import APIRouter, Depends, HTTPException, status
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import get_db
from ..models.contact_message import ContactMessage
from ..schemas.contact_schema import ContactForm
from ..services import email_service
from ..services.email_client import EmailClient, get_email_client
from ..utils import normalize_email

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/contact", tags=["contact"])


@router.post("", status_code=status.HTTP_201_CREATED)
def submit_contact(
    form: ContactForm,
    db: Session = Depends(get_db),
    email_client: EmailClient = Depends(get_email_client),
):
    """
    Guarda el mensaje del formulario de contacto y envía:
    - confirmación al remitente
    - aviso a los admins (ADMIN_EMAIL)
    Si algún email falla, el mensaje igual queda guardado.
    """
    try:
        contact = ContactMessage(
            name=form.name.strip(),
            email=normalize_email(form.email),
            phone=form.phone.strip() if form.phone else None,
            subject=form.subject.strip(),
            message=form.message.strip(),
            urgency=form.urgency,
        )
        db.add(contact)
        db.commit()
        db.refresh(contact)
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Error al guardar el mensaje de contacto: {e}", exc_info=True)
        raise HTTPException(
            status_code=500,
            detail="Failed to send message. Please try again or contact us directly.",
        )

    logger.info(f"📨 Nuevo mensaje de contacto {contact.id} ({contact.urgency}): {contact.subject[:50]}")
    email_service.send_contact_confirmation(email_client, contact)
    email_service.send_contact_notification(email_client, contact, get_settings().admin_emails)

    return {"success": True, "messageId": contact.id, "message": "Message sent successfully"}
