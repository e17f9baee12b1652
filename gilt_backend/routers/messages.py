"""
Bandeja de mensajes del formulario de contacto (solo admin).
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from sqlalchemy.orm import Session

from ..config import get_settings
from ..database import get_db
from ..exceptions import EmailDeliveryError
from ..models.contact_message import ContactMessage, MessageReply, URGENCY_LEVELS
from ..schemas.contact_schema import (
    ContactMessageOut,
    ContactMessageUpdate,
    MessageReplyRequest,
    MessageReplyResponse,
)
from ..security import SessionUser, require_admin
from ..services import email_templates
from ..services.email_client import EmailClient, get_email_client
from ..utils import utcnow

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/messages", tags=["messages"], dependencies=[Depends(require_admin)])

DEFAULT_SENDER_NAME = "Gilt Counselling Team"


@router.get("", response_model=List[ContactMessageOut])
def list_messages(
    unread: Optional[bool] = Query(default=None, description="Solo no leídos (true) o leídos (false)"),
    urgency: Optional[str] = Query(default=None),
    limit: int = Query(default=100, ge=1, le=500),
    db: Session = Depends(get_db),
):
    query = db.query(ContactMessage)
    if unread is not None:
        query = query.filter(ContactMessage.read.is_(not unread))
    if urgency:
        if urgency not in URGENCY_LEVELS:
            raise HTTPException(status_code=400, detail=f"Invalid urgency: {urgency}")
        query = query.filter(ContactMessage.urgency == urgency)
    return query.order_by(ContactMessage.created_at.desc()).limit(limit).all()


@router.post("/reply", response_model=MessageReplyResponse)
def reply_to_message(
    payload: MessageReplyRequest,
    admin: SessionUser = Depends(require_admin),
    db: Session = Depends(get_db),
    email_client: EmailClient = Depends(get_email_client),
):
    """
    Responde por email a un mensaje de contacto.
    La respuesta solo se guarda (y el mensaje se marca como respondido) si el envío sale bien.
    """
    contact = db.get(ContactMessage, payload.message_id)
    if not contact:
        raise HTTPException(status_code=404, detail="Message not found")

    sender_name = (payload.sender_name or "").strip() or DEFAULT_SENDER_NAME
    html = email_templates.contact_reply(contact, payload.reply_message, sender_name, get_settings().app_url)
    try:
        email_client.send(contact.email, payload.reply_subject, html)
    except EmailDeliveryError as e:
        logger.error(f"❌ No se pudo enviar la respuesta al mensaje {contact.id}: {e}")
        raise HTTPException(status_code=500, detail="Failed to send reply")

    now = utcnow()
    reply = MessageReply(
        original_message_id=contact.id,
        sender_name=sender_name,
        sender_email=admin.email,
        recipient_email=contact.email,
        subject=payload.reply_subject,
        message=payload.reply_message,
        sent_at=now,
    )
    db.add(reply)
    contact.replied = True
    contact.replied_at = now
    contact.replied_by = admin.email
    db.commit()
    db.refresh(reply)

    logger.info(f"✉️ Respuesta {reply.id} enviada al mensaje {contact.id}")
    return MessageReplyResponse(success=True, message="Reply sent successfully", replyId=reply.id)


@router.patch("/{message_id}", response_model=ContactMessageOut)
def update_message(message_id: int, payload: ContactMessageUpdate, db: Session = Depends(get_db)):
    contact = db.get(ContactMessage, message_id)
    if not contact:
        raise HTTPException(status_code=404, detail="Message not found")

    for field, value in payload.model_dump(exclude_none=True).items():
        setattr(contact, field, value)
    db.commit()
    db.refresh(contact)
    return contact
