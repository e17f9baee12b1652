"""
Emails transaccionales "best effort": si fallan se loguea el error y se
devuelve False, nunca se corta el request que los dispara.
"""
import logging
from typing import List

from ..config import get_settings
from ..exceptions import EmailDeliveryError
from ..security import make_unsubscribe_token
from ..utils import utcnow
from . import email_templates
from .email_client import EmailClient

logger = logging.getLogger(__name__)


def get_email_config_info(client: EmailClient) -> dict:
    """Obtiene información sobre la configuración del servicio de email"""
    settings = get_settings()
    return {
        "api_key_configured": client.configured,
        "from_email": client.from_email,
        "admin_emails_configured": bool(settings.admin_emails),
    }


def _send_safely(client: EmailClient, description: str, to, subject: str, html: str, **kwargs) -> bool:
    try:
        client.send(to, subject, html, **kwargs)
        return True
    except EmailDeliveryError as e:
        logger.error(f"❌ No se pudo enviar {description}: {e}")
        return False


def send_newsletter_welcome(client: EmailClient, email: str, name: str | None) -> bool:
    settings = get_settings()
    subject, html = email_templates.newsletter_welcome(
        email, name, settings.app_url, make_unsubscribe_token(email)
    )
    return _send_safely(client, f"bienvenida al newsletter ({email})", email, subject, html)


def send_newsletter_unsubscribed(client: EmailClient, email: str, name: str | None) -> bool:
    subject, html = email_templates.newsletter_unsubscribed(name, get_settings().app_url)
    return _send_safely(client, f"confirmación de baja ({email})", email, subject, html)


def send_new_subscriber_notification(
    client: EmailClient, email: str, name: str | None, source: str, total_active: int
) -> bool:
    admin_emails = get_settings().admin_emails
    if not admin_emails:
        logger.warning("ADMIN_EMAIL no configurado, no se avisará del nuevo suscriptor")
        return False
    subject, html = email_templates.admin_new_subscriber(email, name, source, total_active, utcnow())
    return _send_safely(client, "aviso de nuevo suscriptor", admin_emails, subject, html)


def send_contact_confirmation(client: EmailClient, contact) -> bool:
    subject, html = email_templates.contact_confirmation(contact)
    return _send_safely(client, f"confirmación de contacto ({contact.email})", contact.email, subject, html)


def send_contact_notification(client: EmailClient, contact, admin_emails: List[str]) -> bool:
    if not admin_emails:
        logger.warning("ADMIN_EMAIL no configurado, no se avisará del mensaje de contacto")
        return False
    dashboard_url = f"{get_settings().app_url}/dashboard/messages"
    subject, html = email_templates.admin_new_contact(contact, dashboard_url)
    return _send_safely(
        client, "aviso de mensaje de contacto", admin_emails, subject, html, reply_to=contact.email
    )
