"""
Plantillas HTML de los emails.

Cada función devuelve (subject, html). Los valores que vienen del usuario se
escapan antes de insertarse en el HTML.
"""
from datetime import datetime
from html import escape
from typing import Optional
from urllib.parse import quote

from ..utils import format_appointment_date, format_appointment_time

PRACTICE_NAME = "Gilt Counselling"
CONTACT_PHONE = "+234 803 309 4050"
CONTACT_EMAIL = "wecare@giltcounselling.com"
OFFICE_LOCATION = "No 88 Woji Road, GRA Phase 2, Port Harcourt, Rivers State, Nigeria"
OFFICE_HOURS = "Monday - Friday: 9:00 AM - 6:00 PM (WAT)"

GOLD = "#D4AF37"
NAVY = "#00303F"

# Encabezado y texto de introducción por tipo de recordatorio
REMINDER_COPY = {
    "week_before": (
        "Your appointment is next week",
        "This is a friendly reminder that your session with us is coming up in about a week.",
    ),
    "day_before": (
        "Your appointment is tomorrow",
        "This is a reminder that your session with us is scheduled for tomorrow.",
    ),
    "two_hours": (
        "Your appointment starts soon",
        "Your session with us starts in about two hours. We look forward to seeing you.",
    ),
}


def _layout(title: str, body: str, accent: str = GOLD) -> str:
    return f"""
    <!DOCTYPE html>
    <html>
    <head>
        <meta charset="utf-8">
        <meta name="viewport" content="width=device-width, initial-scale=1.0">
    </head>
    <body style="font-family: Arial, sans-serif; line-height: 1.6; color: #333; max-width: 600px; margin: 0 auto; padding: 20px;">
        <div style="background: {accent}; color: white; padding: 20px; text-align: center; border-radius: 8px 8px 0 0;">
            <h1 style="margin: 0; font-size: 22px;">{title}</h1>
        </div>
        <div style="background: #ffffff; padding: 24px; border: 1px solid #e5e7eb; border-top: none; border-radius: 0 0 8px 8px;">
            {body}
        </div>
        <p style="text-align: center; font-size: 12px; color: #9ca3af; margin-top: 20px;">
            {PRACTICE_NAME} · {OFFICE_LOCATION}
        </p>
    </body>
    </html>
    """


def _appointment_details(booking) -> str:
    return f"""
    <div style="background: #F8F5F2; border-radius: 8px; padding: 16px; margin: 20px 0;">
        <p style="margin: 4px 0;"><strong>Service:</strong> {escape(booking.service or 'Counselling session')}</p>
        <p style="margin: 4px 0;"><strong>Date:</strong> {format_appointment_date(booking.scheduled_at)}</p>
        <p style="margin: 4px 0;"><strong>Time:</strong> {format_appointment_time(booking.scheduled_at)} (UTC)</p>
        <p style="margin: 4px 0;"><strong>Duration:</strong> {escape(booking.duration or '60 minutes')}</p>
        <p style="margin: 4px 0;"><strong>Reference:</strong> {escape(booking.reference)}</p>
    </div>
    """


def _contact_footer() -> str:
    return f"""
    <hr style="border: none; border-top: 1px solid #e5e7eb; margin: 20px 0;">
    <p style="font-size: 13px; color: #6b7280;">
        Need to reschedule? Contact us at {CONTACT_EMAIL} or {CONTACT_PHONE}.<br>
        {OFFICE_HOURS}
    </p>
    """


def appointment_reminder(booking, reminder_type: str) -> tuple[str, str]:
    heading, intro = REMINDER_COPY[reminder_type]
    name = escape(booking.user_name or "there")
    body = f"""
        <p style="font-size: 16px;">Hello <strong>{name}</strong>,</p>
        <p>{intro}</p>
        {_appointment_details(booking)}
        {_contact_footer()}
    """
    subject = f"{heading} - {PRACTICE_NAME}"
    return subject, _layout(heading, body)


def booking_message(booking, message: str, subject: Optional[str], urgent: bool) -> tuple[str, str]:
    """Mensaje puntual del staff al cliente (custom o urgent)."""
    name = escape(booking.user_name or "there")
    paragraphs = "".join(
        f"<p>{escape(line)}</p>" for line in message.splitlines() if line.strip()
    )
    if urgent:
        default_subject = f"Important Update - {PRACTICE_NAME}"
        title = "Important update about your appointment"
        accent = "#B91C1C"
        notice = f"""
        <div style="background: #FEF2F2; border: 1px solid #FCA5A5; border-radius: 8px; padding: 12px; margin: 16px 0;">
            <strong>Please read this message carefully.</strong> If you have questions, call us at {CONTACT_PHONE}.
        </div>
        """
    else:
        default_subject = f"Appointment Reminder - {PRACTICE_NAME}"
        title = "A message about your appointment"
        accent = GOLD
        notice = ""

    body = f"""
        <p style="font-size: 16px;">Hello <strong>{name}</strong>,</p>
        {notice}
        {paragraphs}
        {_appointment_details(booking)}
        {_contact_footer()}
    """
    return subject or default_subject, _layout(title, body, accent=accent)


def admin_booking_notification(booking, dashboard_url: str) -> tuple[str, str]:
    client_name = escape(booking.user_name or "Unknown client")
    created = booking.created_at.strftime("%Y-%m-%d %H:%M UTC") if booking.created_at else "N/A"
    body = f"""
        <p><strong>New booking received.</strong></p>
        <ul>
            <li><strong>Client:</strong> {client_name}</li>
            <li><strong>Email:</strong> {escape(booking.user_email)}</li>
            <li><strong>Booked at:</strong> {created}</li>
            <li><strong>TidyCal ID:</strong> {escape(booking.tidycal_booking_id or 'N/A')}</li>
            <li><strong>Notes:</strong> {escape(booking.notes or 'No additional notes')}</li>
        </ul>
        {_appointment_details(booking)}
        <div style="text-align: center; margin-top: 20px;">
            <a href="{dashboard_url}" style="background: {GOLD}; color: white; padding: 10px 20px; text-decoration: none; border-radius: 5px;">
                View Bookings
            </a>
        </div>
    """
    subject = f"New booking: {booking.user_name or booking.user_email} - {format_appointment_date(booking.scheduled_at)}"
    return subject, _layout("New Booking", body, accent=NAVY)


def newsletter_welcome(email: str, name: Optional[str], app_url: str, unsubscribe_token: str) -> tuple[str, str]:
    encoded = quote(email)
    preferences_url = f"{app_url}/newsletter/preferences?email={encoded}"
    unsubscribe_url = f"{app_url}/unsubscribe?email={encoded}&token={unsubscribe_token}"
    body = f"""
        <p>Dear {escape(name or 'Friend')},</p>
        <p>Thank you for subscribing to the {PRACTICE_NAME} newsletter! You'll now receive:</p>
        <ul style="color: {NAVY}; line-height: 1.6;">
            <li>Mental health insights and tips</li>
            <li>Parenting strategies for raising healthy teens</li>
            <li>Our latest blog posts</li>
            <li>Updates on workshops and community events</li>
        </ul>
        <p>We typically send 1-2 emails per week. No spam, just helpful insights!</p>
        <div style="text-align: center; margin: 30px 0;">
            <a href="{app_url}/blog" style="background: {GOLD}; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; font-weight: bold;">
                Read Our Latest Blog Posts
            </a>
        </div>
        <p style="font-size: 12px; color: #6B7280;">
            <a href="{preferences_url}" style="color: {GOLD};">Update preferences</a> |
            <a href="{unsubscribe_url}" style="color: {GOLD};">Unsubscribe</a>
        </p>
    """
    return f"Welcome to the {PRACTICE_NAME} Newsletter", _layout("Welcome to Our Newsletter!", body)


def newsletter_unsubscribed(name: Optional[str], app_url: str) -> tuple[str, str]:
    body = f"""
        <p>Hello {escape(name or 'there')},</p>
        <p>You have successfully unsubscribed from the {PRACTICE_NAME} newsletter.</p>
        <p>We're sorry to see you go! If you change your mind, you can always resubscribe on our website.</p>
        <div style="text-align: center; margin: 30px 0;">
            <a href="{app_url}" style="background: {GOLD}; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px;">
                Visit Our Website
            </a>
        </div>
    """
    return f"Unsubscribed from {PRACTICE_NAME} Newsletter", _layout("Unsubscribed Successfully", body, accent="#6B7280")


def admin_new_subscriber(email: str, name: Optional[str], source: str, total_active: int, when: datetime) -> tuple[str, str]:
    body = f"""
        <p><strong>New subscriber details:</strong></p>
        <ul>
            <li><strong>Email:</strong> {escape(email)}</li>
            <li><strong>Name:</strong> {escape(name or 'Not provided')}</li>
            <li><strong>Source:</strong> {escape(source)}</li>
            <li><strong>Date:</strong> {when.strftime('%Y-%m-%d %H:%M UTC')}</li>
        </ul>
        <p>Total active subscribers: {total_active}</p>
    """
    return "New Newsletter Subscription", _layout("New Newsletter Subscriber", body, accent=NAVY)


def contact_confirmation(contact) -> tuple[str, str]:
    urgent_note = ""
    if contact.is_urgent:
        urgent_note = f"""
        <div style="background: #FEF2F2; border: 1px solid #FCA5A5; border-radius: 8px; padding: 12px; margin: 16px 0;">
            If this is an emergency, please call us directly at {CONTACT_PHONE} or contact your local emergency services.
        </div>
        """
    body = f"""
        <p>Hello {escape(contact.name)},</p>
        <p>Thank you for reaching out. We received your message about
        "<strong>{escape(contact.subject)}</strong>" and will get back to you as soon as possible.</p>
        {urgent_note}
        {_contact_footer()}
    """
    return f"We received your message - {PRACTICE_NAME}", _layout("Message Received", body)


def admin_new_contact(contact, dashboard_url: str) -> tuple[str, str]:
    prefix = "[URGENT] " if contact.is_urgent else ""
    body = f"""
        <ul>
            <li><strong>Name:</strong> {escape(contact.name)}</li>
            <li><strong>Email:</strong> {escape(contact.email)}</li>
            <li><strong>Phone:</strong> {escape(contact.phone or 'Not provided')}</li>
            <li><strong>Urgency:</strong> {escape(contact.urgency)}</li>
        </ul>
        <p><strong>{escape(contact.subject)}</strong></p>
        <p style="white-space: pre-wrap;">{escape(contact.message)}</p>
        <div style="text-align: center; margin-top: 20px;">
            <a href="{dashboard_url}" style="background: {GOLD}; color: white; padding: 10px 20px; text-decoration: none; border-radius: 5px;">
                Open Messages
            </a>
        </div>
    """
    return f"{prefix}New contact message: {contact.subject}", _layout("New Contact Message", body, accent=NAVY)


def contact_reply(contact, reply_message: str, sender_name: str, app_url: str) -> str:
    """Respuesta del equipo a un mensaje de contacto; el subject lo elige el admin."""
    excerpt = contact.message[:200] + ("..." if len(contact.message) > 200 else "")
    body = f"""
        <p>Dear {escape(contact.name)},</p>
        <div style="background: #F8F5F2; border-left: 4px solid {GOLD}; padding: 16px; margin: 20px 0;">
            <p style="margin: 0; white-space: pre-wrap;">{escape(reply_message)}</p>
        </div>
        <h3 style="color: {NAVY}; font-size: 15px;">Your original message</h3>
        <p style="font-size: 13px; color: #6b7280;"><strong>Subject:</strong> {escape(contact.subject)}</p>
        <p style="font-size: 13px; color: #6b7280;">{escape(excerpt)}</p>
        <div style="text-align: center; margin: 24px 0;">
            <a href="{app_url}/booking" style="background: {GOLD}; color: white; padding: 12px 24px; text-decoration: none; border-radius: 5px;">
                Schedule an Appointment
            </a>
        </div>
        <p>Best regards,<br><strong>{escape(sender_name)}</strong><br>{PRACTICE_NAME} Team</p>
        {_contact_footer()}
    """
    return _layout(PRACTICE_NAME, body)
