import secrets
import string
from datetime import datetime, timezone


def utcnow() -> datetime:
    """
    Fecha/hora actual en UTC sin tzinfo.
    Todas las columnas DateTime de la base guardan UTC "naive".
    """
    return datetime.now(timezone.utc).replace(tzinfo=None)


def to_utc_naive(value: datetime) -> datetime:
    """Convierte un datetime con zona horaria a UTC naive (los naive se asumen UTC)."""
    if value.tzinfo is None:
        return value
    return value.astimezone(timezone.utc).replace(tzinfo=None)


def normalize_email(email: str) -> str:
    return email.strip().lower()


def generate_booking_reference() -> str:
    """
    Genera una referencia pública de reserva, no secuencial.
    Formato: GILT-XXXXXX
    """
    chars = string.ascii_uppercase + string.digits
    random_code = "".join(secrets.choice(chars) for _ in range(6))
    return f"GILT-{random_code}"


def format_appointment_date(value: datetime) -> str:
    """Ej: 'Monday, March 3, 2025'"""
    return f"{value.strftime('%A, %B')} {value.day}, {value.year}"


def format_appointment_time(value: datetime) -> str:
    """Ej: '2:30 PM'"""
    hour = value.hour % 12 or 12
    suffix = "AM" if value.hour < 12 else "PM"
    return f"{hour}:{value.minute:02d} {suffix}"
