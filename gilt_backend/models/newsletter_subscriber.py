"""
Modelo para suscriptores del newsletter.
Nunca se borran: la baja es lógica (is_active=False + unsubscribed_at).
"""
from sqlalchemy import Column, Integer, String, DateTime, Boolean, JSON

from ..database import Base
from ..utils import utcnow

DEFAULT_PREFERENCES = {
    "mental_health_tips": True,
    "parenting_advice": True,
    "blog_updates": True,
    "event_notifications": True,
}


def default_preferences() -> dict:
    return dict(DEFAULT_PREFERENCES)


class NewsletterSubscriber(Base):
    __tablename__ = "newsletter_subscribers"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, nullable=False, index=True)
    name = Column(String(255), nullable=True)
    preferences = Column(JSON, default=default_preferences, nullable=False)
    is_active = Column(Boolean, default=True, nullable=False)
    source = Column(String(50), default="website")  # Dónde se suscribió (website, footer, popup, etc.)
    subscribed_at = Column(DateTime, default=utcnow)
    unsubscribed_at = Column(DateTime, nullable=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)
