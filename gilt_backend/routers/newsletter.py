"""
API Router para suscripciones al newsletter.
Las bajas son lógicas: nunca se borra un suscriptor.
"""
import logging
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Response, status
from pydantic import BaseModel, EmailStr, Field
from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.newsletter_subscriber import NewsletterSubscriber, default_preferences
from ..security import require_admin, verify_unsubscribe_token
from ..services import email_service
from ..services.email_client import EmailClient, get_email_client
from ..utils import normalize_email, utcnow

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/newsletter", tags=["newsletter"])


class SubscribeRequest(BaseModel):
    email: EmailStr
    name: Optional[str] = Field(default=None, max_length=255)
    source: Optional[str] = Field(default="website", max_length=50)


class SubscribeResponse(BaseModel):
    success: bool
    message: str
    already_subscribed: bool = False
    subscriber_id: Optional[int] = None


class UnsubscribeRequest(BaseModel):
    email: EmailStr
    token: Optional[str] = None


class NewsletterPreferences(BaseModel):
    mental_health_tips: Optional[bool] = None
    parenting_advice: Optional[bool] = None
    blog_updates: Optional[bool] = None
    event_notifications: Optional[bool] = None


class PreferencesRequest(BaseModel):
    email: EmailStr
    preferences: NewsletterPreferences


def _find_subscriber(db: Session, email: str) -> Optional[NewsletterSubscriber]:
    return db.query(NewsletterSubscriber).filter(NewsletterSubscriber.email == normalize_email(email)).first()


def _active_count(db: Session) -> int:
    return db.query(NewsletterSubscriber).filter(NewsletterSubscriber.is_active.is_(True)).count()


@router.post("/subscribe", response_model=SubscribeResponse)
def subscribe_to_newsletter(
    request: SubscribeRequest,
    response: Response,
    db: Session = Depends(get_db),
    email_client: EmailClient = Depends(get_email_client),
):
    """
    Suscribir un email al newsletter.
    Si el email ya existe y está activo, devuelve "ya suscrito" (no es un error).
    Si existe pero está desuscrito, lo reactiva.
    """
    email = normalize_email(request.email)
    source = request.source or "website"

    existing = _find_subscriber(db, email)
    if existing:
        if existing.is_active:
            return SubscribeResponse(
                success=True,
                message="Already subscribed",
                already_subscribed=True,
                subscriber_id=existing.id,
            )
        # Reactivar suscripción
        existing.is_active = True
        existing.subscribed_at = utcnow()
        existing.unsubscribed_at = None
        existing.source = source
        existing.name = request.name or existing.name
        db.commit()
        logger.info(f"📬 Suscripción reactivada: {email}")
        return SubscribeResponse(
            success=True,
            message="Subscription reactivated successfully!",
            subscriber_id=existing.id,
        )

    # Crear nueva suscripción
    try:
        subscriber = NewsletterSubscriber(
            email=email,
            name=request.name,
            source=source,
            preferences=default_preferences(),
        )
        db.add(subscriber)
        db.commit()
        db.refresh(subscriber)
    except IntegrityError:
        # Otro request insertó el mismo email entre la búsqueda y el insert
        db.rollback()
        return SubscribeResponse(success=True, message="Already subscribed", already_subscribed=True)
    except Exception as e:
        db.rollback()
        logger.error(f"❌ Error al procesar la suscripción: {e}", exc_info=True)
        raise HTTPException(status_code=500, detail="Failed to subscribe. Please try again later.")

    logger.info(f"📬 Nuevo suscriptor: {email} (source={source})")
    email_service.send_newsletter_welcome(email_client, email, request.name)
    email_service.send_new_subscriber_notification(
        email_client, email, request.name, source, _active_count(db)
    )

    response.status_code = status.HTTP_201_CREATED
    return SubscribeResponse(
        success=True,
        message="Successfully subscribed!",
        subscriber_id=subscriber.id,
    )


@router.post("/unsubscribe")
def unsubscribe_from_newsletter(
    request: UnsubscribeRequest,
    db: Session = Depends(get_db),
    email_client: EmailClient = Depends(get_email_client),
):
    """
    Baja lógica: is_active=False y unsubscribed_at. El registro se conserva.
    Si viene token (link del email) se valida.
    """
    if request.token and not verify_unsubscribe_token(request.email, request.token):
        raise HTTPException(status_code=400, detail="Invalid unsubscribe token")

    subscriber = _find_subscriber(db, request.email)
    if not subscriber:
        raise HTTPException(status_code=404, detail="Email not found")

    if not subscriber.is_active:
        return {"success": True, "message": "Already unsubscribed"}

    subscriber.is_active = False
    subscriber.unsubscribed_at = utcnow()
    db.commit()
    logger.info(f"📭 Baja del newsletter: {subscriber.email}")

    email_service.send_newsletter_unsubscribed(email_client, subscriber.email, subscriber.name)
    return {"success": True, "message": "Successfully unsubscribed"}


@router.post("/preferences")
def update_preferences(request: PreferencesRequest, db: Session = Depends(get_db)):
    """Actualiza solo las preferencias enviadas; el resto se conserva."""
    subscriber = _find_subscriber(db, request.email)
    if not subscriber:
        raise HTTPException(status_code=404, detail="Email not found")

    preferences = dict(subscriber.preferences or default_preferences())
    preferences.update(request.preferences.model_dump(exclude_none=True))
    # Reasignar el dict para que SQLAlchemy detecte el cambio en la columna JSON
    subscriber.preferences = preferences
    subscriber.updated_at = utcnow()
    db.commit()

    return {"success": True, "preferences": preferences}


@router.get("/stats", dependencies=[Depends(require_admin)])
def get_newsletter_stats(db: Session = Depends(get_db)):
    """
    Estadísticas de suscriptores (para admin).
    """
    total = db.query(NewsletterSubscriber).count()
    active = _active_count(db)

    recent = (
        db.query(NewsletterSubscriber)
        .filter(NewsletterSubscriber.is_active.is_(True))
        .order_by(NewsletterSubscriber.subscribed_at.desc())
        .limit(10)
        .all()
    )
    by_source = (
        db.query(NewsletterSubscriber.source, func.count(NewsletterSubscriber.id))
        .filter(NewsletterSubscriber.is_active.is_(True))
        .group_by(NewsletterSubscriber.source)
        .all()
    )

    return {
        "stats": {
            "totalSubscribers": total,
            "activeSubscribers": active,
            "inactiveSubscribers": total - active,
        },
        "recentSubscribers": [
            {
                "email": sub.email,
                "name": sub.name,
                "subscribedAt": sub.subscribed_at,
                "source": sub.source,
            }
            for sub in recent
        ],
        "subscribersBySource": [{"source": source, "count": count} for source, count in by_source],
    }
