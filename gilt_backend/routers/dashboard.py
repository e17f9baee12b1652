from datetime import timedelta

from fastapi import APIRouter, Depends
from sqlalchemy import func
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.booking import Booking, BOOKING_STATUSES, BOOKING_STATUS_CANCELLED
from ..models.contact_message import ContactMessage
from ..models.newsletter_subscriber import NewsletterSubscriber
from ..security import require_admin
from ..utils import utcnow

router = APIRouter(prefix="/dashboard", tags=["dashboard"], dependencies=[Depends(require_admin)])


@router.get("/stats")
def get_dashboard_stats(db: Session = Depends(get_db)):
    """Resumen para la home del dashboard."""
    now = utcnow()

    by_status = dict(db.query(Booking.status, func.count(Booking.id)).group_by(Booking.status).all())
    upcoming_week = (
        db.query(Booking)
        .filter(
            Booking.status != BOOKING_STATUS_CANCELLED,
            Booking.scheduled_at >= now,
            Booking.scheduled_at <= now + timedelta(days=7),
        )
        .count()
    )

    return {
        "bookings": {
            "total": sum(by_status.values()),
            "byStatus": {status: by_status.get(status, 0) for status in BOOKING_STATUSES},
            "upcomingWeek": upcoming_week,
        },
        "messages": {
            "total": db.query(ContactMessage).count(),
            "unread": db.query(ContactMessage).filter(ContactMessage.read.is_(False)).count(),
        },
        "newsletter": {
            "activeSubscribers": db.query(NewsletterSubscriber)
            .filter(NewsletterSubscriber.is_active.is_(True))
            .count(),
        },
    }
