"""
Router de reservas para el dashboard de admin.
Las reservas se crean desde la integración de calendario; acá se consultan, se exportan
y se les cambia el estado.
"""
import csv
import logging
from datetime import date, datetime, time, timedelta
from io import StringIO
from typing import List, Optional

from fastapi import APIRouter, Depends, HTTPException, Query
from fastapi.responses import StreamingResponse
from sqlalchemy import func
from sqlalchemy.orm import Session, selectinload

from ..database import get_db
from ..models.booking import Booking, BOOKING_STATUSES
from ..schemas.booking_schema import BookingOut, BookingDetailOut, BookingStatusUpdate
from ..security import require_admin
from ..utils import utcnow

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/bookings", tags=["bookings"], dependencies=[Depends(require_admin)])


@router.get("", response_model=List[BookingOut])
def list_bookings(
    status: Optional[str] = Query(default=None, description="PENDING, CONFIRMED, CANCELLED, COMPLETED"),
    upcoming: bool = Query(default=False, description="Solo citas futuras"),
    db: Session = Depends(get_db),
):
    query = db.query(Booking)
    if status:
        status_value = status.upper()
        if status_value not in BOOKING_STATUSES:
            raise HTTPException(status_code=400, detail=f"Invalid status: {status}")
        query = query.filter(Booking.status == status_value)
    if upcoming:
        query = query.filter(Booking.scheduled_at >= utcnow()).order_by(Booking.scheduled_at.asc())
    else:
        query = query.order_by(Booking.created_at.desc())
    return query.all()


CSV_HEADERS = [
    "Date",
    "Time",
    "Client Name",
    "Email",
    "Phone",
    "Service",
    "Duration",
    "Status",
    "Meeting URL",
    "Booking Reference",
    "Notes",
]


def _start_of_day(value: datetime) -> datetime:
    return value.replace(hour=0, minute=0, second=0, microsecond=0)


@router.get("/export")
def export_bookings(
    export_format: str = Query(default="json", alias="format", pattern="^(json|csv)$"),
    start_date: Optional[date] = Query(default=None, alias="startDate"),
    end_date: Optional[date] = Query(default=None, alias="endDate"),
    db: Session = Depends(get_db),
):
    """
    Exporta las reservas ordenadas por fecha de la cita.
    startDate / endDate (YYYY-MM-DD) son inclusivos y se aplican sobre scheduled_at.
    """
    query = db.query(Booking)
    if start_date:
        query = query.filter(Booking.scheduled_at >= datetime.combine(start_date, time.min))
    if end_date:
        query = query.filter(Booking.scheduled_at < datetime.combine(end_date + timedelta(days=1), time.min))
    bookings = query.order_by(Booking.scheduled_at.asc()).all()
    now = utcnow()

    if export_format == "json":
        return {
            "bookings": [BookingOut.model_validate(b) for b in bookings],
            "totalCount": len(bookings),
            "exportedAt": now.isoformat(),
        }

    output = StringIO()
    writer = csv.writer(output)
    writer.writerow(CSV_HEADERS)
    for booking in bookings:
        writer.writerow(
            [
                booking.scheduled_at.strftime("%Y-%m-%d"),
                booking.scheduled_at.strftime("%H:%M"),
                booking.user_name or "",
                booking.user_email,
                booking.user_phone or "",
                booking.service or "",
                booking.duration or "",
                booking.status,
                booking.meeting_url or "",
                booking.booking_reference or "",
                booking.notes or "",
            ]
        )

    filename = f"bookings-{now.strftime('%Y-%m-%d')}.csv"
    logger.info(f"📤 Exportación CSV: {filename} ({len(bookings)} reservas)")
    return StreamingResponse(
        iter([output.getvalue()]),
        media_type="text/csv",
        headers={"Content-Disposition": f'attachment; filename="{filename}"'},
    )


@router.get("/stats")
def get_booking_stats(db: Session = Depends(get_db)):
    """
    Conteos por período (sobre la fecha de la cita), por estado y por servicio.
    La semana empieza el domingo.
    """
    now = utcnow()
    today = _start_of_day(now)
    week_start = today - timedelta(days=(today.weekday() + 1) % 7)
    month_start = today.replace(day=1)

    def scheduled_between(start: datetime, end: Optional[datetime] = None) -> int:
        query = db.query(Booking).filter(Booking.scheduled_at >= start)
        if end is not None:
            query = query.filter(Booking.scheduled_at < end)
        return query.count()

    by_status = dict(db.query(Booking.status, func.count(Booking.id)).group_by(Booking.status).all())
    by_service = db.query(Booking.service, func.count(Booking.id)).group_by(Booking.service).all()

    return {
        "totalBookings": sum(by_status.values()),
        "todayBookings": scheduled_between(today, today + timedelta(days=1)),
        "weekBookings": scheduled_between(week_start),
        "monthBookings": scheduled_between(month_start),
        "statusBreakdown": by_status,
        "serviceBreakdown": {(service or "Unspecified"): count for service, count in by_service},
        "generatedAt": now.isoformat(),
    }


@router.get("/{booking_id}", response_model=BookingDetailOut)
def get_booking(booking_id: int, db: Session = Depends(get_db)):
    booking = (
        db.query(Booking)
        .options(selectinload(Booking.messages))
        .filter(Booking.id == booking_id)
        .first()
    )
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")
    return booking


@router.patch("/{booking_id}/status", response_model=BookingOut)
def update_booking_status(booking_id: int, payload: BookingStatusUpdate, db: Session = Depends(get_db)):
    booking = db.get(Booking, booking_id)
    if not booking:
        raise HTTPException(status_code=404, detail="Booking not found")

    previous = booking.status
    booking.status = payload.status
    db.commit()
    db.refresh(booking)
    logger.info(f"Reserva {booking.id}: {previous} -> {booking.status}")
    return booking
