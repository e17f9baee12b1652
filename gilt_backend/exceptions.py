"""
Excepciones de dominio. Los routers las traducen a HTTPException.
"""


class BookingNotFoundError(Exception):
    def __init__(self, booking_id):
        self.booking_id = booking_id
        super().__init__(f"Booking not found: {booking_id}")


class EmailDeliveryError(Exception):
    """
    Error al enviar un email.
    transient=True indica un error temporal (rate limit, 5xx, red) que vale la pena reintentar.
    """

    def __init__(self, message: str, transient: bool = False, status_code: int | None = None):
        super().__init__(message)
        self.transient = transient
        self.status_code = status_code


class EmailNotConfiguredError(EmailDeliveryError):
    def __init__(self, message: str = "Email service is not configured"):
        super().__init__(message, transient=False)
