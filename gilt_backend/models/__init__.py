# Importar todos los modelos para que create_all() los registre
from .user import User
from .booking import Booking, BookingMessage
from .newsletter_subscriber import NewsletterSubscriber
from .contact_message import ContactMessage, MessageReply

__all__ = [
    "User",
    "Booking",
    "BookingMessage",
    "NewsletterSubscriber",
    "ContactMessage",
    "MessageReply",
]
