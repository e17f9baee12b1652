from sqlalchemy import Column, Integer, String, DateTime

from ..database import Base
from ..utils import utcnow

ROLE_USER = "user"
ROLE_ADMIN = "admin"
USER_ROLES = (ROLE_USER, ROLE_ADMIN)


class User(Base):
    __tablename__ = "users"

    id = Column(Integer, primary_key=True, index=True)
    email = Column(String(255), unique=True, index=True, nullable=False)
    full_name = Column(String(255), nullable=True)
    first_name = Column(String(120), nullable=True)
    last_name = Column(String(120), nullable=True)
    phone = Column(String(50), nullable=True)
    # El emisor de sesiones copia este valor al claim "role" del token
    role = Column(String(20), default=ROLE_USER, nullable=False)
    created_at = Column(DateTime, default=utcnow, index=True)
    updated_at = Column(DateTime, default=utcnow, onupdate=utcnow)

    @property
    def is_profile_complete(self) -> bool:
        return bool(self.first_name and self.last_name and self.phone)
