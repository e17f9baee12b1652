from typing import Optional

from fastapi import APIRouter, Depends
from pydantic import BaseModel
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import User
from ..security import SessionUser, require_session

router = APIRouter(prefix="/user", tags=["user"])


class UserOut(BaseModel):
    id: str
    email: Optional[str] = None
    full_name: Optional[str] = None
    role: str


@router.get("/me", response_model=UserOut)
def get_me(session: SessionUser = Depends(require_session), db: Session = Depends(get_db)):
    """
    Perfil del usuario de la sesión. El nombre sale de la tabla users si existe.
    """
    full_name = None
    if session.email:
        user = db.query(User).filter(User.email == session.email.lower()).first()
        if user:
            full_name = user.full_name
    return UserOut(id=session.id, email=session.email, full_name=full_name, role=session.role)
