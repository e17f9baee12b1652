"""
Administración de usuarios del dashboard: listado con búsqueda, alta, cambio de rol y baja.
"""
import logging
import math
from typing import Optional

from fastapi import APIRouter, Depends, HTTPException, Query, status
from sqlalchemy import and_, func, or_
from sqlalchemy.orm import Session

from ..database import get_db
from ..models.user import User, ROLE_ADMIN, ROLE_USER, USER_ROLES
from ..schemas.user_schema import (
    Pagination,
    UserAdminOut,
    UserCreate,
    UserListResponse,
    UserRoleUpdate,
    UserStats,
)
from ..security import SessionUser, require_admin
from ..utils import normalize_email

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/users", tags=["users"], dependencies=[Depends(require_admin)])


def _user_stats(db: Session) -> UserStats:
    by_role = dict(db.query(User.role, func.count(User.id)).group_by(User.role).all())
    # La completitud del perfil solo se mide sobre clientes
    clients = db.query(User).filter(User.role != ROLE_ADMIN)
    complete = clients.filter(
        and_(
            func.coalesce(User.first_name, "") != "",
            func.coalesce(User.last_name, "") != "",
            func.coalesce(User.phone, "") != "",
        )
    ).count()
    total_clients = clients.count()
    return UserStats(
        total=sum(by_role.values()),
        admin=by_role.get(ROLE_ADMIN, 0),
        user=by_role.get(ROLE_USER, 0),
        profileComplete=complete,
        profileIncomplete=total_clients - complete,
    )


@router.get("", response_model=UserListResponse)
def list_users(
    page: int = Query(default=1, ge=1),
    limit: int = Query(default=50, ge=1, le=200),
    search: Optional[str] = Query(default=None, description="Nombre, email o teléfono"),
    role: Optional[str] = Query(default=None, description="user, admin o all"),
    db: Session = Depends(get_db),
):
    query = db.query(User)
    if search and search.strip():
        pattern = f"%{search.strip()}%"
        query = query.filter(
            or_(
                User.email.ilike(pattern),
                User.full_name.ilike(pattern),
                User.first_name.ilike(pattern),
                User.last_name.ilike(pattern),
                User.phone.ilike(pattern),
            )
        )
    if role and role != "all":
        if role not in USER_ROLES:
            raise HTTPException(status_code=400, detail=f"Invalid role: {role}")
        query = query.filter(User.role == role)

    total = query.count()
    users = (
        query.order_by(User.created_at.desc(), User.id.desc())
        .offset((page - 1) * limit)
        .limit(limit)
        .all()
    )
    return UserListResponse(
        users=[UserAdminOut.model_validate(u) for u in users],
        pagination=Pagination(
            currentPage=page,
            totalPages=math.ceil(total / limit),
            totalUsers=total,
            limit=limit,
        ),
        stats=_user_stats(db),
    )


@router.post("", status_code=status.HTTP_201_CREATED)
def create_user(payload: UserCreate, db: Session = Depends(get_db)):
    email = normalize_email(payload.email)
    if db.query(User).filter(User.email == email).first():
        raise HTTPException(status_code=409, detail="User with this email already exists")

    user = User(
        email=email,
        first_name=payload.first_name.strip() if payload.first_name else None,
        last_name=payload.last_name.strip() if payload.last_name else None,
        phone=payload.phone.strip() if payload.phone else None,
        role=payload.role,
    )
    db.add(user)
    db.commit()
    db.refresh(user)
    logger.info(f"👤 Usuario creado desde el dashboard: {user.email} ({user.role})")
    return {"success": True, "userId": user.id, "user": UserAdminOut.model_validate(user)}


@router.patch("/{user_id}")
def update_user_role(user_id: int, payload: UserRoleUpdate, db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")

    previous = user.role
    user.role = payload.role
    db.commit()
    logger.info(f"Usuario {user.id}: rol {previous} -> {user.role}")
    return {"success": True}


@router.delete("/{user_id}")
def delete_user(user_id: int, admin: SessionUser = Depends(require_admin), db: Session = Depends(get_db)):
    user = db.get(User, user_id)
    if not user:
        raise HTTPException(status_code=404, detail="User not found")
    if admin.id == str(user.id) or (admin.email and normalize_email(admin.email) == user.email):
        raise HTTPException(status_code=400, detail="Cannot delete your own account")

    db.delete(user)
    db.commit()
    logger.info(f"🗑️ Usuario {user_id} eliminado")
    return {"success": True}
