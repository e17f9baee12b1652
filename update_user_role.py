#!/usr/bin/env python3
"""
Script para cambiar el rol de un usuario (por ejemplo de 'user' a 'admin').
El emisor de sesiones copia este rol al claim "role" del token.

Uso:
    python update_user_role.py persona@example.com admin
"""
import sys

from gilt_backend.database import SessionLocal, create_tables
from gilt_backend.models.user import User, ROLE_ADMIN, ROLE_USER


def update_user_role(email: str, new_role: str) -> bool:
    """Actualiza el rol del usuario; lo crea si no existe."""
    if new_role not in (ROLE_USER, ROLE_ADMIN):
        print(f"[ERROR] Rol inválido '{new_role}'. Usar '{ROLE_USER}' o '{ROLE_ADMIN}'")
        return False

    create_tables()
    db = SessionLocal()
    try:
        email = email.strip().lower()
        user = db.query(User).filter(User.email == email).first()
        if not user:
            print(f"[INFO] No existe el usuario {email}, se crea")
            user = User(email=email, role=new_role)
            db.add(user)
        else:
            print(f"[OK] Usuario encontrado: {user.email} (rol actual: {user.role})")
            user.role = new_role
        db.commit()
        print(f"[OK] Rol actualizado a '{new_role}'")
        return True
    except Exception as e:
        db.rollback()
        print(f"[ERROR] Error de base de datos: {e}")
        return False
    finally:
        db.close()


if __name__ == "__main__":
    if len(sys.argv) != 3:
        print(__doc__)
        sys.exit(2)

    sys.exit(0 if update_user_role(sys.argv[1], sys.argv[2]) else 1)
