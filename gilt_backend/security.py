"""
Autorización:
- Secreto compartido (Authorization: Bearer <CRON_SECRET>) para los endpoints que dispara el cron.
- Token de sesión (JWT HS256 firmado con SESSION_SECRET) con claim "role" para rutas de admin.
"""
import hashlib
import hmac
import logging
import time
from dataclasses import dataclass
from datetime import timedelta
from threading import Lock
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from jose import JWTError, jwt

from .config import get_settings
from .models.user import ROLE_ADMIN
from .utils import utcnow

logger = logging.getLogger(__name__)

SESSION_COOKIE_NAME = "session_token"
DEFAULT_SESSION_TTL = timedelta(days=30)


@dataclass(frozen=True)
class SessionUser:
    id: str
    email: Optional[str]
    role: str

    @property
    def is_admin(self) -> bool:
        return self.role == ROLE_ADMIN


# ---------------------------------------------------------------------------
# Tokens de sesión
# ---------------------------------------------------------------------------


def create_session_token(
    subject: str,
    email: Optional[str] = None,
    role: str = "user",
    expires_delta: Optional[timedelta] = None,
) -> str:
    settings = get_settings()
    if not settings.session_secret:
        raise RuntimeError("SESSION_SECRET is not configured")
    expire = utcnow() + (expires_delta or DEFAULT_SESSION_TTL)
    to_encode = {"sub": str(subject), "email": email, "role": role, "exp": expire}
    return jwt.encode(to_encode, settings.session_secret, algorithm=settings.session_algorithm)


def decode_session_token(token: str) -> Optional[SessionUser]:
    settings = get_settings()
    if not settings.session_secret:
        logger.warning("SESSION_SECRET no configurado, se rechazan todas las sesiones")
        return None
    try:
        payload = jwt.decode(token, settings.session_secret, algorithms=[settings.session_algorithm])
    except JWTError as e:
        logger.info(f"Token de sesión inválido: {e}")
        return None

    subject = payload.get("sub")
    if not subject:
        return None
    return SessionUser(id=str(subject), email=payload.get("email"), role=payload.get("role") or "user")


def _bearer_token(request: Request) -> Optional[str]:
    auth_header = request.headers.get("Authorization")
    if not auth_header:
        return None
    parts = auth_header.split()
    if len(parts) != 2 or parts[0].lower() != "bearer":
        return None
    return parts[1]


def extract_session_token(request: Request) -> Optional[str]:
    return request.cookies.get(SESSION_COOKIE_NAME) or _bearer_token(request)


def get_session_user(request: Request) -> Optional[SessionUser]:
    token = extract_session_token(request)
    if not token:
        return None
    return decode_session_token(token)


def require_session(request: Request) -> SessionUser:
    user = get_session_user(request)
    if user is None:
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Authentication required")
    return user


def require_admin(user: SessionUser = Depends(require_session)) -> SessionUser:
    if not user.is_admin:
        logger.warning(f"Acceso de admin denegado para el usuario {user.id}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")
    return user


# ---------------------------------------------------------------------------
# Secreto compartido (cron)
# ---------------------------------------------------------------------------


class FailedAttemptLimiter:
    """
    Cuenta intentos fallidos por cliente en una ventana fija en memoria.
    Formato: {key: {"count": int, "reset_time": float}}
    """

    def __init__(self, clock=time.monotonic):
        self._clock = clock
        self._attempts: dict[str, dict] = {}
        self._lock = Lock()

    def is_blocked(self, key: str, max_attempts: int) -> bool:
        with self._lock:
            entry = self._attempts.get(key)
            if entry is None:
                return False
            if self._clock() >= entry["reset_time"]:
                del self._attempts[key]
                return False
            return entry["count"] >= max_attempts

    def record_failure(self, key: str, window_seconds: int):
        with self._lock:
            now = self._clock()
            self._purge_expired(now)
            entry = self._attempts.get(key)
            if entry is None or now >= entry["reset_time"]:
                self._attempts[key] = {"count": 1, "reset_time": now + window_seconds}
            else:
                entry["count"] += 1

    def _purge_expired(self, now: float):
        expired = [key for key, entry in self._attempts.items() if now >= entry["reset_time"]]
        for key in expired:
            del self._attempts[key]

    def tracked_keys(self) -> int:
        with self._lock:
            return len(self._attempts)

    def reset(self, key: Optional[str] = None):
        with self._lock:
            if key is None:
                self._attempts.clear()
            else:
                self._attempts.pop(key, None)


cron_auth_limiter = FailedAttemptLimiter()


def _client_key(request: Request) -> str:
    """
    Dirección del cliente para contar intentos fallidos.
    X-Forwarded-For solo se usa si el par directo es un proxy de confianza (TRUSTED_PROXIES).
    """
    peer = request.client.host if request.client else "unknown"
    if peer not in get_settings().trusted_proxies:
        return peer
    forwarded = request.headers.get("X-Forwarded-For")
    if not forwarded:
        return peer
    # El último salto lo agregó nuestro proxy; los anteriores los controla el cliente
    return forwarded.split(",")[-1].strip() or peer


def secret_matches(provided: Optional[str], expected: str) -> bool:
    if not provided or not expected:
        return False
    return hmac.compare_digest(provided.encode("utf-8"), expected.encode("utf-8"))


def verify_cron_secret(request: Request) -> None:
    """
    Dependencia para endpoints disparados por cron.
    Sin CRON_SECRET configurado se rechaza todo.
    """
    settings = get_settings()
    client_key = _client_key(request)

    if cron_auth_limiter.is_blocked(client_key, settings.auth_max_failed_attempts):
        logger.warning(f"🚫 Demasiados intentos fallidos desde {client_key}")
        raise HTTPException(status_code=status.HTTP_429_TOO_MANY_REQUESTS, detail="Too many failed attempts")

    if not settings.cron_secret:
        logger.error("CRON_SECRET no configurado, se rechaza la llamada")

    if not secret_matches(_bearer_token(request), settings.cron_secret):
        cron_auth_limiter.record_failure(client_key, settings.auth_failure_window_seconds)
        logger.warning(f"🔒 Secreto de cron inválido desde {client_key} en {request.url.path}")
        raise HTTPException(status_code=status.HTTP_401_UNAUTHORIZED, detail="Unauthorized")

    cron_auth_limiter.reset(client_key)


# ---------------------------------------------------------------------------
# Links de baja del newsletter
# ---------------------------------------------------------------------------


def make_unsubscribe_token(email: str) -> str:
    secret = get_settings().unsubscribe_secret
    return hmac.new(secret.encode("utf-8"), email.strip().lower().encode("utf-8"), hashlib.sha256).hexdigest()


def verify_unsubscribe_token(email: str, token: str) -> bool:
    if not get_settings().unsubscribe_secret:
        return False
    return hmac.compare_digest(make_unsubscribe_token(email), token)
