"""
Middleware de sesión por prefijo de ruta.

- Páginas (/dashboard, /booking): redirigen a /auth/signin si no hay sesión.
- APIs (/api/bookings, /api/admin, /api/dashboard): 401 JSON.

Los endpoints además declaran require_admin / require_session; este middleware
cubre lo que se monte detrás de esos prefijos.
"""
import logging
from collections.abc import Callable
from typing import Any
from urllib.parse import quote

from fastapi import Request, status
from fastapi.responses import JSONResponse, RedirectResponse
from starlette.middleware.base import BaseHTTPMiddleware

from .security import get_session_user

logger = logging.getLogger(__name__)

SIGNIN_PATH = "/auth/signin"

# (prefijo, requiere admin)
PAGE_RULES: tuple[tuple[str, bool], ...] = (
    ("/dashboard", True),
    ("/booking", False),
)
API_RULES: tuple[tuple[str, bool], ...] = (
    ("/api/bookings", True),
    ("/api/admin", True),
    ("/api/dashboard", True),
)


def path_matches(path: str, prefix: str) -> bool:
    """Coincide por segmentos: /api/admin cubre /api/admin/x pero no /api/admin-notifications."""
    return path == prefix or path.startswith(prefix + "/")


def _unauthorized(message: str) -> JSONResponse:
    return JSONResponse(
        status_code=status.HTTP_401_UNAUTHORIZED,
        content={"success": False, "error": message},
    )


class SessionGateMiddleware(BaseHTTPMiddleware):
    async def dispatch(self, request: Request, call_next: Callable[[Request], Any]):
        path = request.url.path

        for prefix, admin_only in PAGE_RULES:
            if path_matches(path, prefix):
                user = get_session_user(request)
                if user is None:
                    return RedirectResponse(f"{SIGNIN_PATH}?callbackUrl={quote(path, safe='')}")
                if admin_only and not user.is_admin:
                    return RedirectResponse("/")
                return await call_next(request)

        for prefix, admin_only in API_RULES:
            if path_matches(path, prefix):
                user = get_session_user(request)
                if user is None:
                    logger.warning(f"Sin sesión para {path}")
                    return _unauthorized("Authentication required")
                if admin_only and not user.is_admin:
                    logger.warning(f"Usuario {user.id} sin rol admin para {path}")
                    return _unauthorized("Admin access required")
                return await call_next(request)

        return await call_next(request)
