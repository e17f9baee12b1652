import logging
from contextlib import asynccontextmanager
from pathlib import Path

from dotenv import load_dotenv
from fastapi import Depends, FastAPI, Request, status
from fastapi.encoders import jsonable_encoder
from fastapi.exceptions import RequestValidationError
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, Response
from sqlalchemy import text
from sqlalchemy.orm import Session
from starlette.exceptions import HTTPException as StarletteHTTPException

from .config import get_settings, clear_settings_cache
from .database import create_tables, get_db
from .middleware import SessionGateMiddleware
from .routers import (
    bookings,
    contact,
    dashboard,
    messages,
    newsletter,
    reminders,
    user,
    users,
)
from .services.email_client import EmailClient, get_email_client
from .services.email_service import get_email_config_info
from .utils import utcnow

# Configurar logging
logging.basicConfig(level=logging.INFO)
logger = logging.getLogger(__name__)

# Cargar variables de entorno desde .env (solo en desarrollo local)
backend_dir = Path(__file__).parent.parent
env_path = backend_dir / ".env"
if load_dotenv(dotenv_path=env_path):
    logger.info(f"Variables de entorno cargadas desde: {env_path}")

# Limpiar cache de settings para asegurar que se recarguen las variables
clear_settings_cache()
app_settings = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    # Crear tablas al iniciar (no bloquear el inicio si falla)
    try:
        logger.info("Creando tablas en la base de datos...")
        create_tables()
        logger.info("✅ Tablas creadas/verificadas")
    except Exception as e:
        logger.error(f"❌ Error al crear tablas al iniciar: {e}", exc_info=True)
        logger.warning("⚠️ El servidor continuará iniciando, pero algunas funcionalidades pueden no estar disponibles")
    yield


app = FastAPI(
    title="Gilt Counselling Backend",
    version="0.1.0",
    redirect_slashes=False,
    lifespan=lifespan,
)

# Orígenes CORS: localhost + CORS_ORIGIN (admite varios separados por coma)
allowed_origins = ["http://localhost:3000", "http://localhost:3001"]
for origin in app_settings.cors_origin.split(","):
    origin = origin.strip()
    if origin and origin not in allowed_origins:
        allowed_origins.append(origin)
logger.info(f"🌐 Orígenes CORS permitidos: {allowed_origins}")

app.add_middleware(SessionGateMiddleware)
app.add_middleware(
    CORSMiddleware,
    allow_origins=allowed_origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


# ---------------------------------------------------------------------------
# Manejo de errores: todas las respuestas de error tienen {"success": false, "error": ...}
# ---------------------------------------------------------------------------


@app.exception_handler(StarletteHTTPException)
async def http_exception_handler(request: Request, exc: StarletteHTTPException):
    return JSONResponse(
        status_code=exc.status_code,
        content={"success": False, "error": exc.detail},
        headers=getattr(exc, "headers", None),
    )


@app.exception_handler(RequestValidationError)
async def validation_exception_handler(request: Request, exc: RequestValidationError):
    errors = jsonable_encoder(exc.errors())
    missing = [".".join(str(p) for p in err.get("loc", [])[1:]) for err in errors if err.get("type") == "missing"]
    message = f"Missing required fields: {', '.join(missing)}" if missing else "Invalid request"
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={"success": False, "error": message, "details": errors},
    )


@app.exception_handler(Exception)
async def unhandled_exception_handler(request: Request, exc: Exception):
    logger.error(f"❌ Error no manejado en {request.url.path}: {exc}", exc_info=exc)
    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={"success": False, "error": "Internal server error"},
    )


# Include routers
app.include_router(reminders.router, prefix="/api")
app.include_router(newsletter.router, prefix="/api")
app.include_router(contact.router, prefix="/api")
app.include_router(messages.router, prefix="/api")
app.include_router(bookings.router, prefix="/api")
app.include_router(dashboard.router, prefix="/api")
app.include_router(user.router, prefix="/api")
app.include_router(users.router, prefix="/api")


@app.get("/", tags=["root"])
async def root():
    return {"message": "Gilt Counselling backend"}


@app.get("/api/health", tags=["health"])
def health(db: Session = Depends(get_db), email_client: EmailClient = Depends(get_email_client)):
    """Verifica la conexión a la base y la configuración de email."""
    try:
        db.execute(text("SELECT 1"))
        database = "connected"
    except Exception as e:
        logger.warning(f"⚠️ Health check: la base de datos no responde: {e}")
        database = "error"

    healthy = database == "connected"
    return JSONResponse(
        status_code=status.HTTP_200_OK if healthy else status.HTTP_503_SERVICE_UNAVAILABLE,
        content={
            "status": "healthy" if healthy else "error",
            "timestamp": utcnow().isoformat(),
            "services": {
                "database": database,
                "email": get_email_config_info(email_client),
            },
        },
    )


@app.get("/favicon.ico", tags=["static"])
async def favicon():
    return Response(status_code=204)
