# Configuración de base de datos usando SQLAlchemy.
#
# - DESARROLLO LOCAL: SQLite local (gilt.db) si DATABASE_URL no está configurada
# - PRODUCCIÓN: PostgreSQL (DATABASE_URL)
#
# El engine se crea una vez por proceso; cada request obtiene su propia sesión
# mediante get_db() y la cierra al terminar.

import logging
from pathlib import Path

from dotenv import load_dotenv
from sqlalchemy import create_engine
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base

from .config import get_settings

logger = logging.getLogger(__name__)

# Cargar variables de entorno desde .env (solo en desarrollo local)
backend_dir = Path(__file__).parent.parent
load_dotenv(dotenv_path=backend_dir / ".env")

Base = declarative_base()


def create_db_engine(database_url: str | None = None) -> Engine:
    """
    Crea el engine de SQLAlchemy para la URL indicada (o la de la configuración).
    """
    url = database_url or get_settings().database_url
    connect_args = {"check_same_thread": False} if url.startswith("sqlite") else {}

    if url.startswith("sqlite"):
        logger.info("[DB] Usando SQLite local")
    else:
        logger.info("[DB] Usando base de datos externa (DATABASE_URL)")

    return create_engine(url, connect_args=connect_args, pool_pre_ping=True)


engine = create_db_engine()
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


def create_tables(bind: Engine | None = None):
    """Crea las tablas que todavía no existen."""
    # Importar los modelos para registrarlos en Base.metadata
    from . import models  # noqa: F401

    Base.metadata.create_all(bind=bind or engine)


def get_db():
    """
    Dependencia para inyectar la sesión de DB en los endpoints de FastAPI.
    """
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
