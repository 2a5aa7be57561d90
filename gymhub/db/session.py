from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.exc import SQLAlchemyError
from contextlib import contextmanager
import logging

from gymhub.core.config import get_settings

logger = logging.getLogger(__name__)

settings_instance = get_settings()

db_url = str(settings_instance.SQLALCHEMY_DATABASE_URI)

# Ocultar credenciales en el log
display_url = db_url
if '@' in display_url:
    scheme = display_url.split('://')[0]
    display_url = f"{scheme}://***@{display_url.split('@')[1]}"


def _engine_kwargs(url: str) -> dict:
    """Opciones del engine según el dialecto (PostgreSQL en producción, SQLite en local)."""
    if url.startswith("sqlite"):
        return {"connect_args": {"check_same_thread": False}}
    return {
        "pool_pre_ping": True,
        "pool_size": 10,
        "max_overflow": 20,
        "pool_timeout": 30,
        "pool_recycle": 180,  # Evita conexiones SSL cerradas por el pooler
        "connect_args": {
            "connect_timeout": 10,
            "options": "-c statement_timeout=30000",
        },
    }


engine = create_engine(db_url, echo=False, **_engine_kwargs(db_url))
logger.info(f"Engine de base de datos creado: {display_url}")

# Crear clase de sesión
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)


# Dependencia para obtener la sesión de DB
def get_db():
    db = SessionLocal()
    try:
        yield db
    except SQLAlchemyError as e:
        logger.error(f"Error de SQLAlchemy en la sesión: {e}", exc_info=True)
        db.rollback()
        raise
    finally:
        db.close()


@contextmanager
def get_db_for_jobs():
    """
    Context manager de sesión para tareas programadas (APScheduler).

    Para endpoints FastAPI usar get_db() con Depends().
    """
    db = SessionLocal()
    try:
        yield db
    except SQLAlchemyError as e:
        logger.error(f"Error SQLAlchemy en background job: {e}", exc_info=True)
        db.rollback()
        raise
    finally:
        db.close()
