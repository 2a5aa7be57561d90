from functools import wraps
import logging
import time

from sqlalchemy.exc import OperationalError, DBAPIError, IntegrityError

logger = logging.getLogger(__name__)


def retry_on_db_error(max_retries=3, delay=2):
    """
    Decorator para reintentar operaciones de lectura en caso de errores de BD.

    Útil para consultas y scheduled tasks que pueden fallar por conexiones
    cerradas por pgbouncer o timeouts transitorios. Las escrituras no se
    decoran: su error se propaga como 500 tras el rollback de la sesión.

    Args:
        max_retries: Número máximo de intentos (default: 3)
        delay: Tiempo base de espera entre reintentos en segundos (default: 2)
               La espera crece de forma lineal: delay * (attempt + 1)
    """
    def decorator(func):
        @wraps(func)
        def wrapper(*args, **kwargs):
            for attempt in range(max_retries):
                try:
                    return func(*args, **kwargs)
                except IntegrityError:
                    raise
                except (OperationalError, DBAPIError) as e:
                    if attempt < max_retries - 1:
                        wait_time = delay * (attempt + 1)
                        logger.warning(
                            f"Error de BD en {func.__name__}, reintento {attempt + 1}/{max_retries} "
                            f"tras {wait_time}s: {str(e)}"
                        )
                        # Descartar la transacción fallida antes de reintentar
                        db = kwargs.get("db") or next((a for a in args if hasattr(a, "rollback")), None)
                        if db is not None:
                            db.rollback()
                        time.sleep(wait_time)
                    else:
                        logger.error(
                            f"Máximo de reintentos ({max_retries}) alcanzado para {func.__name__}: {str(e)}",
                            exc_info=True
                        )
                        raise
        return wrapper
    return decorator
