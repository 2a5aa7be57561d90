"""
Cliente Redis con connection pooling (redis.asyncio).

El pool se inicializa una vez en el lifespan de la aplicación y cada request
obtiene su propio cliente. Si Redis no está disponible la dependencia entrega
``None`` y los servicios consultan directamente la base de datos.
"""

from redis.asyncio import ConnectionPool, Redis
from typing import AsyncGenerator, Optional
import logging

from gymhub.core.config import get_settings

logger = logging.getLogger(__name__)

# Declaración global del pool de conexiones
REDIS_POOL: Optional[ConnectionPool] = None


async def initialize_redis_pool():
    """
    Inicializa el pool de conexiones a Redis.
    Debe llamarse una sola vez al iniciar la aplicación.
    """
    global REDIS_POOL
    if REDIS_POOL is not None:
        return

    settings = get_settings()
    redis_url = settings.REDIS_URL
    if not redis_url:
        raise ValueError("La URL de Redis está vacía.")

    try:
        REDIS_POOL = ConnectionPool.from_url(
            redis_url,
            encoding="utf-8",
            decode_responses=True,
            max_connections=settings.REDIS_POOL_MAX_CONNECTIONS,
            socket_timeout=settings.REDIS_POOL_SOCKET_TIMEOUT,
            health_check_interval=settings.REDIS_POOL_HEALTH_CHECK_INTERVAL,
        )
        # Verificar conectividad una sola vez al arrancar
        client = Redis(connection_pool=REDIS_POOL)
        try:
            await client.ping()
        finally:
            await client.aclose()
        logger.info(f"Connection pool de Redis inicializado (max_connections={settings.REDIS_POOL_MAX_CONNECTIONS}).")
    except Exception as e:
        logger.error(f"Error al inicializar connection pool de Redis: {e}", exc_info=True)
        REDIS_POOL = None
        raise


async def get_redis_client() -> AsyncGenerator[Optional[Redis], None]:
    """
    Dependencia FastAPI que entrega un cliente Redis nuevo por request usando el pool compartido.

    Entrega ``None`` si el pool no está inicializado, para que el llamador use la base de datos.
    """
    if REDIS_POOL is None:
        yield None
        return

    client = Redis(connection_pool=REDIS_POOL)
    try:
        yield client
    finally:
        # Devolver la conexión al pool
        try:
            await client.aclose()
        except Exception as e:
            logger.warning(f"Error cerrando cliente Redis: {e}")


async def close_redis_client():
    """Cierra el pool de conexiones Redis al finalizar la aplicación."""
    global REDIS_POOL

    if REDIS_POOL:
        logger.info("Cerrando connection pool de Redis...")
        await REDIS_POOL.disconnect()
        REDIS_POOL = None
        logger.info("Connection pool de Redis cerrado.")
