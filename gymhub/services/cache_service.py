import json
import logging
from typing import Any, Callable, Optional, Type, TypeVar

from pydantic import BaseModel
from redis.asyncio import Redis

logger = logging.getLogger(__name__)

T = TypeVar('T', bound=BaseModel)


class CacheService:
    """
    Servicio genérico para cachear modelos Pydantic en Redis.
    Si Redis no está disponible o falla, se consulta directamente la base de datos.
    """

    @staticmethod
    async def get_or_set(
        redis_client: Optional[Redis],
        cache_key: str,
        db_fetch_func: Callable,
        model_class: Type[T],
        expiry_seconds: int = 300,
    ) -> Optional[T]:
        """
        Obtiene un objeto de Redis o lo establece si no existe.

        Args:
            redis_client: Cliente Redis (None si no hay Redis)
            cache_key: Clave única del objeto en caché
            db_fetch_func: Función síncrona que obtiene el modelo de la BD
            model_class: Clase del modelo Pydantic que se debe devolver
            expiry_seconds: Tiempo de expiración en segundos
        """
        if not redis_client:
            logger.debug("Cliente Redis no disponible, ejecutando consulta sin caché")
            return db_fetch_func()

        try:
            cached_data = await redis_client.get(cache_key)
            if cached_data:
                logger.debug(f"Cache hit para clave: {cache_key}")
                return model_class.model_validate(json.loads(cached_data))
        except Exception as e:
            logger.error(f"Error al leer del caché para {cache_key}: {e}", exc_info=True)

        logger.debug(f"Cache miss para clave: {cache_key}")
        result = db_fetch_func()

        if result is not None:
            try:
                await redis_client.setex(cache_key, expiry_seconds, result.model_dump_json())
            except Exception as e:
                logger.error(f"Error al guardar en caché {cache_key}: {e}", exc_info=True)

        return result

    @staticmethod
    async def delete_key(redis_client: Optional[Redis], cache_key: str) -> None:
        """Invalida una clave; los errores de Redis solo se registran."""
        if not redis_client:
            return
        try:
            await redis_client.delete(cache_key)
        except Exception as e:
            logger.error(f"Error invalidando caché {cache_key}: {e}", exc_info=True)


cache_service = CacheService()
