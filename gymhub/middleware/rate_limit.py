"""
Rate limiting con slowapi para los endpoints públicos.
"""
import logging

from slowapi import Limiter
from slowapi.util import get_remote_address

from gymhub.core.config import get_settings

logger = logging.getLogger(__name__)
settings = get_settings()

# Límites por tipo de endpoint
RATE_LIMITS = {
    "password_reset": "5 per minute",
    "public": "100 per hour",
}

limiter = Limiter(
    key_func=get_remote_address,
    storage_uri=settings.RATE_LIMIT_STORAGE_URI,
    enabled=settings.RATE_LIMIT_ENABLED,
)
logger.info(f"Rate limiting configurado (storage: {settings.RATE_LIMIT_STORAGE_URI.split('://')[0]})")
