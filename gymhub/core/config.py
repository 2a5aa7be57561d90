from typing import Any, List, Optional, Union
from functools import lru_cache
import logging

from pydantic import AnyHttpUrl, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Configurar el logger
logger = logging.getLogger(__name__)


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=True,
        extra="ignore"  # Permitir campos extra en .env
    )

    # Configuración básica
    API_V1_STR: str = "/api/v1"
    PROJECT_NAME: str = "GymHub"
    PROJECT_DESCRIPTION: str = "API para la gestión de clubes deportivos: eventos, asistencia, avisos y chat"
    VERSION: str = "0.1.0"

    # URLs de la aplicación
    BASE_URL: str = "http://localhost:8000"
    FRONTEND_URL: str = "http://localhost:3000"

    # Debug mode
    DEBUG_MODE: bool = False
    LOG_TO_FILE: bool = True

    # CORS
    BACKEND_CORS_ORIGINS: List[AnyHttpUrl] = []

    @field_validator("BACKEND_CORS_ORIGINS", mode='before')
    def assemble_cors_origins(cls, v: Union[str, List[str]]) -> List[str]:
        if isinstance(v, str) and not v.startswith("["):
            return [i.strip() for i in v.split(",") if i.strip()]
        elif isinstance(v, (list, str)):
            return v
        raise ValueError(v)

    # Base de datos
    DATABASE_URL: str = "sqlite:///./gymhub.db"
    SQLALCHEMY_DATABASE_URI: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("DATABASE_URL", mode="before")
    def ensure_proper_url_format(cls, v: Optional[str]) -> str:
        """Asegura que DATABASE_URL use el esquema postgresql:// que entiende SQLAlchemy."""
        if v and v.startswith('postgres://'):
            logger.info("Corrigiendo formato de postgres:// a postgresql://")
            return 'postgresql://' + v[len('postgres://'):]
        return v

    @field_validator("SQLALCHEMY_DATABASE_URI", mode="before")
    def assemble_db_connection(cls, v: Optional[str], info) -> Any:
        """Configura la URI de SQLAlchemy basada en DATABASE_URL si no se definió explícitamente."""
        if v:
            return v
        return info.data.get("DATABASE_URL")

    # Auth0 Configuration
    AUTH0_DOMAIN: str = "gymhub.us.auth0.com"
    AUTH0_API_AUDIENCE: str = "https://gymhub-api"
    AUTH0_ALGORITHMS: List[str] = ["RS256"]
    AUTH0_CLIENT_ID: str = ""
    AUTH0_DB_CONNECTION: str = "Username-Password-Authentication"

    # Auth0 Management API
    AUTH0_MGMT_CLIENT_ID: str = ""
    AUTH0_MGMT_CLIENT_SECRET: str = ""
    AUTH0_MGMT_AUDIENCE: Optional[str] = Field(default=None, validate_default=True)

    @field_validator("AUTH0_MGMT_AUDIENCE", mode="before")
    def assemble_mgmt_audience(cls, v: Optional[str], info) -> str:
        if v:
            return v
        return f"https://{info.data.get('AUTH0_DOMAIN')}/api/v2/"

    # Email (Resend)
    RESEND_API_KEY: str = ""
    EMAILS_FROM_EMAIL: str = "GymHub <no-reply@gymhub.app>"
    # Pausa entre envíos masivos para respetar el rate limit del proveedor
    EMAIL_BULK_DELAY_SECONDS: float = 0.6

    # Configuración de OneSignal para notificaciones push
    ONESIGNAL_APP_ID: Optional[str] = None
    ONESIGNAL_REST_API_KEY: Optional[str] = None

    # Configuración de Redis
    REDIS_URL: str = "redis://localhost:6379/0"
    REDIS_POOL_MAX_CONNECTIONS: int = 20
    REDIS_POOL_SOCKET_TIMEOUT: int = 5
    REDIS_POOL_HEALTH_CHECK_INTERVAL: int = 30
    CACHE_TTL_GYM_DETAILS: int = 3600  # 1 hora para detalles del gym

    @field_validator("REDIS_URL", mode="before")
    def assemble_redis_connection(cls, v: Optional[str]) -> Any:
        if isinstance(v, str):
            # Eliminar comentarios y espacios
            if '#' in v:
                v = v.split('#')[0]
            return v.strip()
        return v

    # Rate limiting
    RATE_LIMIT_STORAGE_URI: str = "memory://"
    RATE_LIMIT_ENABLED: bool = True

    # Scheduler y recordatorios
    SCHEDULER_ENABLED: bool = True
    CRON_SECRET: str = ""
    REMINDER_WINDOW_MINUTES: int = 5
    OCCURRENCE_HORIZON_DAYS: int = 365
    # Para reglas con COUNT se materializa hasta 2 años
    OCCURRENCE_COUNT_HORIZON_DAYS: int = 730

    # Invitaciones
    INVITATION_EXPIRE_DAYS: int = 7


# Usar una función con caché para obtener la configuración
@lru_cache()
def get_settings() -> Settings:
    settings = Settings()
    logger.info("Configuración cargada correctamente")
    return settings
