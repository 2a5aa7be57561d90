import uvicorn
from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from contextlib import asynccontextmanager
import logging

# Importar la función de configuración de logging
from gymhub.core.logging_config import setup_logging

# Llamar a la configuración de logging ANTES de importar/crear otros elementos
setup_logging()

from gymhub.api.v1.api import api_router
from gymhub.core.config import get_settings
from gymhub.core.exceptions import GymHubError
from gymhub.middleware.timing import TimingMiddleware
from gymhub.middleware.rate_limit import limiter
from gymhub.db.redis_client import initialize_redis_pool, close_redis_client
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

logger = logging.getLogger(__name__)

# Obtener la instancia de configuración al inicio del módulo
settings_instance = get_settings()


@asynccontextmanager
async def lifespan(app: FastAPI):
    logger.info("Lifespan: Startup iniciado...")

    # Iniciar el scheduler
    app.state.scheduler = None
    if settings_instance.SCHEDULER_ENABLED:
        try:
            from gymhub.core.scheduler import init_scheduler
            app.state.scheduler = init_scheduler()
            logger.info("Lifespan: Scheduler inicializado.")
        except Exception as e:
            logger.error(f"Lifespan: Error al inicializar scheduler: {e}", exc_info=True)
    else:
        logger.info("Lifespan: Scheduler deshabilitado por configuración.")

    # Inicializar el pool de conexiones Redis
    try:
        await initialize_redis_pool()
        logger.info("Lifespan: Redis connection pool inicializado correctamente.")
    except Exception as e:
        logger.error(f"Lifespan: Error al inicializar Redis connection pool: {e}", exc_info=True)

    yield  # Aplicación en ejecución

    logger.info("Lifespan: Shutdown iniciado...")

    if app.state.scheduler:
        try:
            app.state.scheduler.shutdown()
            logger.info("Scheduler detenido.")
        except Exception as e:
            logger.error(f"Error deteniendo el scheduler: {e}", exc_info=True)

    try:
        await close_redis_client()
        logger.info("Lifespan: Connection pool de Redis cerrado.")
    except Exception as e:
        logger.error(f"Lifespan: Error cerrando Redis connection pool: {e}", exc_info=True)


app = FastAPI(
    title=settings_instance.PROJECT_NAME,
    description=settings_instance.PROJECT_DESCRIPTION,
    version=settings_instance.VERSION,
    openapi_url=f"{settings_instance.API_V1_STR}/openapi.json",
    docs_url=f"{settings_instance.API_V1_STR}/docs",
    redoc_url=f"{settings_instance.API_V1_STR}/redoc",
    lifespan=lifespan,
    swagger_ui_oauth2_redirect_url=f"{settings_instance.API_V1_STR}/docs/oauth2-redirect",
    swagger_ui_init_oauth={
        "usePkceWithAuthorizationCodeGrant": True,
        "clientId": settings_instance.AUTH0_CLIENT_ID,
        "appName": settings_instance.PROJECT_NAME,
        "scopes": "openid profile email",
    }
)

# Configurar rate limiting
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(GymHubError)
async def gymhub_error_handler(request: Request, exc: GymHubError):
    """Traduce los errores de dominio de los servicios a respuestas HTTP."""
    if exc.status_code >= 500:
        logger.error(f"Error de dominio en {request.method} {request.url.path}: {exc.detail}")
    else:
        logger.info(f"{exc.__class__.__name__} en {request.method} {request.url.path}: {exc.detail}")
    return JSONResponse(status_code=exc.status_code, content={"detail": exc.detail})


@app.middleware("http")
async def log_requests(request: Request, call_next):
    logger.info(f"Middleware: Recibida petición: {request.method} {request.url}")
    # Sanitizar headers antes de loguear para evitar fuga de secretos
    if settings_instance.DEBUG_MODE:
        headers_dict = dict(request.headers)
        auth_header = headers_dict.get("authorization")
        if auth_header:
            if auth_header.startswith("Bearer "):
                token = auth_header[7:]
                headers_dict["authorization"] = f"Bearer ****{token[-6:]}" if len(token) > 6 else "Bearer ****"
            else:
                headers_dict["authorization"] = "***masked***"
        if "cookie" in headers_dict:
            headers_dict["cookie"] = "***masked***"
        logger.debug(f"Middleware: Headers: {headers_dict}")

    response = await call_next(request)

    logger.info(f"Middleware: Enviando respuesta: {response.status_code}")
    return response


# Añadir middleware para medir el tiempo de respuesta
app.add_middleware(TimingMiddleware)

# Lista de orígenes permitidos para CORS
origins = [str(origin).rstrip("/") for origin in settings_instance.BACKEND_CORS_ORIGINS]

app.add_middleware(
    CORSMiddleware,
    allow_origins=origins,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
    expose_headers=["X-Process-Time"],
    max_age=86400,  # 24 horas en segundos
)

# Incluir routers
app.include_router(api_router, prefix=settings_instance.API_V1_STR)


# Ruta raíz
@app.get("/")
def root():
    return {
        "message": "Bienvenido a la API de GymHub",
        "docs": f"{settings_instance.API_V1_STR}/docs",
    }


@app.get("/health")
def health():
    return {"status": "ok", "version": settings_instance.VERSION}


if __name__ == "__main__":
    uvicorn.run("gymhub.main:app", host="0.0.0.0", port=8000, reload=settings_instance.DEBUG_MODE)
