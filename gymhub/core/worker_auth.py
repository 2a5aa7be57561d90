import secrets
from typing import Optional

from fastapi import Depends, HTTPException, Request, status
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials

from gymhub.core.config import get_settings

cron_bearer = HTTPBearer(auto_error=False)


async def verify_cron_secret(
    request: Request,
    creds: Optional[HTTPAuthorizationCredentials] = Depends(cron_bearer),
):
    """
    Verifica que la petición provenga del cron externo autorizado
    mediante el token Bearer CRON_SECRET.

    Raises:
        HTTPException: 401 si el token es inválido o ausente,
                      500 si CRON_SECRET no está configurado
    """
    expected_secret = get_settings().CRON_SECRET

    if not expected_secret:
        raise HTTPException(
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            detail="Error de configuración: CRON_SECRET no está definido"
        )

    client_ip = request.client.host if request.client else "unknown"
    if creds is None:
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Autenticación de cron faltante desde IP: {client_ip}"
        )

    # Comparación segura que previene ataques de temporización
    if not secrets.compare_digest(creds.credentials, expected_secret):
        raise HTTPException(
            status_code=status.HTTP_401_UNAUTHORIZED,
            detail=f"Token de cron inválido desde IP: {client_ip}"
        )

    return True
