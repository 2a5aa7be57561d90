import json
import logging
import time
import urllib.request
from typing import Optional, Dict, List, Type

from fastapi import HTTPException, Depends, Request
from fastapi.security import HTTPBearer, HTTPAuthorizationCredentials
from jose import jwt, JWTError
from pydantic import BaseModel, Field
from sqlalchemy.orm import Session
from typing_extensions import TypedDict

from gymhub.core.config import get_settings
from gymhub.db.session import get_db
from gymhub.models.user import User
from gymhub.services.user import user_service

logger = logging.getLogger('fastapi_auth0')


class Auth0UnauthenticatedException(HTTPException):
    def __init__(self, detail: str, **kwargs):
        """Returns HTTP 401"""
        super().__init__(401, detail, **kwargs)


class Auth0User(BaseModel):
    id: str = Field(..., alias='sub')
    permissions: Optional[List[str]] = None
    # Campos para capturar información del usuario desde el token
    email: Optional[str] = None
    email_verified: Optional[bool] = None
    name: Optional[str] = None
    picture: Optional[str] = None

    model_config = {"populate_by_name": True}


class JwksKeyDict(TypedDict):
    kid: str
    kty: str
    use: str
    n: str
    e: str


class JwksDict(TypedDict):
    keys: List[JwksKeyDict]


class Auth0:
    def __init__(self, domain: str, api_audience: str,
                 auth0user_model: Type[Auth0User] = Auth0User):
        self.domain = domain
        self.audience = api_audience
        self.auth0_user_model = auth0user_model

        self.algorithms = ['RS256']
        # Las JWKS se cargan en la primera petición autenticada
        self.jwks: JwksDict = {"keys": []}
        self._jwks_last_refresh: float = 0.0

    async def get_user(self,
                       request: Request,
                       creds: Optional[HTTPAuthorizationCredentials] = Depends(HTTPBearer(auto_error=False)),
                       ) -> Auth0User:
        """
        Verifica el token Bearer (firma, audience, issuer y expiración) y devuelve el usuario.
        """
        if creds is None:
            raise Auth0UnauthenticatedException(detail='Falta el token Bearer')

        token = creds.credentials
        try:
            unverified_header = jwt.get_unverified_header(token)
            if 'kid' not in unverified_header:
                raise Auth0UnauthenticatedException(detail='Cabecera del token mal formada: falta kid')

            if not self.jwks.get("keys"):
                self._load_jwks()

            rsa_key = self._find_rsa_key(unverified_header['kid'])
            if not rsa_key:
                # Posible rotación de llaves: refrescar JWKS y reintentar una vez
                logger.warning("KID no encontrado en JWKS actual. Intentando refrescar JWKS...")
                self._load_jwks(force=True)
                rsa_key = self._find_rsa_key(unverified_header['kid'])
                if not rsa_key:
                    raise Auth0UnauthenticatedException(detail='kid inválido (tenant incorrecto o llave rotada)')

            payload = jwt.decode(
                token,
                rsa_key,
                algorithms=self.algorithms,
                audience=self.audience,
                issuer=f'https://{self.domain}/'
            )
        except jwt.ExpiredSignatureError:
            raise Auth0UnauthenticatedException(detail='Token expirado')
        except jwt.JWTClaimsError as e:
            raise Auth0UnauthenticatedException(detail=f'Claims del token inválidos: {str(e)}')
        except JWTError as e:
            raise Auth0UnauthenticatedException(detail=f'Token mal formado: {str(e)}')

        # Los emails pueden venir en un claim con namespace (Auth0 Actions)
        if 'email' not in payload:
            for key, value in payload.items():
                if key.endswith('/email'):
                    payload['email'] = value
                    break

        user = self.auth0_user_model(**payload)
        request.state.auth0_user = user
        return user

    def _find_rsa_key(self, kid: str) -> Dict[str, str]:
        """Busca la llave RSA por kid en las JWKS actuales."""
        for key in self.jwks.get('keys', []):
            if key.get('kid') == kid:
                return {
                    'kty': key['kty'],
                    'kid': key['kid'],
                    'use': key['use'],
                    'n': key['n'],
                    'e': key['e']
                }
        return {}

    def _load_jwks(self, force: bool = False) -> None:
        """Carga o refresca las JWKS como mucho una vez por hora salvo que se fuerce."""
        now = time.time()
        if not force and self.jwks.get('keys') and (now - self._jwks_last_refresh) < 3600:
            return
        try:
            url = f'https://{self.domain}/.well-known/jwks.json'
            with urllib.request.urlopen(url, timeout=5) as r:
                self.jwks = json.loads(r.read())
                self._jwks_last_refresh = now
                logger.info('JWKS refrescadas correctamente')
        except Exception as e:
            # Mantener las JWKS anteriores si el refresco falla
            logger.error(f"No se pudieron obtener las JWKS de {self.domain}: {e}")


def initialize_auth0() -> Auth0:
    settings = get_settings()
    return Auth0(
        domain=settings.AUTH0_DOMAIN,
        api_audience=settings.AUTH0_API_AUDIENCE,
    )


auth = initialize_auth0()


async def get_current_user(user: Auth0User = Depends(auth.get_user)) -> Auth0User:
    """
    Dependencia principal para obtener la identidad autenticada (id de Auth0 y email).
    """
    return user


async def get_current_db_user(
    db: Session = Depends(get_db),
    current_user: Auth0User = Depends(get_current_user)
) -> User:
    """
    Obtiene el usuario local correspondiente a la identidad de Auth0.

    Sincronización Just-in-Time: si no existe por auth0_id se vincula por email
    (usuarios invitados o importados) o se crea.
    """
    db_user = user_service.sync_auth0_user(db, current_user)
    if not db_user:
        raise Auth0UnauthenticatedException(
            detail="No se pudo resolver el usuario local para este token"
        )
    return db_user
