import logging
import secrets
import time
from typing import Any, Dict, Optional

import requests

from gymhub.core.config import get_settings

logger = logging.getLogger("auth0_service")


class Auth0ManagementError(Exception):
    """Error al llamar a la API de Management de Auth0."""


class Auth0ManagementService:
    """
    Servicio para interactuar con la API de Management de Auth0.

    Se usa para dar de alta en Auth0 a los miembros importados o invitados y
    generar enlaces de creación/cambio de contraseña.
    """

    def __init__(self):
        settings = get_settings()
        self.domain = settings.AUTH0_DOMAIN
        self.client_id = settings.AUTH0_MGMT_CLIENT_ID
        self.client_secret = settings.AUTH0_MGMT_CLIENT_SECRET
        self.audience = settings.AUTH0_MGMT_AUDIENCE
        self.connection = settings.AUTH0_DB_CONNECTION
        self.token = None
        self.token_expires_at = 0

    def get_auth_token(self) -> str:
        """
        Obtiene un token de acceso para la API de Management de Auth0.
        El token se almacena en caché y se renueva automáticamente cuando expira.
        """
        current_time = time.time()
        if self.token and current_time < self.token_expires_at - 60:  # 60 segundos de margen
            return self.token

        url = f"https://{self.domain}/oauth/token"
        payload = {
            "client_id": self.client_id,
            "client_secret": self.client_secret,
            "audience": self.audience,
            "grant_type": "client_credentials"
        }
        try:
            response = requests.post(url, json=payload, headers={"content-type": "application/json"}, timeout=10)
            response.raise_for_status()
            data = response.json()
        except requests.RequestException as e:
            logger.error(f"Error al obtener token de Auth0: {str(e)}")
            raise Auth0ManagementError(f"Error al conectar con Auth0: {str(e)}") from e

        self.token = data.get("access_token")
        self.token_expires_at = current_time + data.get("expires_in", 86400)
        return self.token

    def _headers(self) -> Dict[str, str]:
        return {
            "Authorization": f"Bearer {self.get_auth_token()}",
            "Content-Type": "application/json"
        }

    def find_user_by_email(self, email: str) -> Optional[Dict[str, Any]]:
        url = f"https://{self.domain}/api/v2/users-by-email"
        try:
            response = requests.get(url, headers=self._headers(), params={"email": email.lower()}, timeout=10)
            response.raise_for_status()
            users = response.json()
        except requests.RequestException as e:
            logger.error(f"Error buscando usuario {email} en Auth0: {str(e)}")
            raise Auth0ManagementError(f"Error al buscar usuario en Auth0: {str(e)}") from e
        return users[0] if users else None

    def create_user(self, email: str, name: Optional[str] = None) -> Dict[str, Any]:
        """
        Crea el usuario en la conexión de base de datos con una contraseña
        aleatoria; el usuario la sustituye desde el enlace de bienvenida.
        """
        url = f"https://{self.domain}/api/v2/users"
        payload = {
            "connection": self.connection,
            "email": email.lower(),
            "password": secrets.token_urlsafe(24) + "Aa1!",
            "email_verified": False,
        }
        if name:
            payload["name"] = name
        try:
            response = requests.post(url, json=payload, headers=self._headers(), timeout=10)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Error creando usuario {email} en Auth0: {str(e)}")
            raise Auth0ManagementError(f"Error al crear usuario en Auth0: {str(e)}") from e
        logger.info(f"Usuario {email} creado en Auth0")
        return response.json()

    def get_or_create_user_id(self, email: str, name: Optional[str] = None) -> str:
        existing = self.find_user_by_email(email)
        if existing:
            return existing["user_id"]
        return self.create_user(email, name)["user_id"]

    def create_password_change_ticket(self, auth0_user_id: str, ttl_sec: int = 7 * 24 * 3600) -> str:
        """
        Genera un enlace (ticket) para crear o cambiar la contraseña.

        Returns:
            str: URL del ticket
        """
        url = f"https://{self.domain}/api/v2/tickets/password-change"
        payload = {
            "user_id": auth0_user_id,
            "result_url": get_settings().FRONTEND_URL,
            "ttl_sec": ttl_sec,
            "mark_email_as_verified": True,
        }
        try:
            response = requests.post(url, json=payload, headers=self._headers(), timeout=10)
            response.raise_for_status()
        except requests.RequestException as e:
            logger.error(f"Error generando ticket de contraseña para {auth0_user_id}: {str(e)}")
            raise Auth0ManagementError(f"Error al generar el enlace de contraseña: {str(e)}") from e
        return response.json()["ticket"]


auth0_mgmt_service = Auth0ManagementService()
