import json
import logging
from typing import Any, Dict, List, Optional

import requests

from gymhub.core.config import get_settings

logger = logging.getLogger(__name__)


class OneSignalService:
    def __init__(self, app_id: Optional[str], api_key: Optional[str]):
        self.app_id = app_id
        self.api_key = api_key
        self.base_url = "https://onesignal.com/api/v1/notifications"
        self.headers = {
            "Authorization": f"Basic {self.api_key}",
            "Content-Type": "application/json; charset=utf-8"
        }

    @property
    def enabled(self) -> bool:
        return bool(self.app_id and self.api_key)

    def send_to_devices(
        self,
        player_ids: List[str],
        title: str,
        message: str,
        data: Optional[Dict[str, Any]] = None,
        gym_name: Optional[str] = None
    ) -> Dict[str, Any]:
        """
        Envía una notificación push a los dispositivos indicados.

        Nunca lanza excepciones: el resultado indica si hubo éxito.
        """
        player_ids = [p for p in player_ids if p]
        if not player_ids:
            return {"success": False, "errors": ["No hay dispositivos destino"]}
        if not self.enabled:
            logger.debug("OneSignal no configurado, se omite la notificación push")
            return {"success": False, "errors": ["OneSignal no configurado"]}

        formatted_title = f"{gym_name}: {title}" if gym_name else title
        payload = {
            "app_id": self.app_id,
            "include_player_ids": player_ids,
            "headings": {"en": formatted_title, "es": formatted_title},
            "contents": {"en": message, "es": message},
            "data": data or {}
        }
        try:
            logger.info(f"Enviando push a {len(player_ids)} dispositivos: {formatted_title}")
            response = requests.post(self.base_url, headers=self.headers, data=json.dumps(payload), timeout=10)
            if response.status_code == 200:
                result = response.json()
                return {
                    "success": True,
                    "notification_id": result.get("id"),
                    "recipients": result.get("recipients")
                }
            error_msg = f"OneSignal error: {response.status_code} - {response.text}"
            logger.error(error_msg)
            return {"success": False, "errors": [error_msg]}
        except requests.RequestException as e:
            error_msg = f"Error enviando notificación push: {str(e)}"
            logger.error(error_msg, exc_info=True)
            return {"success": False, "errors": [error_msg]}


_settings = get_settings()
notification_service = OneSignalService(_settings.ONESIGNAL_APP_ID, _settings.ONESIGNAL_REST_API_KEY)
