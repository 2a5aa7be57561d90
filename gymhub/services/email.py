"""
Servicio de email transaccional (Resend) con cuerpos renderizados por jinja2.

Cada llamada hace un único intento por destinatario; los errores se lanzan
como ``EmailDeliveryError`` para que el llamador los recoja en sus resultados.
"""
import logging
import os
from datetime import date, time
from typing import Any, Dict, List, Optional, Union

import resend
from jinja2 import Environment, FileSystemLoader, select_autoescape

from gymhub.core.config import get_settings
from gymhub.models.event import Event, EventOccurrence
from gymhub.models.gym import Gym
from gymhub.models.user import User, UserRole

logger = logging.getLogger(__name__)

TEMPLATES_DIR = os.path.join(os.path.dirname(os.path.dirname(__file__)), "templates", "email")

ROLE_LABELS = {
    UserRole.OWNER: "administrador",
    UserRole.COACH: "entrenador",
    UserRole.ATHLETE: "atleta",
}


class EmailDeliveryError(Exception):
    """Fallo al entregar un email a un destinatario."""


def _fmt_date(value: date) -> str:
    return value.strftime("%d/%m/%Y")


def _fmt_time(value: time) -> str:
    return value.strftime("%H:%M")


class EmailService:
    def __init__(self):
        self.env = Environment(
            loader=FileSystemLoader(TEMPLATES_DIR),
            autoescape=select_autoescape(["html"]),
        )

    def render(self, template_name: str, **context: Any) -> str:
        return self.env.get_template(template_name).render(**context)

    def send(self, to: Union[str, List[str]], subject: str, html: str) -> Optional[str]:
        """
        Envía un email con Resend y devuelve el id del proveedor.

        Raises:
            EmailDeliveryError: si falta la API key o el proveedor rechaza el envío
        """
        settings = get_settings()
        recipients = [to] if isinstance(to, str) else list(to)
        if not settings.RESEND_API_KEY:
            raise EmailDeliveryError("RESEND_API_KEY no configurado")

        resend.api_key = settings.RESEND_API_KEY
        params = {
            "from": settings.EMAILS_FROM_EMAIL,
            "to": recipients,
            "subject": subject,
            "html": html,
        }
        try:
            response = resend.Emails.send(params)
        except Exception as e:
            logger.error(f"Error enviando email '{subject}' a {recipients}: {e}")
            raise EmailDeliveryError(str(e)) from e

        email_id = response.get("id") if isinstance(response, dict) else getattr(response, "id", None)
        logger.info(f"Email '{subject}' enviado a {recipients} (id={email_id})")
        return email_id

    def _gym_context(self, gym: Gym) -> Dict[str, Any]:
        return {"gym_name": gym.name, "gym_logo_url": gym.logo_url}

    def _occurrence_context(self, event: Event, occurrence: EventOccurrence) -> Dict[str, Any]:
        return {
            "event_title": event.title,
            "occurrence_date": _fmt_date(occurrence.occurrence_date),
            "start_time": _fmt_time(event.start_time),
            "end_time": _fmt_time(event.end_time),
            "location": event.location,
            "note": occurrence.note,
        }

    def send_reminder(
        self, user: User, gym: Gym, event: Event, occurrence: EventOccurrence, subject: str
    ) -> Optional[str]:
        """Recordatorio de una ocurrencia al email principal y al alternativo del usuario."""
        html = self.render(
            "reminder.html",
            subject=subject,
            recipient_name=user.name or user.email,
            app_url=f"{get_settings().FRONTEND_URL}/rsvp/{occurrence.id}",
            **self._gym_context(gym),
            **self._occurrence_context(event, occurrence),
        )
        return self.send(user.recipient_emails, f"{event.title} - {subject}", html)

    def send_rsvp_request(self, user: User, gym: Gym, event: Event, occurrence: EventOccurrence) -> Optional[str]:
        """Recordatorio manual para quien aún no ha respondido."""
        html = self.render(
            "reminder.html",
            subject="Confirma tu asistencia",
            recipient_name=user.name or user.email,
            app_url=f"{get_settings().FRONTEND_URL}/rsvp/{occurrence.id}",
            **self._gym_context(gym),
            **self._occurrence_context(event, occurrence),
        )
        return self.send(user.recipient_emails, f"Confirma tu asistencia a {event.title}", html)

    def send_cancellation(self, user: User, gym: Gym, event: Event, occurrence: EventOccurrence) -> Optional[str]:
        html = self.render(
            "cancellation.html",
            recipient_name=user.name or user.email,
            **self._gym_context(gym),
            **self._occurrence_context(event, occurrence),
        )
        subject = f"Cancelado: {event.title} ({_fmt_date(occurrence.occurrence_date)})"
        return self.send(user.recipient_emails, subject, html)

    def send_invitation(
        self, email: str, gym: Gym, role: UserRole, token: str, expires_at,
        name: Optional[str] = None, invited_by: Optional[str] = None
    ) -> Optional[str]:
        settings = get_settings()
        html = self.render(
            "invitation.html",
            recipient_name=name,
            invited_by=invited_by,
            role_label=ROLE_LABELS.get(role, role.value),
            accept_url=f"{settings.FRONTEND_URL}/invitations/accept?token={token}",
            expires_at=_fmt_date(expires_at.date() if hasattr(expires_at, "date") else expires_at),
            **self._gym_context(gym),
        )
        return self.send(email, f"Invitación a {gym.name}", html)

    def send_notice(self, user: User, gym: Gym, title: str, content: str) -> Optional[str]:
        html = self.render(
            "notice.html",
            recipient_name=user.name or user.email,
            title=title,
            content=content,
            **self._gym_context(gym),
        )
        return self.send(user.recipient_emails, f"{gym.name}: {title}", html)

    def send_welcome(self, user: User, gym: Gym, ticket_url: str) -> Optional[str]:
        html = self.render(
            "welcome.html",
            recipient_name=user.name or user.email,
            ticket_url=ticket_url,
            **self._gym_context(gym),
        )
        return self.send(user.email, f"Bienvenido a {gym.name}", html)

    def send_password_reset(self, user: User, gym: Optional[Gym], ticket_url: str) -> Optional[str]:
        context = self._gym_context(gym) if gym else {"gym_name": None, "gym_logo_url": None}
        html = self.render(
            "password_reset.html",
            recipient_name=user.name or user.email,
            ticket_url=ticket_url,
            **context,
        )
        return self.send(user.email, "Restablece tu contraseña", html)


email_service = EmailService()
