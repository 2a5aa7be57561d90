"""
Invitaciones y alta masiva de miembros.

Cada invitación lleva un token de 32 bytes aleatorios en hexadecimal y
caduca a los 7 días. El email de invitación contiene el enlace de aceptación.
"""
import csv
import io
import json
import logging
import secrets
from datetime import datetime, timedelta, timezone
from typing import Any, Dict, List, Optional, Tuple

from sqlalchemy.orm import Session

from gymhub.core.config import get_settings
from gymhub.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from gymhub.models.gym import Gym
from gymhub.models.invitation import Invitation
from gymhub.models.user import User, UserRole
from gymhub.repositories.user import user_repository
from gymhub.schemas.invitation import InvitationCreate
from gymhub.services.email import EmailDeliveryError, email_service

logger = logging.getLogger(__name__)

EMAIL_KEYS = ("email", "email address", "correo")
ROLE_KEYS = ("role", "user role", "rol")
NAME_KEYS = ("name", "nombre")
PHONE_KEYS = ("phone", "telefono", "teléfono")
COACH_ROLE_ALIASES = {"coach", "head coach", "entrenador"}


def generate_token() -> str:
    return secrets.token_hex(32)


def _as_aware(value: datetime) -> datetime:
    # SQLite devuelve datetimes naive aunque la columna sea timezone=True
    return value if value.tzinfo else value.replace(tzinfo=timezone.utc)


def _pick(row: Dict[str, Any], keys: Tuple[str, ...]) -> Optional[str]:
    normalized = {str(k).strip().lower(): v for k, v in row.items() if k is not None}
    for key in keys:
        value = normalized.get(key)
        if value is not None and str(value).strip():
            return str(value).strip()
    return None


def parse_roster_file(filename: str, content: bytes) -> List[Dict[str, Any]]:
    """
    Lee un fichero CSV (con cabecera) o JSON (lista de objetos).

    Raises:
        ValidationError: si el formato no es soportado o no se puede leer
    """
    try:
        text = content.decode("utf-8-sig")
    except UnicodeDecodeError:
        raise ValidationError("El fichero debe estar codificado en UTF-8")

    name = (filename or "").lower()
    if name.endswith(".json"):
        try:
            data = json.loads(text)
        except json.JSONDecodeError as e:
            raise ValidationError(f"JSON inválido: {e.msg}")
        if not isinstance(data, list) or not all(isinstance(r, dict) for r in data):
            raise ValidationError("El JSON debe ser una lista de objetos")
        return data
    if name.endswith(".csv"):
        reader = csv.DictReader(io.StringIO(text))
        return [row for row in reader if any((v or "").strip() for v in row.values() if isinstance(v, str))]
    raise ValidationError("Formato no soportado. Usa CSV o JSON.")


class InvitationService:

    def _pending_invitation(self, db: Session, gym_id: int, email: str) -> Optional[Invitation]:
        now = datetime.now(timezone.utc)
        candidates = db.query(Invitation).filter(
            Invitation.gym_id == gym_id,
            Invitation.email == email,
            Invitation.used.is_(False),
        ).all()
        return next((i for i in candidates if _as_aware(i.expires_at) > now), None)

    def _invite_one(
        self, db: Session, *, inviter: User, gym: Gym, email: str, role: UserRole,
        name: Optional[str] = None, phone: Optional[str] = None
    ) -> Invitation:
        """
        Crea la invitación y envía el email. Si el envío falla se descarta.

        Raises:
            ValidationError: usuario existente o invitación pendiente
            EmailDeliveryError: el email no se pudo enviar
        """
        email = email.strip().lower()
        existing = user_repository.get_by_any_email(db, email=email)
        if existing and existing.gym_id is not None:
            raise ValidationError("El usuario ya existe")
        if self._pending_invitation(db, gym.id, email):
            raise ValidationError("Ya hay una invitación pendiente para este email")

        invitation = Invitation(
            gym_id=gym.id,
            email=email,
            role=role,
            token=generate_token(),
            expires_at=datetime.now(timezone.utc) + timedelta(days=get_settings().INVITATION_EXPIRE_DAYS),
            invited_by_id=inviter.id,
            name=name,
            phone=phone,
        )
        db.add(invitation)
        db.commit()
        db.refresh(invitation)

        try:
            email_service.send_invitation(
                email, gym, role, invitation.token, invitation.expires_at,
                name=name, invited_by=inviter.name,
            )
        except EmailDeliveryError:
            db.delete(invitation)
            db.commit()
            raise
        return invitation

    def create_invitations(self, db: Session, *, inviter: User, gym: Gym,
                           invitation_in: InvitationCreate) -> Dict[str, Any]:
        if not inviter.is_staff:
            raise PermissionDeniedError("Solo el staff puede invitar miembros")

        info = invitation_in.user_info
        invited, errors = [], []
        for email in invitation_in.emails:
            try:
                invited.append(self._invite_one(
                    db, inviter=inviter, gym=gym, email=email, role=invitation_in.role,
                    name=info.name if info else None, phone=info.phone if info else None,
                ))
            except ValidationError as e:
                errors.append({"email": email, "error": e.detail})
            except EmailDeliveryError as e:
                errors.append({"email": email, "error": f"No se pudo enviar el email: {e}"})

        logger.info(f"Gym {gym.id}: {len(invited)} invitaciones creadas, {len(errors)} errores")
        return {"invited": invited, "errors": errors}

    def import_roster(self, db: Session, *, inviter: User, gym: Gym, filename: str,
                      content: bytes) -> Dict[str, Any]:
        """Convierte cada fila del fichero en una invitación, con errores por fila."""
        if inviter.role != UserRole.OWNER:
            raise PermissionDeniedError("Solo los owners pueden importar el roster")

        rows = parse_roster_file(filename, content)
        invited, errors = [], []
        for index, row in enumerate(rows, start=1):
            email = _pick(row, EMAIL_KEYS)
            if not email:
                errors.append({"row": index, "error": "El email es obligatorio"})
                continue
            role_raw = (_pick(row, ROLE_KEYS) or "athlete").lower()
            role = UserRole.COACH if role_raw in COACH_ROLE_ALIASES else UserRole.ATHLETE
            try:
                invited.append(self._invite_one(
                    db, inviter=inviter, gym=gym, email=email, role=role,
                    name=_pick(row, NAME_KEYS), phone=_pick(row, PHONE_KEYS),
                ))
            except ValidationError as e:
                errors.append({"row": index, "email": email, "error": e.detail})
            except EmailDeliveryError as e:
                errors.append({"row": index, "email": email, "error": f"No se pudo enviar el email: {e}"})

        logger.info(f"Importación de roster en gym {gym.id}: {len(invited)} invitaciones, {len(errors)} errores")
        return {"invited": invited, "errors": errors}

    def list_pending(self, db: Session, *, gym_id: int) -> List[Invitation]:
        now = datetime.now(timezone.utc)
        invitations = db.query(Invitation).filter(
            Invitation.gym_id == gym_id, Invitation.used.is_(False)
        ).order_by(Invitation.created_at.desc()).all()
        return [i for i in invitations if _as_aware(i.expires_at) > now]

    def accept(self, db: Session, *, user: User, token: str) -> User:
        """Asigna al usuario el gimnasio y el rol de la invitación."""
        invitation = db.query(Invitation).filter(Invitation.token == token).first()
        if not invitation:
            raise NotFoundError("Invitación no encontrada")
        if invitation.used:
            raise ValidationError("La invitación ya fue utilizada")
        if _as_aware(invitation.expires_at) <= datetime.now(timezone.utc):
            raise ValidationError("La invitación ha caducado")
        if invitation.email.lower() not in [e.lower() for e in user.recipient_emails]:
            raise PermissionDeniedError("La invitación pertenece a otro email")
        if user.gym_id is not None and user.gym_id != invitation.gym_id:
            raise ValidationError("El usuario ya pertenece a otro gimnasio")

        user.gym_id = invitation.gym_id
        user.role = invitation.role
        if not user.name and invitation.name:
            user.name = invitation.name
        if not user.phone and invitation.phone:
            user.phone = invitation.phone
        user.onboarded = bool(user.name)
        invitation.used = True
        db.add_all([user, invitation])
        db.commit()
        db.refresh(user)
        logger.info(f"Usuario {user.id} aceptó la invitación {invitation.id} al gym {invitation.gym_id}")
        return user


invitation_service = InvitationService()
