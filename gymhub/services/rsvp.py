import logging
from typing import List, Optional

from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from gymhub.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from gymhub.core.retry import retry_on_db_error
from gymhub.core.timezone_utils import is_in_future
from gymhub.models.event import Event, EventOccurrence, OccurrenceStatus, RSVP, RSVPStatus
from gymhub.models.gym import Gym
from gymhub.models.user import User, UserRole
from gymhub.repositories.user import user_repository
from gymhub.services.event import event_service

logger = logging.getLogger(__name__)


class RSVPService:
    """
    Registro de asistencia por ocurrencia: una fila por (usuario, ocurrencia),
    sin límite de plazas.
    """

    def _upsert(self, db: Session, *, user_id: int, occurrence_id: int, status: RSVPStatus,
                updated_by_id: Optional[int]) -> RSVP:
        rsvp = db.query(RSVP).filter(RSVP.user_id == user_id, RSVP.occurrence_id == occurrence_id).first()
        if rsvp is None:
            rsvp = RSVP(user_id=user_id, occurrence_id=occurrence_id, status=status, updated_by_id=updated_by_id)
            db.add(rsvp)
            try:
                db.commit()
            except IntegrityError:
                # Otra petición creó la fila entre la consulta y el insert
                db.rollback()
                rsvp = db.query(RSVP).filter(
                    RSVP.user_id == user_id, RSVP.occurrence_id == occurrence_id
                ).one()
            else:
                db.refresh(rsvp)
                return rsvp

        rsvp.status = status
        rsvp.updated_by_id = updated_by_id
        db.add(rsvp)
        db.commit()
        db.refresh(rsvp)
        return rsvp

    def _ensure_not_canceled(self, occurrence: EventOccurrence) -> None:
        if occurrence.status == OccurrenceStatus.CANCELED:
            raise ValidationError("La ocurrencia está cancelada")

    def respond(self, db: Session, *, user: User, gym: Gym, occurrence_id: int, status: RSVPStatus) -> RSVP:
        """
        El atleta responde por sí mismo. Solo se admiten ocurrencias
        programadas que todavía no han empezado.
        """
        if user.role != UserRole.ATHLETE:
            raise PermissionDeniedError("Solo los atletas pueden responder por sí mismos")

        occurrence = event_service.get_occurrence(db, gym_id=gym.id, occurrence_id=occurrence_id)
        self._ensure_not_canceled(occurrence)
        if not is_in_future(occurrence.occurrence_date, occurrence.event.start_time, gym.timezone):
            raise ValidationError("La ocurrencia ya ha empezado o ha terminado")

        rsvp = self._upsert(db, user_id=user.id, occurrence_id=occurrence.id, status=status, updated_by_id=None)
        logger.info(f"RSVP de usuario {user.id} en ocurrencia {occurrence.id}: {status.value}")
        return rsvp

    def staff_edit(self, db: Session, *, staff: User, gym: Gym, user_id: int, occurrence_id: int,
                   status: RSVPStatus) -> RSVP:
        """
        Owner o coach fijan la respuesta de cualquier miembro. Se permite sobre
        ocurrencias pasadas para corregir la asistencia real.
        """
        if not staff.is_staff:
            raise PermissionDeniedError("Solo el staff puede modificar la asistencia de otros miembros")

        target = user_repository.get(db, id=user_id)
        if not target or target.gym_id != gym.id:
            raise NotFoundError(f"Usuario {user_id} no encontrado en el gimnasio")

        occurrence = event_service.get_occurrence(db, gym_id=gym.id, occurrence_id=occurrence_id)
        self._ensure_not_canceled(occurrence)

        rsvp = self._upsert(db, user_id=target.id, occurrence_id=occurrence.id, status=status,
                            updated_by_id=staff.id)
        logger.info(
            f"Staff {staff.id} fijó RSVP de usuario {target.id} en ocurrencia {occurrence.id}: {status.value}"
        )
        return rsvp

    @retry_on_db_error(max_retries=3, delay=1)
    def list_for_occurrence(self, db: Session, *, gym_id: int, occurrence_id: int) -> List[RSVP]:
        occurrence = event_service.get_occurrence(db, gym_id=gym_id, occurrence_id=occurrence_id)
        return db.query(RSVP).filter(RSVP.occurrence_id == occurrence.id).order_by(RSVP.id).all()

    @retry_on_db_error(max_retries=3, delay=1)
    def list_visible(self, db: Session, *, user: User) -> List[RSVP]:
        """El staff ve todas las respuestas del gimnasio; el atleta solo las suyas."""
        query = (
            db.query(RSVP)
            .join(EventOccurrence, RSVP.occurrence_id == EventOccurrence.id)
            .join(Event, EventOccurrence.event_id == Event.id)
            .filter(Event.gym_id == user.gym_id)
        )
        if not user.is_staff:
            query = query.filter(RSVP.user_id == user.id)
        return query.order_by(EventOccurrence.occurrence_date.desc(), RSVP.id).all()


rsvp_service = RSVPService()
