"""
Servicio de chat del gimnasio.

Maneja el canal global ("Gym Chat") con todos los miembros, los mensajes
directos (uno por pareja de usuarios) y los grupos con nombre. Cada mensaje
genera una notificación no leída para el resto de miembros del canal.
"""
import logging
from datetime import datetime, timezone
from typing import Any, Dict, List, Optional

from sqlalchemy.orm import Session

from gymhub.core.exceptions import NotFoundError, PermissionDeniedError, ValidationError
from gymhub.models.chat import Channel, ChannelMember, ChannelType, ChatNotification, Message
from gymhub.models.user import User
from gymhub.repositories.chat import chat_repository
from gymhub.repositories.event import event_repository
from gymhub.repositories.user import user_repository
from gymhub.schemas.chat import ChannelCreate, MessageCreate

logger = logging.getLogger(__name__)


class ChatService:

    GLOBAL_CHANNEL_NAME = "Gym Chat"

    def ensure_global_channel(self, db: Session, gym_id: int) -> Channel:
        """
        Obtiene o crea el canal global y agrega a los miembros del gimnasio
        que aún no estén en él.
        """
        channel = chat_repository.get_global_channel(db, gym_id=gym_id)
        if channel is None:
            channel = Channel(gym_id=gym_id, name=self.GLOBAL_CHANNEL_NAME, channel_type=ChannelType.GLOBAL)
            db.add(channel)
            db.flush()
            logger.info(f"Canal global creado para gym {gym_id}: {channel.id}")

        current = set(chat_repository.get_member_ids(db, channel_id=channel.id))
        missing = [m.id for m in user_repository.get_gym_members(db, gym_id=gym_id) if m.id not in current]
        for user_id in missing:
            db.add(ChannelMember(channel_id=channel.id, user_id=user_id))
        db.commit()
        if missing:
            logger.info(f"{len(missing)} usuarios agregados al canal global de gym {gym_id}")
        return channel

    def _channel_out(self, db: Session, channel: Channel, unread: Dict[int, int]) -> Dict[str, Any]:
        return {
            "id": channel.id,
            "gym_id": channel.gym_id,
            "name": channel.name,
            "channel_type": channel.channel_type,
            "event_id": channel.event_id,
            "member_ids": chat_repository.get_member_ids(db, channel_id=channel.id),
            "unread_count": unread.get(channel.id, 0),
            "created_at": channel.created_at,
        }

    def list_channels(self, db: Session, *, user: User) -> List[Dict[str, Any]]:
        self.ensure_global_channel(db, user.gym_id)
        channels = chat_repository.get_user_channels(db, gym_id=user.gym_id, user_id=user.id)
        unread = chat_repository.unread_counts(db, user_id=user.id, gym_id=user.gym_id)
        return [self._channel_out(db, c, unread) for c in channels]

    def create_channel(self, db: Session, *, user: User, channel_in: ChannelCreate) -> Dict[str, Any]:
        """DM deduplicado por pareja o grupo con nombre y miembros del mismo gimnasio."""
        if channel_in.channel_type == ChannelType.DM:
            channel = self._get_or_create_dm(db, user, channel_in.user_id)
        else:
            channel = self._create_group(db, user, channel_in)
        return self._channel_out(db, channel, {})

    def _get_or_create_dm(self, db: Session, user: User, other_id: int) -> Channel:
        if other_id == user.id:
            raise ValidationError("No puedes abrir un mensaje directo contigo mismo")
        other = user_repository.get(db, id=other_id)
        if not other or other.gym_id != user.gym_id:
            raise NotFoundError(f"Usuario {other_id} no encontrado en el gimnasio")

        existing = chat_repository.get_dm_channel(db, gym_id=user.gym_id, user_a=user.id, user_b=other.id)
        if existing:
            return existing

        channel = Channel(gym_id=user.gym_id, channel_type=ChannelType.DM, created_by_id=user.id)
        db.add(channel)
        db.flush()
        db.add_all([
            ChannelMember(channel_id=channel.id, user_id=user.id),
            ChannelMember(channel_id=channel.id, user_id=other.id),
        ])
        db.commit()
        db.refresh(channel)
        logger.info(f"DM {channel.id} creado entre {user.id} y {other.id}")
        return channel

    def _create_group(self, db: Session, user: User, channel_in: ChannelCreate) -> Channel:
        member_ids = {m for m in channel_in.member_ids if m != user.id}
        if not member_ids:
            raise ValidationError("Un grupo necesita al menos otro miembro")
        members = user_repository.get_gym_members_by_ids(db, gym_id=user.gym_id, user_ids=list(member_ids))
        if len(members) != len(member_ids):
            raise NotFoundError("Algunos miembros no pertenecen al gimnasio")
        if channel_in.event_id is not None and not event_repository.exists(
            db, id=channel_in.event_id, gym_id=user.gym_id
        ):
            raise NotFoundError(f"Evento {channel_in.event_id} no encontrado")

        channel = Channel(
            gym_id=user.gym_id,
            name=channel_in.name.strip(),
            channel_type=ChannelType.GROUP,
            event_id=channel_in.event_id,
            created_by_id=user.id,
        )
        db.add(channel)
        db.flush()
        for member_id in member_ids | {user.id}:
            db.add(ChannelMember(channel_id=channel.id, user_id=member_id))
        db.commit()
        db.refresh(channel)
        logger.info(f"Grupo {channel.id} '{channel.name}' creado por {user.id} con {len(member_ids) + 1} miembros")
        return channel

    def get_member_channel(self, db: Session, *, user: User, channel_id: int) -> Channel:
        channel = chat_repository.get_channel(db, channel_id=channel_id, gym_id=user.gym_id)
        if not channel:
            raise NotFoundError(f"Canal {channel_id} no encontrado")
        if channel.channel_type == ChannelType.GLOBAL:
            self.ensure_global_channel(db, user.gym_id)
        if not chat_repository.is_member(db, channel_id=channel.id, user_id=user.id):
            raise PermissionDeniedError("No eres miembro de este canal")
        return channel

    def list_messages(self, db: Session, *, user: User, channel_id: int,
                      before_id: Optional[int] = None, limit: int = 50) -> List[Message]:
        channel = self.get_member_channel(db, user=user, channel_id=channel_id)
        return chat_repository.get_messages(db, channel_id=channel.id, before_id=before_id, limit=limit)

    def post_message(self, db: Session, *, user: User, channel_id: int, message_in: MessageCreate) -> Message:
        channel = self.get_member_channel(db, user=user, channel_id=channel_id)
        message = Message(
            channel_id=channel.id,
            gym_id=channel.gym_id,
            sender_id=user.id,
            content=message_in.content,
            attachment_url=message_in.attachment_url,
            attachment_type=message_in.attachment_type,
        )
        db.add(message)
        db.flush()

        recipients = [uid for uid in chat_repository.get_member_ids(db, channel_id=channel.id) if uid != user.id]
        for recipient_id in recipients:
            db.add(ChatNotification(user_id=recipient_id, channel_id=channel.id, message_id=message.id))
        channel.updated_at = datetime.now(timezone.utc)
        db.add(channel)
        db.commit()
        db.refresh(message)
        logger.debug(f"Mensaje {message.id} en canal {channel.id}: {len(recipients)} notificaciones")
        return message

    def unread_counts(self, db: Session, *, user: User) -> Dict[str, Any]:
        counts = chat_repository.unread_counts(db, user_id=user.id, gym_id=user.gym_id)
        return {"total": sum(counts.values()), "channels": counts}

    def mark_read(self, db: Session, *, user: User, channel_id: int) -> int:
        channel = self.get_member_channel(db, user=user, channel_id=channel_id)
        updated = chat_repository.mark_read(
            db, user_id=user.id, channel_id=channel.id, read_at=datetime.now(timezone.utc)
        )
        db.commit()
        return updated


chat_service = ChatService()
