# Importar todos los modelos para que Alembic los detecte
from gymhub.db.base_class import Base  # noqa
from gymhub.models.gym import Gym  # noqa
from gymhub.models.user import User  # noqa
from gymhub.models.invitation import Invitation  # noqa
from gymhub.models.event import Event, EventOccurrence, RSVP, ReminderLog  # noqa
from gymhub.models.notice import Notice  # noqa
from gymhub.models.blog import BlogPost  # noqa
from gymhub.models.chat import Channel, ChannelMember, Message, ChatNotification  # noqa
