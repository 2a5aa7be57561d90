from gymhub.models.gym import Gym
from gymhub.models.user import User, UserRole, STAFF_ROLES
from gymhub.models.invitation import Invitation
from gymhub.models.event import Event, EventOccurrence, RSVP, ReminderLog, OccurrenceStatus, RSVPStatus
from gymhub.models.notice import Notice
from gymhub.models.blog import BlogPost, BlogPostType
from gymhub.models.chat import Channel, ChannelMember, Message, ChatNotification, ChannelType
