"""initial_schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-10-17 10:00:00.000000

"""
from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


ENUMS = ('userrole', 'occurrencestatus', 'rsvpstatus', 'blogposttype', 'channeltype')


def upgrade():
    # 1. Gimnasios (tenants)
    op.create_table(
        'gyms',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('logo_url', sa.String(500), nullable=True),
        sa.Column('website', sa.String(255), nullable=True),
        sa.Column('timezone', sa.String(50), nullable=False, server_default='UTC'),
        sa.Column('created_by_id', sa.Integer(), nullable=True),
        sa.Column('email_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('reminder_emails_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('announcement_emails_enabled', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_gyms_id'), 'gyms', ['id'])

    # 2. Usuarios
    op.create_table(
        'user',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('alt_email', sa.String(255), nullable=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('avatar_url', sa.String(500), nullable=True),
        sa.Column('auth0_id', sa.String(255), nullable=True),
        sa.Column('role', sa.Enum('OWNER', 'COACH', 'ATHLETE', name='userrole'), nullable=False),
        sa.Column('gym_id', sa.Integer(), sa.ForeignKey('gyms.id', ondelete='SET NULL'), nullable=True),
        sa.Column('onboarded', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('push_token', sa.String(255), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_user_id'), 'user', ['id'])
    op.create_index(op.f('ix_user_email'), 'user', ['email'], unique=True)
    op.create_index(op.f('ix_user_alt_email'), 'user', ['alt_email'])
    op.create_index(op.f('ix_user_auth0_id'), 'user', ['auth0_id'], unique=True)
    op.create_index(op.f('ix_user_gym_id'), 'user', ['gym_id'])

    # 3. Invitaciones (el tipo userrole ya existe)
    op.create_table(
        'invitations',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('gym_id', sa.Integer(), sa.ForeignKey('gyms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('role', postgresql.ENUM('OWNER', 'COACH', 'ATHLETE', name='userrole', create_type=False),
                  nullable=False),
        sa.Column('token', sa.String(64), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('used', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('invited_by_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='SET NULL'), nullable=True),
        sa.Column('name', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(50), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_invitations_id'), 'invitations', ['id'])
    op.create_index(op.f('ix_invitations_gym_id'), 'invitations', ['gym_id'])
    op.create_index(op.f('ix_invitations_email'), 'invitations', ['email'])
    op.create_index(op.f('ix_invitations_token'), 'invitations', ['token'], unique=True)
    op.create_index('ix_invitations_gym_email', 'invitations', ['gym_id', 'email'])

    # 4. Eventos, ocurrencias, RSVPs y log de recordatorios
    op.create_table(
        'events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('gym_id', sa.Integer(), sa.ForeignKey('gyms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_by_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('location', sa.String(255), nullable=True),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('start_date', sa.Date(), nullable=False),
        sa.Column('recurrence_rule', sa.String(500), nullable=True),
        sa.Column('recurrence_end_date', sa.Date(), nullable=True),
        sa.Column('recurrence_count', sa.Integer(), nullable=True),
        sa.Column('reminder_offsets', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_events_id'), 'events', ['id'])
    op.create_index(op.f('ix_events_gym_id'), 'events', ['gym_id'])

    op.create_table(
        'event_occurrences',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id', ondelete='CASCADE'), nullable=False),
        sa.Column('occurrence_date', sa.Date(), nullable=False),
        sa.Column('status', sa.Enum('SCHEDULED', 'CANCELED', name='occurrencestatus'), nullable=False),
        sa.Column('is_custom', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('event_id', 'occurrence_date', name='uq_occurrence_event_date')
    )
    op.create_index(op.f('ix_event_occurrences_id'), 'event_occurrences', ['id'])
    op.create_index(op.f('ix_event_occurrences_event_id'), 'event_occurrences', ['event_id'])
    op.create_index(op.f('ix_event_occurrences_occurrence_date'), 'event_occurrences', ['occurrence_date'])
    op.create_index(op.f('ix_event_occurrences_status'), 'event_occurrences', ['status'])

    op.create_table(
        'rsvps',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('occurrence_id', sa.Integer(),
                  sa.ForeignKey('event_occurrences.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.Enum('GOING', 'NOT_GOING', name='rsvpstatus'), nullable=False),
        sa.Column('updated_by_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'occurrence_id', name='uq_rsvp_user_occurrence')
    )
    op.create_index(op.f('ix_rsvps_id'), 'rsvps', ['id'])
    op.create_index(op.f('ix_rsvps_user_id'), 'rsvps', ['user_id'])
    op.create_index(op.f('ix_rsvps_occurrence_id'), 'rsvps', ['occurrence_id'])

    op.create_table(
        'reminder_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('occurrence_id', sa.Integer(),
                  sa.ForeignKey('event_occurrences.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('reminder_type', sa.String(20), nullable=False),
        sa.Column('sent_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('occurrence_id', 'user_id', 'reminder_type', name='uq_reminder_log')
    )
    op.create_index(op.f('ix_reminder_logs_id'), 'reminder_logs', ['id'])
    op.create_index('ix_reminder_logs_occurrence', 'reminder_logs', ['occurrence_id'])

    # 5. Avisos y blog
    op.create_table(
        'notices',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('gym_id', sa.Integer(), sa.ForeignKey('gyms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('author_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('send_email', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_notices_id'), 'notices', ['id'])
    op.create_index(op.f('ix_notices_gym_id'), 'notices', ['gym_id'])
    op.create_index(op.f('ix_notices_is_active'), 'notices', ['is_active'])

    op.create_table(
        'blog_posts',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('gym_id', sa.Integer(), sa.ForeignKey('gyms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('author_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='SET NULL'), nullable=True),
        sa.Column('title', sa.String(200), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('post_type', sa.Enum('ABOUT', 'SCHEDULE', 'EVENT', 'GENERAL', name='blogposttype'),
                  nullable=False),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id', ondelete='SET NULL'), nullable=True),
        sa.Column('image_url', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_blog_posts_id'), 'blog_posts', ['id'])
    op.create_index(op.f('ix_blog_posts_gym_id'), 'blog_posts', ['gym_id'])
    op.create_index(op.f('ix_blog_posts_created_at'), 'blog_posts', ['created_at'])

    # 6. Chat
    op.create_table(
        'chat_channels',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('gym_id', sa.Integer(), sa.ForeignKey('gyms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('name', sa.String(200), nullable=True),
        sa.Column('channel_type', sa.Enum('GLOBAL', 'DM', 'GROUP', name='channeltype'), nullable=False),
        sa.Column('event_id', sa.Integer(), sa.ForeignKey('events.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_by_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='SET NULL'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_chat_channels_id'), 'chat_channels', ['id'])
    op.create_index(op.f('ix_chat_channels_gym_id'), 'chat_channels', ['gym_id'])
    op.create_index(op.f('ix_chat_channels_event_id'), 'chat_channels', ['event_id'])
    op.create_index('ix_chat_channels_gym_type', 'chat_channels', ['gym_id', 'channel_type'])

    op.create_table(
        'chat_channel_members',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('channel_id', sa.Integer(),
                  sa.ForeignKey('chat_channels.id', ondelete='CASCADE'), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('joined_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('channel_id', 'user_id', name='uq_channel_member')
    )
    op.create_index(op.f('ix_chat_channel_members_id'), 'chat_channel_members', ['id'])
    op.create_index('ix_chat_channel_members_user', 'chat_channel_members', ['user_id', 'channel_id'])

    op.create_table(
        'chat_messages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('channel_id', sa.Integer(),
                  sa.ForeignKey('chat_channels.id', ondelete='CASCADE'), nullable=False),
        sa.Column('gym_id', sa.Integer(), sa.ForeignKey('gyms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sender_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='SET NULL'), nullable=True),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('attachment_url', sa.String(500), nullable=True),
        sa.Column('attachment_type', sa.String(50), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_chat_messages_id'), 'chat_messages', ['id'])
    op.create_index(op.f('ix_chat_messages_channel_id'), 'chat_messages', ['channel_id'])
    op.create_index(op.f('ix_chat_messages_gym_id'), 'chat_messages', ['gym_id'])
    op.create_index(op.f('ix_chat_messages_created_at'), 'chat_messages', ['created_at'])

    op.create_table(
        'chat_notifications',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), sa.ForeignKey('user.id', ondelete='CASCADE'), nullable=False),
        sa.Column('channel_id', sa.Integer(),
                  sa.ForeignKey('chat_channels.id', ondelete='CASCADE'), nullable=False),
        sa.Column('message_id', sa.Integer(),
                  sa.ForeignKey('chat_messages.id', ondelete='CASCADE'), nullable=False),
        sa.Column('read_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_chat_notifications_id'), 'chat_notifications', ['id'])
    op.create_index('ix_chat_notifications_user_unread', 'chat_notifications',
                    ['user_id', 'channel_id', 'read_at'])


def downgrade():
    for table in (
        'chat_notifications', 'chat_messages', 'chat_channel_members', 'chat_channels',
        'blog_posts', 'notices', 'reminder_logs', 'rsvps', 'event_occurrences', 'events',
        'invitations', 'user', 'gyms',
    ):
        op.drop_table(table)

    if op.get_bind().dialect.name == 'postgresql':
        for name in ENUMS:
            sa.Enum(name=name).drop(op.get_bind(), checkfirst=True)
