"""Attendance schema: users, events, rsvps, feedback and attendance log

Revision ID: 3c1f0a9d2b7e
Revises:
Create Date: 2026-10-19 11:30:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = '3c1f0a9d2b7e'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

RSVP_STATUSES = ('CONFIRMED', 'WAITLISTED', 'CANCELLED', 'CHECKED_IN', 'NO_SHOW')
ATTENDANCE_ACTIONS = ('RSVP_CONFIRMED', 'RSVP_WAITLISTED', 'RSVP_CANCELLED', 'CHECKED_IN', 'MARKED_NO_SHOW')


def upgrade() -> None:
    role_enum = postgresql.ENUM('user', 'organizer', 'admin', name='roleenum', create_type=False)
    rsvp_status_enum = postgresql.ENUM(*RSVP_STATUSES, name='rsvp_status', create_type=False)
    attendance_action_enum = postgresql.ENUM(*ATTENDANCE_ACTIONS, name='attendance_action', create_type=False)
    role_enum.create(op.get_bind(), checkfirst=True)
    rsvp_status_enum.create(op.get_bind(), checkfirst=True)
    attendance_action_enum.create(op.get_bind(), checkfirst=True)

    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('image_url', sa.String(512), nullable=True),
        sa.Column('role', role_enum, nullable=False, server_default='user'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

    op.create_table(
        'events',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('starts_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('capacity', sa.Integer, nullable=True),
        sa.Column('waitlist_enabled', sa.Boolean, nullable=False, server_default=sa.true()),
        sa.Column('organizer_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint('capacity IS NULL OR capacity >= 0', name='ck_events_capacity'),
    )
    op.create_index('idx_event_date', 'events', ['starts_at'])
    op.create_index('idx_event_organizer', 'events', ['organizer_id'])

    op.create_table(
        'event_co_organizers',
        sa.Column('event_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('events.id'), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), primary_key=True),
    )

    op.create_table(
        'rsvps',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('status', rsvp_status_enum, nullable=False),
        sa.Column('waitlisted_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('confirmed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('checked_in_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('event_id', 'user_id', name='uq_user_event_rsvp'),
    )
    op.create_index('idx_rsvp_user', 'rsvps', ['user_id'])
    op.create_index('idx_rsvp_event_status', 'rsvps', ['event_id', 'status'])
    op.create_index('idx_rsvp_waitlist_order', 'rsvps', ['event_id', 'waitlisted_at', 'id'])

    op.create_table(
        'event_feedback',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('rating', sa.Integer, nullable=False),
        sa.Column('comment', sa.Text, nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('event_id', 'user_id', name='uq_event_feedback_user'),
        sa.CheckConstraint('rating >= 1 AND rating <= 5', name='ck_event_feedback_rating'),
    )
    op.create_index('idx_feedback_event', 'event_feedback', ['event_id'])

    op.create_table(
        'attendance_logs',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True),
        sa.Column('event_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('events.id'), nullable=False),
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('action', attendance_action_enum, nullable=False),
        sa.Column('reason', sa.String(64), nullable=True),
        sa.Column('actor_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )
    op.create_index('idx_attendance_log_event', 'attendance_logs', ['event_id', 'created_at'])


def downgrade() -> None:
    op.drop_table('attendance_logs')
    op.drop_table('event_feedback')
    op.drop_table('rsvps')
    op.drop_table('event_co_organizers')
    op.drop_table('events')
    op.drop_table('users')

    sa.Enum(name='attendance_action').drop(op.get_bind())
    sa.Enum(name='rsvp_status').drop(op.get_bind())
    sa.Enum(name='roleenum').drop(op.get_bind())
