"""create homeshare schema

Revision ID: 3f1c9a7e52b4
Revises:
Create Date: 2026-10-18 09:12:41.318204

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3f1c9a7e52b4'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""
    op.create_table(
        'profiles',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('user_type', sa.String(10), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=False),
        sa.Column('age', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('bio', sa.Text(), server_default=''),
        sa.Column('location', sa.String(255), server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("user_type IN ('elderly', 'student')", name='ck_profiles_user_type'),
    )

    op.create_table(
        'student_profiles',
        sa.Column('id', sa.Uuid(), sa.ForeignKey('profiles.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('university', sa.String(255), nullable=False),
        sa.Column('course', sa.String(255), nullable=False),
        sa.Column('student_type', sa.String(20), server_default='national'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            "student_type IN ('national', 'international', 'erasmus')",
            name='ck_student_profiles_student_type',
        ),
    )

    op.create_table(
        'rooms',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('elderly_id', sa.Uuid(), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('title', sa.String(255), nullable=False),
        sa.Column('location', sa.String(255), server_default=''),
        sa.Column('monthly_price', sa.Numeric(10, 2), nullable=False),
        sa.Column('total_monthly_price', sa.Numeric(10, 2)),
        sa.Column('is_available', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'room_applications',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('room_id', sa.Uuid(), sa.ForeignKey('rooms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('message', sa.Text(), server_default=''),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint(
            "status IN ('pending', 'accepted', 'awaiting_payment', 'rejected')",
            name='ck_room_applications_status',
        ),
        sa.UniqueConstraint('student_id', 'room_id', name='uq_application_student_room'),
    )

    op.create_table(
        'conversations',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('room_id', sa.Uuid(), sa.ForeignKey('rooms.id', ondelete='CASCADE'), nullable=False),
        sa.Column('elderly_id', sa.Uuid(), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.UniqueConstraint('room_id', 'elderly_id', 'student_id', name='uq_conversation_pairing'),
    )

    op.create_table(
        'messages',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('conversation_id', sa.Uuid(), sa.ForeignKey('conversations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('sender_id', sa.Uuid(), sa.ForeignKey('profiles.id', ondelete='CASCADE'), nullable=False),
        sa.Column('content', sa.Text(), nullable=False),
        sa.Column('is_read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
    )

    op.create_table(
        'rentals',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('room_id', sa.Uuid(), sa.ForeignKey('rooms.id'), nullable=False),
        sa.Column('student_id', sa.Uuid(), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('elderly_id', sa.Uuid(), sa.ForeignKey('profiles.id'), nullable=False),
        sa.Column('monthly_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('start_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_date', sa.DateTime(timezone=True)),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("status IN ('active', 'completed', 'cancelled')", name='ck_rentals_status'),
    )

    op.create_table(
        'payments',
        sa.Column('id', sa.Uuid(), primary_key=True),
        sa.Column('rental_id', sa.Uuid(), sa.ForeignKey('rentals.id', ondelete='CASCADE'), nullable=False),
        sa.Column('amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('platform_fee', sa.Numeric(10, 2), nullable=False),
        sa.Column('elderly_amount', sa.Numeric(10, 2), nullable=False),
        sa.Column('payment_date', sa.DateTime(timezone=True)),
        sa.Column('due_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.func.now()),
        sa.CheckConstraint("status IN ('pending', 'completed', 'failed')", name='ck_payments_status'),
        sa.CheckConstraint('platform_fee + elderly_amount = amount', name='ck_payments_split'),
    )

    op.create_index('idx_room_applications_room', 'room_applications', ['room_id', 'status'])
    op.create_index('idx_room_applications_student', 'room_applications', ['student_id'])
    op.create_index('idx_conversations_elderly', 'conversations', ['elderly_id', 'updated_at'])
    op.create_index('idx_conversations_student', 'conversations', ['student_id', 'updated_at'])
    op.create_index('idx_messages_conversation', 'messages', ['conversation_id', 'created_at'])
    op.create_index('idx_messages_unread', 'messages', ['conversation_id', 'is_read'])


def downgrade() -> None:
    """Downgrade schema."""
    for table in (
        'payments',
        'rentals',
        'messages',
        'conversations',
        'room_applications',
        'rooms',
        'student_profiles',
        'profiles',
    ):
        op.drop_table(table)
