"""create scheduling tables

Revision ID: a3c9d47e1b20
Revises:
Create Date: 2026-10-19 09:12:44.318205

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa
from sqlalchemy.dialects import postgresql

# revision identifiers, used by Alembic.
revision: str = 'a3c9d47e1b20'
down_revision: Union[str, Sequence[str], None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Upgrade schema."""

    userrole = postgresql.ENUM('HOMEOWNER', 'PROVIDER', 'ADMIN', name='userrole')

    # 1. users
    op.create_table(
        'users',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('email', sa.String(255), nullable=False),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('role', userrole, nullable=False, server_default='HOMEOWNER'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False)
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_role', 'users', ['role'])

    # 2. provider_profiles
    op.create_table(
        'provider_profiles',
        sa.Column('user_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), primary_key=True),
        sa.Column('business_name', sa.String(200), nullable=True),
        sa.Column('full_name', sa.String(255), nullable=True),
        sa.Column('email', sa.String(255), nullable=True),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('timezone', sa.String(50), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'))
    )

    # 3. provider_availability (weekly rules, local wall-clock)
    op.create_table(
        'provider_availability',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('provider_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=False),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('buffer_minutes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.CheckConstraint('day_of_week BETWEEN 0 AND 6', name='ck_provider_availability_day'),
        sa.CheckConstraint('start_time < end_time', name='ck_provider_availability_window'),
        sa.CheckConstraint('buffer_minutes >= 0', name='ck_provider_availability_buffer')
    )
    op.create_index('idx_provider_availability_provider_day', 'provider_availability', ['provider_id', 'day_of_week'])

    # 4. provider_unavailability (one-off blocks)
    op.create_table(
        'provider_unavailability',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('provider_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('start_ts', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_ts', sa.DateTime(timezone=True), nullable=False),
        sa.Column('reason', sa.String(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.CheckConstraint('start_ts < end_ts', name='ck_provider_unavailability_range')
    )
    op.create_index('idx_provider_unavailability_provider_start', 'provider_unavailability', ['provider_id', 'start_ts'])

    # 5. provider_bookings
    op.create_table(
        'provider_bookings',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('provider_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('homeowner_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id'), nullable=False),
        sa.Column('start_ts', sa.DateTime(timezone=True), nullable=False),
        sa.Column('end_ts', sa.DateTime(timezone=True), nullable=False),
        sa.Column('buffer_minutes', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('service_type', sa.String(), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('homeowner_notes', sa.Text(), nullable=True),
        sa.Column('provider_notes', sa.Text(), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('cancelled_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('start_ts < end_ts', name='ck_provider_bookings_range'),
        sa.CheckConstraint('buffer_minutes >= 0', name='ck_provider_bookings_buffer'),
        sa.CheckConstraint("status IN ('pending', 'confirmed', 'cancelled')", name='ck_provider_bookings_status')
    )

    # At most one active booking per exact slot
    op.create_index(
        'uq_provider_bookings_active_slot',
        'provider_bookings',
        ['provider_id', 'start_ts', 'end_ts'],
        unique=True,
        postgresql_where=sa.text("status <> 'cancelled'")
    )
    op.create_index('idx_provider_bookings_provider_start', 'provider_bookings', ['provider_id', 'start_ts'])
    op.create_index('idx_provider_bookings_homeowner', 'provider_bookings', ['homeowner_id'])

    # 6. holidays + provider_holiday_preferences
    op.create_table(
        'holidays',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('name', sa.String(200), nullable=False)
    )
    op.create_index('ix_holidays_date', 'holidays', ['date'])

    op.create_table(
        'provider_holiday_preferences',
        sa.Column('id', postgresql.UUID(as_uuid=True), primary_key=True, server_default=sa.text('gen_random_uuid()')),
        sa.Column('provider_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('users.id', ondelete='CASCADE'), nullable=False),
        sa.Column('holiday_id', postgresql.UUID(as_uuid=True), sa.ForeignKey('holidays.id', ondelete='CASCADE'), nullable=False),
        sa.Column('blocks_availability', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.UniqueConstraint('provider_id', 'holiday_id', name='uq_provider_holiday')
    )
    op.create_index('ix_provider_holiday_preferences_provider_id', 'provider_holiday_preferences', ['provider_id'])


def downgrade() -> None:
    """Downgrade schema."""
    op.drop_index('ix_provider_holiday_preferences_provider_id', table_name='provider_holiday_preferences')
    op.drop_table('provider_holiday_preferences')
    op.drop_index('ix_holidays_date', table_name='holidays')
    op.drop_table('holidays')

    op.drop_index('idx_provider_bookings_homeowner', table_name='provider_bookings')
    op.drop_index('idx_provider_bookings_provider_start', table_name='provider_bookings')
    op.drop_index('uq_provider_bookings_active_slot', table_name='provider_bookings')
    op.drop_table('provider_bookings')

    op.drop_index('idx_provider_unavailability_provider_start', table_name='provider_unavailability')
    op.drop_table('provider_unavailability')
    op.drop_index('idx_provider_availability_provider_day', table_name='provider_availability')
    op.drop_table('provider_availability')

    op.drop_table('provider_profiles')
    op.drop_index('ix_users_role', table_name='users')
    op.drop_index('ix_users_email', table_name='users')
    op.drop_table('users')

    sa.Enum(name='userrole').drop(op.get_bind(), checkfirst=True)
