"""Initial schema - availability blocks, slot reservations, bookings, call attempts and audit log.

Revision ID: 001
Revises:
Create Date: 2026-10-18

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

# Paid bookings own their slot exclusively.
PAID_SLOT_PREDICATE = "status NOT IN ('pending_payment', 'cancelled')"


def upgrade() -> None:
    """Create initial database tables."""
    # Create availability_blocks table
    op.create_table(
        'availability_blocks',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('provider_id', sa.String(length=100), nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False),
        sa.Column('day_of_week', sa.Integer(), nullable=True),
        sa.Column('specific_date', sa.Date(), nullable=True),
        sa.Column('start_time', sa.Time(), nullable=False),
        sa.Column('end_time', sa.Time(), nullable=False),
        sa.Column('timezone', sa.String(length=64), nullable=False),
        sa.Column('max_bookings', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_availability_blocks'))
    )

    # Create indexes for availability_blocks
    op.create_index(op.f('ix_availability_blocks_provider_id'), 'availability_blocks', ['provider_id'], unique=False)
    op.create_index(op.f('ix_availability_blocks_is_active'), 'availability_blocks', ['is_active'], unique=False)
    op.create_index(op.f('ix_availability_blocks_created_at'), 'availability_blocks', ['created_at'], unique=False)
    op.create_index('ix_availability_blocks_provider_kind', 'availability_blocks', ['provider_id', 'kind'], unique=False)
    op.create_index('ix_availability_blocks_specific_date', 'availability_blocks', ['specific_date'], unique=False)
    op.create_index('ix_availability_blocks_day_of_week', 'availability_blocks', ['day_of_week'], unique=False)

    # Create slot_reservations table
    op.create_table(
        'slot_reservations',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('requester_id', sa.String(length=100), nullable=False),
        sa.Column('provider_id', sa.String(length=100), nullable=False),
        sa.Column('date', sa.Date(), nullable=False),
        sa.Column('time', sa.Time(), nullable=False),
        sa.Column('utc_timestamp', sa.DateTime(), nullable=False),
        sa.Column('timezone', sa.String(length=64), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_slot_reservations'))
    )

    # Create indexes for slot_reservations
    op.create_index(op.f('ix_slot_reservations_requester_id'), 'slot_reservations', ['requester_id'], unique=False)
    op.create_index(op.f('ix_slot_reservations_expires_at'), 'slot_reservations', ['expires_at'], unique=False)
    op.create_index('ix_slot_reservations_slot', 'slot_reservations', ['provider_id', 'date', 'time'], unique=False)

    # Create bookings table
    op.create_table(
        'bookings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('requester_id', sa.String(length=100), nullable=False),
        sa.Column('provider_id', sa.String(length=100), nullable=False),
        sa.Column('scheduled_date', sa.Date(), nullable=False),
        sa.Column('time_window_start', sa.Time(), nullable=False),
        sa.Column('time_window_end', sa.Time(), nullable=False),
        sa.Column('timezone', sa.String(length=64), nullable=False),
        sa.Column('utc_timestamp', sa.DateTime(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('amount_paid', sa.Integer(), nullable=True),
        sa.Column('paid_at', sa.DateTime(), nullable=True),
        sa.Column('payment_reference', sa.String(length=255), nullable=True),
        sa.Column('reservation_id', sa.Uuid(), nullable=True),
        sa.Column('reservation_expires_at', sa.DateTime(), nullable=True),
        sa.Column('doctor_notes', sa.Text(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('completed_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_bookings'))
    )

    # Create indexes for bookings
    op.create_index(op.f('ix_bookings_requester_id'), 'bookings', ['requester_id'], unique=False)
    op.create_index(op.f('ix_bookings_provider_id'), 'bookings', ['provider_id'], unique=False)
    op.create_index(op.f('ix_bookings_scheduled_date'), 'bookings', ['scheduled_date'], unique=False)
    op.create_index(op.f('ix_bookings_status'), 'bookings', ['status'], unique=False)
    op.create_index(op.f('ix_bookings_reservation_id'), 'bookings', ['reservation_id'], unique=False)
    op.create_index(op.f('ix_bookings_created_at'), 'bookings', ['created_at'], unique=False)
    op.create_index('ix_bookings_provider_date', 'bookings', ['provider_id', 'scheduled_date'], unique=False)
    op.create_index('ix_bookings_status_date', 'bookings', ['status', 'scheduled_date'], unique=False)
    op.create_index(
        'uq_bookings_paid_slot',
        'bookings',
        ['provider_id', 'scheduled_date', 'time_window_start'],
        unique=True,
        sqlite_where=sa.text(PAID_SLOT_PREDICATE),
        postgresql_where=sa.text(PAID_SLOT_PREDICATE),
    )

    # Create call_attempts table
    op.create_table(
        'call_attempts',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('booking_id', sa.Uuid(), nullable=False),
        sa.Column('attempt_number', sa.Integer(), nullable=False),
        sa.Column('answered', sa.Boolean(), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('attempted_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(
            ['booking_id'], ['bookings.id'],
            name=op.f('fk_call_attempts_booking_id_bookings'),
            ondelete='CASCADE',
        ),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_call_attempts')),
        sa.UniqueConstraint('booking_id', 'attempt_number', name='uq_call_attempts_booking_attempt')
    )
    op.create_index(op.f('ix_call_attempts_booking_id'), 'call_attempts', ['booking_id'], unique=False)

    # Create audit_log table
    op.create_table(
        'audit_log',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('action', sa.String(length=50), nullable=False),
        sa.Column('entity_type', sa.String(length=50), nullable=False),
        sa.Column('entity_id', sa.String(length=100), nullable=False),
        sa.Column('actor_id', sa.String(length=100), nullable=True),
        sa.Column('details', sa.JSON(), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.PrimaryKeyConstraint('id', name=op.f('pk_audit_log'))
    )

    # Create indexes for audit_log
    op.create_index(op.f('ix_audit_log_action'), 'audit_log', ['action'], unique=False)
    op.create_index(op.f('ix_audit_log_entity_type'), 'audit_log', ['entity_type'], unique=False)
    op.create_index(op.f('ix_audit_log_entity_id'), 'audit_log', ['entity_id'], unique=False)
    op.create_index(op.f('ix_audit_log_actor_id'), 'audit_log', ['actor_id'], unique=False)
    op.create_index(op.f('ix_audit_log_created_at'), 'audit_log', ['created_at'], unique=False)
    op.create_index('ix_audit_log_entity', 'audit_log', ['entity_type', 'entity_id'], unique=False)
    op.create_index('ix_audit_log_action_created', 'audit_log', ['action', 'created_at'], unique=False)


def downgrade() -> None:
    """Drop all tables."""
    # Drop audit_log indexes and table
    op.drop_index('ix_audit_log_action_created', table_name='audit_log')
    op.drop_index('ix_audit_log_entity', table_name='audit_log')
    op.drop_index(op.f('ix_audit_log_created_at'), table_name='audit_log')
    op.drop_index(op.f('ix_audit_log_actor_id'), table_name='audit_log')
    op.drop_index(op.f('ix_audit_log_entity_id'), table_name='audit_log')
    op.drop_index(op.f('ix_audit_log_entity_type'), table_name='audit_log')
    op.drop_index(op.f('ix_audit_log_action'), table_name='audit_log')
    op.drop_table('audit_log')

    # Drop call_attempts
    op.drop_index(op.f('ix_call_attempts_booking_id'), table_name='call_attempts')
    op.drop_table('call_attempts')

    # Drop bookings indexes and table
    op.drop_index('uq_bookings_paid_slot', table_name='bookings')
    op.drop_index('ix_bookings_status_date', table_name='bookings')
    op.drop_index('ix_bookings_provider_date', table_name='bookings')
    op.drop_index(op.f('ix_bookings_created_at'), table_name='bookings')
    op.drop_index(op.f('ix_bookings_reservation_id'), table_name='bookings')
    op.drop_index(op.f('ix_bookings_status'), table_name='bookings')
    op.drop_index(op.f('ix_bookings_scheduled_date'), table_name='bookings')
    op.drop_index(op.f('ix_bookings_provider_id'), table_name='bookings')
    op.drop_index(op.f('ix_bookings_requester_id'), table_name='bookings')
    op.drop_table('bookings')

    # Drop slot_reservations indexes and table
    op.drop_index('ix_slot_reservations_slot', table_name='slot_reservations')
    op.drop_index(op.f('ix_slot_reservations_expires_at'), table_name='slot_reservations')
    op.drop_index(op.f('ix_slot_reservations_requester_id'), table_name='slot_reservations')
    op.drop_table('slot_reservations')

    # Drop availability_blocks indexes and table
    op.drop_index('ix_availability_blocks_day_of_week', table_name='availability_blocks')
    op.drop_index('ix_availability_blocks_specific_date', table_name='availability_blocks')
    op.drop_index('ix_availability_blocks_provider_kind', table_name='availability_blocks')
    op.drop_index(op.f('ix_availability_blocks_created_at'), table_name='availability_blocks')
    op.drop_index(op.f('ix_availability_blocks_is_active'), table_name='availability_blocks')
    op.drop_index(op.f('ix_availability_blocks_provider_id'), table_name='availability_blocks')
    op.drop_table('availability_blocks')
