"""Initial schema with reservations

Revision ID: 001_initial_schema
Revises: 
Create Date: 2026-02-10

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '001_initial_schema'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

ROOM_TYPES = ('SINGLE', 'DOUBLE', 'SUITE', 'DELUXE')
RESERVATION_STATUSES = ('PENDING', 'CONFIRMED', 'CANCELLED', 'COMPLETED')


def upgrade() -> None:
    """Create reservations table."""
    # Enum types are created with the table on PostgreSQL
    op.create_table(
        'reservations',
        sa.Column('id', sa.Integer(), nullable=False, autoincrement=True),
        sa.Column('guest_full_name', sa.String(length=100), nullable=False),
        sa.Column('address', sa.String(length=255), nullable=False),
        sa.Column('contact_number', sa.String(length=20), nullable=False),
        sa.Column('email', sa.String(length=100), nullable=False),
        sa.Column('room_type', sa.Enum(*ROOM_TYPES, name='roomtype'), nullable=False),
        sa.Column('check_in', sa.Date(), nullable=False),
        sa.Column('check_out', sa.Date(), nullable=False),
        sa.Column('number_of_guests', sa.Integer(), nullable=False),
        sa.Column('special_requests', sa.String(length=500), nullable=True),
        sa.Column('status', sa.Enum(*RESERVATION_STATUSES, name='reservationstatus'), nullable=False),
        sa.Column('total_amount', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.CheckConstraint('check_out > check_in', name='check_stay_dates'),
        sa.CheckConstraint('number_of_guests >= 1 AND number_of_guests <= 10', name='check_guest_count'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index('ix_reservations_room_type_dates', 'reservations', ['room_type', 'check_in', 'check_out'])
    op.create_index('ix_reservations_status', 'reservations', ['status'])
    op.create_index('ix_reservations_email', 'reservations', ['email'])
    op.create_index('ix_reservations_created_at', 'reservations', [sa.text('created_at DESC')])


def downgrade() -> None:
    """Drop reservations table and types."""
    op.drop_index('ix_reservations_created_at', table_name='reservations')
    op.drop_index('ix_reservations_email', table_name='reservations')
    op.drop_index('ix_reservations_status', table_name='reservations')
    op.drop_index('ix_reservations_room_type_dates', table_name='reservations')
    op.drop_table('reservations')

    if op.get_bind().dialect.name == 'postgresql':
        op.execute('DROP TYPE IF EXISTS reservationstatus')
        op.execute('DROP TYPE IF EXISTS roomtype')
