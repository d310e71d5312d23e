"""e-tickets, payment confirmation, message log, listing closed reason

Revision ID: b7c8d9e0f1a2
Revises: a1b2c3d4e5f6
Create Date: 2026-10-18 12:00:00.000000

"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'b7c8d9e0f1a2'
down_revision = 'a1b2c3d4e5f6'
branch_labels = None
depends_on = None


def upgrade():
    with op.batch_alter_table('listings', schema=None) as batch_op:
        batch_op.add_column(sa.Column('closed_reason', sa.String(length=20), nullable=True))

    with op.batch_alter_table('bookings', schema=None) as batch_op:
        batch_op.add_column(sa.Column('ticket_number', sa.String(length=40), nullable=True))
        batch_op.create_unique_constraint('uq_bookings_ticket_number', ['ticket_number'])

    with op.batch_alter_table('payments', schema=None) as batch_op:
        batch_op.add_column(sa.Column('reference_number', sa.String(length=60), nullable=True))
        batch_op.add_column(sa.Column('confirmed_by_id', sa.Integer(), nullable=True))
        batch_op.create_unique_constraint('uq_payments_reference_number', ['reference_number'])
        batch_op.create_foreign_key('fk_payments_confirmed_by_id_staff', 'staff', ['confirmed_by_id'], ['id'])

    op.create_table(
        'booking_messages',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('booking_id', sa.Integer(), nullable=False),
        sa.Column('direction', sa.String(length=10), nullable=False),
        sa.Column('content', sa.Text(), nullable=True),
        sa.Column('media_url', sa.String(length=512), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('external_sid', sa.String(length=64), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('sent_at', sa.DateTime(), nullable=True),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ),
        sa.PrimaryKeyConstraint('id')
    )
    with op.batch_alter_table('booking_messages', schema=None) as batch_op:
        batch_op.create_index(batch_op.f('ix_booking_messages_booking_id'), ['booking_id'], unique=False)

    op.create_table(
        'app_settings',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('ticket_counter', sa.Integer(), nullable=False),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade():
    op.drop_table('app_settings')

    with op.batch_alter_table('booking_messages', schema=None) as batch_op:
        batch_op.drop_index(batch_op.f('ix_booking_messages_booking_id'))
    op.drop_table('booking_messages')

    with op.batch_alter_table('payments', schema=None) as batch_op:
        batch_op.drop_constraint('fk_payments_confirmed_by_id_staff', type_='foreignkey')
        batch_op.drop_constraint('uq_payments_reference_number', type_='unique')
        batch_op.drop_column('confirmed_by_id')
        batch_op.drop_column('reference_number')

    with op.batch_alter_table('bookings', schema=None) as batch_op:
        batch_op.drop_constraint('uq_bookings_ticket_number', type_='unique')
        batch_op.drop_column('ticket_number')

    with op.batch_alter_table('listings', schema=None) as batch_op:
        batch_op.drop_column('closed_reason')
