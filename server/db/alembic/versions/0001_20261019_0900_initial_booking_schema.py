"""Initial booking lifecycle schema

Revision ID: 0001
Revises:
Create Date: 2026-10-19 09:00:00.000000

"""
from collections.abc import Sequence

import sqlalchemy as sa
from alembic import op

# revision identifiers, used by Alembic.
revision: str = '0001'
down_revision: str | None = None
branch_labels: str | Sequence[str] | None = None
depends_on: str | Sequence[str] | None = None


def _created_at() -> sa.Column:
    return sa.Column('created_at', sa.DateTime(), server_default=sa.func.now(), nullable=False)


def _updated_at() -> sa.Column:
    return sa.Column('updated_at', sa.DateTime(), server_default=sa.func.now(), nullable=False)


def upgrade() -> None:
    """Upgrade database schema."""
    # Catalog
    op.create_table('travel_packages',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('business_type', sa.String(length=32), nullable=False),
        sa.Column('price_quad', sa.BigInteger(), nullable=False),
        sa.Column('price_triple', sa.BigInteger(), nullable=False),
        sa.Column('price_double', sa.BigInteger(), nullable=False),
        sa.Column('price_single', sa.BigInteger(), nullable=True),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint('price_quad >= 0', name='ck_package_price_quad_non_negative'),
        sa.CheckConstraint('price_triple >= 0', name='ck_package_price_triple_non_negative'),
        sa.CheckConstraint('price_double >= 0', name='ck_package_price_double_non_negative'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_travel_packages_code'), 'travel_packages', ['code'], unique=True)

    op.create_table('departures',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('package_id', sa.Uuid(), nullable=False),
        sa.Column('departure_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('return_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('capacity_total', sa.Integer(), nullable=False),
        sa.Column('capacity_available', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('price_override', sa.JSON(), nullable=True),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint('capacity_total >= 0', name='ck_departure_capacity_total_non_negative'),
        sa.CheckConstraint('capacity_available >= 0', name='ck_departure_capacity_available_non_negative'),
        sa.CheckConstraint('capacity_available <= capacity_total', name='ck_departure_capacity_available_lte_total'),
        sa.ForeignKeyConstraint(['package_id'], ['travel_packages.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_departures_package_id'), 'departures', ['package_id'], unique=False)
    op.create_index(op.f('ix_departures_departure_date'), 'departures', ['departure_date'], unique=False)
    op.create_index(op.f('ix_departures_status'), 'departures', ['status'], unique=False)

    op.create_table('vouchers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False),
        sa.Column('value', sa.BigInteger(), nullable=False),
        sa.Column('max_discount', sa.BigInteger(), nullable=True),
        sa.Column('quota', sa.Integer(), nullable=True),
        sa.Column('used', sa.Integer(), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False),
        _created_at(),
        sa.CheckConstraint('value >= 0', name='ck_voucher_value_non_negative'),
        sa.CheckConstraint('used >= 0', name='ck_voucher_used_non_negative'),
        sa.CheckConstraint('quota IS NULL OR used <= quota', name='ck_voucher_used_lte_quota'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_vouchers_code'), 'vouchers', ['code'], unique=True)

    # Parties
    op.create_table('customers',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('full_name', sa.String(length=255), nullable=False),
        sa.Column('phone', sa.String(length=32), nullable=True),
        sa.Column('email', sa.String(length=255), nullable=True),
        sa.Column('gender', sa.String(length=16), nullable=True),
        sa.Column('tier', sa.String(length=20), nullable=False),
        _created_at(),
        _updated_at(),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_customers_code'), 'customers', ['code'], unique=True)

    op.create_table('agents',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('commission_rate', sa.Float(), nullable=True),
        _created_at(),
        sa.CheckConstraint(
            'commission_rate IS NULL OR (commission_rate >= 0 AND commission_rate <= 100)',
            name='ck_agent_commission_rate_percent'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code')
    )

    op.create_table('salespeople',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('commission_rate', sa.Float(), nullable=True),
        _created_at(),
        sa.CheckConstraint(
            'commission_rate IS NULL OR (commission_rate >= 0 AND commission_rate <= 100)',
            name='ck_salesperson_commission_rate_percent'
        ),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code')
    )

    # Bookings
    op.create_table('bookings',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('customer_id', sa.Uuid(), nullable=False),
        sa.Column('package_id', sa.Uuid(), nullable=False),
        sa.Column('departure_id', sa.Uuid(), nullable=False),
        sa.Column('room_type', sa.String(length=20), nullable=False),
        sa.Column('pax', sa.Integer(), nullable=False),
        sa.Column('base_price', sa.BigInteger(), nullable=False),
        sa.Column('discount', sa.BigInteger(), nullable=False),
        sa.Column('additional_fees', sa.BigInteger(), nullable=False),
        sa.Column('total_price', sa.BigInteger(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('payment_status', sa.String(length=20), nullable=False),
        sa.Column('add_ons', sa.JSON(), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('agent_id', sa.Uuid(), nullable=True),
        sa.Column('salesperson_id', sa.Uuid(), nullable=True),
        sa.Column('voucher_id', sa.Uuid(), nullable=True),
        sa.Column('cancelled_at', sa.DateTime(), nullable=True),
        sa.Column('cancel_reason', sa.Text(), nullable=True),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint('pax > 0', name='ck_booking_pax_positive'),
        sa.CheckConstraint('base_price >= 0', name='ck_booking_base_price_non_negative'),
        sa.CheckConstraint('discount >= 0', name='ck_booking_discount_non_negative'),
        sa.CheckConstraint('additional_fees >= 0', name='ck_booking_fees_non_negative'),
        sa.CheckConstraint('total_price >= 0', name='ck_booking_total_price_non_negative'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.ForeignKeyConstraint(['package_id'], ['travel_packages.id']),
        sa.ForeignKeyConstraint(['departure_id'], ['departures.id']),
        sa.ForeignKeyConstraint(['agent_id'], ['agents.id']),
        sa.ForeignKeyConstraint(['salesperson_id'], ['salespeople.id']),
        sa.ForeignKeyConstraint(['voucher_id'], ['vouchers.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_bookings_code'), 'bookings', ['code'], unique=True)
    op.create_index(op.f('ix_bookings_customer_id'), 'bookings', ['customer_id'], unique=False)
    op.create_index(op.f('ix_bookings_package_id'), 'bookings', ['package_id'], unique=False)
    op.create_index(op.f('ix_bookings_departure_id'), 'bookings', ['departure_id'], unique=False)
    op.create_index(op.f('ix_bookings_status'), 'bookings', ['status'], unique=False)
    op.create_index(op.f('ix_bookings_payment_status'), 'bookings', ['payment_status'], unique=False)

    op.create_table('payments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('booking_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('method', sa.String(length=20), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('verified_at', sa.DateTime(), nullable=True),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint('amount > 0', name='ck_payment_amount_positive'),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_payments_code'), 'payments', ['code'], unique=True)
    op.create_index(op.f('ix_payments_booking_id'), 'payments', ['booking_id'], unique=False)
    op.create_index(op.f('ix_payments_status'), 'payments', ['status'], unique=False)

    op.create_table('invoices',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('invoice_no', sa.String(length=32), nullable=False),
        sa.Column('booking_id', sa.Uuid(), nullable=False),
        sa.Column('subtotal', sa.BigInteger(), nullable=False),
        sa.Column('discount', sa.BigInteger(), nullable=False),
        sa.Column('tax', sa.BigInteger(), nullable=False),
        sa.Column('total', sa.BigInteger(), nullable=False),
        sa.Column('paid_amount', sa.BigInteger(), nullable=False),
        sa.Column('balance', sa.BigInteger(), nullable=False),
        sa.Column('due_date', sa.DateTime(), nullable=False),
        sa.Column('items', sa.JSON(), nullable=False),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_invoices_invoice_no'), 'invoices', ['invoice_no'], unique=True)
    op.create_index(op.f('ix_invoices_booking_id'), 'invoices', ['booking_id'], unique=True)

    # Rosters and rooming
    op.create_table('rosters',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('code', sa.String(length=32), nullable=False),
        sa.Column('departure_id', sa.Uuid(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('departure_date', sa.DateTime(timezone=True), nullable=False),
        sa.Column('return_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(length=20), nullable=False),
        _created_at(),
        _updated_at(),
        sa.ForeignKeyConstraint(['departure_id'], ['departures.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code')
    )
    op.create_index(op.f('ix_rosters_departure_id'), 'rosters', ['departure_id'], unique=True)

    op.create_table('roster_entries',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('roster_id', sa.Uuid(), nullable=False),
        sa.Column('customer_id', sa.Uuid(), nullable=False),
        sa.Column('booking_id', sa.Uuid(), nullable=True),
        sa.Column('order_no', sa.Integer(), nullable=False),
        _created_at(),
        sa.CheckConstraint('order_no > 0', name='ck_roster_entry_order_no_positive'),
        sa.ForeignKeyConstraint(['roster_id'], ['rosters.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('roster_id', 'customer_id', name='uq_roster_entry_customer'),
        sa.UniqueConstraint('roster_id', 'order_no', name='uq_roster_entry_order_no')
    )
    op.create_index(op.f('ix_roster_entries_roster_id'), 'roster_entries', ['roster_id'], unique=False)
    op.create_index(op.f('ix_roster_entries_customer_id'), 'roster_entries', ['customer_id'], unique=False)

    op.create_table('room_assignments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('roster_id', sa.Uuid(), nullable=False),
        sa.Column('hotel_id', sa.Uuid(), nullable=False),
        sa.Column('customer_id', sa.Uuid(), nullable=False),
        sa.Column('room_number', sa.String(length=16), nullable=False),
        sa.Column('room_type', sa.String(length=20), nullable=False),
        sa.Column('check_in', sa.DateTime(), nullable=True),
        sa.Column('check_out', sa.DateTime(), nullable=True),
        _created_at(),
        sa.ForeignKeyConstraint(['roster_id'], ['rosters.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('roster_id', 'customer_id', name='uq_room_assignment_customer')
    )
    op.create_index(op.f('ix_room_assignments_roster_id'), 'room_assignments', ['roster_id'], unique=False)
    op.create_index(op.f('ix_room_assignments_hotel_id'), 'room_assignments', ['hotel_id'], unique=False)

    # Commission and loyalty ledgers
    op.create_table('commissions',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('booking_id', sa.Uuid(), nullable=False),
        sa.Column('agent_id', sa.Uuid(), nullable=True),
        sa.Column('salesperson_id', sa.Uuid(), nullable=True),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('rate', sa.Float(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        _created_at(),
        _updated_at(),
        sa.CheckConstraint('amount >= 0', name='ck_commission_amount_non_negative'),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['agent_id'], ['agents.id']),
        sa.ForeignKeyConstraint(['salesperson_id'], ['salespeople.id']),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_commissions_booking_id'), 'commissions', ['booking_id'], unique=True)

    op.create_table('loyalty_awards',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('customer_id', sa.Uuid(), nullable=False),
        sa.Column('booking_id', sa.Uuid(), nullable=False),
        sa.Column('points', sa.Integer(), nullable=False),
        sa.Column('kind', sa.String(length=20), nullable=False),
        sa.Column('description', sa.String(length=255), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        _created_at(),
        sa.CheckConstraint('points > 0', name='ck_loyalty_award_points_positive'),
        sa.ForeignKeyConstraint(['customer_id'], ['customers.id']),
        sa.ForeignKeyConstraint(['booking_id'], ['bookings.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('booking_id')
    )
    op.create_index(op.f('ix_loyalty_awards_customer_id'), 'loyalty_awards', ['customer_id'], unique=False)

    # Create idempotency_records table
    op.create_table('idempotency_records',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('idempotency_key', sa.String(length=255), nullable=False),
        sa.Column('operation', sa.String(length=100), nullable=False),
        sa.Column('request_body_hash', sa.String(length=64), nullable=False),
        sa.Column('response_status_code', sa.Integer(), nullable=False),
        sa.Column('response_body', sa.Text(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        _created_at(),
        sa.CheckConstraint('length(idempotency_key) > 0', name='ck_idempotency_key_not_empty'),
        sa.CheckConstraint('length(request_body_hash) = 64', name='ck_idempotency_hash_length'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('idempotency_key', 'operation', name='uq_idempotency_key_operation')
    )
    op.create_index(op.f('ix_idempotency_records_expires_at'), 'idempotency_records', ['expires_at'], unique=False)
    op.create_index(op.f('ix_idempotency_records_idempotency_key'), 'idempotency_records', ['idempotency_key'], unique=False)


def downgrade() -> None:
    """Downgrade database schema."""
    op.drop_table('idempotency_records')
    op.drop_table('loyalty_awards')
    op.drop_table('commissions')
    op.drop_table('room_assignments')
    op.drop_table('roster_entries')
    op.drop_table('rosters')
    op.drop_table('invoices')
    op.drop_table('payments')
    op.drop_table('bookings')
    op.drop_table('salespeople')
    op.drop_table('agents')
    op.drop_table('customers')
    op.drop_table('vouchers')
    op.drop_table('departures')
    op.drop_table('travel_packages')
