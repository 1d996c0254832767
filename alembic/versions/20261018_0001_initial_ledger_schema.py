"""Initial schema: users, credit_transactions, packages, payments

Revision ID: 20261018_0001
Revises: 
Create Date: 2026-10-18 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261018_0001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    """Create the ledger tables and seed the pricing packages."""
    op.execute("CREATE TYPE transactionaction AS ENUM ('credit', 'debit')")
    op.execute("CREATE TYPE paymentstatus AS ENUM ('success', 'failed')")

    # 1. Users
    op.create_table(
        'users',
        sa.Column('id', sa.UUID(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('phone_number', sa.String(), nullable=False),
        sa.Column('credits', sa.Integer(), nullable=False, server_default='3'),
        sa.CheckConstraint('credits >= 0', name='ck_users_credits_non_negative'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_users_id'), 'users', ['id'])
    op.create_index(op.f('ix_users_created_at'), 'users', ['created_at'])
    op.create_index(op.f('ix_users_phone_number'), 'users', ['phone_number'], unique=True)

    # 2. Credit transactions (append-only, depends on users)
    op.create_table(
        'credit_transactions',
        sa.Column('id', sa.UUID(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('action', sa.Enum('credit', 'debit', name='transactionaction', create_type=False), nullable=False),
        sa.Column('credits', sa.Integer(), nullable=False),
        sa.Column('source', sa.String(), nullable=False),
        sa.Column('reference_id', sa.String(), nullable=True),
        sa.CheckConstraint('credits > 0', name='ck_credit_transactions_credits_positive'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_credit_transactions_id'), 'credit_transactions', ['id'])
    op.create_index(op.f('ix_credit_transactions_created_at'), 'credit_transactions', ['created_at'])
    op.create_index(op.f('ix_credit_transactions_user_id'), 'credit_transactions', ['user_id'])
    op.create_index(op.f('ix_credit_transactions_source'), 'credit_transactions', ['source'])
    op.create_index(op.f('ix_credit_transactions_reference_id'), 'credit_transactions', ['reference_id'])
    # History queries: newest transactions of one user
    op.create_index(
        'ix_credit_transactions_user_created',
        'credit_transactions',
        ['user_id', 'created_at'],
        unique=False
    )

    # 3. Packages (reference data)
    packages = op.create_table(
        'packages',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('name', sa.String(), nullable=False),
        sa.Column('price', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('credits', sa.Integer(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default='true'),
        sa.PrimaryKeyConstraint('id')
    )
    op.create_index(op.f('ix_packages_created_at'), 'packages', ['created_at'])

    # 4. Payments (depends on users, packages)
    op.create_table(
        'payments',
        sa.Column('id', sa.UUID(), server_default=sa.text('gen_random_uuid()'), nullable=False),
        sa.Column('created_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(), server_default=sa.text('now()'), nullable=False),
        sa.Column('user_id', sa.UUID(), nullable=False),
        sa.Column('package_id', sa.Integer(), nullable=True),
        sa.Column('amount', sa.Numeric(precision=10, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='INR'),
        sa.Column('payment_gateway', sa.String(), nullable=False, server_default='razorpay'),
        sa.Column('gateway_order_id', sa.String(), nullable=False),
        sa.Column('gateway_payment_id', sa.String(), nullable=False),
        sa.Column('status', sa.Enum('success', 'failed', name='paymentstatus', create_type=False), nullable=False, server_default='success'),
        sa.Column('source', sa.String(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['package_id'], ['packages.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('gateway_payment_id', name='uq_payments_gateway_payment_id')
    )
    op.create_index(op.f('ix_payments_id'), 'payments', ['id'])
    op.create_index(op.f('ix_payments_created_at'), 'payments', ['created_at'])
    op.create_index(op.f('ix_payments_user_id'), 'payments', ['user_id'])
    op.create_index(op.f('ix_payments_gateway_order_id'), 'payments', ['gateway_order_id'])

    # Pricing widget tiers
    op.bulk_insert(
        packages,
        [
            {'id': 1, 'name': 'Free', 'price': 0.00, 'credits': 3, 'active': True},
            {'id': 2, 'name': 'Pro', 'price': 9.99, 'credits': 50, 'active': True},
            {'id': 3, 'name': 'Studio', 'price': 29.00, 'credits': 200, 'active': True},
        ]
    )
    op.execute("SELECT setval('packages_id_seq', (SELECT MAX(id) FROM packages))")


def downgrade() -> None:
    """Drop all ledger tables."""
    op.drop_table('payments')
    op.drop_table('packages')
    op.drop_table('credit_transactions')
    op.drop_table('users')

    op.execute('DROP TYPE IF EXISTS paymentstatus')
    op.execute('DROP TYPE IF EXISTS transactionaction')
