"""Initial ledger schema

Revision ID: 20261001_000001
Revises: 
Create Date: 2026-10-01

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = '20261001_000001'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None

MONEY = sa.DECIMAL(18, 8)


def upgrade() -> None:
    # Users / balance records
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('name', sa.String(255), nullable=False),
        sa.Column('phone', sa.String(20), nullable=True),
        sa.Column('referral_code', sa.String(20), nullable=False),
        sa.Column('referred_by_code', sa.String(20), nullable=True),
        sa.Column('spendable_balance', MONEY, nullable=False, server_default='0'),
        sa.Column('locked_balance', MONEY, nullable=False, server_default='0'),
        sa.Column('withdrawn_total', MONEY, nullable=False, server_default='0'),
        sa.Column('lifetime_earnings', MONEY, nullable=False, server_default='0'),
        sa.Column('commission_earned', MONEY, nullable=False, server_default='0'),
        sa.Column('recharge_total', MONEY, nullable=False, server_default='0'),
        sa.Column('cheat_violation_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('next_check_allowed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('penalty_until', sa.DateTime(timezone=True), nullable=True),
        sa.Column('last_withdrawal_date', sa.Date(), nullable=True),
        sa.Column('last_checkin_date', sa.Date(), nullable=True),
        sa.Column('checkin_streak', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('bank_details', sa.JSON(), nullable=True),
        sa.Column('version', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('spendable_balance >= 0', name='ck_users_spendable_balance_non_negative'),
        sa.CheckConstraint('locked_balance >= 0', name='ck_users_locked_balance_non_negative'),
        sa.CheckConstraint('withdrawn_total >= 0', name='ck_users_withdrawn_total_non_negative'),
        sa.CheckConstraint('cheat_violation_count >= 0', name='ck_users_cheat_violation_count_non_negative'),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
        sa.UniqueConstraint('phone', name='uq_users_phone'),
    )
    op.create_index('ix_users_referral_code', 'users', ['referral_code'], unique=True)
    op.create_index('ix_users_referred_by_code', 'users', ['referred_by_code'])
    op.create_index('ix_users_status', 'users', ['status'])

    # Investments
    op.create_table(
        'investments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('plan_id', sa.String(50), nullable=False),
        sa.Column('plan_name', sa.String(100), nullable=False),
        sa.Column('plan_category', sa.String(20), nullable=False),
        sa.Column('price', MONEY, nullable=False),
        sa.Column('daily_income', MONEY, nullable=False),
        sa.Column('total_income', MONEY, nullable=False),
        sa.Column('term_days', sa.Integer(), nullable=False),
        sa.Column('locked_balance', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('status', sa.String(20), nullable=False, server_default='active'),
        sa.Column('days_remaining', sa.Integer(), nullable=False),
        sa.Column('total_earned', MONEY, nullable=False, server_default='0'),
        sa.Column('payout_count', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('last_payout_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('next_payout_due_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('completed_at', sa.DateTime(timezone=True), nullable=True),
        sa.CheckConstraint('days_remaining >= 0', name='ck_investments_days_remaining_non_negative'),
        sa.CheckConstraint('payout_count >= 0', name='ck_investments_payout_count_non_negative'),
        sa.CheckConstraint('price > 0', name='ck_investments_price_positive'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_investments_user_id_users', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_investments'),
    )
    op.create_index('ix_investments_user_id', 'investments', ['user_id'])
    op.create_index('ix_investments_status', 'investments', ['status'])
    op.create_index('idx_investment_status_last_payout', 'investments', ['status', 'last_payout_at'])

    # Referral edges
    op.create_table(
        'referrals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('referrer_id', sa.Integer(), nullable=False),
        sa.Column('referred_id', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False, server_default='1'),
        sa.Column('has_invested', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('total_invested', MONEY, nullable=False, server_default='0'),
        sa.Column('commission_earned', MONEY, nullable=False, server_default='0'),
        sa.Column('commission_paid', sa.Boolean(), nullable=False, server_default='false'),
        sa.Column('commission_paid_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('first_investment_id', sa.Integer(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['referrer_id'], ['users.id'], name='fk_referrals_referrer_id_users', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['referred_id'], ['users.id'], name='fk_referrals_referred_id_users', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['first_investment_id'], ['investments.id'], name='fk_referrals_first_investment_id_investments', ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name='pk_referrals'),
        sa.UniqueConstraint('referred_id', name='uq_referrals_referred_id'),
    )
    op.create_index('ix_referrals_referrer_id', 'referrals', ['referrer_id'])

    # Withdrawal requests
    op.create_table(
        'withdrawal_requests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('bank_details', sa.JSON(), nullable=False),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('transaction_ref', sa.String(100), nullable=True),
        sa.Column('utr_number', sa.String(100), nullable=True),
        sa.Column('processed_by', sa.String(100), nullable=True),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('amount > 0', name='ck_withdrawal_requests_amount_positive'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_withdrawal_requests_user_id_users', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_withdrawal_requests'),
    )
    op.create_index('ix_withdrawal_requests_user_id', 'withdrawal_requests', ['user_id'])
    op.create_index('ix_withdrawal_requests_status', 'withdrawal_requests', ['status'])

    # Recharge requests
    op.create_table(
        'recharge_requests',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('payment_method', sa.String(50), nullable=False, server_default='manual'),
        sa.Column('payment_reference', sa.String(100), nullable=True),
        sa.Column('status', sa.String(20), nullable=False, server_default='pending'),
        sa.Column('approved_by', sa.String(100), nullable=True),
        sa.Column('resolved_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.CheckConstraint('amount > 0', name='ck_recharge_requests_amount_positive'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_recharge_requests_user_id_users', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_recharge_requests'),
    )
    op.create_index('ix_recharge_requests_user_id', 'recharge_requests', ['user_id'])
    op.create_index('ix_recharge_requests_status', 'recharge_requests', ['status'])

    # Ban records
    op.create_table(
        'ban_records',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(500), nullable=False),
        sa.Column('source', sa.String(20), nullable=False, server_default='operator'),
        sa.Column('banned_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_ban_records_user_id_users', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_ban_records'),
        sa.UniqueConstraint('user_id', name='uq_ban_records_user_id'),
    )

    # Clock drift violations
    op.create_table(
        'cheat_violations',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('server_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('client_time', sa.DateTime(timezone=True), nullable=False),
        sa.Column('drift_seconds', sa.Integer(), nullable=False),
        sa.Column('violation_number', sa.Integer(), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_cheat_violations_user_id_users', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_cheat_violations'),
    )
    op.create_index('ix_cheat_violations_user_id', 'cheat_violations', ['user_id'])

    # Audit transactions
    op.create_table(
        'transactions',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('type', sa.String(50), nullable=False),
        sa.Column('amount', MONEY, nullable=False),
        sa.Column('pool', sa.String(20), nullable=True),
        sa.Column('investment_id', sa.Integer(), nullable=True),
        sa.Column('withdrawal_id', sa.Integer(), nullable=True),
        sa.Column('recharge_id', sa.Integer(), nullable=True),
        sa.Column('related_user_id', sa.Integer(), nullable=True),
        sa.Column('plan_id', sa.String(50), nullable=True),
        sa.Column('streak', sa.Integer(), nullable=True),
        sa.Column('balance_before', MONEY, nullable=True),
        sa.Column('balance_after', MONEY, nullable=True),
        sa.Column('description', sa.String(500), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.func.now()),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_transactions_user_id_users', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['investment_id'], ['investments.id'], name='fk_transactions_investment_id_investments', ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['withdrawal_id'], ['withdrawal_requests.id'], name='fk_transactions_withdrawal_id_withdrawal_requests', ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['recharge_id'], ['recharge_requests.id'], name='fk_transactions_recharge_id_recharge_requests', ondelete='SET NULL'),
        sa.ForeignKeyConstraint(['related_user_id'], ['users.id'], name='fk_transactions_related_user_id_users', ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name='pk_transactions'),
    )
    op.create_index('ix_transactions_user_id', 'transactions', ['user_id'])
    op.create_index('ix_transactions_created_at', 'transactions', ['created_at'])
    op.create_index('idx_transaction_user_type', 'transactions', ['user_id', 'type'])


def downgrade() -> None:
    op.drop_index('idx_transaction_user_type', 'transactions')
    op.drop_index('ix_transactions_created_at', 'transactions')
    op.drop_index('ix_transactions_user_id', 'transactions')
    op.drop_table('transactions')

    op.drop_index('ix_cheat_violations_user_id', 'cheat_violations')
    op.drop_table('cheat_violations')
    op.drop_table('ban_records')

    op.drop_index('ix_recharge_requests_status', 'recharge_requests')
    op.drop_index('ix_recharge_requests_user_id', 'recharge_requests')
    op.drop_table('recharge_requests')

    op.drop_index('ix_withdrawal_requests_status', 'withdrawal_requests')
    op.drop_index('ix_withdrawal_requests_user_id', 'withdrawal_requests')
    op.drop_table('withdrawal_requests')

    op.drop_index('ix_referrals_referrer_id', 'referrals')
    op.drop_table('referrals')

    op.drop_index('idx_investment_status_last_payout', 'investments')
    op.drop_index('ix_investments_status', 'investments')
    op.drop_index('ix_investments_user_id', 'investments')
    op.drop_table('investments')

    op.drop_index('ix_users_status', 'users')
    op.drop_index('ix_users_referred_by_code', 'users')
    op.drop_index('ix_users_referral_code', 'users')
    op.drop_table('users')
