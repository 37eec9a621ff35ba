"""Initial schema: accounts, ledger, tournaments, requests, audit logs

Revision ID: 0001
Revises: 
Create Date: 2026-10-19 00:00:00.000000

"""
from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision = '0001'
down_revision = None
branch_labels = None
depends_on = None


def upgrade() -> None:
    # Create accounts table
    op.create_table('accounts',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('username', sa.String(length=48), nullable=False),
        sa.Column('role', sa.String(length=16), nullable=False, server_default='player'),
        sa.Column('password_hash', sa.Text(), nullable=True),
        sa.Column('game_uid', sa.String(length=64), nullable=True),
        sa.Column('balance', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sa.UniqueConstraint('username'),
        sa.CheckConstraint("role IN ('player', 'admin')", name='chk_account_role')
    )
    
    # Create ledger_entries table
    op.create_table('ledger_entries',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('account_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('entry_type', sa.String(length=32), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('admin_id', sa.Uuid(), nullable=True),
        sa.Column('related_entity', sa.String(length=64), nullable=True),
        sa.Column('related_id', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id']),
        sa.CheckConstraint('amount <> 0', name='chk_ledger_amount_nonzero')
    )
    op.create_index('idx_ledger_account_created', 'ledger_entries', ['account_id', 'created_at'])
    
    # Create tournaments table
    op.create_table('tournaments',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('mode', sa.String(length=16), nullable=False, server_default='1v1'),
        sa.Column('entry_fee', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('kill_reward', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('booyah_reward', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('scheduled_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='waiting'),
        sa.Column('max_players', sa.Integer(), nullable=False),
        sa.Column('current_players', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('participants', sa.JSON(), nullable=False),
        sa.Column('room_id', sa.String(length=64), nullable=True),
        sa.Column('room_password', sa.String(length=64), nullable=True),
        sa.Column('rules', sa.JSON(), nullable=False),
        sa.Column('details', sa.JSON(), nullable=False),
        sa.Column('winner_id', sa.Uuid(), nullable=True),
        sa.Column('created_by', sa.Uuid(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id'),
        sa.CheckConstraint('entry_fee >= 0', name='chk_entry_fee_nonneg'),
        sa.CheckConstraint('max_players > 0', name='chk_max_players_pos'),
        sa.CheckConstraint('current_players <= max_players', name='chk_capacity')
    )
    op.create_index('ix_tournaments_status', 'tournaments', ['status'])
    
    # Create payment_requests table
    op.create_table('payment_requests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('account_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('method', sa.String(length=16), nullable=False),
        sa.Column('screenshot_ref', sa.Text(), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('processed_by', sa.Uuid(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id']),
        sa.CheckConstraint('amount > 0', name='chk_payment_amount_pos')
    )
    op.create_index('ix_payment_requests_status', 'payment_requests', ['status'])
    
    # Create withdrawal_requests table
    op.create_table('withdrawal_requests',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('account_id', sa.Uuid(), nullable=False),
        sa.Column('amount', sa.BigInteger(), nullable=False),
        sa.Column('service_fee', sa.BigInteger(), nullable=False),
        sa.Column('net_amount', sa.BigInteger(), nullable=False),
        sa.Column('account_number', sa.String(length=64), nullable=False),
        sa.Column('method', sa.String(length=16), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('rejection_reason', sa.Text(), nullable=True),
        sa.Column('processed_by', sa.Uuid(), nullable=True),
        sa.Column('submitted_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.Column('processed_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.ForeignKeyConstraint(['account_id'], ['accounts.id']),
        sa.CheckConstraint('net_amount = amount - service_fee', name='chk_withdrawal_net')
    )
    op.create_index('ix_withdrawal_requests_status', 'withdrawal_requests', ['status'])
    
    # Create audit_logs table
    op.create_table('audit_logs',
        sa.Column('id', sa.Uuid(), nullable=False),
        sa.Column('admin_id', sa.Uuid(), nullable=True),
        sa.Column('action', sa.String(length=128), nullable=False),
        sa.Column('details', sa.JSON(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()')),
        sa.PrimaryKeyConstraint('id')
    )


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_index('ix_withdrawal_requests_status', table_name='withdrawal_requests')
    op.drop_table('withdrawal_requests')
    op.drop_index('ix_payment_requests_status', table_name='payment_requests')
    op.drop_table('payment_requests')
    op.drop_index('ix_tournaments_status', table_name='tournaments')
    op.drop_table('tournaments')
    op.drop_index('idx_ledger_account_created', table_name='ledger_entries')
    op.drop_table('ledger_entries')
    op.drop_table('accounts')
