"""initial_schema

Revision ID: a1b2c3d4e5f6
Revises:
Create Date: 2026-10-19 09:00:00.000000

Users, approver directory, orders, approval ledger + history, email
action tokens, edit tokens and the audit log.

approval_history and audit_logs are append-only at the DB level:
UPDATE and DELETE are revoked from PUBLIC.
"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision: str = 'a1b2c3d4e5f6'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def _timestamps() -> list[sa.Column]:
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
    ]


def upgrade() -> None:
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=50), nullable=False),
        sa.Column('plant', sa.String(length=50), nullable=True),
        sa.Column('authorization_level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('deleted_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)
    op.create_index('ix_users_plant', 'users', ['plant'])

    op.create_table(
        'approvers',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('approval_level', sa.Integer(), nullable=False),
        sa.Column('plant', sa.String(length=50), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'approval_level', 'plant', name='uq_approvers_user_level_plant'),
        sa.CheckConstraint('approval_level BETWEEN 1 AND 8', name='ck_approvers_level_range'),
    )
    op.create_index('ix_approvers_user_id', 'approvers', ['user_id'])
    op.create_index('ix_approvers_approval_level', 'approvers', ['approval_level'])

    op.create_table(
        'premium_freight_orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('reference_number', sa.String(length=50), nullable=True),
        sa.Column('creator_id', sa.Integer(), nullable=False),
        sa.Column('plant', sa.String(length=50), nullable=True),
        sa.Column('description', sa.Text(), nullable=True),
        sa.Column('area', sa.String(length=100), nullable=True),
        sa.Column('transport', sa.String(length=50), nullable=True),
        sa.Column('in_out_bound', sa.String(length=20), nullable=True),
        sa.Column('category_cause', sa.String(length=100), nullable=True),
        sa.Column('carrier', sa.String(length=255), nullable=True),
        sa.Column('quoted_cost', sa.Numeric(precision=18, scale=2), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False),
        sa.Column('cost_euros', sa.Numeric(precision=18, scale=4), nullable=False),
        sa.Column('required_auth_level', sa.Integer(), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        *_timestamps(),
        sa.ForeignKeyConstraint(['creator_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_premium_freight_orders_reference_number', 'premium_freight_orders', ['reference_number'])
    op.create_index('ix_premium_freight_orders_creator_id', 'premium_freight_orders', ['creator_id'])
    op.create_index('ix_premium_freight_orders_plant', 'premium_freight_orders', ['plant'])

    op.create_table(
        'order_approvals',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('act_approv', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('approval_date', sa.DateTime(timezone=True), nullable=True),
        sa.Column('rejection_reason', sa.String(length=999), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['order_id'], ['premium_freight_orders.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_order_approvals_order_id', 'order_approvals', ['order_id'], unique=True)

    op.create_table(
        'approval_history',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=False),
        sa.Column('action_type', sa.String(length=20), nullable=False),
        sa.Column('level_reached', sa.Integer(), nullable=False),
        sa.Column('comment', sa.Text(), nullable=True),
        sa.Column('acted_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['order_id'], ['premium_freight_orders.id']),
        sa.ForeignKeyConstraint(['user_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_approval_history_order_id', 'approval_history', ['order_id'])

    op.create_table(
        'approval_action_tokens',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('approver_id', sa.Integer(), nullable=False),
        sa.Column('level', sa.Integer(), nullable=False),
        sa.Column('action', sa.String(length=20), nullable=False),
        sa.Column('token_hash', sa.String(length=128), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('is_used', sa.Boolean(), nullable=False, server_default=sa.false()),
        *_timestamps(),
        sa.ForeignKeyConstraint(['order_id'], ['premium_freight_orders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['approver_id'], ['approvers.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_approval_action_tokens_order_id', 'approval_action_tokens', ['order_id'])
    op.create_index('ix_approval_action_tokens_approver_id', 'approval_action_tokens', ['approver_id'])
    op.create_index('ix_approval_action_tokens_token_hash', 'approval_action_tokens', ['token_hash'], unique=True)

    op.create_table(
        'edit_tokens',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.Integer(), nullable=False),
        sa.Column('requester_id', sa.Integer(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=False),
        sa.Column('token_hash', sa.String(length=128), nullable=False),
        sa.Column('status', sa.String(length=20), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('released_by', sa.Integer(), nullable=True),
        sa.Column('released_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['order_id'], ['premium_freight_orders.id']),
        sa.ForeignKeyConstraint(['requester_id'], ['users.id']),
        sa.ForeignKeyConstraint(['released_by'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_edit_tokens_order_id', 'edit_tokens', ['order_id'])
    op.create_index('ix_edit_tokens_token_hash', 'edit_tokens', ['token_hash'], unique=True)

    op.create_table(
        'audit_logs',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('actor_id', sa.Integer(), nullable=True),
        sa.Column('actor_email', sa.String(length=255), nullable=True),
        sa.Column('action', sa.String(length=100), nullable=False),
        sa.Column('entity_type', sa.String(length=100), nullable=False),
        sa.Column('entity_id', sa.Integer(), nullable=True),
        sa.Column('order_id', sa.Integer(), nullable=True),
        sa.Column('before_state', sa.Text(), nullable=True),
        sa.Column('after_state', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(length=50), nullable=True),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), server_default=sa.text('now()'), nullable=False),
        sa.ForeignKeyConstraint(['actor_id'], ['users.id']),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_audit_logs_action', 'audit_logs', ['action'])
    op.create_index('ix_audit_logs_entity_type', 'audit_logs', ['entity_type'])
    op.create_index('ix_audit_logs_entity_id', 'audit_logs', ['entity_id'])
    op.create_index('ix_audit_logs_order_id', 'audit_logs', ['order_id'])

    for table in ('approval_history', 'audit_logs'):
        op.execute(f"REVOKE UPDATE, DELETE ON {table} FROM PUBLIC;")
        op.execute(f"GRANT SELECT, INSERT ON {table} TO PUBLIC;")


def downgrade() -> None:
    op.drop_table('audit_logs')
    op.drop_table('edit_tokens')
    op.drop_table('approval_action_tokens')
    op.drop_table('approval_history')
    op.drop_table('order_approvals')
    op.drop_table('premium_freight_orders')
    op.drop_table('approvers')
    op.drop_table('users')
