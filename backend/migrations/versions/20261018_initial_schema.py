"""Initial schema: users, sessions, pickups, items, boxes, vouches, fx rates

Revision ID: 20261018_initial
Revises:
Create Date: 2026-10-18

This migration creates:
1. users and session_tokens (bearer auth, SYSTEM user flag, verification status)
2. security_events (append-only audit trail)
3. pickups and items (goods collected from clients)
4. boxes (owner vs creator, optimistic version_id) and the items.box_id link
5. user_vouches (dual-approval identity verification)
6. fx_rates (one active rate per owner and currency pair)
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '20261018_initial'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ==========================================================================
    # 1. USERS AND SESSIONS
    # ==========================================================================
    op.create_table('users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=True),
        sa.Column('role', sa.String(length=16), nullable=False),
        sa.Column('is_system_user', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('verification_status', sa.String(length=16), nullable=False, server_default='UNVERIFIED'),
        sa.Column('business_name', sa.String(length=255), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('last_login_at', sa.DateTime(), nullable=True),
        sa.PrimaryKeyConstraint('id', name='pk_users'),
    )
    with op.batch_alter_table('users', schema=None) as batch_op:
        batch_op.create_index('ix_users_email', ['email'], unique=True)
        batch_op.create_index('ix_users_role', ['role'], unique=False)

    op.create_table('session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('last_used_at', sa.DateTime(), nullable=False),
        sa.Column('expires_at', sa.DateTime(), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('revoked_at', sa.DateTime(), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_session_tokens_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_session_tokens'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('session_tokens', schema=None) as batch_op:
        batch_op.create_index('ix_session_tokens_user_id', ['user_id'], unique=False)
        batch_op.create_index('ix_session_tokens_token_hash', ['token_hash'], unique=True)
        batch_op.create_index('ix_session_tokens_expires_at', ['expires_at'], unique=False)
        batch_op.create_index('ix_session_tokens_is_revoked', ['is_revoked'], unique=False)
        batch_op.create_index('ix_session_tokens_user_active', ['user_id', 'is_revoked'], unique=False)

    # ==========================================================================
    # 2. SECURITY EVENTS
    # ==========================================================================
    op.create_table('security_events',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=True),
        sa.Column('event_type', sa.String(length=64), nullable=False),
        sa.Column('resource', sa.String(length=128), nullable=True),
        sa.Column('action', sa.String(length=64), nullable=True),
        sa.Column('success', sa.Boolean(), nullable=False),
        sa.Column('reason', sa.Text(), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('occurred_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], name='fk_security_events_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_security_events'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('security_events', schema=None) as batch_op:
        batch_op.create_index('ix_security_events_user_id', ['user_id'], unique=False)
        batch_op.create_index('ix_security_events_event_type', ['event_type'], unique=False)
        batch_op.create_index('ix_security_events_success', ['success'], unique=False)
        batch_op.create_index('ix_security_events_occurred_at', ['occurred_at'], unique=False)
        batch_op.create_index('ix_security_events_user_type', ['user_id', 'event_type'], unique=False)

    # ==========================================================================
    # 3. PICKUPS
    # ==========================================================================
    op.create_table('pickups',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_user_id', sa.String(length=36), nullable=False),
        sa.Column('client_user_id', sa.String(length=36), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='DRAFT'),
        sa.Column('notes', sa.Text(), nullable=True),
        sa.Column('pickup_date', sa.Date(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['owner_user_id'], ['users.id'], name='fk_pickups_owner_user_id_users', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['client_user_id'], ['users.id'], name='fk_pickups_client_user_id_users', ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name='pk_pickups'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('pickups', schema=None) as batch_op:
        batch_op.create_index('ix_pickups_owner_user_id', ['owner_user_id'], unique=False)
        batch_op.create_index('ix_pickups_client_user_id', ['client_user_id'], unique=False)
        batch_op.create_index('ix_pickups_owner_created', ['owner_user_id', 'created_at'], unique=False)

    # ==========================================================================
    # 4. BOXES AND ITEMS
    # ==========================================================================
    op.create_table('boxes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_user_id', sa.String(length=36), nullable=False),
        sa.Column('created_by_user_id', sa.String(length=36), nullable=False),
        sa.Column('label', sa.String(length=100), nullable=True),
        sa.Column('estimated_weight_lb', sa.Numeric(precision=8, scale=2), nullable=True),
        sa.Column('actual_weight_lb', sa.Numeric(precision=8, scale=2), nullable=True),
        sa.Column('shipper_rate_per_lb', sa.Numeric(precision=10, scale=2), nullable=True),
        sa.Column('insurance_usd', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='OPEN'),
        sa.Column('shipped_at', sa.DateTime(), nullable=True),
        sa.Column('delivered_at', sa.DateTime(), nullable=True),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.Column('version_id', sa.Integer(), nullable=False, server_default='1'),
        sa.ForeignKeyConstraint(['owner_user_id'], ['users.id'], name='fk_boxes_owner_user_id_users', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['created_by_user_id'], ['users.id'], name='fk_boxes_created_by_user_id_users'),
        sa.PrimaryKeyConstraint('id', name='pk_boxes'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('boxes', schema=None) as batch_op:
        batch_op.create_index('ix_boxes_owner_user_id', ['owner_user_id'], unique=False)
        batch_op.create_index('ix_boxes_created_by_user_id', ['created_by_user_id'], unique=False)
        batch_op.create_index('ix_boxes_status', ['status'], unique=False)
        batch_op.create_index('ix_boxes_created_at', ['created_at'], unique=False)
        batch_op.create_index('ix_boxes_owner_creator', ['owner_user_id', 'created_by_user_id'], unique=False)

    op.create_table('items',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('pickup_id', sa.Integer(), nullable=False),
        sa.Column('box_id', sa.Integer(), nullable=True),
        sa.Column('category', sa.String(length=100), nullable=False),
        sa.Column('model', sa.String(length=255), nullable=True),
        sa.Column('imei', sa.String(length=50), nullable=True),
        sa.Column('estimated_weight_lb', sa.Numeric(precision=8, scale=2), nullable=False, server_default='0'),
        sa.Column('client_shipping_usd', sa.Numeric(precision=10, scale=2), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['pickup_id'], ['pickups.id'], name='fk_items_pickup_id_pickups', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['box_id'], ['boxes.id'], name='fk_items_box_id_boxes', ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name='pk_items'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('items', schema=None) as batch_op:
        batch_op.create_index('ix_items_pickup_id', ['pickup_id'], unique=False)
        batch_op.create_index('ix_items_box_id', ['box_id'], unique=False)
        batch_op.create_index('ix_items_status', ['status'], unique=False)
        batch_op.create_index('ix_items_box_status', ['box_id', 'status'], unique=False)

    # ==========================================================================
    # 5. VOUCHES
    # ==========================================================================
    op.create_table('user_vouches',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('requester_user_id', sa.String(length=36), nullable=False),
        sa.Column('voucher_email', sa.String(length=255), nullable=False),
        sa.Column('voucher_user_id', sa.String(length=36), nullable=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='PENDING'),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.Column('updated_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['requester_user_id'], ['users.id'], name='fk_user_vouches_requester_user_id_users', ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['voucher_user_id'], ['users.id'], name='fk_user_vouches_voucher_user_id_users', ondelete='SET NULL'),
        sa.PrimaryKeyConstraint('id', name='pk_user_vouches'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('user_vouches', schema=None) as batch_op:
        batch_op.create_index('ix_user_vouches_voucher_status', ['voucher_email', 'status'], unique=False)
        batch_op.create_index('ix_user_vouches_requester_status', ['requester_user_id', 'status'], unique=False)

    # ==========================================================================
    # 6. FX RATES
    # ==========================================================================
    op.create_table('fx_rates',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('owner_user_id', sa.String(length=36), nullable=False),
        sa.Column('from_currency', sa.String(length=3), nullable=False),
        sa.Column('to_currency', sa.String(length=3), nullable=False),
        sa.Column('rate', sa.Numeric(precision=18, scale=6), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(), nullable=False),
        sa.ForeignKeyConstraint(['owner_user_id'], ['users.id'], name='fk_fx_rates_owner_user_id_users', ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id', name='pk_fx_rates'),
        sqlite_autoincrement=True
    )
    with op.batch_alter_table('fx_rates', schema=None) as batch_op:
        batch_op.create_index('ix_fx_rates_owner_user_id', ['owner_user_id'], unique=False)
        batch_op.create_index('ix_fx_rates_owner_pair_active', ['owner_user_id', 'from_currency', 'to_currency', 'is_active'], unique=False)


def downgrade():
    op.drop_table('fx_rates')
    op.drop_table('user_vouches')
    op.drop_table('items')
    op.drop_table('boxes')
    op.drop_table('pickups')
    op.drop_table('security_events')
    op.drop_table('session_tokens')
    op.drop_table('users')
