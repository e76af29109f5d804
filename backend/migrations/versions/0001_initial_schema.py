"""initial schema

Revision ID: 0001_initial_schema
Revises:
Create Date: 2026-02-02 00:00:00.000000

Creates the order tracker schema:
- auth_users / auth_sessions: identity provider tables
- user_profiles: team directory and roles
- inventory_items: owner-scoped catalog
- orders: owner-scoped sales with snapshot fields
- workspace_vocabularies: per-owner status and category labels

orders.product_id is intentionally NOT a foreign key: deleting an item must
leave its orders (and their reporting) intact.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = '0001_initial_schema'
down_revision = None
branch_labels = None
depends_on = None


def upgrade():
    # ============================================================================
    # auth_users / auth_sessions: identity provider
    # ============================================================================
    op.create_table(
        'auth_users',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_auth_users_email', 'auth_users', ['email'], unique=True)

    op.create_table(
        'auth_sessions',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('token_hash', sa.String(length=255), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.Column('user_agent', sa.String(length=512), nullable=True),
        sa.Column('ip_address', sa.String(length=45), nullable=True),
        sa.ForeignKeyConstraint(['user_id'], ['auth_users.id']),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_auth_sessions_user_id', 'auth_sessions', ['user_id'])
    op.create_index('ix_auth_sessions_token_hash', 'auth_sessions', ['token_hash'], unique=True)
    op.create_index('ix_auth_sessions_expires_at', 'auth_sessions', ['expires_at'])
    op.create_index('ix_auth_sessions_is_revoked', 'auth_sessions', ['is_revoked'])
    op.create_index('ix_auth_sessions_user_active', 'auth_sessions', ['user_id', 'is_revoked'])

    # ============================================================================
    # user_profiles: team directory (id = auth_users.id)
    # ============================================================================
    op.create_table(
        'user_profiles',
        sa.Column('id', sa.String(length=36), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=64), nullable=False, server_default='Staff'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_user_profiles_email', 'user_profiles', ['email'])

    # ============================================================================
    # inventory_items: catalog (SKU uniqueness enforced in validation)
    # ============================================================================
    op.create_table(
        'inventory_items',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('category', sa.String(length=120), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=False),
        sa.Column('stock_level', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('unit_cost', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('retail_price', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('bank_settled_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('min_stock_level', sa.Integer(), nullable=False, server_default='5'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_inventory_items_user_id', 'inventory_items', ['user_id'])
    op.create_index('ix_inventory_items_user_name', 'inventory_items', ['user_id', 'name'])

    # ============================================================================
    # orders: snapshot of the item at entry time
    # ============================================================================
    op.create_table(
        'orders',
        sa.Column('id', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('date', sa.String(length=10), nullable=False),
        sa.Column('product_id', sa.String(length=64), nullable=True),
        sa.Column('product_name', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('category', sa.String(length=120), nullable=False, server_default=''),
        sa.Column('listing_price', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('settled_amount', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('profit', sa.Numeric(12, 2), nullable=False, server_default='0'),
        sa.Column('status', sa.String(length=64), nullable=False),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
    )
    op.create_index('ix_orders_user_id', 'orders', ['user_id'])
    op.create_index('ix_orders_user_date', 'orders', ['user_id', 'date'])

    # ============================================================================
    # workspace_vocabularies: ordered label lists per owner
    # ============================================================================
    op.create_table(
        'workspace_vocabularies',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('user_id', sa.String(length=36), nullable=False),
        sa.Column('kind', sa.String(length=16), nullable=False),
        sa.Column('labels', sa.JSON(), nullable=False),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('user_id', 'kind', name='uq_workspace_vocabularies_user_kind'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_workspace_vocabularies_user_id', 'workspace_vocabularies', ['user_id'])


def downgrade():
    op.drop_index('ix_workspace_vocabularies_user_id', table_name='workspace_vocabularies')
    op.drop_table('workspace_vocabularies')

    op.drop_index('ix_orders_user_date', table_name='orders')
    op.drop_index('ix_orders_user_id', table_name='orders')
    op.drop_table('orders')

    op.drop_index('ix_inventory_items_user_name', table_name='inventory_items')
    op.drop_index('ix_inventory_items_user_id', table_name='inventory_items')
    op.drop_table('inventory_items')

    op.drop_index('ix_user_profiles_email', table_name='user_profiles')
    op.drop_table('user_profiles')

    op.drop_index('ix_auth_sessions_user_active', table_name='auth_sessions')
    op.drop_index('ix_auth_sessions_is_revoked', table_name='auth_sessions')
    op.drop_index('ix_auth_sessions_expires_at', table_name='auth_sessions')
    op.drop_index('ix_auth_sessions_token_hash', table_name='auth_sessions')
    op.drop_index('ix_auth_sessions_user_id', table_name='auth_sessions')
    op.drop_table('auth_sessions')

    op.drop_index('ix_auth_users_email', table_name='auth_users')
    op.drop_table('auth_users')
