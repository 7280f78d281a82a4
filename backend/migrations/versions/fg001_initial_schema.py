"""initial freshguard schema

Revision ID: fg001
Revises:
Create Date: 2026-10-18 00:00:00.000000

Creates the label/expiry schema:
- users, session_tokens: admin accounts and bearer sessions
- brands, stores, products: catalogue (uniqueness enforced here)
- binding_codes: one-time terminal provisioning codes
- batches, reminders, handling_logs: the print ledger

Cascades run brand -> store -> {batch, binding_code} -> reminder -> handling_log.
"""
from alembic import op
import sqlalchemy as sa


# revision identifiers, used by Alembic.
revision = 'fg001'
down_revision = None
branch_labels = None
depends_on = None


def _timestamps():
    return [
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
    ]


def upgrade():
    op.create_table(
        'users',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('password_hash', sa.String(length=255), nullable=False),
        sa.Column('role', sa.String(length=32), nullable=False, server_default='admin'),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default='1'),
        *_timestamps(),
        sa.Column('last_login_at', sa.DateTime(timezone=True), nullable=True),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('email'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'brands',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        *_timestamps(),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('name'),
        sqlite_autoincrement=True
    )

    op.create_table(
        'stores',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('brand_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=120), nullable=False),
        sa.Column('printer_name', sa.String(length=128), nullable=True),
        sa.Column('printer_model', sa.String(length=128), nullable=True),
        sa.Column('printer_address', sa.String(length=255), nullable=True),
        sa.Column('printer_port', sa.Integer(), nullable=True),
        sa.Column('printer_dpi', sa.Integer(), nullable=True),
        sa.Column('label_width_mm', sa.Integer(), nullable=True, server_default='58'),
        *_timestamps(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.ForeignKeyConstraint(['brand_id'], ['brands.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('brand_id', 'name', name='uq_stores_brand_name'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_stores_brand_id', 'stores', ['brand_id'])

    op.create_table(
        'products',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('brand_id', sa.Integer(), nullable=False),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('sku', sa.String(length=64), nullable=True),
        sa.Column('shelf_life_days', sa.Integer(), nullable=False),
        sa.Column('label_language', sa.String(length=16), nullable=False, server_default='single'),
        sa.Column('primary_language', sa.String(length=16), nullable=False, server_default='en'),
        sa.Column('secondary_language', sa.String(length=16), nullable=True),
        *_timestamps(),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False,
                  server_default=sa.text('CURRENT_TIMESTAMP')),
        sa.CheckConstraint('shelf_life_days > 0', name='ck_products_shelf_life_positive'),
        sa.CheckConstraint("label_language IN ('single', 'bilingual')", name='ck_products_label_language'),
        sa.ForeignKeyConstraint(['brand_id'], ['brands.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('brand_id', 'name', name='uq_products_brand_name'),
        sa.UniqueConstraint('brand_id', 'sku', name='uq_products_brand_sku'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_products_brand_id', 'products', ['brand_id'])

    op.create_table(
        'session_tokens',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('token_hash', sa.String(length=64), nullable=False),
        sa.Column('user_id', sa.Integer(), nullable=True),
        sa.Column('store_id', sa.Integer(), nullable=True),
        sa.Column('device_id', sa.String(length=128), nullable=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('last_used_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('is_revoked', sa.Boolean(), nullable=False, server_default='0'),
        sa.Column('revoked_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('revoked_reason', sa.String(length=255), nullable=True),
        sa.CheckConstraint('(user_id IS NULL) != (store_id IS NULL)',
                           name='ck_session_tokens_single_principal'),
        sa.ForeignKeyConstraint(['user_id'], ['users.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_session_tokens_token_hash', 'session_tokens', ['token_hash'], unique=True)
    op.create_index('ix_session_tokens_user_id', 'session_tokens', ['user_id'])
    op.create_index('ix_session_tokens_store_id', 'session_tokens', ['store_id'])

    op.create_table(
        'binding_codes',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('brand_id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('code', sa.String(length=64), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('used_at', sa.DateTime(timezone=True), nullable=True),
        sa.Column('bound_device_id', sa.String(length=128), nullable=True),
        *_timestamps(),
        sa.ForeignKeyConstraint(['brand_id'], ['brands.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('code'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_binding_codes_store_id', 'binding_codes', ['store_id'])

    op.create_table(
        'batches',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('printed_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.CheckConstraint('quantity BETWEEN 1 AND 500', name='ck_batches_quantity_range'),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_batches_store_id', 'batches', ['store_id'])
    op.create_index('ix_batches_product_id', 'batches', ['product_id'])

    # reminders: status is pending/handled only; expiry is derived at read time
    op.create_table(
        'reminders',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('batch_id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('expires_at', sa.DateTime(timezone=True), nullable=False),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('handled_at', sa.DateTime(timezone=True), nullable=True),
        *_timestamps(),
        sa.CheckConstraint("status IN ('pending', 'handled')", name='ck_reminders_status'),
        sa.CheckConstraint("(status = 'handled') = (handled_at IS NOT NULL)",
                           name='ck_reminders_handled_at_matches_status'),
        sa.ForeignKeyConstraint(['batch_id'], ['batches.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_reminders_batch_id', 'reminders', ['batch_id'])
    op.create_index('ix_reminders_store_expires', 'reminders', ['store_id', 'expires_at'])

    op.create_table(
        'handling_logs',
        sa.Column('id', sa.Integer(), nullable=False),
        sa.Column('reminder_id', sa.Integer(), nullable=False),
        sa.Column('store_id', sa.Integer(), nullable=False),
        sa.Column('product_id', sa.Integer(), nullable=False),
        sa.Column('reason', sa.String(length=16), nullable=False),
        sa.Column('note', sa.Text(), nullable=True),
        sa.Column('handled_at', sa.DateTime(timezone=True), nullable=False),
        *_timestamps(),
        sa.CheckConstraint("reason IN ('discarded', 'sold', 'transferred')",
                           name='ck_handling_logs_reason'),
        sa.ForeignKeyConstraint(['reminder_id'], ['reminders.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['store_id'], ['stores.id'], ondelete='CASCADE'),
        sa.ForeignKeyConstraint(['product_id'], ['products.id'], ondelete='CASCADE'),
        sa.PrimaryKeyConstraint('id'),
        sa.UniqueConstraint('reminder_id'),
        sqlite_autoincrement=True
    )
    op.create_index('ix_handling_logs_store_id', 'handling_logs', ['store_id'])


def downgrade():
    """Drop all tables (destructive operation)."""
    op.drop_table('handling_logs')
    op.drop_table('reminders')
    op.drop_table('batches')
    op.drop_table('binding_codes')
    op.drop_table('session_tokens')
    op.drop_table('products')
    op.drop_table('stores')
    op.drop_table('brands')
    op.drop_table('users')
