
from alembic import op
import sqlalchemy as sa

revision = "20261019120000"
down_revision = None

def upgrade():
    op.create_table(
        'product_variations',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('sku', sa.String(length=100), nullable=False, unique=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('price_cents', sa.BigInteger(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='ARS'),
        sa.Column('stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.CheckConstraint('stock >= 0', name='ck_product_variations_stock_non_negative'),
    )
    op.create_table(
        'product_price_tiers',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('variation_id', sa.Integer(), sa.ForeignKey('product_variations.id', ondelete='CASCADE'), nullable=False),
        sa.Column('min_quantity', sa.Integer(), nullable=False),
        sa.Column('max_quantity', sa.Integer(), nullable=True),
        sa.Column('price_cents', sa.BigInteger(), nullable=False),
        sa.Column('active', sa.Boolean(), nullable=False, server_default=sa.text('true')),
        sa.Column('sort_order', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )
    op.create_index('ix_product_price_tiers_variation_id', 'product_price_tiers', ['variation_id'])
    op.create_index('ix_price_tiers_variation_min', 'product_price_tiers', ['variation_id', 'min_quantity'])
    op.create_index('ix_price_tiers_variation_active', 'product_price_tiers', ['variation_id', 'active'])
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('user_id', sa.String(length=64), nullable=True, index=True),
        sa.Column('status', sa.String(length=16), nullable=False, server_default='pending'),
        sa.Column('total_cents', sa.BigInteger(), nullable=False),
        sa.Column('currency', sa.String(length=3), nullable=False, server_default='ARS'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
    )
    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('variation_id', sa.Integer(), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('quantity', sa.Integer(), nullable=False),
        sa.Column('unit_price_cents', sa.BigInteger(), nullable=False),
    )
    op.create_table(
        'order_payment_details',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_id', sa.Integer(), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False, index=True),
        sa.Column('method', sa.String(length=64), nullable=False, server_default=''),
        sa.Column('status', sa.String(length=32), nullable=False),
        sa.Column('status_detail', sa.String(length=128), nullable=False, server_default=''),
        sa.Column('transaction_id', sa.String(length=64), nullable=False, index=True),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, server_default=sa.text('now()')),
        sa.UniqueConstraint('order_id', 'transaction_id', 'status', name='uq_payment_detail_delivery'),
    )

def downgrade():
    op.drop_table('order_payment_details')
    op.drop_table('order_items')
    op.drop_table('orders')
    op.drop_table('product_price_tiers')
    op.drop_table('product_variations')
