
from alembic import op
import sqlalchemy as sa

revision = "20261019120000"
down_revision = None

NOW = sa.text("CURRENT_TIMESTAMP")

def upgrade():
    op.create_table(
        'orders',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('shipping_address1', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('shipping_address2', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('phone', sa.String(length=64), nullable=False, server_default=''),
        sa.Column('payment_method', sa.String(length=64), nullable=False, server_default=''),
        sa.Column('status', sa.String(length=32), nullable=False, server_default='Pending'),
        sa.Column('total_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('customer_id', sa.String(length=32), nullable=True),
        sa.Column('stock_applied', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('date_ordered', sa.DateTime(), nullable=False, server_default=NOW),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=NOW),
        sa.Column('updated_at', sa.DateTime(), nullable=False, server_default=NOW),
    )
    op.create_index('ix_orders_customer_id', 'orders', ['customer_id'])
    op.create_index('ix_orders_date_ordered', 'orders', ['date_ordered'])
    op.create_table(
        'order_items',
        sa.Column('id', sa.Integer(), primary_key=True),
        sa.Column('order_id', sa.String(length=32), sa.ForeignKey('orders.id', ondelete='CASCADE'), nullable=False),
        sa.Column('position', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('product_id', sa.String(length=32), nullable=True),
        sa.Column('name', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('unit_price_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('image', sa.String(length=1024), nullable=False, server_default=''),
        sa.Column('quantity', sa.Integer(), nullable=False, server_default='1'),
    )
    op.create_index('ix_order_items_order_id', 'order_items', ['order_id'])
    op.create_table(
        'notifications',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('user_id', sa.String(length=32), nullable=False),
        sa.Column('kind', sa.String(length=32), nullable=False),
        sa.Column('title', sa.String(length=255), nullable=False),
        sa.Column('message', sa.Text(), nullable=False),
        sa.Column('order_id', sa.String(length=32), nullable=True),
        sa.Column('product_id', sa.String(length=32), nullable=True),
        sa.Column('read', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('created_at', sa.DateTime(), nullable=False, server_default=NOW),
    )
    op.create_index('ix_notifications_user_id', 'notifications', ['user_id'])
    op.create_index('ix_notifications_dedup', 'notifications', ['user_id', 'kind', 'product_id', 'created_at'])
    op.create_table(
        'products',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False),
        sa.Column('price_cents', sa.BigInteger(), nullable=False, server_default='0'),
        sa.Column('image', sa.String(length=1024), nullable=False, server_default=''),
        sa.Column('count_in_stock', sa.Integer(), nullable=False, server_default='0'),
        sa.Column('low_stock_threshold', sa.Integer(), nullable=True, server_default='10'),
        sa.CheckConstraint('count_in_stock >= 0', name='ck_products_count_in_stock'),
    )
    op.create_table(
        'users',
        sa.Column('id', sa.String(length=32), primary_key=True),
        sa.Column('name', sa.String(length=255), nullable=False, server_default=''),
        sa.Column('email', sa.String(length=255), nullable=False),
        sa.Column('is_admin', sa.Boolean(), nullable=False, server_default=sa.false()),
        sa.Column('is_active', sa.Boolean(), nullable=False, server_default=sa.true()),
    )
    op.create_index('ix_users_email', 'users', ['email'], unique=True)

def downgrade():
    op.drop_table('users')
    op.drop_table('products')
    op.drop_table('notifications')
    op.drop_table('order_items')
    op.drop_table('orders')
