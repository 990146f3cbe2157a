"""create_payment_tables

Revision ID: 3b1f9c2d7a41
Revises:
Create Date: 2025-10-19 09:00:00.000000

"""
from typing import Sequence, Union

from alembic import op
import sqlalchemy as sa

# revision identifiers, used by Alembic.
revision: str = '3b1f9c2d7a41'
down_revision: Union[str, None] = None
branch_labels: Union[str, Sequence[str], None] = None
depends_on: Union[str, Sequence[str], None] = None


def upgrade() -> None:
    op.create_table(
        'orders',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('order_id', sa.String(length=100), nullable=False, comment='网关订单ID'),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False, comment='订单金额（主单位）'),
        sa.Column('currency', sa.String(length=3), nullable=False, comment='货币代码 ISO-4217'),
        sa.Column('receipt', sa.String(length=100), nullable=True, comment='收据标签'),
        sa.Column('status', sa.String(length=20), nullable=False, comment='订单状态: created/paid'),
        sa.Column('payment_id', sa.String(length=100), nullable=True, comment='网关支付ID（支付后写入）'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, comment='更新时间'),
        sa.PrimaryKeyConstraint('id', name='pk_orders'),
    )
    op.create_index('ix_orders_order_id', 'orders', ['order_id'], unique=True)
    op.create_index('ix_orders_status', 'orders', ['status'], unique=False)
    op.create_index('ix_orders_payment_id', 'orders', ['payment_id'], unique=False)

    # payment_id 唯一约束是 webhook 原子写入（ON CONFLICT）的前提
    op.create_table(
        'rzp_payments',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('payment_id', sa.String(length=100), nullable=False, comment='网关支付ID'),
        sa.Column('order_id', sa.String(length=100), nullable=True, comment='网关订单ID'),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False, comment='金额（主单位）'),
        sa.Column('currency', sa.String(length=3), nullable=False, comment='货币代码'),
        sa.Column('status', sa.String(length=50), nullable=False, comment='网关支付状态'),
        sa.Column('description', sa.Text(), nullable=True, comment='描述'),
        sa.Column('email', sa.String(length=255), nullable=True, comment='付款人邮箱'),
        sa.Column('contact', sa.String(length=50), nullable=True, comment='付款人联系方式'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='创建时间'),
        sa.Column('updated_at', sa.DateTime(timezone=True), nullable=False, comment='更新时间'),
        sa.PrimaryKeyConstraint('id', name='pk_rzp_payments'),
        sa.UniqueConstraint('payment_id', name='uq_rzp_payments_payment_id'),
    )
    op.create_index('ix_rzp_payments_order_id', 'rzp_payments', ['order_id'], unique=False)

    op.create_table(
        'refund',
        sa.Column('id', sa.Integer(), autoincrement=True, nullable=False),
        sa.Column('refund_id', sa.String(length=100), nullable=False, comment='网关退款ID'),
        sa.Column('amount', sa.Numeric(precision=15, scale=2), nullable=False, comment='退款金额（主单位）'),
        sa.Column('currency', sa.String(length=3), nullable=False, comment='货币代码'),
        sa.Column('payment_id', sa.String(length=100), nullable=False, comment='网关支付ID'),
        sa.Column('status', sa.String(length=50), nullable=False, comment='网关退款状态'),
        sa.Column('created_at', sa.DateTime(timezone=True), nullable=False, comment='网关创建时间'),
        sa.PrimaryKeyConstraint('id', name='pk_refund'),
        sa.UniqueConstraint('refund_id', name='uq_refund_refund_id'),
    )
    op.create_index('ix_refund_payment_id', 'refund', ['payment_id'], unique=False)


def downgrade() -> None:
    op.drop_index('ix_refund_payment_id', table_name='refund')
    op.drop_table('refund')
    op.drop_index('ix_rzp_payments_order_id', table_name='rzp_payments')
    op.drop_table('rzp_payments')
    op.drop_index('ix_orders_payment_id', table_name='orders')
    op.drop_index('ix_orders_status', table_name='orders')
    op.drop_index('ix_orders_order_id', table_name='orders')
    op.drop_table('orders')
