"""
支付数据库模型 - SQLAlchemy ORM模型
注意：这是基础设施层的实现细节，不是领域模型
"""
from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, Text, Index, UniqueConstraint
)
from datetime import datetime, timezone

from .base import Base


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class OrderModel(Base):
    """
    订单数据库模型

    这是数据库表的映射，不包含业务逻辑
    所有业务规则都在 domain.payment.entity.Order 中
    """
    __tablename__ = "orders"

    # 主键（列表按其倒序）
    id = Column(Integer, primary_key=True, autoincrement=True)

    # 网关订单ID
    order_id = Column(String(100), unique=True, index=True, nullable=False, comment="网关订单ID")

    # 金额信息（主单位，使用 Numeric 存储精确金额）
    amount = Column(Numeric(precision=15, scale=2), nullable=False, comment="订单金额（主单位）")
    currency = Column(String(3), nullable=False, default="INR", comment="货币代码 ISO-4217")
    receipt = Column(String(100), nullable=True, comment="收据标签")

    # 状态
    status = Column(String(20), nullable=False, default="created", index=True, comment="订单状态: created/paid")
    payment_id = Column(String(100), nullable=True, index=True, comment="网关支付ID（支付后写入）")

    # 时间戳
    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, comment="创建时间")
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False, comment="更新时间")

    def __repr__(self):
        return (
            f"<OrderModel(id={self.id}, order_id='{self.order_id}', "
            f"amount={self.amount}, status='{self.status}')>"
        )


class PaymentLogModel(Base):
    """
    网关支付日志模型（webhook 通知落库）

    payment_id 唯一约束保证并发通知时只有一条记录
    """
    __tablename__ = "rzp_payments"

    id = Column(Integer, primary_key=True, autoincrement=True)
    payment_id = Column(String(100), nullable=False, comment="网关支付ID")
    order_id = Column(String(100), nullable=True, index=True, comment="网关订单ID")
    amount = Column(Numeric(precision=15, scale=2), nullable=False, comment="金额（主单位）")
    currency = Column(String(3), nullable=False, comment="货币代码")
    status = Column(String(50), nullable=False, comment="网关支付状态: created/authorized/captured/paid...")
    description = Column(Text, nullable=True, comment="描述")
    email = Column(String(255), nullable=True, comment="付款人邮箱")
    contact = Column(String(50), nullable=True, comment="付款人联系方式")

    created_at = Column(DateTime(timezone=True), default=_utcnow, nullable=False, comment="创建时间")
    updated_at = Column(DateTime(timezone=True), default=_utcnow, onupdate=_utcnow, nullable=False, comment="更新时间")

    __table_args__ = (
        UniqueConstraint("payment_id", name="uq_rzp_payments_payment_id"),
    )

    def __repr__(self):
        return (
            f"<PaymentLogModel(id={self.id}, payment_id='{self.payment_id}', "
            f"order_id='{self.order_id}', status='{self.status}')>"
        )


class RefundModel(Base):
    """
    退款数据库模型（仅追加）
    """
    __tablename__ = "refund"

    id = Column(Integer, primary_key=True, autoincrement=True)
    refund_id = Column(String(100), unique=True, nullable=False, comment="网关退款ID")
    amount = Column(Numeric(precision=15, scale=2), nullable=False, comment="退款金额（主单位）")
    currency = Column(String(3), nullable=False, comment="货币代码")
    payment_id = Column(String(100), nullable=False, comment="网关支付ID")
    status = Column(String(50), nullable=False, comment="网关退款状态")
    created_at = Column(DateTime(timezone=True), nullable=False, comment="网关创建时间")

    __table_args__ = (
        Index("ix_refund_payment_id", "payment_id"),
    )

    def __repr__(self):
        return (
            f"<RefundModel(id={self.id}, refund_id='{self.refund_id}', "
            f"amount={self.amount}, status='{self.status}')>"
        )
