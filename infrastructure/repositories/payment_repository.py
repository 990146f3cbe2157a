"""
支付仓储实现 - 使用SQLAlchemy实现订单、支付日志与退款的数据访问
"""
from typing import Optional, List
from decimal import Decimal
from sqlalchemy.ext.asyncio import AsyncSession
from sqlalchemy import select, update
from sqlalchemy.dialects import postgresql, sqlite

from domain.payment.entity import Order, OrderStatus, PaymentLogEntry, RefundRecord
from domain.payment.repository import (
    OrderRepository,
    PaymentLogRepository,
    PaymentLogWriteOutcome,
    RefundRepository,
)
from infrastructure.models.payment import OrderModel, PaymentLogModel, RefundModel
from shared.codes.payment_codes import PAYMENT_LOG_PAID
from core.logging_config import get_logger


logger = get_logger(__name__)

# 支持 INSERT ... ON CONFLICT DO NOTHING 的方言
_CONFLICT_INSERTS = {
    "postgresql": postgresql.insert,
    "sqlite": sqlite.insert,
}


class SQLAlchemyOrderRepository(OrderRepository):
    """订单仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: OrderModel) -> Order:
        """将数据库模型转换为领域实体"""
        return Order(
            id=model.id,
            order_id=model.order_id,
            amount=Decimal(str(model.amount)),
            currency=model.currency,
            receipt=model.receipt,
            status=OrderStatus(model.status),
            payment_id=model.payment_id,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    async def create(self, order: Order) -> Order:
        """创建订单记录"""
        db_order = OrderModel(
            order_id=order.order_id,
            amount=order.amount,
            currency=order.currency,
            receipt=order.receipt,
            status=order.status.value,
            payment_id=order.payment_id,
        )
        self.session.add(db_order)
        await self.session.flush()
        await self.session.refresh(db_order)
        logger.info("order_created", id=db_order.id, order_id=db_order.order_id, amount=str(db_order.amount))
        return self._to_entity(db_order)

    async def get_by_order_id(self, order_id: str) -> Optional[Order]:
        """根据网关订单ID获取订单"""
        result = await self.session.execute(
            select(OrderModel).where(OrderModel.order_id == order_id)
        )
        db_order = result.scalar_one_or_none()
        return self._to_entity(db_order) if db_order else None

    async def update(self, order: Order) -> Order:
        """更新订单状态与支付ID"""
        result = await self.session.execute(
            select(OrderModel).where(OrderModel.order_id == order.order_id)
        )
        db_order = result.scalar_one_or_none()

        if not db_order:
            raise ValueError(f"Order {order.order_id} not found")

        db_order.status = order.status.value
        db_order.payment_id = order.payment_id
        if order.updated_at is not None:
            db_order.updated_at = order.updated_at

        await self.session.flush()
        await self.session.refresh(db_order)

        logger.info(
            "order_updated",
            order_id=db_order.order_id,
            status=db_order.status,
            payment_id=db_order.payment_id,
        )
        return self._to_entity(db_order)

    async def list_all(self) -> List[Order]:
        result = await self.session.execute(
            select(OrderModel).order_by(OrderModel.id.desc())
        )
        return [self._to_entity(m) for m in result.scalars().all()]


class SQLAlchemyPaymentLogRepository(PaymentLogRepository):
    """支付日志仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: PaymentLogModel) -> PaymentLogEntry:
        return PaymentLogEntry(
            id=model.id,
            payment_id=model.payment_id,
            order_id=model.order_id,
            amount=Decimal(str(model.amount)),
            currency=model.currency,
            status=model.status,
            description=model.description,
            email=model.email,
            contact=model.contact,
            created_at=model.created_at,
            updated_at=model.updated_at,
        )

    def _insert(self):
        dialect = self.session.get_bind().dialect.name
        insert = _CONFLICT_INSERTS.get(dialect)
        if insert is None:
            raise NotImplementedError(f"ON CONFLICT insert not supported for dialect: {dialect}")
        return insert(PaymentLogModel)

    async def record_notification(self, entry: PaymentLogEntry) -> PaymentLogWriteOutcome:
        """
        原子写入：唯一约束兜底的 INSERT ... ON CONFLICT DO NOTHING，
        冲突时再执行带条件的 UPDATE（仅当状态不是 paid）。
        """
        stmt = (
            self._insert()
            .values(
                payment_id=entry.payment_id,
                order_id=entry.order_id,
                amount=entry.amount,
                currency=entry.currency,
                status=entry.status,
                description=entry.description,
                email=entry.email,
                contact=entry.contact,
            )
            .on_conflict_do_nothing(index_elements=[PaymentLogModel.payment_id])
            .returning(PaymentLogModel.id)
        )
        inserted = (await self.session.execute(stmt)).scalar_one_or_none()
        if inserted is not None:
            logger.info("payment_log_inserted", payment_id=entry.payment_id, status=entry.status)
            return PaymentLogWriteOutcome.INSERTED

        result = await self.session.execute(
            update(PaymentLogModel)
            .where(
                PaymentLogModel.payment_id == entry.payment_id,
                PaymentLogModel.status != PAYMENT_LOG_PAID,
            )
            .values(status=PAYMENT_LOG_PAID)
            .returning(PaymentLogModel.id)
        )
        if result.scalar_one_or_none() is not None:
            logger.info("payment_log_marked_paid", payment_id=entry.payment_id)
            return PaymentLogWriteOutcome.MARKED_PAID

        logger.info("payment_log_already_paid", payment_id=entry.payment_id)
        return PaymentLogWriteOutcome.ALREADY_PAID

    async def get_by_payment_id(self, payment_id: str) -> Optional[PaymentLogEntry]:
        result = await self.session.execute(
            select(PaymentLogModel).where(PaymentLogModel.payment_id == payment_id)
        )
        model = result.scalar_one_or_none()
        return self._to_entity(model) if model else None

    async def list_all(self) -> List[PaymentLogEntry]:
        result = await self.session.execute(
            select(PaymentLogModel).order_by(PaymentLogModel.order_id.desc())
        )
        return [self._to_entity(m) for m in result.scalars().all()]


class SQLAlchemyRefundRepository(RefundRepository):
    """退款仓储的SQLAlchemy实现"""

    def __init__(self, session: AsyncSession):
        self.session = session

    def _to_entity(self, model: RefundModel) -> RefundRecord:
        return RefundRecord(
            id=model.id,
            refund_id=model.refund_id,
            amount=Decimal(str(model.amount)),
            currency=model.currency,
            payment_id=model.payment_id,
            status=model.status,
            created_at=model.created_at,
        )

    async def create(self, refund: RefundRecord) -> RefundRecord:
        db_refund = RefundModel(
            refund_id=refund.refund_id,
            amount=refund.amount,
            currency=refund.currency,
            payment_id=refund.payment_id,
            status=refund.status,
            created_at=refund.created_at,
        )
        self.session.add(db_refund)
        await self.session.flush()
        await self.session.refresh(db_refund)
        logger.info(
            "refund_created",
            refund_id=db_refund.refund_id,
            payment_id=db_refund.payment_id,
            amount=str(db_refund.amount),
        )
        return self._to_entity(db_refund)

    async def list_by_payment_id(self, payment_id: str) -> List[RefundRecord]:
        result = await self.session.execute(
            select(RefundModel)
            .where(RefundModel.payment_id == payment_id)
            .order_by(RefundModel.id.asc())
        )
        return [self._to_entity(m) for m in result.scalars().all()]
