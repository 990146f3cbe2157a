"""Unit of Work 抽象定义

一次支付用例（下单、验签落库、退款记录、webhook 写入）对应一个 UoW：
订单、支付日志与退款仓储共享同一事务，退出时提交或回滚。
"""
from __future__ import annotations

from abc import ABC, abstractmethod

from domain.payment.repository import (
    OrderRepository,
    PaymentLogRepository,
    RefundRepository,
)


class AbstractUnitOfWork(ABC):
    """应用层事务边界控制抽象

    readonly=True 用于列表查询：不开启显式事务，也不提交。
    """

    order_repository: OrderRepository  # orders 表
    payment_log_repository: PaymentLogRepository  # rzp_payments 表（webhook 落库）
    refund_repository: RefundRepository  # refund 表（仅追加）

    def __init__(self, *, readonly: bool = False) -> None:
        self._committed = False
        self._readonly = readonly
        self.order_repository = None  # type: ignore[assignment]
        self.payment_log_repository = None  # type: ignore[assignment]
        self.refund_repository = None  # type: ignore[assignment]

    async def __aenter__(self) -> "AbstractUnitOfWork":
        return self

    async def __aexit__(self, exc_type, exc, tb) -> None:
        if exc:
            await self.rollback()
        else:
            # 只在非只读且未显式提交时自动提交
            if not self._readonly and not self._committed:
                await self.commit()

    @abstractmethod
    async def commit(self) -> None:
        """提交事务"""
        ...

    @abstractmethod
    async def rollback(self) -> None:
        """回滚事务"""
