"""
支付仓储接口 - 定义订单、支付日志与退款数据访问的抽象接口
"""
from abc import ABC, abstractmethod
from enum import Enum
from typing import Optional, List

from .entity import Order, PaymentLogEntry, RefundRecord


class PaymentLogWriteOutcome(str, Enum):
    """支付日志写入结果"""
    INSERTED = "inserted"          # 首次通知，新建记录
    MARKED_PAID = "marked_paid"    # 已存在且未 paid，更新为 paid
    ALREADY_PAID = "already_paid"  # 已是 paid，未做任何修改


class OrderRepository(ABC):
    """订单仓储抽象接口 - 只定义能做什么，不管怎么做"""

    @abstractmethod
    async def create(self, order: Order) -> Order:
        """创建订单记录"""
        pass

    @abstractmethod
    async def get_by_order_id(self, order_id: str) -> Optional[Order]:
        """根据网关订单ID获取订单"""
        pass

    @abstractmethod
    async def update(self, order: Order) -> Order:
        """更新订单状态与支付ID"""
        pass

    @abstractmethod
    async def list_all(self) -> List[Order]:
        """按内部ID倒序列出全部订单"""
        pass


class PaymentLogRepository(ABC):
    """网关支付日志仓储抽象接口"""

    @abstractmethod
    async def record_notification(self, entry: PaymentLogEntry) -> PaymentLogWriteOutcome:
        """
        原子地记录一次支付通知（按 payment_id）：
        不存在则插入；存在且未 paid 则置为 paid；已 paid 则不修改。
        """
        pass

    @abstractmethod
    async def get_by_payment_id(self, payment_id: str) -> Optional[PaymentLogEntry]:
        """根据支付ID获取日志"""
        pass

    @abstractmethod
    async def list_all(self) -> List[PaymentLogEntry]:
        """按订单ID倒序列出支付日志"""
        pass


class RefundRepository(ABC):
    """退款仓储抽象接口（仅追加）"""

    @abstractmethod
    async def create(self, refund: RefundRecord) -> RefundRecord:
        """创建退款记录"""
        pass

    @abstractmethod
    async def list_by_payment_id(self, payment_id: str) -> List[RefundRecord]:
        """获取某笔支付的退款记录"""
        pass
