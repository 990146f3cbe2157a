"""
支付领域实体 - 订单、网关支付日志与退款记录
"""
from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime, timezone
from decimal import Decimal
from typing import Optional
from enum import Enum

from domain.common.exceptions import DomainValidationException


# 网关金额以最小货币单位（如 paise）计，本地存储为主单位
MINOR_UNITS_PER_MAJOR = 100


class OrderStatus(str, Enum):
    """订单状态枚举"""
    CREATED = "created"
    PAID = "paid"


def to_minor(amount: Decimal) -> int:
    """主单位金额 -> 网关最小单位（整数）"""
    return int((Decimal(amount) * MINOR_UNITS_PER_MAJOR).to_integral_value())


def to_major(amount_minor: int | Decimal | str) -> Decimal:
    """网关最小单位 -> 主单位金额"""
    return Decimal(str(amount_minor)) / MINOR_UNITS_PER_MAJOR


def _ensure_utc(dt: Optional[datetime]) -> Optional[datetime]:
    """确保时间为 UTC 时区"""
    if dt is None:
        return None
    if dt.tzinfo is None:
        return dt.replace(tzinfo=timezone.utc)
    return dt.astimezone(timezone.utc)


@dataclass
class Order:
    """
    订单聚合根 - 本地记录的支付意图

    业务规则：
    1. 金额必须大于0（主单位）
    2. 状态只允许 created -> paid；paid 状态可重复确认
    3. 订单从不在业务流程中删除
    """

    id: Optional[int]
    order_id: str
    amount: Decimal
    currency: str
    receipt: Optional[str]
    status: OrderStatus = OrderStatus.CREATED
    payment_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if self.amount is None or Decimal(self.amount) <= 0:
            raise DomainValidationException(
                f"订单金额必须大于0: {self.amount}",
                field="amount"
            )
        self.amount = Decimal(self.amount)
        self.status = OrderStatus(self.status)
        self.created_at = _ensure_utc(self.created_at)
        self.updated_at = _ensure_utc(self.updated_at)

    def mark_paid(self, payment_id: str) -> None:
        """标记订单已支付，记录网关支付ID"""
        if not payment_id:
            raise DomainValidationException("支付ID不能为空", field="payment_id")
        self.status = OrderStatus.PAID
        self.payment_id = payment_id
        self.updated_at = datetime.now(timezone.utc)

    @property
    def is_paid(self) -> bool:
        return self.status == OrderStatus.PAID


@dataclass
class PaymentLogEntry:
    """
    网关支付日志（rzp_payments）

    状态为网关原样字符串（created/authorized/captured/...），
    一旦为 paid 则不再被后续通知覆盖。
    """

    id: Optional[int]
    payment_id: str
    order_id: Optional[str]
    amount: Decimal
    currency: str
    status: str
    description: Optional[str] = None
    email: Optional[str] = None
    contact: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    def __post_init__(self):
        if not self.payment_id:
            raise DomainValidationException("支付ID不能为空", field="payment_id")
        self.amount = Decimal(self.amount)
        self.created_at = _ensure_utc(self.created_at)
        self.updated_at = _ensure_utc(self.updated_at)

    @classmethod
    def from_gateway_entity(cls, entity: dict) -> "PaymentLogEntry":
        """由网关 payment entity 构造（金额从最小单位转换为主单位）"""
        return cls(
            id=None,
            payment_id=entity.get("id"),
            order_id=entity.get("order_id"),
            amount=to_major(entity.get("amount") or 0),
            currency=entity.get("currency") or "",
            status=entity.get("status") or "",
            description=entity.get("description"),
            email=entity.get("email"),
            contact=None if entity.get("contact") is None else str(entity.get("contact")),
        )


@dataclass
class RefundRecord:
    """
    退款记录 - 仅追加

    每次成功的网关退款调用生成一条记录。
    """

    id: Optional[int]
    refund_id: str
    amount: Decimal
    currency: str
    payment_id: str
    status: str
    created_at: Optional[datetime] = None

    def __post_init__(self):
        self.amount = Decimal(self.amount)
        self.created_at = _ensure_utc(self.created_at)

    @classmethod
    def from_gateway_refund(cls, refund: dict) -> "RefundRecord":
        """由网关退款响应构造（created_at 为 epoch 秒）"""
        created = refund.get("created_at")
        return cls(
            id=None,
            refund_id=str(refund["id"]),
            amount=to_major(refund.get("amount") or 0),
            currency=refund.get("currency") or "",
            payment_id=refund.get("payment_id") or "",
            status=refund.get("status") or "",
            created_at=(
                datetime.fromtimestamp(int(created), tz=timezone.utc)
                if created is not None else datetime.now(timezone.utc)
            ),
        )
