"""Infrastructure models package exports."""
from .base import Base, metadata
from .payment import OrderModel, PaymentLogModel, RefundModel

__all__ = [
    "Base",
    "metadata",
    "OrderModel",
    "PaymentLogModel",
    "RefundModel",
]
