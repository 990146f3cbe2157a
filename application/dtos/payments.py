"""
Payment DTOs (Pydantic v2) used at application boundaries.

Request models keep every field optional so that missing values surface as
the API's own 400 responses instead of framework validation errors.
"""
from __future__ import annotations

from datetime import datetime
from decimal import Decimal
from typing import Any, Optional
from pydantic import BaseModel, ConfigDict, Field


class CreateOrderRequest(BaseModel):
    amount: Optional[Decimal] = None


class VerifyPaymentRequest(BaseModel):
    razorpay_order_id: Optional[str] = None
    razorpay_payment_id: Optional[str] = None
    razorpay_signature: Optional[str] = None


class RefundRequest(BaseModel):
    payment_id: Optional[str] = Field(default=None, alias="paymentId")
    amount: Optional[Decimal] = None

    model_config = ConfigDict(populate_by_name=True)


class CreateGatewayOrder(BaseModel):
    amount: int  # minor units
    currency: str
    receipt: str


class GatewayRefundRequest(BaseModel):
    payment_id: str
    amount: int  # minor units


class OrderDTO(BaseModel):
    id: Optional[int] = None
    order_id: str
    amount: Decimal
    currency: str
    receipt: Optional[str] = None
    status: str
    payment_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


class PaymentLogDTO(BaseModel):
    """Fixed projection of a payment log row exposed by the listing API."""
    order_id: Optional[str] = None
    amount: Decimal
    currency: str
    status: str
    payment_id: str


class WebhookEvent(BaseModel):
    id: Optional[str] = None
    type: str
    provider: str
    data: dict[str, Any]
    # raw fields for traceability (optional)
    raw_headers: Optional[dict[str, Any]] = None
    raw_body: Optional[bytes] = None

    model_config = ConfigDict(arbitrary_types_allowed=True)

    @property
    def payment_entity(self) -> Optional[dict[str, Any]]:
        payment = (self.data or {}).get("payment") or {}
        entity = payment.get("entity") if isinstance(payment, dict) else None
        return entity if isinstance(entity, dict) else None


class WebhookResult(BaseModel):
    status: str
    message: str
