"""
Application service orchestrating payment use-cases.

This class depends only on the application PaymentGateway port, DTOs and a
unit-of-work factory. Gateway and database implementations are provided by
infrastructure and injected from the composition root (API), keeping
dependencies one-way.
"""
from __future__ import annotations

import re
import time
from decimal import Decimal
from typing import Any, Callable, Optional

from application.dtos.payments import (
    CreateGatewayOrder,
    CreateOrderRequest,
    GatewayRefundRequest,
    OrderDTO,
    PaymentLogDTO,
    RefundRequest,
    VerifyPaymentRequest,
    WebhookResult,
)
from application.ports.payment_gateway import PaymentGateway
from core.logging_config import get_logger
from domain.common.exceptions import (
    DomainValidationException,
    OrderNotFoundException,
    PaymentLogNotFoundException,
    ValidationException,
)
from domain.common.unit_of_work import AbstractUnitOfWork
from domain.payment.entity import Order, PaymentLogEntry, RefundRecord, to_minor
from domain.payment.repository import PaymentLogWriteOutcome
from shared.codes.payment_codes import PAYMENT_SETTLEMENT_EVENTS


logger = get_logger(__name__)

MINOR_UNIT_STEP = Decimal("0.01")

# Razorpay 支付ID，例如 pay_29QQoUBi66xm2f
PAYMENT_ID_PATTERN = re.compile(r"pay_[A-Za-z0-9]+")


def _receipt() -> str:
    return f"receipt_{int(time.time() * 1000)}"


def _require_amount(amount: Optional[Decimal], message: str) -> Decimal:
    if not amount:
        raise ValidationException(message, field="amount")
    if amount < 0:
        raise ValidationException("Amount must be greater than zero", field="amount", missing=False)
    # 网关只接受整数最小单位，不允许超过两位小数
    if amount != amount.quantize(MINOR_UNIT_STEP):
        raise ValidationException("Amount must have at most two decimal places", field="amount", missing=False)
    return amount


def _require_payment_id(payment_id: str) -> str:
    if not PAYMENT_ID_PATTERN.fullmatch(payment_id):
        raise ValidationException("Invalid payment ID", field="paymentId", missing=False)
    return payment_id


class PaymentService:
    def __init__(
        self,
        gateway: PaymentGateway,
        uow_factory: Callable[..., AbstractUnitOfWork],
        *,
        currency: str = "INR",
    ) -> None:
        self.gateway = gateway
        self._uow_factory = uow_factory
        self.currency = currency

    async def create_order(self, req: CreateOrderRequest) -> dict[str, Any]:
        amount = _require_amount(req.amount, "Amount is required")
        gateway_req = CreateGatewayOrder(amount=to_minor(amount), currency=self.currency, receipt=_receipt())
        logger.info(
            "order_create_request",
            provider=self.gateway.provider,
            amount=str(amount),
            receipt=gateway_req.receipt,
        )
        order = await self.gateway.create_order(gateway_req)

        async with self._uow_factory() as uow:
            await uow.order_repository.create(
                Order(
                    id=None,
                    order_id=str(order["id"]),
                    amount=amount,
                    currency=order.get("currency") or self.currency,
                    receipt=order.get("receipt") or gateway_req.receipt,
                )
            )
        logger.info("order_create_response", order_id=order["id"], status=order.get("status"))
        return order

    async def verify_payment(self, req: VerifyPaymentRequest) -> OrderDTO:
        if not (req.razorpay_order_id and req.razorpay_payment_id and req.razorpay_signature):
            raise ValidationException("Missing required parameters")

        self.gateway.verify_payment_signature(
            req.razorpay_order_id, req.razorpay_payment_id, req.razorpay_signature
        )

        async with self._uow_factory() as uow:
            order = await uow.order_repository.get_by_order_id(req.razorpay_order_id)
            if order is None:
                raise OrderNotFoundException(req.razorpay_order_id)
            if order.is_paid:
                logger.info("payment_reverified", order_id=order.order_id, payment_id=req.razorpay_payment_id)
            order.mark_paid(req.razorpay_payment_id)
            order = await uow.order_repository.update(order)

        logger.info("payment_verified", order_id=order.order_id, payment_id=order.payment_id)
        return self._to_order_dto(order)

    async def refund(self, req: RefundRequest) -> dict[str, Any]:
        if not req.payment_id or not req.amount:
            raise ValidationException("Payment ID and amount are required")
        payment_id = _require_payment_id(req.payment_id)
        amount = _require_amount(req.amount, "Payment ID and amount are required")

        logger.info("payment_refund_request", provider=self.gateway.provider, payment_id=payment_id, amount=str(amount))
        refund = await self.gateway.refund(
            GatewayRefundRequest(payment_id=payment_id, amount=to_minor(amount))
        )

        # No compensation: the refund may already exist upstream if this insert fails
        async with self._uow_factory() as uow:
            record = await uow.refund_repository.create(RefundRecord.from_gateway_refund(refund))
        logger.info("refund_recorded", refund_id=record.refund_id, payment_id=record.payment_id, status=record.status)
        return refund

    async def handle_webhook(self, headers: dict, body: bytes) -> WebhookResult:
        event = self.gateway.parse_webhook(headers, body)
        logger.info("payment_webhook_parsed", provider=self.gateway.provider, event_type=event.type, event_id=event.id)

        if event.type not in PAYMENT_SETTLEMENT_EVENTS:
            logger.info("payment_webhook_ignored", event_type=event.type)
            return WebhookResult(status="ignored", message="Unhandled event type")

        entity = event.payment_entity
        if not entity or not entity.get("id"):
            raise DomainValidationException("Webhook payload has no payment entity", field="payload.payment.entity")

        entry = PaymentLogEntry.from_gateway_entity(entity)
        async with self._uow_factory() as uow:
            outcome = await uow.payment_log_repository.record_notification(entry)

        logger.info(
            "payment_webhook_recorded",
            event_type=event.type,
            payment_id=entry.payment_id,
            order_id=entry.order_id,
            outcome=outcome.value,
        )
        if outcome == PaymentLogWriteOutcome.INSERTED:
            return WebhookResult(status="success", message="Payment processed successfully")
        return WebhookResult(status="success", message="Payment already captured")

    async def list_orders(self) -> list[OrderDTO]:
        async with self._uow_factory(readonly=True) as uow:
            orders = await uow.order_repository.list_all()
        return [self._to_order_dto(o) for o in orders]

    async def list_user_data(self) -> list[PaymentLogDTO]:
        async with self._uow_factory(readonly=True) as uow:
            entries = await uow.payment_log_repository.list_all()
        if not entries:
            raise PaymentLogNotFoundException()
        return [
            PaymentLogDTO(
                order_id=e.order_id,
                amount=e.amount,
                currency=e.currency,
                status=e.status,
                payment_id=e.payment_id,
            )
            for e in entries
        ]

    @staticmethod
    def _to_order_dto(order: Order) -> OrderDTO:
        return OrderDTO(
            id=order.id,
            order_id=order.order_id,
            amount=order.amount,
            currency=order.currency,
            receipt=order.receipt,
            status=order.status.value,
            payment_id=order.payment_id,
            created_at=order.created_at,
            updated_at=order.updated_at,
        )
