from decimal import Decimal
from functools import partial
from typing import Any

import pytest

from application.dtos.payments import (
    CreateGatewayOrder,
    CreateOrderRequest,
    GatewayRefundRequest,
    RefundRequest,
    VerifyPaymentRequest,
    WebhookEvent,
)
from application.ports.payment_gateway import PaymentGateway
from application.services.payment_service import PaymentService
from domain.common.exceptions import (
    OrderNotFoundException,
    PaymentLogNotFoundException,
    ValidationException,
)
from domain.payment.entity import OrderStatus
from infrastructure.external.payments.exceptions import PaymentSignatureError
from infrastructure.unit_of_work import SQLAlchemyUnitOfWork


class StubGateway:
    provider = "stub"

    def __init__(self) -> None:
        self.orders: list[CreateGatewayOrder] = []
        self.refunds: list[GatewayRefundRequest] = []
        self.signature_ok = True
        self.event: WebhookEvent | None = None

    async def create_order(self, req: CreateGatewayOrder) -> dict[str, Any]:
        self.orders.append(req)
        return {"id": f"order_{len(self.orders)}", "amount": req.amount, "currency": req.currency,
                "receipt": req.receipt, "status": "created"}

    async def refund(self, req: GatewayRefundRequest) -> dict[str, Any]:
        self.refunds.append(req)
        return {"id": "rfnd_1", "amount": req.amount, "currency": "INR", "payment_id": req.payment_id,
                "status": "pending", "created_at": 1700000000}

    def verify_payment_signature(self, order_id: str, payment_id: str, signature: str) -> None:
        if not self.signature_ok:
            raise PaymentSignatureError("Invalid payment signature", provider=self.provider)

    def parse_webhook(self, headers: dict, body: bytes) -> WebhookEvent:
        return self.event

    async def aclose(self) -> None:
        return None


@pytest.fixture
def stub():
    return StubGateway()


@pytest.fixture
def service(stub, database):
    return PaymentService(stub, partial(SQLAlchemyUnitOfWork, database.session_factory), currency="INR")


def test_stub_satisfies_gateway_protocol(stub):
    assert isinstance(stub, PaymentGateway)


@pytest.mark.asyncio
async def test_create_order_converts_to_minor_units(service, stub, database):
    order = await service.create_order(CreateOrderRequest(amount=Decimal("499.99")))
    assert stub.orders[0].amount == 49999
    assert stub.orders[0].currency == "INR"

    async with SQLAlchemyUnitOfWork(database.session_factory, readonly=True) as uow:
        stored = await uow.order_repository.get_by_order_id(order["id"])
    assert stored.amount == Decimal("499.99")
    assert stored.status == OrderStatus.CREATED


@pytest.mark.asyncio
async def test_verify_requires_signature_before_touching_orders(service, stub):
    await service.create_order(CreateOrderRequest(amount=Decimal("10")))
    stub.signature_ok = False
    with pytest.raises(PaymentSignatureError):
        await service.verify_payment(VerifyPaymentRequest(
            razorpay_order_id="order_1", razorpay_payment_id="pay_1", razorpay_signature="bad",
        ))
    orders = await service.list_orders()
    assert orders[0].status == "created"


@pytest.mark.asyncio
async def test_verify_unknown_order(service):
    with pytest.raises(OrderNotFoundException):
        await service.verify_payment(VerifyPaymentRequest(
            razorpay_order_id="order_x", razorpay_payment_id="pay_1", razorpay_signature="sig",
        ))


@pytest.mark.asyncio
async def test_refund_validation_skips_gateway(service, stub):
    with pytest.raises(ValidationException):
        await service.refund(RefundRequest(payment_id="pay_1"))
    assert stub.refunds == []


@pytest.mark.asyncio
async def test_refund_records_major_amount(service, stub, database):
    await service.refund(RefundRequest(payment_id="pay_1", amount=Decimal("2.50")))
    assert stub.refunds[0].amount == 250
    async with SQLAlchemyUnitOfWork(database.session_factory, readonly=True) as uow:
        records = await uow.refund_repository.list_by_payment_id("pay_1")
    assert records[0].amount == Decimal("2.50")


@pytest.mark.asyncio
async def test_webhook_outcomes(service, stub):
    entity = {"id": "pay_1", "order_id": "order_1", "amount": 50000, "currency": "INR", "status": "captured"}
    stub.event = WebhookEvent(type="payment.captured", provider="stub", data={"payment": {"entity": entity}})

    first = await service.handle_webhook({}, b"")
    second = await service.handle_webhook({}, b"")
    assert first.message == "Payment processed successfully"
    assert second.message == "Payment already captured"

    stub.event = WebhookEvent(type="payment.failed", provider="stub", data={"payment": {"entity": entity}})
    ignored = await service.handle_webhook({}, b"")
    assert ignored.status == "ignored"


@pytest.mark.asyncio
async def test_list_user_data_empty(service):
    with pytest.raises(PaymentLogNotFoundException):
        await service.list_user_data()


@pytest.mark.asyncio
async def test_refund_rejects_payment_id_outside_gateway_format(service, stub):
    with pytest.raises(ValidationException):
        await service.refund(RefundRequest(payment_id="../orders", amount=Decimal("1")))
    assert stub.refunds == []


@pytest.mark.asyncio
async def test_create_order_rejects_fractional_paise(service, stub):
    with pytest.raises(ValidationException):
        await service.create_order(CreateOrderRequest(amount=Decimal("10.555")))
    assert stub.orders == []
