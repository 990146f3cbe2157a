import base64
import hashlib
import hmac
import json

import httpx
import pytest

from application.dtos.payments import CreateGatewayOrder, GatewayRefundRequest
from core.config import GatewayRetry, RazorpaySettings
from domain.common.exceptions import DomainValidationException
from infrastructure.external.payments import get_payment_gateway
from infrastructure.external.payments.exceptions import (
    PaymentProviderError,
    PaymentRecoverableError,
    PaymentSignatureError,
)
from infrastructure.external.payments.razorpay_client import RazorpayClient


def _config(**overrides) -> RazorpaySettings:
    values = {"key_id": "rzp_test_key", "key_secret": "rzp_test_secret", "webhook_secret": "whsec_test"}
    values.update(overrides)
    return RazorpaySettings(**values)


def _hex(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode(), message, hashlib.sha256).hexdigest()


def test_factory_returns_razorpay_client():
    gw = get_payment_gateway(_config())
    assert isinstance(gw, RazorpayClient)
    assert gw.provider == "razorpay"


def test_missing_credentials():
    with pytest.raises(RuntimeError):
        RazorpayClient(_config(key_secret=None))


def test_payment_signature():
    gw = RazorpayClient(_config())
    good = _hex("rzp_test_secret", b"order_1|pay_1")
    gw.verify_payment_signature("order_1", "pay_1", good)
    with pytest.raises(PaymentSignatureError):
        gw.verify_payment_signature("order_1", "pay_2", good)


def test_parse_webhook_checks_signature():
    gw = RazorpayClient(_config())
    body = json.dumps({"event": "payment.captured", "payload": {"payment": {"entity": {"id": "pay_1"}}}}).encode()
    evt = gw.parse_webhook({"X-Razorpay-Signature": _hex("whsec_test", body), "X-Razorpay-Event-Id": "evt_1"}, body)
    assert evt.type == "payment.captured"
    assert evt.id == "evt_1"
    assert evt.payment_entity == {"id": "pay_1"}

    with pytest.raises(PaymentSignatureError):
        gw.parse_webhook({"X-Razorpay-Signature": _hex("other", body)}, body)
    with pytest.raises(PaymentSignatureError):
        gw.parse_webhook({}, body)


def test_parse_webhook_without_secret_skips_verification():
    gw = RazorpayClient(_config(webhook_secret=None))
    evt = gw.parse_webhook({}, b'{"event": "order.paid", "payload": {}}')
    assert evt.type == "order.paid"
    with pytest.raises(DomainValidationException):
        gw.parse_webhook({}, b"[]")


@pytest.mark.asyncio
async def test_create_order_and_refund_requests():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        body = json.loads(request.content)
        if request.url.path == "/v1/orders":
            return httpx.Response(200, json={"id": "order_1", "amount": body["amount"], "currency": body["currency"]})
        return httpx.Response(200, json={"id": "rfnd_1", "amount": body["amount"], "payment_id": "pay_1"})

    gw = RazorpayClient(_config(), transport=httpx.MockTransport(handler))
    order = await gw.create_order(CreateGatewayOrder(amount=50000, currency="INR", receipt="receipt_1"))
    refund = await gw.refund(GatewayRefundRequest(payment_id="pay_1", amount=100))
    await gw.aclose()

    assert order == {"id": "order_1", "amount": 50000, "currency": "INR"}
    assert refund["id"] == "rfnd_1"
    assert seen[0].url == "https://api.razorpay.com/v1/orders"
    assert json.loads(seen[0].content)["receipt"] == "receipt_1"
    assert seen[1].url.path == "/v1/payments/pay_1/refund"
    assert seen[0].headers["authorization"] == "Basic " + base64.b64encode(b"rzp_test_key:rzp_test_secret").decode()


@pytest.mark.asyncio
async def test_http_error_maps_to_provider_error():
    def handler(request: httpx.Request) -> httpx.Response:
        return httpx.Response(401, json={"error": {"code": "BAD_REQUEST_ERROR", "description": "Authentication failed"}})

    gw = RazorpayClient(_config(), transport=httpx.MockTransport(handler))
    with pytest.raises(PaymentProviderError) as excinfo:
        await gw.create_order(CreateGatewayOrder(amount=100, currency="INR", receipt="r"))
    assert excinfo.value.message == "Authentication failed"
    assert excinfo.value.details["status_code"] == 401
    await gw.aclose()


@pytest.mark.asyncio
async def test_connect_errors_retry_only_when_enabled():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ConnectError("refused", request=request)

    gw = RazorpayClient(_config(), transport=httpx.MockTransport(handler))
    with pytest.raises(PaymentRecoverableError):
        await gw.create_order(CreateGatewayOrder(amount=100, currency="INR", receipt="r"))
    assert len(calls) == 1
    await gw.aclose()

    calls.clear()
    retrying = RazorpayClient(
        _config(retry=GatewayRetry(max=2, base_backoff=0.0)),
        transport=httpx.MockTransport(handler),
    )
    with pytest.raises(PaymentRecoverableError):
        await retrying.refund(GatewayRefundRequest(payment_id="pay_1", amount=100))
    assert len(calls) == 3
    await retrying.aclose()


@pytest.mark.asyncio
async def test_read_timeout_is_not_retried():
    calls = []

    def handler(request: httpx.Request) -> httpx.Response:
        calls.append(request)
        raise httpx.ReadTimeout("timed out", request=request)

    gw = RazorpayClient(_config(retry=GatewayRetry(max=3, base_backoff=0.0)), transport=httpx.MockTransport(handler))
    with pytest.raises(PaymentRecoverableError):
        await gw.create_order(CreateGatewayOrder(amount=100, currency="INR", receipt="r"))
    assert len(calls) == 1
    await gw.aclose()


@pytest.mark.asyncio
async def test_refund_payment_id_is_a_single_path_segment():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(200, json={"id": "rfnd_1"})

    gw = RazorpayClient(_config(), transport=httpx.MockTransport(handler))
    await gw.refund(GatewayRefundRequest(payment_id="x/../../orders?a=", amount=100))
    await gw.aclose()

    url = seen[0].url
    assert url.raw_path.startswith(b"/v1/payments/")
    assert url.raw_path.endswith(b"/refund")
    assert url.query == b""


def test_non_ascii_signatures_are_mismatches():
    gw = RazorpayClient(_config())
    with pytest.raises(PaymentSignatureError):
        gw.verify_payment_signature("order_1", "pay_1", "é" * 64)
    with pytest.raises(PaymentSignatureError):
        gw.parse_webhook({"X-Razorpay-Signature": "é"}, b'{"event": "order.paid"}')
