"""
Razorpay REST adapter built on httpx.

Notes on the Razorpay API:
- Every call uses HTTP basic auth with key_id/key_secret.
- Amounts are integers in the currency's minor unit (paise for INR).
- Checkout signatures are HMAC-SHA256(key_secret, "{order_id}|{payment_id}").
- Webhook signatures are HMAC-SHA256(webhook_secret, raw_body), sent in the
  X-Razorpay-Signature header.
"""
from __future__ import annotations

import hashlib
import hmac
import json
from urllib.parse import quote
from typing import Any, Optional

import httpx

from application.dtos.payments import (
    CreateGatewayOrder,
    GatewayRefundRequest,
    WebhookEvent,
)
from core.config import RazorpaySettings
from core.logging_config import get_logger
from domain.common.exceptions import DomainValidationException
from infrastructure.external.payments.base import BasePaymentClient
from infrastructure.external.payments.exceptions import (
    PaymentProviderError,
    PaymentRecoverableError,
    PaymentSignatureError,
)


logger = get_logger(__name__)

SIGNATURE_HEADER = "x-razorpay-signature"
EVENT_ID_HEADER = "x-razorpay-event-id"


def _hmac_sha256(secret: str, message: bytes) -> str:
    return hmac.new(secret.encode("utf-8"), message, hashlib.sha256).hexdigest()


def _header(headers: dict[str, Any], name: str) -> Optional[str]:
    for key, value in (headers or {}).items():
        if key.lower() == name:
            return value
    return None


class RazorpayClient(BasePaymentClient):
    provider = "razorpay"

    def __init__(self, config: RazorpaySettings, *, transport: Optional[httpx.AsyncBaseTransport] = None):
        if not config.key_id or not config.key_secret:
            raise RuntimeError("RAZORPAY__KEY_ID / RAZORPAY__KEY_SECRET not configured")
        super().__init__(
            base_url=config.base_url,
            auth=(config.key_id, config.key_secret),
            timeouts=config.timeouts.model_dump(),
            retry={"max": config.retry.max, "base": config.retry.base_backoff},
            transport=transport,
        )
        self._key_secret = config.key_secret
        self._webhook_secret = config.webhook_secret
        if not self._webhook_secret:
            logger.warning("razorpay_webhook_secret_missing", detail="webhook signatures will not be verified")

    async def _post(self, path: str, payload: dict[str, Any]) -> dict[str, Any]:
        try:
            resp = await self._retry(lambda: self.client.post(path, json=payload))
            resp.raise_for_status()
            return resp.json()
        except httpx.HTTPStatusError as exc:
            error = self._error_body(exc.response)
            raise PaymentProviderError(
                error.get("description") or f"Razorpay returned HTTP {exc.response.status_code}",
                provider=self.provider,
                provider_code=error.get("code"),
                details={"status_code": exc.response.status_code},
            ) from exc
        except (httpx.TimeoutException, httpx.TransportError) as exc:
            raise PaymentRecoverableError(str(exc) or exc.__class__.__name__, provider=self.provider) from exc
        except ValueError as exc:
            raise PaymentProviderError("Malformed response from Razorpay", provider=self.provider) from exc

    @staticmethod
    def _error_body(response: httpx.Response) -> dict[str, Any]:
        try:
            body = response.json()
        except ValueError:
            return {}
        error = body.get("error") if isinstance(body, dict) else None
        return error if isinstance(error, dict) else {}

    async def create_order(self, req: CreateGatewayOrder) -> dict[str, Any]:  # type: ignore[override]
        payload = {"amount": req.amount, "currency": req.currency, "receipt": req.receipt}
        order = await self._post("/orders", payload)
        self._log("razorpay_order_created", order_id=order.get("id"), amount=order.get("amount"))
        return order

    async def refund(self, req: GatewayRefundRequest) -> dict[str, Any]:  # type: ignore[override]
        # 路径段转义，payment_id 不得改变请求的目标端点
        path = f"/payments/{quote(req.payment_id, safe='')}/refund"
        refund = await self._post(path, {"amount": req.amount})
        self._log("razorpay_refund_created", refund_id=refund.get("id"), payment_id=req.payment_id)
        return refund

    def verify_payment_signature(self, order_id: str, payment_id: str, signature: str) -> None:  # type: ignore[override]
        expected = _hmac_sha256(self._key_secret, f"{order_id}|{payment_id}".encode("utf-8"))
        if not hmac.compare_digest(expected.encode(), (signature or "").encode("utf-8")):
            raise PaymentSignatureError("Invalid payment signature", provider=self.provider)

    def parse_webhook(self, headers: dict[str, Any], body: bytes) -> WebhookEvent:  # type: ignore[override]
        if self._webhook_secret:
            signature = _header(headers, SIGNATURE_HEADER) or ""
            expected = _hmac_sha256(self._webhook_secret, body)
            if not hmac.compare_digest(expected.encode(), signature.encode("utf-8")):
                raise PaymentSignatureError("Invalid webhook signature", provider=self.provider)

        try:
            data = json.loads(body.decode("utf-8"))
        except (UnicodeDecodeError, ValueError) as exc:
            raise DomainValidationException("Malformed webhook payload", field="body") from exc
        if not isinstance(data, dict) or not isinstance(data.get("event"), str):
            raise DomainValidationException("Malformed webhook payload", field="event")

        payload = data.get("payload")
        return WebhookEvent(
            id=_header(headers, EVENT_ID_HEADER),
            type=data["event"],
            provider=self.provider,
            data=payload if isinstance(payload, dict) else {},
            raw_headers=dict(headers),
            raw_body=body,
        )
