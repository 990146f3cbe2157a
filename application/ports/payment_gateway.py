"""
Payment gateway port (application/ports) exposing a replaceable protocol.

Application depends on this Protocol; infrastructure implements adapters.
"""
from __future__ import annotations

from typing import Any, Protocol, runtime_checkable

from application.dtos.payments import (
    CreateGatewayOrder,
    GatewayRefundRequest,
    WebhookEvent,
)


@runtime_checkable
class PaymentGateway(Protocol):
    """Gateway protocol for the third-party payment provider.

    Implementations should be async and side-effect free beyond IO. Gateway
    payloads are returned verbatim as dictionaries. Signature checks raise
    on mismatch.
    """

    provider: str

    async def create_order(self, req: CreateGatewayOrder) -> dict[str, Any]: ...

    async def refund(self, req: GatewayRefundRequest) -> dict[str, Any]: ...

    def verify_payment_signature(self, order_id: str, payment_id: str, signature: str) -> None: ...

    def parse_webhook(self, headers: dict[str, Any], body: bytes) -> WebhookEvent: ...

    async def aclose(self) -> None: ...
