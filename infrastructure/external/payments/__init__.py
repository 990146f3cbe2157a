"""
Factory for payment gateway clients.
"""
from __future__ import annotations

from typing import Optional

import httpx

from core.config import RazorpaySettings
from application.ports.payment_gateway import PaymentGateway


def get_payment_gateway(
    config: RazorpaySettings,
    *,
    transport: Optional[httpx.AsyncBaseTransport] = None,
) -> PaymentGateway:
    from .razorpay_client import RazorpayClient
    return RazorpayClient(config, transport=transport)
