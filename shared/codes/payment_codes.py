"""
Payment specific codes and Razorpay event/status vocabulary.
"""
from __future__ import annotations

from enum import IntEnum


class PaymentCode(IntEnum):
    # Provider/Network errors (6xxxx)
    PROVIDER_ERROR = 60000
    PROVIDER_RECOVERABLE = 60001
    SIGNATURE_ERROR = 60002


# Webhook events that carry a payment entity and settle into the payment log
PAYMENT_SETTLEMENT_EVENTS = frozenset({
    "payment.authorized",
    "payment.captured",
    "order.paid",
})

# Terminal status of a payment log entry; never overwritten by a later notification
PAYMENT_LOG_PAID = "paid"
