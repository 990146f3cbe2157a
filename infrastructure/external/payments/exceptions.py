"""
Exceptions raised by payment gateway adapters.

All of them are BusinessException variants so core.exceptions can map their
codes to HTTP status; the provider name travels in ``details``.
"""
from __future__ import annotations

from typing import Optional

from domain.common.exceptions import BusinessException
from shared.codes.payment_codes import PaymentCode


class PaymentGatewayException(BusinessException):
    code_for_class: PaymentCode = PaymentCode.PROVIDER_ERROR

    def __init__(
        self,
        message: str,
        *,
        provider: str,
        provider_code: Optional[str] = None,
        details: Optional[dict] = None,
    ):
        self.provider = provider
        self.provider_code = provider_code
        full_details = {"provider": provider}
        if provider_code:
            full_details["provider_code"] = provider_code
        full_details.update(details or {})
        super().__init__(
            code=self.code_for_class,
            message=message,
            error_type=type(self).__name__,
            details=full_details,
        )


class PaymentProviderError(PaymentGatewayException):
    """Provider rejected the call (4xx/5xx) or answered with an unusable body"""
    code_for_class = PaymentCode.PROVIDER_ERROR


class PaymentRecoverableError(PaymentGatewayException):
    """Timeouts and transport failures; the call may or may not have reached the provider"""
    code_for_class = PaymentCode.PROVIDER_RECOVERABLE


class PaymentSignatureError(PaymentGatewayException):
    code_for_class = PaymentCode.SIGNATURE_ERROR
