from core.exceptions import http_status_for
from domain.common.exceptions import (
    OrderNotFoundException,
    PaymentLogNotFoundException,
    PersistenceException,
    ValidationException,
)
from infrastructure.external.payments.exceptions import (
    PaymentProviderError,
    PaymentRecoverableError,
    PaymentSignatureError,
)
from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode


def test_every_raised_code_has_an_http_status():
    cases = {
        ValidationException("missing"): 400,
        ValidationException("bad", missing=False): 400,
        OrderNotFoundException("order_1"): 404,
        PaymentLogNotFoundException(): 404,
        PersistenceException("db down"): 500,
        PaymentProviderError("boom", provider="razorpay"): 500,
        PaymentRecoverableError("timeout", provider="razorpay"): 500,
        PaymentSignatureError("bad sig", provider="razorpay"): 400,
    }
    for exc, status in cases.items():
        assert http_status_for(exc) == status, exc.error_type

    raised = {int(exc.code) for exc in cases}
    declared = {int(c) for c in BusinessCode} | {int(c) for c in PaymentCode}
    # SYSTEM_ERROR is only logged by the global handler
    assert declared - raised == {int(BusinessCode.SYSTEM_ERROR)}
