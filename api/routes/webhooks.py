"""
Razorpay webhook receiver.

The raw body is read before any parsing so the signature is checked against
the exact bytes Razorpay signed.
"""
from __future__ import annotations

from fastapi import APIRouter, Depends, Request

from api.dependencies import get_payment_service, get_settings
from application.services.payment_service import PaymentService
from core.config import Settings
from core.exceptions import http_status_for
from core.logging_config import get_logger
from core.response import error_details, json_response
from domain.common.exceptions import BusinessException


router = APIRouter(tags=["Webhooks"])
logger = get_logger(__name__)


@router.post("/webhook", summary="Razorpay webhook")
async def razorpay_webhook(
    request: Request,
    service: PaymentService = Depends(get_payment_service),
    settings: Settings = Depends(get_settings),
):
    raw_body = await request.body()
    headers = {k: v for k, v in request.headers.items()}
    try:
        result = await service.handle_webhook(headers, raw_body)
    except BusinessException as exc:
        status_code = http_status_for(exc)
        if status_code < 500:
            logger.warning("webhook_rejected", error=exc.message, code=int(exc.code))
            return json_response(status_code, status="error", message=exc.message)
        logger.error("webhook_processing_failed", error=exc.message, exc_info=True)
        return json_response(
            500,
            status="error",
            message="Webhook processing failed",
            error=error_details(exc, settings.DEBUG),
        )
    except Exception as exc:
        logger.error("webhook_processing_failed", error=str(exc), exc_info=True)
        return json_response(
            500,
            status="error",
            message="Webhook processing failed",
            error=error_details(exc, settings.DEBUG),
        )
    return json_response(status=result.status, message=result.message)
