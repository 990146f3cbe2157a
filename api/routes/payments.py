"""
Payments API routes.

Thin layer over PaymentService: each route catches business exceptions at its
own boundary and shapes the JSON body the frontend expects. Anything not caught
here falls through to the global handlers in core.exceptions.
"""
from __future__ import annotations

from typing import Optional

from fastapi import APIRouter, Depends

from api.dependencies import get_payment_service, get_settings
from application.dtos.payments import CreateOrderRequest, RefundRequest, VerifyPaymentRequest
from application.services.payment_service import PaymentService
from core.config import Settings
from core.exceptions import http_status_for
from core.logging_config import get_logger
from core.response import error_details, json_response
from domain.common.exceptions import BusinessException


router = APIRouter(prefix="/api", tags=["Payments"])
logger = get_logger(__name__)


def _client_error(exc: Exception) -> Optional[int]:
    """业务异常对应 4xx 时返回状态码，否则 None（按 500 处理）"""
    if isinstance(exc, BusinessException):
        status_code = http_status_for(exc)
        if status_code < 500:
            return status_code
    return None


@router.post("/create-order", summary="Create Razorpay order")
async def create_order(
    payload: Optional[CreateOrderRequest] = None,
    service: PaymentService = Depends(get_payment_service),
    settings: Settings = Depends(get_settings),
):
    try:
        order = await service.create_order(payload or CreateOrderRequest())
    except Exception as exc:
        status_code = _client_error(exc)
        if status_code is not None:
            return json_response(status_code, error=exc.message)
        logger.error("order_create_failed", error=str(exc), exc_info=True)
        return json_response(
            500,
            error="Failed to create Razorpay order",
            details=error_details(exc, settings.DEBUG),
        )
    return json_response(content=order)


@router.post("/verify-payment", summary="Verify checkout payment signature")
async def verify_payment(
    payload: Optional[VerifyPaymentRequest] = None,
    service: PaymentService = Depends(get_payment_service),
    settings: Settings = Depends(get_settings),
):
    try:
        order = await service.verify_payment(payload or VerifyPaymentRequest())
    except Exception as exc:
        status_code = _client_error(exc)
        if status_code is not None:
            logger.warning("payment_verification_rejected", error=exc.message)
            return json_response(status_code, status="error", message=exc.message)
        logger.error("payment_verification_failed", error=str(exc), exc_info=True)
        return json_response(
            500,
            status="error",
            message="Error verifying payment",
            error=error_details(exc, settings.DEBUG),
        )
    return json_response(status="ok", data=order)


@router.post("/refund", summary="Initiate refund")
async def refund(
    payload: Optional[RefundRequest] = None,
    service: PaymentService = Depends(get_payment_service),
    settings: Settings = Depends(get_settings),
):
    try:
        result = await service.refund(payload or RefundRequest())
    except Exception as exc:
        status_code = _client_error(exc)
        if status_code is not None:
            return json_response(status_code, message=exc.message)
        logger.error("refund_failed", error=str(exc), exc_info=True)
        return json_response(
            500,
            message="Failed to initiate refund",
            error=error_details(exc, settings.DEBUG),
        )
    return json_response(message="Refund initiated successfully", refund=result)


@router.get("/get-all-orders", summary="List orders")
async def get_all_orders(service: PaymentService = Depends(get_payment_service)):
    try:
        orders = await service.list_orders()
    except Exception as exc:
        logger.error("orders_fetch_failed", error=str(exc), exc_info=True)
        return json_response(500, success=False, error="Failed to fetch orders")
    return json_response(success=True, data=orders)


@router.get("/get-all-user-data", summary="List payment log entries")
async def get_all_user_data(
    service: PaymentService = Depends(get_payment_service),
    settings: Settings = Depends(get_settings),
):
    try:
        entries = await service.list_user_data()
    except Exception as exc:
        status_code = _client_error(exc)
        if status_code is not None:
            return json_response(status_code, success=False, message=exc.message)
        logger.error("user_data_fetch_failed", error=str(exc), exc_info=True)
        return json_response(
            500,
            success=False,
            error="Failed to fetch user data",
            details=error_details(exc, settings.DEBUG),
        )
    return json_response(success=True, data=entries)
