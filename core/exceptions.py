"""
自定义异常映射与全局异常处理器
"""
from fastapi import FastAPI, Request
from fastapi.exceptions import RequestValidationError
from starlette.exceptions import HTTPException as StarletteHTTPException
import uuid
from starlette import status as http_status

from .response import json_response
from shared.codes import BusinessCode
from shared.codes.payment_codes import PaymentCode
from core.logging_config import get_logger
from domain.common.exceptions import BusinessException


_CODE_TO_HTTP_STATUS = {
    BusinessCode.PARAM_MISSING: http_status.HTTP_400_BAD_REQUEST,
    BusinessCode.PARAM_VALIDATION_ERROR: http_status.HTTP_400_BAD_REQUEST,

    BusinessCode.ORDER_NOT_FOUND: http_status.HTTP_404_NOT_FOUND,
    BusinessCode.PAYMENT_LOG_NOT_FOUND: http_status.HTTP_404_NOT_FOUND,

    BusinessCode.SYSTEM_ERROR: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
    BusinessCode.DATABASE_ERROR: http_status.HTTP_500_INTERNAL_SERVER_ERROR,

    PaymentCode.PROVIDER_ERROR: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
    PaymentCode.PROVIDER_RECOVERABLE: http_status.HTTP_500_INTERNAL_SERVER_ERROR,
    PaymentCode.SIGNATURE_ERROR: http_status.HTTP_400_BAD_REQUEST,
}


_ROUTE_NOT_FOUND_STATUSES = {
    http_status.HTTP_404_NOT_FOUND,
    http_status.HTTP_405_METHOD_NOT_ALLOWED,
}


def http_status_for(exc: BusinessException) -> int:
    """根据业务码映射HTTP状态码（默认400）。"""
    return _CODE_TO_HTTP_STATUS.get(exc.code, http_status.HTTP_400_BAD_REQUEST)


def register_exception_handlers(app: FastAPI, *, expose_details: bool = False):
    """
    注册全局异常处理器

    路由在自身边界捕获业务异常并构造响应体；这里只兜底处理逃逸的异常。

    Args:
        app: FastAPI应用实例
        expose_details: 是否在响应中返回底层错误信息（仅建议开发环境开启）
    """

    # logger
    logger = get_logger(__name__)

    def _request_id(request: Request) -> str:
        return getattr(getattr(request, "state", object()), "request_id", None) or str(uuid.uuid4())

    @app.exception_handler(BusinessException)
    async def business_exception_handler(request: Request, exc: BusinessException):
        """处理业务异常"""
        status_code = http_status_for(exc)
        logger.warning(
            "business_exception",
            request_id=_request_id(request),
            code=int(exc.code),
            error_type=exc.error_type,
            error=exc.message,
        )
        return json_response(
            status_code,
            error=exc.message,
            details=exc.details if expose_details else None,
        )

    @app.exception_handler(RequestValidationError)
    async def validation_exception_handler(request: Request, exc: RequestValidationError):
        """处理参数验证异常（如非法 JSON 或类型错误）"""
        errors = exc.errors()
        first_error = errors[0] if errors else {}
        field = ".".join(str(loc) for loc in first_error.get("loc", [])[1:])
        return json_response(
            http_status.HTTP_400_BAD_REQUEST,
            error="Invalid request body",
            field=field or None,
            details=first_error.get("msg"),
        )

    @app.exception_handler(StarletteHTTPException)
    async def http_exception_handler(request: Request, exc: StarletteHTTPException):
        """处理HTTP异常；路径或方法未匹配时统一返回 404 Route not found"""
        if exc.status_code in _ROUTE_NOT_FOUND_STATUSES:
            return json_response(http_status.HTTP_404_NOT_FOUND, error="Route not found")
        response = json_response(exc.status_code, error=str(exc.detail))
        for key, value in (getattr(exc, "headers", None) or {}).items():
            response.headers[key] = value
        return response

    @app.exception_handler(Exception)
    async def global_exception_handler(request: Request, exc: Exception):
        """处理所有未捕获的异常"""
        request_id = _request_id(request)

        # 记录日志（使用结构化日志）
        logger.error(
            "unhandled_exception",
            request_id=request_id,
            code=int(BusinessCode.SYSTEM_ERROR),
            error=str(exc),
            exc_info=True,
        )

        return json_response(
            http_status.HTTP_500_INTERNAL_SERVER_ERROR,
            error="Internal Server Error",
            details=str(exc) if expose_details else None,
        )
