"""
统一响应构造

各路由按约定的 JSON 形状返回（如 {"status": "ok", "data": ...}、
{"success": true, "data": [...]}、{"error": ..., "details": ...}），
这里只负责编码与省略空字段。
"""
from typing import Any, Optional

from fastapi.encoders import jsonable_encoder
from fastapi.responses import JSONResponse


def json_response(status_code: int = 200, *, content: Any = None, **fields: Any) -> JSONResponse:
    """
    创建 JSON 响应

    Args:
        status_code: HTTP 状态码
        content: 原样返回的响应体（如网关订单对象）；提供时忽略 fields
        **fields: 响应体字段，值为 None 的字段会被省略

    Returns:
        JSONResponse
    """
    if content is None:
        content = {k: v for k, v in fields.items() if v is not None}
    return JSONResponse(status_code=status_code, content=jsonable_encoder(content))


def error_details(exc: BaseException, expose: bool) -> Optional[str]:
    """仅在允许时向客户端暴露底层错误信息。"""
    if not expose:
        return None
    return getattr(exc, "message", None) or str(exc)
