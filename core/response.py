"""
响应体定义

前端直接读取顶层字段（success / error / verified），因此不使用信封结构：
成功响应为 {"success": true, ...}，失败响应为 {"error": "..."}。
"""
from typing import Any, Optional

from pydantic import BaseModel, ConfigDict

from core.config import settings


def cors_headers() -> dict[str, str]:
    """所有响应统一附带的 CORS 头"""
    return {
        "Access-Control-Allow-Origin": settings.CORS_ALLOW_ORIGIN,
        "Access-Control-Allow-Headers": ", ".join(settings.CORS_ALLOW_HEADERS),
    }


class ErrorBody(BaseModel):
    """失败响应体（OpenAPI 文档用）"""
    model_config = ConfigDict(extra="allow")

    error: str


def success_response(**fields: Any) -> dict[str, Any]:
    """创建成功响应体：{"success": true, **fields}"""
    return {"success": True, **fields}


def error_response(message: str, extras: Optional[dict[str, Any]] = None) -> dict[str, Any]:
    """
    创建失败响应体

    Args:
        message: 面向调用方的错误消息
        extras: 追加到顶层的字段（例如 {"verified": False}）
    """
    body: dict[str, Any] = {"error": message}
    if extras:
        body.update(extras)
    return body
