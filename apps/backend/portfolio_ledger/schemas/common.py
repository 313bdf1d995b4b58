"""
共用 Schema 定義

包含 API 回應包裝、錯誤回應等通用結構。
"""

from typing import Any, Generic, TypeVar

from pydantic import BaseModel

T = TypeVar("T")


class ApiResponse(BaseModel, Generic[T]):
    """統一 API 回應格式"""
    success: bool = True
    data: T | None = None
    message: str = "OK"


class ErrorResponse(BaseModel):
    """錯誤回應格式"""
    success: bool = False
    error: str
    message: str
    details: dict[str, Any] | None = None
