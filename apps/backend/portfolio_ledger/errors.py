"""
應用程式錯誤定義

每個錯誤都帶有穩定的機器可讀代碼、訊息與選用的結構化 details，
由 API 層統一轉成 JSON 錯誤回應。
"""

from typing import Any


class AppError(Exception):
    """所有業務錯誤的基礎類別"""

    status_code: int = 500
    code: str = "INTERNAL_ERROR"

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message)
        self.message = message
        self.details = details

    def to_dict(self) -> dict[str, Any]:
        return {
            "success": False,
            "error": self.code,
            "message": self.message,
            "details": self.details,
        }

    def __repr__(self) -> str:
        return f"<{type(self).__name__} {self.code}: {self.message}>"


class NotFoundError(AppError):
    """資源不存在（或不屬於呼叫者）"""

    status_code = 404
    code = "NOT_FOUND"

    def __init__(self, resource: str, details: dict[str, Any] | None = None):
        super().__init__(f"{resource} not found", details)


class ForbiddenError(AppError):
    """資源存在但不屬於呼叫者"""

    status_code = 403
    code = "FORBIDDEN"

    def __init__(self, message: str = "Access denied"):
        super().__init__(message)


class ValidationError(AppError):
    """業務規則驗證失敗（持倉不足、目標比例不為 100% 等）"""

    status_code = 400
    code = "VALIDATION_ERROR"


class ConflictError(AppError):
    status_code = 409
    code = "CONFLICT"


class InternalError(AppError):
    def __init__(self, message: str = "Internal server error"):
        super().__init__(message)
