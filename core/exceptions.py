from typing import Any, Dict, Optional


class AppException(Exception):
    """Base exception for all application-specific errors."""

    def __init__(
        self,
        code: str,
        message: str,
        status_code: int = 400,
        details: Optional[Any] = None,
    ):
        self.code = code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(self.message)


class ValidationException(AppException):
    def __init__(self, message: str = "Validation failed", details: Optional[Any] = None):
        super().__init__("VALIDATION_ERROR", message, 400, details)


class UnauthorizedException(AppException):
    def __init__(self, message: str = "Unauthorized access", details: Optional[Any] = None):
        super().__init__("UNAUTHORIZED", message, 401, details)


class ForbiddenException(AppException):
    """Authenticated, but the caller may not perform this action."""

    def __init__(self, message: str = "Access denied", details: Optional[Any] = None):
        super().__init__("FORBIDDEN", message, 403, details)


class SubscriptionRequiredException(AppException):
    def __init__(self, message: str = "Active subscription required", details: Optional[Any] = None):
        super().__init__("SUBSCRIPTION_REQUIRED", message, 403, details)


class LimitExceededException(AppException):
    """The caller's plan quota does not allow one more resource."""

    def __init__(self, message: str = "Plan limit exceeded", details: Optional[Any] = None):
        super().__init__("LIMIT_EXCEEDED", message, 403, details)


class NotFoundException(AppException):
    def __init__(self, message: str = "Resource not found", details: Optional[Any] = None):
        super().__init__("NOT_FOUND", message, 404, details)


class ConflictException(AppException):
    def __init__(self, message: str = "Resource already exists", details: Optional[Any] = None):
        super().__init__("CONFLICT", message, 409, details)


class UpstreamException(AppException):
    """An external collaborator (payment provider, BDS) failed."""

    def __init__(self, message: str = "Upstream service error", details: Optional[Any] = None):
        super().__init__("UPSTREAM_ERROR", message, 502, details)


class SignatureInvalidException(AppException):
    def __init__(self, message: str = "Invalid webhook signature", details: Optional[Any] = None):
        super().__init__("SIGNATURE_INVALID", message, 400, details)


# ============================================================
# Response envelopes
# ============================================================
def api_success(data: Any) -> Dict[str, Any]:
    return {"success": True, "data": data, "error": None}


def api_error(code: str, message: str, details: Optional[Any] = None) -> Dict[str, Any]:
    error: Dict[str, Any] = {"code": code, "message": message}
    if details is not None:
        error["details"] = details
    return {"success": False, "data": None, "error": error}
