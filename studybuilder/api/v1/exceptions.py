"""Custom exceptions for API layer."""

from typing import Any, Dict, Optional


class APIError(Exception):
    """Base class for API errors."""
    
    def __init__(
        self,
        error_code: str,
        message: str,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        self.error_code = error_code
        self.message = message
        self.status_code = status_code
        self.details = details
        super().__init__(message)
    
    def to_dict(self) -> Dict[str, Any]:
        result = {
            "error_code": self.error_code,
            "message": self.message,
        }
        if self.details:
            result["details"] = self.details
        return result


class NotFoundError(APIError):
    """Resource not found."""
    
    def __init__(
        self,
        resource_type: str,
        resource_id: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            error_code=f"{resource_type.upper()}_NOT_FOUND",
            message=f"{resource_type.replace('_', ' ').title()} '{resource_id}' not found",
            status_code=404,
            details=details,
        )


class UnprocessableError(APIError):
    """Request is well-formed but violates domain rules."""
    
    def __init__(
        self,
        error_code: str,
        message: str,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            error_code=error_code,
            message=message,
            status_code=422,
            details=details,
        )




class ServiceUnavailableError(APIError):
    """External service unavailable."""
    
    def __init__(
        self,
        service: str,
        message: Optional[str] = None,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(
            error_code="SERVICE_UNAVAILABLE",
            message=message or f"{service} service is temporarily unavailable",
            status_code=503,
            details=details,
        )
