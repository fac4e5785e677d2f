"""Custom exceptions for the application"""
from typing import Optional, Dict, Any


class AppException(Exception):
    """Base exception for the application"""
    def __init__(
        self,
        message: str,
        code: str = "APP_ERROR",
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None
    ):
        self.message = message
        self.code = code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(self.message)


class NotFoundError(AppException):
    """Resource not found"""
    def __init__(self, message: str = "Resource not found", details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="NOT_FOUND", status_code=404, details=details)


class AuthenticationError(AppException):
    """Authentication failed"""
    def __init__(self, message: str = "Authentication failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="AUTHENTICATION_FAILED", status_code=401, details=details)


class AuthorizationError(AppException):
    """Wrong role for the operation, or not the owner of the resource"""
    def __init__(self, message: str = "Not authorized", details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="NOT_AUTHORIZED", status_code=401, details=details)


class ValidationError(AppException):
    """Validation error"""
    def __init__(self, message: str = "Validation failed", details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, code="VALIDATION_ERROR", status_code=400, details=details)


class InvalidTransitionError(ValidationError):
    """Transaction status change outside the allowed lifecycle"""
    def __init__(self, message: str = "Invalid status transition", details: Optional[Dict[str, Any]] = None):
        super().__init__(message=message, details=details)
        self.code = "INVALID_TRANSITION"
