"""
Centralized Error Handling for Tank Copilot

Hard failures (reading store down, malformed input, missing capacity)
propagate as TankCopilotError subclasses. Insufficient data is never an
error; components return None / "unknown" for it instead.

Features:
- Standardized error response format
- Exception mapping to HTTP status codes
- FastAPI exception handler registration
"""

import logging
from datetime import datetime, timezone
from enum import Enum
from typing import Any, Dict, Optional

from fastapi import HTTPException, Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


def utc_now() -> datetime:
    """Return current UTC time as timezone-aware datetime."""
    return datetime.now(timezone.utc)


# =============================================================================
# Error Categories
# =============================================================================


class ErrorCategory(str, Enum):
    """Categories for error classification"""

    DATABASE = "database"
    VALIDATION = "validation"
    NOT_FOUND = "not_found"
    INTERNAL = "internal"


# =============================================================================
# Custom Exceptions
# =============================================================================


class TankCopilotError(Exception):
    """Base exception for Tank Copilot"""

    def __init__(
        self,
        message: str,
        category: ErrorCategory = ErrorCategory.INTERNAL,
        status_code: int = 500,
        details: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message)
        self.message = message
        self.category = category
        self.status_code = status_code
        self.details = details or {}
        self.timestamp = utc_now().isoformat()


class ReadingStoreError(TankCopilotError):
    """The reading store could not be queried"""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(
            message=message,
            category=ErrorCategory.DATABASE,
            status_code=503,
            details=details,
        )


class MalformedSeriesError(TankCopilotError):
    """A computation received something that is not a reading series"""

    def __init__(self, message: str, details: Optional[Dict] = None):
        super().__init__(
            message=message,
            category=ErrorCategory.VALIDATION,
            status_code=400,
            details=details,
        )


class MissingCapacityError(TankCopilotError):
    """Capacity-dependent math was requested for an asset without capacity"""

    def __init__(
        self,
        operation: str,
        asset_id: Optional[str] = None,
        details: Optional[Dict] = None,
    ):
        details = details or {}
        details["operation"] = operation
        if asset_id:
            details["asset_id"] = asset_id
        super().__init__(
            message=f"Tank capacity required for {operation}",
            category=ErrorCategory.VALIDATION,
            status_code=422,
            details=details,
        )


class AssetNotFoundError(TankCopilotError):
    """Asset metadata not found"""

    def __init__(self, asset_id: str):
        super().__init__(
            message="Asset not found",
            category=ErrorCategory.NOT_FOUND,
            status_code=404,
            details={"resource": "asset", "resource_id": asset_id},
        )


# =============================================================================
# Error Response Builder
# =============================================================================


def build_error_response(
    error: Exception, request_id: Optional[str] = None
) -> Dict[str, Any]:
    """
    Build a standardized error response.

    Args:
        error: The exception to format
        request_id: Optional request ID for tracking

    Returns:
        Dict with error details
    """
    if isinstance(error, TankCopilotError):
        response = {
            "error": True,
            "category": error.category.value,
            "message": error.message,
            "status_code": error.status_code,
            "timestamp": error.timestamp,
            "details": error.details,
        }
    elif isinstance(error, HTTPException):
        response = {
            "error": True,
            "category": "http",
            "message": error.detail,
            "status_code": error.status_code,
            "timestamp": utc_now().isoformat(),
            "details": {},
        }
    else:
        response = {
            "error": True,
            "category": ErrorCategory.INTERNAL.value,
            "message": str(error) or "An unexpected error occurred",
            "status_code": 500,
            "timestamp": utc_now().isoformat(),
            "details": {},
        }

    if request_id:
        response["request_id"] = request_id

    return response


# =============================================================================
# Exception Handlers for FastAPI
# =============================================================================


async def tank_copilot_exception_handler(
    request: Request, exc: TankCopilotError
) -> JSONResponse:
    """Handle TankCopilotError exceptions"""
    logger.error(
        f"[{exc.category.value}] {exc.message}",
        extra={
            "status_code": exc.status_code,
            "details": exc.details,
            "path": request.url.path,
        },
    )
    return JSONResponse(
        status_code=exc.status_code,
        content=build_error_response(exc),
    )


def register_exception_handlers(app):
    """
    Register all exception handlers with a FastAPI app.

    Usage:
        from tank_copilot.errors import register_exception_handlers
        register_exception_handlers(app)
    """
    app.add_exception_handler(TankCopilotError, tank_copilot_exception_handler)
    logger.info("✅ Exception handlers registered")


__all__ = [
    "ErrorCategory",
    "TankCopilotError",
    "ReadingStoreError",
    "MalformedSeriesError",
    "MissingCapacityError",
    "AssetNotFoundError",
    "build_error_response",
    "register_exception_handlers",
]
