"""
Custom exceptions and error handlers for consistent error responses.

Provides standardized error codes and global exception handlers.
"""

import logging
from fastapi import HTTPException, Request, status
from fastapi.responses import JSONResponse
from fastapi.exceptions import RequestValidationError
from fastapi.encoders import jsonable_encoder
from typing import Any, Dict

logger = logging.getLogger(__name__)


class AppException(Exception):
    """Base application exception."""

    def __init__(self, message: str, error_code: str, status_code: int = 500, details: Dict[str, Any] = None):
        self.message = message
        self.error_code = error_code
        self.status_code = status_code
        self.details = details or {}
        super().__init__(message)


# Donation ledger errors

class DonationValidationError(AppException):
    """Raised for malformed donation input, before any store access."""

    def __init__(self, message: str, details: Dict[str, Any] = None):
        super().__init__(
            message=message,
            error_code="ERR_DONATION_001",
            status_code=status.HTTP_400_BAD_REQUEST,
            details=details
        )


class InsufficientBalanceError(AppException):
    """Raised when the donor is missing, blocked or lacks enough PTO hours."""

    def __init__(self, donor_id: int, hours: int):
        super().__init__(
            message="Insufficient PTO hours available",
            error_code="ERR_DONATION_002",
            status_code=status.HTTP_400_BAD_REQUEST,
            details={"donor_id": donor_id, "hours": hours}
        )


class SupportRequestNotFoundError(AppException):
    """Raised when the support request does not exist or is no longer active."""

    def __init__(self, request_id: int):
        super().__init__(
            message="Support request not found or closed",
            error_code="ERR_DONATION_003",
            status_code=status.HTTP_404_NOT_FOUND,
            details={"request_id": request_id}
        )


class CrossCompanyDonationError(AppException):
    """Raised when the donor's company does not allow donating to other companies."""

    def __init__(self, donor_company_id: int, recipient_company_id: int):
        super().__init__(
            message="Cross-company donations are not allowed for your company",
            error_code="ERR_DONATION_004",
            status_code=status.HTTP_403_FORBIDDEN,
            details={
                "donor_company_id": donor_company_id,
                "recipient_company_id": recipient_company_id
            }
        )


class StoreFailureError(AppException):
    """Raised when the persistence layer fails; the unit of work was rolled back."""

    def __init__(self, operation: str):
        super().__init__(
            message=f"{operation} failed",
            error_code="ERR_STORE_001",
            status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
            details={"operation": operation}
        )


# Global Exception Handlers

async def app_exception_handler(request: Request, exc: AppException) -> JSONResponse:
    """Handler for custom application exceptions."""
    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": exc.error_code,
            "message": exc.message,
            "details": exc.details
        }
    )


async def http_exception_handler(request: Request, exc: HTTPException) -> JSONResponse:
    """Handler for FastAPI HTTPException with standardized format."""
    error_code_map = {
        400: "ERR_BAD_REQUEST",
        401: "ERR_UNAUTHORIZED",
        403: "ERR_FORBIDDEN",
        404: "ERR_NOT_FOUND",
        500: "ERR_INTERNAL_SERVER"
    }

    error_code = error_code_map.get(exc.status_code, "ERR_UNKNOWN")

    return JSONResponse(
        status_code=exc.status_code,
        content={
            "error_code": error_code,
            "message": exc.detail,
            "details": {}
        },
        headers=getattr(exc, "headers", None)
    )


async def validation_exception_handler(request: Request, exc: RequestValidationError) -> JSONResponse:
    """Handler for Pydantic validation errors (rejected before touching the store)."""
    return JSONResponse(
        status_code=status.HTTP_400_BAD_REQUEST,
        content={
            "error_code": "ERR_VALIDATION",
            "message": "Validation error",
            "details": {
                "errors": jsonable_encoder(exc.errors())
            }
        }
    )


async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    """Handler for unhandled exceptions."""
    logger.exception("Unhandled exception on %s %s", request.method, request.url.path)

    return JSONResponse(
        status_code=status.HTTP_500_INTERNAL_SERVER_ERROR,
        content={
            "error_code": "ERR_INTERNAL_SERVER",
            "message": "An internal server error occurred",
            "details": {}
        }
    )
