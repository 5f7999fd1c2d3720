# =============================================================================
# app/exceptions.py - Custom Exception Handlers
# =============================================================================
# Centralized exception handling for the API.
# Every error response carries a message, a machine-readable code and,
# where it helps, a suggestion for how to fix the request.
# =============================================================================

import logging
from typing import Any

from fastapi import Request
from fastapi.responses import JSONResponse

logger = logging.getLogger(__name__)


class CoursewareException(Exception):
    """
    Base exception for the courseware API.

    All custom exceptions inherit from this class.
    Provides structured error responses with actionable suggestions.
    """

    def __init__(
        self,
        message: str,
        code: str = "COURSEWARE_ERROR",
        status_code: int = 500,
        suggestion: str | None = None,
        details: dict[str, Any] | None = None,
    ):
        super().__init__(message)
        self.message = message
        self.code = code
        self.status_code = status_code
        self.suggestion = suggestion
        self.details = details or {}

    def to_dict(self) -> dict[str, Any]:
        """Convert exception to API response dict."""
        result = {
            "detail": self.message,
            "code": self.code,
        }
        if self.suggestion:
            result["suggestion"] = self.suggestion
        if self.details:
            result["details"] = self.details
        return result


# =============================================================================
# Content Exceptions
# =============================================================================

class CourseModuleNotFoundError(CoursewareException):
    """Raised when a module ID doesn't exist."""

    def __init__(self, module_id: str):
        super().__init__(
            message=f"Module not found: {module_id}",
            code="MODULE_NOT_FOUND",
            status_code=404,
            details={"module_id": module_id}
        )


class SectionNotFoundError(CoursewareException):
    """Raised when a section ID doesn't exist."""

    def __init__(self, section_id: str):
        super().__init__(
            message=f"Section not found: {section_id}",
            code="SECTION_NOT_FOUND",
            status_code=404,
            details={"section_id": section_id}
        )


class SubscriptionRequiredError(CoursewareException):
    """Raised when premium content is requested without a subscription."""

    def __init__(self, section_id: str):
        super().__init__(
            message="An active subscription is required to view this section",
            code="SUBSCRIPTION_REQUIRED",
            status_code=403,
            suggestion="Subscribe from the account page to unlock all modules",
            details={"section_id": section_id}
        )


# =============================================================================
# Account Exceptions
# =============================================================================

class ProfileNotFoundError(CoursewareException):
    """Raised when a user has no profile row."""

    def __init__(self, user_id: str):
        super().__init__(
            message="Profile not found",
            code="PROFILE_NOT_FOUND",
            status_code=404,
            details={"user_id": user_id}
        )


class ForbiddenError(CoursewareException):
    """Raised when a user acts on a resource that isn't theirs."""

    def __init__(self, message: str = "Forbidden"):
        super().__init__(message=message, code="FORBIDDEN", status_code=403)


class ValidationError(CoursewareException):
    """Raised for request bodies that pass schema checks but are unusable."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="VALIDATION_ERROR",
            status_code=400,
            details=details
        )


class ConflictError(CoursewareException):
    """Raised when a write would duplicate existing state."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, code="CONFLICT", status_code=409, details=details)


# =============================================================================
# Billing Exceptions
# =============================================================================

class PlanNotFoundError(CoursewareException):
    """Raised when a plan identifier matches no active plan."""

    def __init__(self, plan: str):
        super().__init__(
            message=f"Plan not found: {plan}",
            code="PLAN_NOT_FOUND",
            status_code=404,
            suggestion="Use a plan UUID or an active plan type such as 'monthly' or 'annual'",
            details={"plan": plan}
        )


class SubscriptionNotFoundError(CoursewareException):
    """Raised when a subscription row doesn't exist."""

    def __init__(self, subscription_id: str | None = None):
        super().__init__(
            message="Subscription not found",
            code="SUBSCRIPTION_NOT_FOUND",
            status_code=404,
            details={"subscription_id": subscription_id} if subscription_id else None
        )


class BillingError(CoursewareException):
    """Raised when a Stripe call fails."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(
            message=message,
            code="BILLING_ERROR",
            status_code=502,
            suggestion="Retry in a moment; if it keeps failing check the Stripe dashboard",
            details=details
        )


class WebhookSignatureError(CoursewareException):
    """Raised when a webhook payload fails verification."""

    def __init__(self, message: str):
        super().__init__(message=message, code="WEBHOOK_SIGNATURE_INVALID", status_code=400)


# =============================================================================
# Infrastructure Exceptions
# =============================================================================

class ConfigurationError(CoursewareException):
    """Raised when a feature is used without its settings."""

    def __init__(self, setting: str):
        super().__init__(
            message=f"Server is missing configuration: {setting}",
            code="CONFIGURATION_ERROR",
            status_code=500,
            suggestion=f"Set {setting} in the environment",
            details={"setting": setting}
        )


class RateLimitedError(CoursewareException):
    """Raised when a caller exceeds a rate limit."""

    def __init__(self, retry_after: int = 60):
        super().__init__(
            message="Too many requests. Please try again later.",
            code="RATE_LIMITED",
            status_code=429,
        )
        self.retry_after = retry_after


class DatabaseError(CoursewareException):
    """Raised when a Supabase query fails."""

    def __init__(self, message: str, details: dict[str, Any] | None = None):
        super().__init__(message=message, code="DATABASE_ERROR", status_code=500, details=details)


# =============================================================================
# Exception Handlers
# =============================================================================

async def courseware_exception_handler(
    request: Request,
    exc: CoursewareException
) -> JSONResponse:
    """
    Convert CoursewareException to JSON response.

    Returns structured error with:
    - detail: Human-readable message
    - code: Machine-readable error code
    - suggestion: How to fix (if available)
    - details: Additional context
    """
    headers = None
    if isinstance(exc, RateLimitedError):
        headers = {"Retry-After": str(exc.retry_after)}
    return JSONResponse(
        status_code=exc.status_code,
        content=exc.to_dict(),
        headers=headers
    )


async def database_exception_handler(
    request: Request,
    exc: Exception
) -> JSONResponse:
    """
    Convert a SupabaseClientError that escaped the service layer.

    The raw PostgREST message is logged, not returned to the client.
    """
    logger.error(f"Unhandled database error on {request.url.path}: {exc}")
    error = DatabaseError(
        message="Database operation failed",
        details={"code": getattr(exc, "code", "SUPABASE_ERROR")}
    )
    return JSONResponse(status_code=error.status_code, content=error.to_dict())
