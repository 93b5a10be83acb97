"""
Mindtrail Backend - Custom Exception Hierarchy
===============================================

What:  Application-specific exceptions for the error kinds the API exposes.
How:   Each exception class carries a user-facing message and an optional
       context dict. Global exception handlers (registered in main.py) map
       them to HTTP status codes and a single JSON error shape.
Who:   Raised by services and dependencies; caught by global handlers.

Exception Hierarchy:
    MindtrailError (base)
    ├── ValidationError       → 400 Bad Request (client can fix)
    ├── ConflictError         → 400 Bad Request, error code "conflict"
    ├── AuthenticationError   → 401 Unauthorized
    ├── NotFoundError         → 404 Not Found
    ├── SummarizationError    → 503 Service Unavailable (normally masked)
    └── DatabaseError         → 500 Internal Server Error
"""

from typing import Any, Dict, List, Optional


class MindtrailError(Exception):
    """
    Base exception for all Mindtrail application errors.

    Attributes:
        message:  User-facing error description (safe to return in API response)
        context:  Additional debug info (logged; returned only where a handler opts in)
    """

    def __init__(
        self,
        message: str = "An unexpected error occurred",
        context: Optional[Dict[str, Any]] = None,
    ):
        self.message = message
        self.context = context or {}
        super().__init__(self.message)


class ValidationError(MindtrailError):
    """
    Raised when client input fails validation.

    HTTP: 400 Bad Request

    Example response:
        {
            "error": "validation_error",
            "message": "Invalid muscles: INVALID_MUSCLE",
            "details": {"fields": ["selectedMuscles"], "invalid": ["INVALID_MUSCLE"]}
        }
    """

    def __init__(
        self,
        message: str = "Validation failed",
        fields: Optional[List[str]] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if fields:
            ctx["fields"] = list(fields)
        super().__init__(message=message, context=ctx)
        self.fields = list(fields or [])


class ConflictError(MindtrailError):
    """
    Raised when a create would violate a uniqueness rule (duplicate email).

    HTTP: 400 with error code "conflict", matching the documented
    registration contract.
    """

    def __init__(
        self,
        message: str = "User already exists",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class AuthenticationError(MindtrailError):
    """
    Raised for absent, malformed, expired or forged tokens and bad credentials.

    HTTP: 401 Unauthorized, with `WWW-Authenticate: Bearer`.
    The message never says which part of a credential check failed.
    """

    def __init__(
        self,
        message: str = "Invalid or expired token. Please log in again.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)


class NotFoundError(MindtrailError):
    """
    Raised when a referenced resource does not exist.

    When:    Profile lookup for an unknown email, or a valid token whose user
             has since been removed.
    HTTP:    404 Not Found
    """

    def __init__(
        self,
        resource: str = "resource",
        message: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        ctx["resource"] = resource
        super().__init__(
            message=message or f"{resource.capitalize()} not found",
            context=ctx,
        )


class SummarizationError(MindtrailError):
    """
    Raised when the chat-completion API call fails (transport, HTTP status,
    malformed payload, missing API key).

    SummaryService catches it and records a degraded Audio entry, so the
    HTTP caller normally never sees it. If it escapes elsewhere it maps to
    503 Service Unavailable.
    """

    def __init__(
        self,
        message: str = "Summarization service is temporarily unavailable",
        reason: Optional[str] = None,
        context: Optional[Dict[str, Any]] = None,
    ):
        ctx = context or {}
        if reason:
            ctx["reason"] = reason
        super().__init__(message=message, context=ctx)
        self.reason = reason or message


class DatabaseError(MindtrailError):
    """
    Raised when database operations fail unexpectedly.

    HTTP: 500 Internal Server Error

    The message returned to the client is always generic. Driver details
    (SQL, constraint names) are logged server-side only.
    """

    def __init__(
        self,
        message: str = "A database error occurred. Please try again later.",
        context: Optional[Dict[str, Any]] = None,
    ):
        super().__init__(message=message, context=context)
