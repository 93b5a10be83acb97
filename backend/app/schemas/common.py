"""
Mindtrail Backend - Shared Pydantic Schemas
============================================

What:  Base model for the camelCase wire format, the generic
       `{message, data}` envelope, and the error/health response models.
How:   `CamelModel` generates camelCase aliases from snake_case field names,
       accepts either spelling on input, and reads ORM attributes directly.
       FastAPI serializes response models by alias, so clients always see
       camelCase keys.
"""

from typing import Generic, Optional, TypeVar

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class CamelModel(BaseModel):
    """Base for every request/response body exchanged with the client."""

    model_config = ConfigDict(
        alias_generator=to_camel,
        populate_by_name=True,
        from_attributes=True,
    )


class DataResponse(BaseModel, Generic[T]):
    """
    What:  Success envelope used by the form and profile endpoints.

    Example:
        {"message": "Journal entry saved successfully!", "data": {...}}
    """
    message: str = Field(description="Human-readable success message")
    data: T


class ErrorResponse(BaseModel):
    """
    What:  Standardized error response format for all API errors.

    Fields:
        error: Machine-readable error code (e.g., "validation_error", "unauthorized")
        message: Human-readable description for display to users
        details: Optional extra context (e.g., which fields failed validation)
        request_id: Correlation ID for tracing this error in server logs

    Error bodies never include a `data` key.
    """
    error: str = Field(description="Machine-readable error code")
    message: str = Field(description="Human-readable error description")
    details: Optional[dict] = Field(default=None, description="Additional error context")
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """
    What:  Health check response showing service and dependency status.
    Who:   Returned by GET /health for monitoring and load balancer probes.
    """
    status: str = Field(description="Overall service status: healthy, degraded, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    summarizer: str = Field(description="Summarization API: available, unavailable, unconfigured")
    uptime_seconds: float = Field(description="Seconds since service started")
