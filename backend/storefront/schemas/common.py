"""
Storefront Backend — Shared Response Envelopes
================================================

What:  Response models shared by every resource.
Why:   Every response carries `success` and `message`; errors add `errors`.
       Keeping the envelope in one place keeps it identical across routes.
"""

from typing import Dict, Optional

from pydantic import BaseModel, Field


class Envelope(BaseModel):
    """Base of every successful response body."""

    success: bool = Field(default=True, description="Whether the request succeeded")
    message: str = Field(description="Human-readable outcome")

    # Listing envelopes use camelCase keys on the wire
    model_config = {"populate_by_name": True}


class ErrorResponse(BaseModel):
    """
    What:  Error envelope rendered by the global exception handlers.

    Example:
        {
            "success": false,
            "message": "Validation failed",
            "errors": {"price": "Price must be a number"},
            "request_id": "a1b2c3d4"
        }
    """
    success: bool = Field(default=False)
    message: str = Field(description="Human-readable error description")
    errors: Optional[Dict[str, str]] = Field(
        default=None, description="Field name → first error message"
    )
    request_id: Optional[str] = Field(default=None, description="Request correlation ID")


class HealthResponse(BaseModel):
    """Returned by GET /health for probes and load balancers."""

    status: str = Field(description="Overall service status: healthy, unhealthy")
    version: str = Field(description="Application version")
    database: str = Field(description="Database connectivity: connected, disconnected")
    uptime_seconds: float = Field(description="Seconds since service started")
