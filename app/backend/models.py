"""
Pydantic models for the receipt extraction API.

Response bodies are serialized with camelCase keys, which is what the
frontend consumes.
"""

from datetime import datetime, timezone
from typing import Any

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel


def _utcnow() -> datetime:
    return datetime.now(timezone.utc)


class CamelModel(BaseModel):
    """Base model serialized with camelCase aliases."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class ReceiptExtractionResponse(CamelModel):
    """
    Result of extracting data from a receipt image.

    Attributes:
        extracted_data: Key/value pairs recovered from the model reply.
        processing_status: "Success" or "Error".
        processed_at: UTC timestamp of processing.
        error_message: Error details when processing failed.
    """

    extracted_data: dict[str, Any] = Field(
        default_factory=dict,
        description="Extracted receipt fields",
        examples=[{"business_name": "Coffee Corner", "total": "$8.37"}],
    )
    processing_status: str = Field(
        default="Success",
        description="Processing status",
        examples=["Success", "Error"],
    )
    processed_at: datetime = Field(
        default_factory=_utcnow,
        description="Processing timestamp (UTC)",
    )
    error_message: str | None = Field(
        default=None,
        description="Error message (if failed)",
    )


class HealthResponse(BaseModel):
    """Response model for health check endpoints."""

    status: str = Field(..., description="Service status")
    message: str = Field(..., description="Status message")
    version: str = Field(default="1.0.0", description="API version")


class HelloResponse(BaseModel):
    """Response model for the hello endpoint."""

    message: str = Field(..., description="Greeting")
    timestamp: datetime = Field(default_factory=_utcnow, description="Server time (UTC)")


class ErrorResponse(BaseModel):
    """Error body returned by the Lambda entry point."""

    error: str = Field(..., description="Error summary")
    message: str | None = Field(default=None, description="Error details")
