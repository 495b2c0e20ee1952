"""Pydantic schemas for request/response validation."""

from storefront.schemas.common import ApiResponse, ErrorResponse, HealthResponse

__all__ = [
    "ApiResponse",
    "HealthResponse",
    "ErrorResponse",
]
