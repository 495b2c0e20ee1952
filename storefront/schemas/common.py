"""Common Pydantic schemas used across the API."""

from typing import Generic, TypeVar

from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

T = TypeVar("T")


class BaseSchema(BaseModel):
    """Base schema with common configuration."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
    )


class CamelSchema(BaseSchema):
    """Schema serialized with camelCase keys for the storefront clients."""

    model_config = ConfigDict(
        from_attributes=True,
        populate_by_name=True,
        alias_generator=to_camel,
    )


class HealthResponse(BaseSchema):
    """Health check response schema."""

    status: str
    version: str
    environment: str
    checks: dict[str, str]


class ErrorResponse(CamelSchema):
    """Error envelope returned when a read endpoint cannot be served."""

    success: bool = False
    message: str


class ApiResponse(CamelSchema, Generic[T]):
    """Success envelope shared by all storefront read endpoints."""

    success: bool = True
    data: T
    message: str | None = None
