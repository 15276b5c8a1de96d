"""Common output schemas for API responses.

This module contains shared Pydantic models for common API responses
like error messages and status information.
"""

from pydantic import BaseModel
from typing import Optional


class ErrorResponse(BaseModel):
    """Schema for error responses across all endpoints.

    Attributes:
        detail (str): Detailed error message.
        error_code (str, optional): Specific error code for categorization.

    Example:
        >>> error_response = ErrorResponse(
        ...     detail="noteID does not exist",
        ...     error_code="NOT_FOUND"
        ... )
    """
    detail: str
    error_code: Optional[str] = None


class CreatedResponse(BaseModel):
    """Schema for the body of a 201 response.

    Attributes:
        id (int): Identifier of the created resource.

    Example:
        >>> CreatedResponse(id=42)
    """
    id: int


class HealthResponse(BaseModel):
    """Schema for health check responses.

    Attributes:
        status (str): Service health status.
        service (str): Service name identifier.

    Example:
        >>> health_response = HealthResponse(
        ...     status="healthy",
        ...     service="notes-service"
        ... )
    """
    status: str
    service: str
