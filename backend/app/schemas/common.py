"""
Common API Response Schemas

Standard error responses and pagination models shared by all endpoints.
"""
from datetime import datetime
from typing import Any, Dict, Generic, List, Optional, TypeVar
from pydantic import BaseModel, ConfigDict, Field


# ============================================================================
# Error Response Models
# ============================================================================

class ErrorResponse(BaseModel):
    """
    Standardized error response for all API errors.

    Error Codes:
        - INVALID_INPUT: Malformed or out-of-range input (400)
        - UNKNOWN_PRODUCT_TYPE: Punching code without overrun policy (400)
        - REMAINING_QUANTITY_EXCEEDED: Weight over the remaining quantity (400)
        - MACHINE_INACTIVE: Machine is in maintenance or down (400)
        - INVALID_TRANSITION: Status/stage change not allowed (400)
        - NOT_FOUND: Resource not found (404)
        - CONCURRENCY_ERROR: Concurrent modification detected (409)
        - DATABASE_ERROR: Database operation failed (500)
        - INTERNAL_ERROR: Unexpected internal error (500)
    """
    error: str = Field(..., description="Machine-readable error code")
    message: str = Field(..., description="Human-readable error message")
    message_ar: Optional[str] = Field(None, description="Arabic message for floor terminals")
    details: Optional[Dict[str, Any]] = Field(None, description="Additional error context")
    timestamp: datetime = Field(default_factory=datetime.utcnow, description="When the error occurred (UTC)")

    model_config = ConfigDict(
        json_schema_extra={
            "example": {
                "error": "REMAINING_QUANTITY_EXCEEDED",
                "message": "Weight 15 kg exceeds the remaining quantity of the production order (10 kg remaining)",
                "details": {"requested_kg": 15.0, "remaining_kg": 10.0, "tolerance_kg": 0.0},
                "timestamp": "2026-01-12T10:30:00Z",
            }
        }
    )


# ============================================================================
# Pagination Models
# ============================================================================

class PaginationParams(BaseModel):
    """Offset-based pagination parameters for list endpoints."""
    offset: int = Field(default=0, ge=0, description="Number of records to skip")
    limit: int = Field(default=50, ge=1, le=500, description="Maximum number of records to return (1-500)")


class PaginationMeta(BaseModel):
    """Pagination metadata included in list responses."""
    total: int = Field(..., description="Total number of records matching the query")
    offset: int = Field(..., description="Current offset (number of records skipped)")
    limit: int = Field(..., description="Maximum records per page")
    returned: int = Field(..., description="Number of records in this response")


T = TypeVar("T")


class ListResponse(BaseModel, Generic[T]):
    """List response wrapper with pagination."""
    items: List[T]
    pagination: PaginationMeta
