"""
API Dependencies

Common dependencies shared by the endpoint modules.
"""
from fastapi import Query, Request

from app.schemas.common import PaginationParams
from app.services.notification_service import ProductionNotifier


def get_notifier(request: Request) -> ProductionNotifier:
    """The ProductionNotifier built at startup (see app.main.lifespan)."""
    return request.app.state.notifier


def get_pagination_params(
    offset: int = Query(
        default=0,
        ge=0,
        description="Number of records to skip (for pagination)"
    ),
    limit: int = Query(
        default=50,
        ge=1,
        le=500,
        description="Maximum number of records to return (1-500)"
    )
) -> PaginationParams:
    """Standardized offset/limit pagination for list endpoints."""
    return PaginationParams(offset=offset, limit=limit)
