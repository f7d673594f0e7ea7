"""
Cuts API Endpoints
"""
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.v1.deps import get_notifier, get_pagination_params
from app.models import Cut
from app.schemas.common import ListResponse, PaginationMeta, PaginationParams
from app.schemas.roll import CutCreate, CutResponse
from app.services.notification_service import ProductionNotifier
from app.services.roll_workflow import record_cut

router = APIRouter()


@router.post("", response_model=CutResponse, status_code=201)
def create_cut(
    request: CutCreate,
    db: Session = Depends(get_db),
    notifier: ProductionNotifier = Depends(get_notifier),
):
    """Record a cut against a roll in the cutting stage."""
    return record_cut(
        db,
        roll_id=request.roll_id,
        cut_weight_kg=request.cut_weight_kg,
        pieces_count=request.pieces_count,
        performed_by=request.performed_by,
        notifier=notifier,
    )


@router.get("", response_model=ListResponse[CutResponse])
def list_cuts(
    roll_id: Optional[int] = Query(None, description="Filter by roll"),
    pagination: PaginationParams = Depends(get_pagination_params),
    db: Session = Depends(get_db),
):
    query = db.query(Cut)
    if roll_id is not None:
        query = query.filter(Cut.roll_id == roll_id)

    total = query.count()
    items = query.order_by(Cut.id).offset(pagination.offset).limit(pagination.limit).all()
    return ListResponse[CutResponse](
        items=[CutResponse.model_validate(c) for c in items],
        pagination=PaginationMeta(
            total=total, offset=pagination.offset, limit=pagination.limit, returned=len(items)
        ),
    )
