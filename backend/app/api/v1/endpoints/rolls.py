"""
Rolls API Endpoints

Roll creation and stage changes. All rules live in
app.services.roll_workflow; these handlers only translate HTTP.
"""
from typing import Optional

from fastapi import APIRouter, Body, Depends, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.v1.deps import get_notifier, get_pagination_params
from app.exceptions import NotFoundError
from app.models import Roll
from app.schemas.common import ListResponse, PaginationMeta, PaginationParams
from app.schemas.roll import (
    RollCompleteRequest,
    RollCreate,
    RollCuttingRequest,
    RollPrintRequest,
    RollResponse,
)
from app.services import roll_workflow
from app.services.notification_service import ProductionNotifier

router = APIRouter()


@router.get("", response_model=ListResponse[RollResponse])
def list_rolls(
    production_order_id: Optional[int] = Query(None, description="Filter by production order"),
    stage: Optional[str] = Query(None, description="Filter by stage"),
    pagination: PaginationParams = Depends(get_pagination_params),
    db: Session = Depends(get_db),
):
    query = db.query(Roll)
    if production_order_id is not None:
        query = query.filter(Roll.production_order_id == production_order_id)
    if stage:
        query = query.filter(Roll.stage == stage)

    total = query.count()
    items = (
        query.order_by(Roll.production_order_id, Roll.roll_seq)
        .offset(pagination.offset)
        .limit(pagination.limit)
        .all()
    )
    return ListResponse[RollResponse](
        items=[RollResponse.model_validate(r) for r in items],
        pagination=PaginationMeta(
            total=total, offset=pagination.offset, limit=pagination.limit, returned=len(items)
        ),
    )


@router.get("/{roll_id}", response_model=RollResponse)
def get_roll(roll_id: int, db: Session = Depends(get_db)):
    roll = db.query(Roll).filter(Roll.id == roll_id).first()
    if not roll:
        raise NotFoundError("Roll", roll_id)
    return roll


@router.post("", response_model=RollResponse, status_code=201)
def create_roll(
    request: RollCreate,
    db: Session = Depends(get_db),
    notifier: ProductionNotifier = Depends(get_notifier),
):
    """Create a roll in the film stage against a production order."""
    return roll_workflow.create_roll(
        db,
        production_order_id=request.production_order_id,
        weight_kg=request.weight_kg,
        film_machine_id=request.film_machine_id,
        created_by=request.created_by,
        is_last_roll=request.is_last_roll,
        notifier=notifier,
    )


@router.patch("/{roll_id}/print", response_model=RollResponse)
def print_roll(
    roll_id: int,
    request: RollPrintRequest,
    db: Session = Depends(get_db),
    notifier: ProductionNotifier = Depends(get_notifier),
):
    return roll_workflow.start_printing(
        db,
        roll_id,
        printing_machine_id=request.printing_machine_id,
        printed_by=request.printed_by,
        notifier=notifier,
    )


@router.patch("/{roll_id}/cutting", response_model=RollResponse)
def start_cutting(
    roll_id: int,
    request: RollCuttingRequest,
    db: Session = Depends(get_db),
    notifier: ProductionNotifier = Depends(get_notifier),
):
    return roll_workflow.start_cutting(
        db,
        roll_id,
        cutting_machine_id=request.cutting_machine_id,
        cut_by=request.cut_by,
        notifier=notifier,
    )


@router.patch("/{roll_id}/complete", response_model=RollResponse)
def complete_roll(
    roll_id: int,
    request: Optional[RollCompleteRequest] = Body(None),
    db: Session = Depends(get_db),
    notifier: ProductionNotifier = Depends(get_notifier),
):
    """Finish cutting; the uncut residual is recorded as waste."""
    return roll_workflow.complete_roll(
        db,
        roll_id,
        user_id=request.user_id if request else None,
        notifier=notifier,
    )
