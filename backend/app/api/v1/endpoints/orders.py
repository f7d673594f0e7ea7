"""
Orders API Endpoints

Customer orders and their status. Creating an order creates one
production order per product line.
"""
import logging
from datetime import date, datetime, timedelta
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.v1.deps import get_notifier, get_pagination_params
from app.api.v1.endpoints.production_orders import build_production_order, get_customer_product
from app.exceptions import ConcurrencyError, NotFoundError
from app.models import Customer, Order
from app.schemas.common import ListResponse, PaginationMeta, PaginationParams
from app.schemas.order import (
    OrderCreate,
    OrderListItem,
    OrderResponse,
    OrderStatusChangeResponse,
    OrderStatusUpdate,
)
from app.services.notification_service import ProductionNotifier
from app.services.order_status import update_order_status

logger = logging.getLogger(__name__)

router = APIRouter()


def generate_order_number(db: Session) -> str:
    """Generate sequential order number: ORD-YYYY-NNNN"""
    year = datetime.utcnow().year
    last = (
        db.query(Order)
        .filter(Order.order_number.like(f"ORD-{year}-%"))
        .order_by(desc(Order.order_number))
        .first()
    )
    if last:
        try:
            next_num = int(last.order_number.split("-")[2]) + 1
        except (IndexError, ValueError):
            next_num = 1
    else:
        next_num = 1
    return f"ORD-{year}-{next_num:04d}"


def _get_order(db: Session, order_id: int) -> Order:
    order = db.query(Order).filter(Order.id == order_id).first()
    if not order:
        raise NotFoundError("Order", order_id)
    return order


@router.get("", response_model=ListResponse[OrderListItem])
def list_orders(
    status: Optional[str] = Query(None, description="Filter by status"),
    customer_id: Optional[str] = Query(None, description="Filter by customer"),
    pagination: PaginationParams = Depends(get_pagination_params),
    db: Session = Depends(get_db),
):
    query = db.query(Order)
    if status:
        query = query.filter(Order.status == status)
    if customer_id:
        query = query.filter(Order.customer_id == customer_id)

    total = query.count()
    items = query.order_by(desc(Order.id)).offset(pagination.offset).limit(pagination.limit).all()
    return ListResponse[OrderListItem](
        items=[OrderListItem.model_validate(o) for o in items],
        pagination=PaginationMeta(
            total=total, offset=pagination.offset, limit=pagination.limit, returned=len(items)
        ),
    )


@router.post("", response_model=OrderResponse, status_code=201)
def create_order(
    request: OrderCreate,
    db: Session = Depends(get_db),
):
    """Create an order and its production orders in one transaction."""
    customer = db.query(Customer).filter(Customer.id == request.customer_id).first()
    if not customer:
        raise NotFoundError("Customer", request.customer_id)

    for line in request.lines:
        get_customer_product(db, line.customer_product_id, customer.id)

    order_number = generate_order_number(db)
    order = Order(
        order_number=order_number,
        customer_id=customer.id,
        status="pending",
        delivery_days=request.delivery_days,
        delivery_date=(
            date.today() + timedelta(days=request.delivery_days)
            if request.delivery_days is not None else None
        ),
        notes=request.notes,
        created_by=request.created_by,
    )
    db.add(order)
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        raise ConcurrencyError(
            f"Order number {order_number} was taken by another request",
            details={"order_number": order_number},
        ) from e

    for line in request.lines:
        build_production_order(db, order, line.customer_product_id, line.quantity_kg)

    db.commit()
    db.refresh(order)

    logger.info(
        f"Order {order.order_number} created",
        extra={"order_id": order.id, "customer_id": customer.id, "lines": len(request.lines)},
    )
    return order


@router.get("/{order_id}", response_model=OrderResponse)
def get_order(order_id: int, db: Session = Depends(get_db)):
    return _get_order(db, order_id)


@router.patch("/{order_id}/status", response_model=OrderStatusChangeResponse)
def change_order_status(
    order_id: int,
    request: OrderStatusUpdate,
    db: Session = Depends(get_db),
    notifier: ProductionNotifier = Depends(get_notifier),
):
    """
    Change an order's status.

    Requesting the current status is a no-op. 'completed' needs every
    production order completed or cancelled; 'cancelled' is refused while
    any production order is in progress.
    """
    order = _get_order(db, order_id)
    change = update_order_status(
        db, order, request.status.value, notifier=notifier, user_id=request.user_id
    )
    return OrderStatusChangeResponse(
        id=order.id, previous_status=change.previous_status, status=change.status
    )
