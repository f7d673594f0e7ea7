"""
Production Orders API Endpoints

Production orders are created with their customer order (see orders.py)
or added to an existing order here. Quantities are always computed on the
server: overrun_percentage and final_quantity_kg come from the product's
punching type, never from the request.
"""
import logging
from datetime import datetime
from decimal import Decimal
from typing import Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy import desc
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.api.v1.deps import get_notifier, get_pagination_params
from app.core.status_config import CLOSED_PRODUCTION_STATUSES, OrderStatus
from app.exceptions import ConcurrencyError, InvalidInputError, InvalidTransitionError, NotFoundError
from app.models import CustomerProduct, Order, ProductionOrder, Roll
from app.schemas.common import ListResponse, PaginationMeta, PaginationParams
from app.schemas.production_order import (
    ProductionOrderCreate,
    ProductionOrderDetail,
    ProductionOrderResponse,
    ProductionOrderUpdate,
    QuantityPreviewRequest,
    QuantityPreviewResponse,
)
from app.services.notification_service import ProductionNotifier
from app.services.order_status import apply_production_order_status
from app.services.production_progress import refresh_production_order_totals, summarize_rolls
from app.services.quantity_calculator import calculate_production_quantities

logger = logging.getLogger(__name__)

router = APIRouter()

# Orders in these statuses take no new production orders
_CLOSED_ORDER_STATUSES = {
    OrderStatus.COMPLETED.value,
    OrderStatus.DELIVERED.value,
    OrderStatus.CANCELLED.value,
}


# ============================================================================
# Helper Functions
# ============================================================================

def generate_production_order_number(db: Session) -> str:
    """Generate sequential production order number: PO-YYYY-NNNN"""
    year = datetime.utcnow().year
    last = (
        db.query(ProductionOrder)
        .filter(ProductionOrder.production_order_number.like(f"PO-{year}-%"))
        .order_by(desc(ProductionOrder.production_order_number))
        .first()
    )
    if last:
        try:
            next_num = int(last.production_order_number.split("-")[2]) + 1
        except (IndexError, ValueError):
            next_num = 1
    else:
        next_num = 1
    return f"PO-{year}-{next_num:04d}"


def get_customer_product(db: Session, customer_product_id: int, customer_id: Optional[str] = None) -> CustomerProduct:
    """Fetch a customer product, optionally checking it belongs to the customer."""
    product = db.query(CustomerProduct).filter(CustomerProduct.id == customer_product_id).first()
    if not product:
        raise NotFoundError("Customer product", customer_product_id)
    if customer_id is not None and product.customer_id != customer_id:
        raise InvalidInputError(
            f"Customer product {customer_product_id} does not belong to customer {customer_id}",
            field="customer_product_id",
            value=customer_product_id,
        )
    return product


def build_production_order(
    db: Session,
    order: Order,
    customer_product_id: int,
    quantity_kg: Decimal,
) -> ProductionOrder:
    """Create (flush, no commit) a production order with computed quantities."""
    product = get_customer_product(db, customer_product_id, order.customer_id)
    calc = calculate_production_quantities(quantity_kg, product.punching)

    po = ProductionOrder(
        production_order_number=generate_production_order_number(db),
        order_id=order.id,
        customer_product_id=product.id,
        quantity_kg=calc.base_quantity_kg,
        overrun_percentage=calc.overrun_percentage,
        overrun_reason=calc.overrun_reason,
        final_quantity_kg=calc.final_quantity_kg,
        status="pending",
        produced_quantity_kg=Decimal("0"),
        printed_quantity_kg=Decimal("0"),
        net_quantity_kg=Decimal("0"),
        waste_quantity_kg=Decimal("0"),
        film_completion_percentage=Decimal("0"),
        printing_completion_percentage=Decimal("0"),
        cutting_completion_percentage=Decimal("0"),
    )
    number = po.production_order_number
    db.add(po)
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        raise ConcurrencyError(
            f"Production order number {number} was taken by another request",
            details={"production_order_number": number},
        ) from e

    logger.info(
        f"Production order {po.production_order_number} created",
        extra={
            "production_order_id": po.id,
            "order_id": order.id,
            "quantity_kg": str(calc.base_quantity_kg),
            "overrun_percentage": str(calc.overrun_percentage),
            "final_quantity_kg": str(calc.final_quantity_kg),
        },
    )
    return po


def _get_production_order(db: Session, production_order_id: int) -> ProductionOrder:
    po = db.query(ProductionOrder).filter(ProductionOrder.id == production_order_id).first()
    if not po:
        raise NotFoundError("Production order", production_order_id)
    return po


def build_production_order_detail(db: Session, po: ProductionOrder) -> ProductionOrderDetail:
    rolls = db.query(Roll).filter(Roll.production_order_id == po.id).all()
    progress = summarize_rolls(po.final_quantity_kg, rolls)
    return ProductionOrderDetail(
        **ProductionOrderResponse.model_validate(po).model_dump(),
        remaining_quantity_kg=progress.remaining_quantity_kg,
        roll_count=progress.roll_count,
    )


# ============================================================================
# Endpoints
# ============================================================================

@router.get("", response_model=ListResponse[ProductionOrderResponse])
def list_production_orders(
    order_id: Optional[int] = Query(None, description="Filter by customer order"),
    status: Optional[str] = Query(None, description="Filter by status"),
    pagination: PaginationParams = Depends(get_pagination_params),
    db: Session = Depends(get_db),
):
    """List production orders, newest first."""
    query = db.query(ProductionOrder)
    if order_id is not None:
        query = query.filter(ProductionOrder.order_id == order_id)
    if status:
        query = query.filter(ProductionOrder.status == status)

    total = query.count()
    items = (
        query.order_by(desc(ProductionOrder.id))
        .offset(pagination.offset)
        .limit(pagination.limit)
        .all()
    )
    return ListResponse[ProductionOrderResponse](
        items=[ProductionOrderResponse.model_validate(po) for po in items],
        pagination=PaginationMeta(
            total=total, offset=pagination.offset, limit=pagination.limit, returned=len(items)
        ),
    )


@router.post("/preview-quantities", response_model=QuantityPreviewResponse)
def preview_quantities(
    request: QuantityPreviewRequest,
    db: Session = Depends(get_db),
):
    """Show the overrun and final quantity a production order would get, without saving."""
    product = get_customer_product(db, request.customer_product_id)
    calc = calculate_production_quantities(request.quantity_kg, product.punching)
    return QuantityPreviewResponse(
        customer_product_id=product.id,
        punching=product.punching,
        quantity_kg=calc.base_quantity_kg,
        overrun_percentage=calc.overrun_percentage,
        overrun_reason=calc.overrun_reason,
        overrun_quantity_kg=calc.overrun_quantity_kg,
        final_quantity_kg=calc.final_quantity_kg,
    )


@router.post("", response_model=ProductionOrderResponse, status_code=201)
def create_production_order(
    request: ProductionOrderCreate,
    db: Session = Depends(get_db),
):
    """Add a production order to an existing customer order."""
    order = db.query(Order).filter(Order.id == request.order_id).first()
    if not order:
        raise NotFoundError("Order", request.order_id)
    if order.status in _CLOSED_ORDER_STATUSES:
        raise InvalidTransitionError(
            f"Cannot add production orders to a {order.status} order",
            current=order.status,
            details={"order_id": order.id},
        )

    po = build_production_order(db, order, request.customer_product_id, request.quantity_kg)
    db.commit()
    db.refresh(po)
    return po


@router.get("/{production_order_id}", response_model=ProductionOrderDetail)
def get_production_order(
    production_order_id: int,
    db: Session = Depends(get_db),
):
    po = _get_production_order(db, production_order_id)
    return build_production_order_detail(db, po)


@router.patch("/{production_order_id}", response_model=ProductionOrderDetail)
def update_production_order(
    production_order_id: int,
    request: ProductionOrderUpdate,
    db: Session = Depends(get_db),
    notifier: ProductionNotifier = Depends(get_notifier),
):
    """
    Update a production order.

    Changing quantity_kg or customer_product_id recomputes the overrun and
    final quantity. A status change must follow the production order
    transition table.
    """
    po = (
        db.query(ProductionOrder)
        .filter(ProductionOrder.id == production_order_id)
        .with_for_update()
        .first()
    )
    if not po:
        raise NotFoundError("Production order", production_order_id)

    quantity_changed = request.quantity_kg is not None and Decimal(request.quantity_kg) != Decimal(po.quantity_kg)
    product_changed = (
        request.customer_product_id is not None and request.customer_product_id != po.customer_product_id
    )

    if quantity_changed or product_changed:
        if po.status in CLOSED_PRODUCTION_STATUSES:
            raise InvalidTransitionError(
                f"Cannot change quantities of a {po.status} production order",
                current=po.status,
                details={"production_order_id": po.id},
            )
        product = get_customer_product(
            db,
            request.customer_product_id if product_changed else po.customer_product_id,
            po.order.customer_id,
        )
        quantity = request.quantity_kg if quantity_changed else po.quantity_kg
        calc = calculate_production_quantities(quantity, product.punching)

        po.customer_product_id = product.id
        po.quantity_kg = calc.base_quantity_kg
        po.overrun_percentage = calc.overrun_percentage
        po.overrun_reason = calc.overrun_reason
        po.final_quantity_kg = calc.final_quantity_kg
        po.updated_at = datetime.utcnow()
        db.flush()
        refresh_production_order_totals(db, po)

        logger.info(
            f"Production order {po.production_order_number} quantities recomputed",
            extra={
                "production_order_id": po.id,
                "quantity_kg": str(calc.base_quantity_kg),
                "final_quantity_kg": str(calc.final_quantity_kg),
            },
        )

    if request.status is not None:
        apply_production_order_status(
            db, po, request.status.value, notifier=notifier, user_id=request.user_id
        )

    db.commit()
    db.refresh(po)
    return build_production_order_detail(db, po)
