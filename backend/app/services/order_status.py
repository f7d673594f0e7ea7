"""
Order Status Management Service

Validates status transitions for customer Orders and Production Orders
and applies them.

The pure checks (check_order_transition, check_production_order_transition)
take plain values so they can be tested without a database; the update_*
functions load nothing themselves, apply the change, record the event and
commit.
"""
from dataclasses import dataclass
from datetime import datetime
from typing import Iterable, Optional

from sqlalchemy.orm import Session

from app.core.status_config import (
    ACTIVE_PRODUCTION_STATUSES,
    FINISHED_PRODUCTION_STATUSES,
    OrderStatus,
    ProductionOrderStatus,
    get_allowed_order_transitions,
    get_allowed_production_order_transitions,
    is_valid_order_transition,
    is_valid_production_order_transition,
)
from app.exceptions import InvalidTransitionError
from app.models.order import Order
from app.models.production_order import ProductionOrder
from app.services.notification_service import ProductionNotifier
from app.logging_config import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class StatusChange:
    """Outcome of a status update"""
    previous_status: str
    status: str

    @property
    def changed(self) -> bool:
        return self.previous_status != self.status


def _describe(po) -> dict:
    return {
        "id": po.id,
        "production_order_number": po.production_order_number,
        "status": po.status,
    }


# ========================================================================
# ORDER
# ========================================================================

def check_order_transition(
    current_status: str,
    requested_status: str,
    production_orders: Iterable = (),
) -> bool:
    """
    Validate an order status change.

    Args:
        current_status: Order's status now
        requested_status: Desired status
        production_orders: The order's production orders (anything with
            id, production_order_number and status)

    Returns:
        False when requested equals current (no-op), True when the change
        is allowed.

    Raises:
        InvalidTransitionError: transition not in the table, or blocked by
            the state of the production orders
    """
    if requested_status == current_status:
        return False

    if not is_valid_order_transition(current_status, requested_status):
        allowed = get_allowed_order_transitions(current_status)
        raise InvalidTransitionError(
            f"Invalid order status transition: '{current_status}' → '{requested_status}'. "
            f"Valid options: {', '.join(allowed) or 'none'}",
            current=current_status,
            requested=requested_status,
            allowed=allowed,
        )

    production_orders = list(production_orders)

    if requested_status == OrderStatus.COMPLETED.value:
        incomplete = [po for po in production_orders if po.status not in FINISHED_PRODUCTION_STATUSES]
        if incomplete:
            raise InvalidTransitionError(
                f"Cannot complete order: {len(incomplete)} production order(s) not completed",
                current=current_status,
                requested=requested_status,
                message_ar="لا يمكن إكمال الطلب قبل إكمال جميع أوامر الإنتاج",
                details={"incomplete_production_orders": [_describe(po) for po in incomplete]},
            )

    if requested_status == OrderStatus.CANCELLED.value:
        active = [po for po in production_orders if po.status in ACTIVE_PRODUCTION_STATUSES]
        if active:
            raise InvalidTransitionError(
                f"Cannot cancel order: {len(active)} production order(s) in progress",
                current=current_status,
                requested=requested_status,
                message_ar="لا يمكن إلغاء الطلب أثناء وجود أوامر إنتاج قيد التنفيذ",
                details={"active_production_orders": [_describe(po) for po in active]},
            )

    return True


def update_order_status(
    db: Session,
    order: Order,
    new_status: str,
    *,
    notifier: Optional[ProductionNotifier] = None,
    user_id: Optional[int] = None,
) -> StatusChange:
    """Validate and apply an order status change. Commits."""
    previous = order.status
    if not check_order_transition(previous, new_status, order.production_orders):
        return StatusChange(previous_status=previous, status=previous)

    order.status = new_status
    order.updated_at = datetime.utcnow()
    if notifier is not None:
        notifier.order_status_changed(db, order, previous, user_id=user_id)
    db.commit()
    db.refresh(order)

    logger.info(
        f"Order {order.order_number}: {previous} → {new_status}",
        extra={"order_id": order.id, "old_status": previous, "new_status": new_status},
    )
    return StatusChange(previous_status=previous, status=new_status)


# ========================================================================
# PRODUCTION ORDER
# ========================================================================

def check_production_order_transition(current_status: str, requested_status: str) -> bool:
    """Same contract as check_order_transition, without child checks."""
    if requested_status == current_status:
        return False

    if not is_valid_production_order_transition(current_status, requested_status):
        allowed = get_allowed_production_order_transitions(current_status)
        raise InvalidTransitionError(
            f"Invalid production order status transition: '{current_status}' → '{requested_status}'. "
            f"Valid options: {', '.join(allowed) or 'none'}",
            current=current_status,
            requested=requested_status,
            allowed=allowed,
        )
    return True


def apply_production_order_status(
    db: Session,
    po: ProductionOrder,
    new_status: str,
    *,
    notifier: Optional[ProductionNotifier] = None,
    user_id: Optional[int] = None,
) -> StatusChange:
    """
    Validate and apply a production order status change.

    Flushes only; used inside larger updates that commit once.
    """
    previous = po.status
    if not check_production_order_transition(previous, new_status):
        return StatusChange(previous_status=previous, status=previous)

    now = datetime.utcnow()
    po.status = new_status
    po.updated_at = now
    if new_status == ProductionOrderStatus.COMPLETED.value:
        po.completed_at = now
    db.flush()

    if notifier is not None:
        notifier.production_order_status_changed(db, po, previous, user_id=user_id)

    logger.info(
        f"Production order {po.production_order_number}: {previous} → {new_status}",
        extra={"production_order_id": po.id, "old_status": previous, "new_status": new_status},
    )
    return StatusChange(previous_status=previous, status=new_status)
