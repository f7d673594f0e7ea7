"""
Production Notifier

Records production events (status changes, new rolls, stage changes,
cuts, completions) as ProductionEvent rows and logs them. One instance is
built at application startup and stored on app.state.notifier; endpoints
receive it through the get_notifier dependency.

Events are added to the caller's session and committed with the change
that produced them. Delivery to phones or chat is handled elsewhere.
"""
from typing import Optional

from sqlalchemy.orm import Session

from app.models.production_event import ProductionEvent
from app.logging_config import get_logger

logger = get_logger(__name__)


class ProductionNotifier:
    """Writes the production timeline."""

    def __init__(self, source: str = "bagflow"):
        self.source = source
        self.events_recorded = 0

    def record(
        self,
        db: Session,
        *,
        event_type: str,
        title: str,
        entity_type: str,
        entity_id,
        title_ar: Optional[str] = None,
        description: Optional[str] = None,
        old_value: Optional[str] = None,
        new_value: Optional[str] = None,
        user_id: Optional[int] = None,
    ) -> ProductionEvent:
        """
        Add an event to the session.

        Does not commit - the calling service owns the transaction.
        """
        event = ProductionEvent(
            event_type=event_type,
            title=title,
            title_ar=title_ar,
            description=description,
            entity_type=entity_type,
            entity_id=str(entity_id),
            old_value=old_value,
            new_value=new_value,
            user_id=user_id,
        )
        db.add(event)
        self.events_recorded += 1

        logger.info(
            title,
            extra={
                "event_type": event_type,
                "entity_type": entity_type,
                "entity_id": str(entity_id),
                "old_value": old_value,
                "new_value": new_value,
                "source": self.source,
            },
        )
        return event

    # ------------------------------------------------------------------
    # Typed helpers
    # ------------------------------------------------------------------

    def order_status_changed(self, db: Session, order, previous: str, user_id: Optional[int] = None):
        return self.record(
            db,
            event_type="order_status_changed",
            title=f"Order {order.order_number}: {previous} → {order.status}",
            title_ar=f"تغيير حالة الطلب {order.order_number}",
            entity_type="order",
            entity_id=order.id,
            old_value=previous,
            new_value=order.status,
            user_id=user_id,
        )

    def production_order_status_changed(self, db: Session, po, previous: str, user_id: Optional[int] = None):
        event = self.record(
            db,
            event_type="production_order_status_changed",
            title=f"Production order {po.production_order_number}: {previous} → {po.status}",
            title_ar=f"تغيير حالة أمر الإنتاج {po.production_order_number}",
            entity_type="production_order",
            entity_id=po.id,
            old_value=previous,
            new_value=po.status,
            user_id=user_id,
        )
        if po.status == "completed":
            self.record(
                db,
                event_type="production_order_completed",
                title=f"Production order {po.production_order_number} completed",
                title_ar=f"اكتمل أمر الإنتاج {po.production_order_number}",
                entity_type="production_order",
                entity_id=po.id,
                new_value=str(po.net_quantity_kg),
                user_id=user_id,
            )
        return event

    def roll_created(self, db: Session, roll, user_id: Optional[int] = None):
        return self.record(
            db,
            event_type="roll_created",
            title=f"Roll {roll.roll_number} created ({roll.weight_kg} kg)",
            title_ar=f"تم إنشاء الرول {roll.roll_number}",
            entity_type="roll",
            entity_id=roll.id,
            new_value=roll.stage,
            user_id=user_id,
        )

    def roll_stage_changed(self, db: Session, roll, previous: str, user_id: Optional[int] = None):
        return self.record(
            db,
            event_type="roll_stage_changed",
            title=f"Roll {roll.roll_number}: {previous} → {roll.stage}",
            title_ar=f"انتقال الرول {roll.roll_number} إلى مرحلة جديدة",
            entity_type="roll",
            entity_id=roll.id,
            old_value=previous,
            new_value=roll.stage,
            user_id=user_id,
        )

    def cut_recorded(self, db: Session, cut, roll, user_id: Optional[int] = None):
        return self.record(
            db,
            event_type="cut_recorded",
            title=f"Cut of {cut.cut_weight_kg} kg on roll {roll.roll_number}",
            entity_type="roll",
            entity_id=roll.id,
            new_value=str(roll.cut_weight_total_kg),
            user_id=user_id,
        )
