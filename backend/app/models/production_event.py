"""
Production Event Model

Activity timeline for orders, production orders and rolls: status
changes, roll creation, stage changes, completions. Written by
ProductionNotifier; the rows are what a notification front end reads.
"""
from sqlalchemy import Column, Integer, String, DateTime, ForeignKey, Text
from datetime import datetime

from app.db.base import Base


class ProductionEvent(Base):
    """Production Event - timeline entry"""
    __tablename__ = "production_events"

    # Primary Key
    id = Column(Integer, primary_key=True, index=True)

    # Event Type
    # order_status_changed, production_order_status_changed, roll_created,
    # roll_stage_changed, cut_recorded, production_order_completed
    event_type = Column(String(50), nullable=False, index=True)

    # Event Details
    title = Column(String(255), nullable=False)
    title_ar = Column(String(255), nullable=True)
    description = Column(Text, nullable=True)

    # What the event is about: order, production_order, roll
    entity_type = Column(String(30), nullable=False, index=True)
    entity_id = Column(String(64), nullable=False, index=True)

    # For status/stage changes
    old_value = Column(String(100), nullable=True)
    new_value = Column(String(100), nullable=True)

    user_id = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True, index=True)

    # Timestamps
    created_at = Column(DateTime, nullable=False, default=datetime.utcnow, index=True)

    def __repr__(self):
        return f"<ProductionEvent {self.event_type} {self.entity_type}:{self.entity_id}>"
