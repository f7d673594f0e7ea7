"""
Production Order model

One production order per ordered product. The target (final) quantity is
the ordered quantity plus the overrun allowed for the product's punching
type; rolls produced against it are tracked in app.models.roll.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, ForeignKey, CheckConstraint
from sqlalchemy.orm import relationship
from datetime import datetime

from app.db.base import Base


class ProductionOrder(Base):
    """
    Production Order - work order for one product of a customer order.

    Lifecycle: pending → in_progress → completed
    Side paths: in_progress ↔ on_hold, pending/on_hold → cancelled

    quantity_kg, overrun_percentage, overrun_reason and final_quantity_kg are
    always computed server side (app.services.quantity_calculator). The
    *_quantity_kg and *_completion_percentage fields are derived from the
    rolls and refreshed by app.services.production_progress.
    """
    __tablename__ = "production_orders"
    __table_args__ = (
        CheckConstraint("quantity_kg > 0", name="po_quantity_positive"),
        CheckConstraint("final_quantity_kg > 0", name="po_final_quantity_positive"),
        CheckConstraint(
            "overrun_percentage >= 0 AND overrun_percentage <= 50",
            name="po_overrun_percentage_range",
        ),
        CheckConstraint(
            "film_completion_percentage >= 0 AND film_completion_percentage <= 100",
            name="po_film_completion_range",
        ),
        CheckConstraint(
            "printing_completion_percentage >= 0 AND printing_completion_percentage <= 100",
            name="po_printing_completion_range",
        ),
        CheckConstraint(
            "cutting_completion_percentage >= 0 AND cutting_completion_percentage <= 100",
            name="po_cutting_completion_range",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    production_order_number = Column(String(50), unique=True, nullable=False, index=True)

    # References
    order_id = Column(Integer, ForeignKey("orders.id", ondelete="CASCADE"), nullable=False, index=True)
    customer_product_id = Column(Integer, ForeignKey("customer_products.id"), nullable=False, index=True)

    # Quantities (kg)
    quantity_kg = Column(Numeric(12, 2), nullable=False)
    overrun_percentage = Column(Numeric(5, 2), default=0, nullable=False)
    overrun_reason = Column(String(255), nullable=True)
    final_quantity_kg = Column(Numeric(12, 2), nullable=False)

    # Status: see app.core.status_config.ProductionOrderStatus
    status = Column(String(30), default="pending", nullable=False, index=True)

    # Derived tracking (from rolls)
    produced_quantity_kg = Column(Numeric(12, 3), default=0, nullable=False)
    printed_quantity_kg = Column(Numeric(12, 3), default=0, nullable=False)
    net_quantity_kg = Column(Numeric(12, 3), default=0, nullable=False)
    waste_quantity_kg = Column(Numeric(12, 3), default=0, nullable=False)
    film_completion_percentage = Column(Numeric(5, 2), default=0, nullable=False)
    printing_completion_percentage = Column(Numeric(5, 2), default=0, nullable=False)
    cutting_completion_percentage = Column(Numeric(5, 2), default=0, nullable=False)

    # Timestamps
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)
    completed_at = Column(DateTime, nullable=True)

    # Relationships
    order = relationship("Order", back_populates="production_orders")
    customer_product = relationship("CustomerProduct")
    rolls = relationship(
        "Roll",
        back_populates="production_order",
        cascade="all, delete-orphan",
        order_by="Roll.roll_seq",
    )

    def __repr__(self):
        return f"<ProductionOrder {self.production_order_number} ({self.status})>"
