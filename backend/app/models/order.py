"""
Order model

A customer order groups one production order per ordered product. Status
changes go through app.services.order_status so the transition table and
the production order checks are always applied.
"""
from sqlalchemy import Column, Integer, String, DateTime, Date, ForeignKey, Text
from sqlalchemy.orm import relationship
from datetime import datetime

from app.db.base import Base


class Order(Base):
    """Customer order"""
    __tablename__ = "orders"

    id = Column(Integer, primary_key=True, index=True)
    order_number = Column(String(50), unique=True, nullable=False, index=True)
    customer_id = Column(String(20), ForeignKey("customers.id"), nullable=False, index=True)

    # Status: see app.core.status_config.OrderStatus
    status = Column(String(30), default="pending", nullable=False, index=True)

    delivery_days = Column(Integer, nullable=True)
    delivery_date = Column(Date, nullable=True)
    notes = Column(Text, nullable=True)

    created_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    # Relationships
    customer = relationship("Customer", back_populates="orders")
    production_orders = relationship(
        "ProductionOrder",
        back_populates="order",
        cascade="all, delete-orphan",
        order_by="ProductionOrder.id",
    )

    def __repr__(self):
        return f"<Order {self.order_number} ({self.status})>"
