"""
Customer and CustomerProduct models

A customer product is the bag specification a customer orders repeatedly.
Its punching code decides the production overrun allowance and its
is_printed flag decides whether rolls go through the printing stage.
"""
from sqlalchemy import Column, Integer, String, DateTime, Boolean, ForeignKey, Text
from sqlalchemy.orm import relationship
from datetime import datetime

from app.db.base import Base


class Customer(Base):
    """Customer placing bag orders"""
    __tablename__ = "customers"

    id = Column(String(20), primary_key=True)  # e.g. CID001
    name = Column(String(200), nullable=False, index=True)
    name_ar = Column(String(200), nullable=True)
    phone = Column(String(50), nullable=True)
    city = Column(String(100), nullable=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    products = relationship("CustomerProduct", back_populates="customer")
    orders = relationship("Order", back_populates="customer")

    def __repr__(self):
        return f"<Customer {self.id}: {self.name}>"


class CustomerProduct(Base):
    """Bag specification ordered by a customer"""
    __tablename__ = "customer_products"

    id = Column(Integer, primary_key=True, index=True)
    customer_id = Column(String(20), ForeignKey("customers.id"), nullable=False, index=True)

    name = Column(String(200), nullable=False)
    size_caption = Column(String(50), nullable=True)  # e.g. 40x60

    # Bag style: NON, T-Shirt, T-Shirt\Hook, Banana
    punching = Column(String(50), nullable=True)

    # Unprinted products skip the printing stage (film -> cutting)
    is_printed = Column(Boolean, default=True, nullable=False)

    notes = Column(Text, nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    customer = relationship("Customer", back_populates="products")

    def __repr__(self):
        return f"<CustomerProduct {self.id}: {self.name} ({self.punching})>"
