"""Database models"""
from app.models.user import User
from app.models.customer import Customer, CustomerProduct
from app.models.machine import Machine
from app.models.order import Order
from app.models.production_order import ProductionOrder
from app.models.roll import Roll, Cut
from app.models.production_settings import ProductionSettings
from app.models.production_event import ProductionEvent

__all__ = [
    # Users
    "User",
    # Customers
    "Customer",
    "CustomerProduct",
    # Machines
    "Machine",
    # Orders
    "Order",
    "ProductionOrder",
    # Rolls
    "Roll",
    "Cut",
    # Settings / timeline
    "ProductionSettings",
    "ProductionEvent",
]
