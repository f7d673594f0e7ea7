"""
Order Pydantic Schemas
"""
from datetime import date, datetime
from decimal import Decimal
from typing import List, Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.status_config import OrderStatus
from app.schemas.production_order import ProductionOrderResponse


class OrderLineCreate(BaseModel):
    """One product line; becomes a production order"""
    customer_product_id: int
    quantity_kg: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)


class OrderCreate(BaseModel):
    """Create an order with its production orders"""
    customer_id: str = Field(..., min_length=1, max_length=20)
    delivery_days: Optional[int] = Field(None, ge=0, le=365)
    notes: Optional[str] = None
    created_by: Optional[int] = None
    lines: List[OrderLineCreate] = Field(..., min_length=1)


class OrderStatusUpdate(BaseModel):
    """PATCH /orders/{id}/status body"""
    status: OrderStatus
    user_id: Optional[int] = None


class OrderStatusChangeResponse(BaseModel):
    id: int
    previous_status: str
    status: str


class OrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    customer_id: str
    status: str
    delivery_days: Optional[int] = None
    delivery_date: Optional[date] = None
    notes: Optional[str] = None
    created_by: Optional[int] = None
    created_at: datetime
    updated_at: datetime
    production_orders: List[ProductionOrderResponse] = []


class OrderListItem(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    order_number: str
    customer_id: str
    status: str
    delivery_date: Optional[date] = None
    created_at: datetime
