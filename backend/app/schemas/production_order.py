"""
Production Order Pydantic Schemas

Request bodies never carry overrun_percentage or final_quantity_kg: those
are computed on the server from quantity_kg and the product's punching.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.status_config import ProductionOrderStatus


class ProductionOrderCreate(BaseModel):
    """Add a production order to an existing order"""
    model_config = ConfigDict(extra="ignore")

    order_id: int
    customer_product_id: int
    quantity_kg: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)


class ProductionOrderUpdate(BaseModel):
    """
    PATCH body. A quantity or product change recomputes the overrun;
    a status change is validated against the transition table.
    """
    model_config = ConfigDict(extra="ignore")

    customer_product_id: Optional[int] = None
    quantity_kg: Optional[Decimal] = Field(None, gt=0, max_digits=12, decimal_places=2)
    status: Optional[ProductionOrderStatus] = None
    user_id: Optional[int] = None


class QuantityPreviewRequest(BaseModel):
    customer_product_id: int
    quantity_kg: Decimal = Field(..., gt=0, max_digits=12, decimal_places=2)


class QuantityPreviewResponse(BaseModel):
    customer_product_id: int
    punching: Optional[str] = None
    quantity_kg: Decimal
    overrun_percentage: Decimal
    overrun_reason: str
    overrun_quantity_kg: Decimal
    final_quantity_kg: Decimal


class ProductionOrderResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    production_order_number: str
    order_id: int
    customer_product_id: int
    quantity_kg: Decimal
    overrun_percentage: Decimal
    overrun_reason: Optional[str] = None
    final_quantity_kg: Decimal
    status: str

    produced_quantity_kg: Decimal
    printed_quantity_kg: Decimal
    net_quantity_kg: Decimal
    waste_quantity_kg: Decimal
    film_completion_percentage: Decimal
    printing_completion_percentage: Decimal
    cutting_completion_percentage: Decimal

    created_at: datetime
    updated_at: datetime
    completed_at: Optional[datetime] = None


class ProductionOrderDetail(ProductionOrderResponse):
    """Single production order with its remaining quantity"""
    remaining_quantity_kg: Decimal
    roll_count: int
