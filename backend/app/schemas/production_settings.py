"""
Production Settings Pydantic Schemas
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class ProductionSettingsUpdate(BaseModel):
    overrun_tolerance_percent: Optional[Decimal] = Field(None, ge=0, le=10)
    allow_last_roll_overrun: Optional[bool] = None
    roll_waste_tolerance_percent: Optional[Decimal] = Field(None, ge=0, le=50)
    qr_prefix: Optional[str] = Field(None, min_length=1, max_length=20)
    updated_by: Optional[int] = None


class ProductionSettingsResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    overrun_tolerance_percent: Decimal
    allow_last_roll_overrun: bool
    roll_waste_tolerance_percent: Decimal
    qr_prefix: str
    updated_by: Optional[int] = None
    updated_at: datetime
