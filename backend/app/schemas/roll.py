"""
Roll and Cut Pydantic Schemas

Weights are validated here once (> 0); the services re-check them against
the production order and the roll.
"""
from datetime import datetime
from decimal import Decimal
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field


class RollCreate(BaseModel):
    production_order_id: int
    weight_kg: Decimal = Field(..., gt=0, le=2000, max_digits=12, decimal_places=3)
    film_machine_id: str = Field(..., min_length=1, max_length=20)
    created_by: int
    is_last_roll: bool = False


class RollPrintRequest(BaseModel):
    printing_machine_id: str = Field(..., min_length=1, max_length=20)
    printed_by: int


class RollCuttingRequest(BaseModel):
    cutting_machine_id: str = Field(..., min_length=1, max_length=20)
    cut_by: int


class RollCompleteRequest(BaseModel):
    user_id: Optional[int] = None


class RollResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    roll_seq: int
    roll_number: str
    production_order_id: int
    qr_code_text: str
    stage: str
    weight_kg: Decimal
    cut_weight_total_kg: Decimal
    waste_kg: Decimal
    is_last_roll: bool

    film_machine_id: str
    printing_machine_id: Optional[str] = None
    cutting_machine_id: Optional[str] = None

    created_by: int
    printed_by: Optional[int] = None
    cut_by: Optional[int] = None

    created_at: datetime
    printed_at: Optional[datetime] = None
    cut_started_at: Optional[datetime] = None
    cut_completed_at: Optional[datetime] = None
    completed_at: Optional[datetime] = None


class CutCreate(BaseModel):
    roll_id: int
    cut_weight_kg: Decimal = Field(..., gt=0, max_digits=12, decimal_places=3)
    pieces_count: Optional[int] = Field(None, ge=0)
    performed_by: Optional[int] = None


class CutResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: int
    roll_id: int
    cut_weight_kg: Decimal
    pieces_count: Optional[int] = None
    performed_by: Optional[int] = None
    created_at: datetime
