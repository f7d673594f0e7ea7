"""
Machine Pydantic Schemas
"""
from datetime import datetime
from typing import Optional

from pydantic import BaseModel, ConfigDict, Field

from app.core.status_config import MachineStatus, MachineType


class MachineCreate(BaseModel):
    id: str = Field(..., pattern=r"^M\d{3}$", description="Machine code, e.g. M001")
    name: str = Field(..., min_length=1, max_length=100)
    name_ar: Optional[str] = Field(None, max_length=100)
    type: MachineType
    status: MachineStatus = MachineStatus.ACTIVE


class MachineStatusUpdate(BaseModel):
    status: MachineStatus


class MachineResponse(BaseModel):
    model_config = ConfigDict(from_attributes=True)

    id: str
    name: str
    name_ar: Optional[str] = None
    type: str
    status: str
    created_at: datetime
    updated_at: datetime


class MachineStatusChangeResponse(BaseModel):
    id: str
    previous_status: str
    status: str
