"""
Machines API Endpoints
"""
import logging
from typing import List, Optional

from fastapi import APIRouter, Depends, Query
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.exceptions import ConflictError
from app.models import Machine
from app.schemas.machine import (
    MachineCreate,
    MachineResponse,
    MachineStatusChangeResponse,
    MachineStatusUpdate,
)
from app.services.machine_registry import change_machine_status, get_machine

logger = logging.getLogger(__name__)

router = APIRouter()


@router.get("", response_model=List[MachineResponse])
def list_machines(
    type: Optional[str] = Query(None, description="extruder, printer, cutter, quality_check"),
    status: Optional[str] = Query(None, description="active, maintenance, down"),
    db: Session = Depends(get_db),
):
    query = db.query(Machine)
    if type:
        query = query.filter(Machine.type == type)
    if status:
        query = query.filter(Machine.status == status)
    return query.order_by(Machine.id).all()


@router.post("", response_model=MachineResponse, status_code=201)
def create_machine(request: MachineCreate, db: Session = Depends(get_db)):
    if db.query(Machine).filter(Machine.id == request.id).first():
        raise ConflictError(f"Machine {request.id} already exists", details={"machine_id": request.id})

    machine = Machine(
        id=request.id,
        name=request.name,
        name_ar=request.name_ar,
        type=request.type.value,
        status=request.status.value,
    )
    db.add(machine)
    db.commit()
    db.refresh(machine)
    logger.info(f"Machine {machine.id} registered", extra={"machine_id": machine.id, "type": machine.type})
    return machine


@router.patch("/{machine_id}/status", response_model=MachineStatusChangeResponse)
def update_machine_status(
    machine_id: str,
    request: MachineStatusUpdate,
    db: Session = Depends(get_db),
):
    machine = get_machine(db, machine_id)
    previous, machine = change_machine_status(db, machine, request.status.value)
    return MachineStatusChangeResponse(id=machine.id, previous_status=previous, status=machine.status)
