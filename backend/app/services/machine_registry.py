"""
Machine Registry

Looks up machines for roll stage changes and manages their operational
status (active, maintenance, down).
"""
from datetime import datetime
from typing import Optional, Tuple

from sqlalchemy.orm import Session

from app.core.status_config import MACHINE_STATUS_TRANSITIONS, MachineStatus
from app.exceptions import (
    InvalidInputError,
    InvalidTransitionError,
    MachineInactiveError,
    NotFoundError,
)
from app.models.machine import Machine
from app.logging_config import get_logger

logger = get_logger(__name__)


def get_machine(db: Session, machine_id: str) -> Machine:
    machine = db.query(Machine).filter(Machine.id == machine_id).first()
    if not machine:
        raise NotFoundError("Machine", machine_id)
    return machine


def get_active_machine(db: Session, machine_id: str, expected_type: Optional[str] = None) -> Machine:
    """
    Fetch a machine that may be used for a stage change.

    Raises:
        NotFoundError: no such machine
        InvalidInputError: machine type does not serve the stage
        MachineInactiveError: machine status is not 'active'
    """
    machine = get_machine(db, machine_id)

    if expected_type and machine.type != expected_type:
        raise InvalidInputError(
            f"Machine {machine_id} is a {machine.type}, expected a {expected_type}",
            field="machine_id",
            value=machine_id,
            details={"machine_type": machine.type, "expected_type": expected_type},
        )

    if machine.status != MachineStatus.ACTIVE.value:
        logger.warning(
            "Rejected stage change on inactive machine",
            extra={"machine_id": machine_id, "machine_status": machine.status},
        )
        raise MachineInactiveError(machine_id, machine.status)

    return machine


def change_machine_status(db: Session, machine: Machine, new_status: str) -> Tuple[str, Machine]:
    """
    Move a machine between active, maintenance and down.

    Returns:
        (previous_status, machine)
    """
    previous = machine.status
    if previous == new_status:
        return previous, machine

    allowed = sorted(MACHINE_STATUS_TRANSITIONS.get(previous, set()))
    if new_status not in allowed:
        raise InvalidTransitionError(
            f"Cannot change machine status from '{previous}' to '{new_status}'",
            current=previous,
            requested=new_status,
            allowed=allowed,
        )

    machine.status = new_status
    machine.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(machine)

    logger.info(
        f"Machine {machine.id}: {previous} → {new_status}",
        extra={"machine_id": machine.id, "old_status": previous, "new_status": new_status},
    )
    return previous, machine
