"""Status Configuration and Transition Rules

This module defines valid status values and allowed transitions for
Orders, Production Orders, Rolls and Machines. Transitions are validated
by the services before anything is written.
"""
from enum import Enum
from typing import Dict, FrozenSet, List, Set


# =============================================================================
# Order (customer order) Status
# =============================================================================

class OrderStatus(str, Enum):
    """Valid status values for customer Orders"""
    PENDING = "pending"
    WAITING = "waiting"
    FOR_PRODUCTION = "for_production"
    IN_PRODUCTION = "in_production"
    IN_PROGRESS = "in_progress"
    PAUSED = "paused"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


_ORDER_TRANSITIONS = {
    OrderStatus.PENDING: {
        OrderStatus.WAITING,
        OrderStatus.FOR_PRODUCTION,
        OrderStatus.CANCELLED,
    },
    OrderStatus.WAITING: {
        OrderStatus.IN_PRODUCTION,
        OrderStatus.FOR_PRODUCTION,
        OrderStatus.ON_HOLD,
        OrderStatus.CANCELLED,
    },
    OrderStatus.FOR_PRODUCTION: {
        OrderStatus.IN_PRODUCTION,
        OrderStatus.IN_PROGRESS,
        OrderStatus.ON_HOLD,
        OrderStatus.CANCELLED,
    },
    OrderStatus.IN_PRODUCTION: {
        OrderStatus.PAUSED,
        OrderStatus.COMPLETED,
        OrderStatus.ON_HOLD,
        OrderStatus.IN_PROGRESS,
    },
    OrderStatus.IN_PROGRESS: {
        OrderStatus.PAUSED,
        OrderStatus.COMPLETED,
        OrderStatus.ON_HOLD,
        OrderStatus.IN_PRODUCTION,
    },
    OrderStatus.PAUSED: {
        OrderStatus.IN_PRODUCTION,
        OrderStatus.IN_PROGRESS,
        OrderStatus.CANCELLED,
    },
    OrderStatus.ON_HOLD: {
        OrderStatus.WAITING,
        OrderStatus.FOR_PRODUCTION,
        OrderStatus.IN_PRODUCTION,
        OrderStatus.CANCELLED,
    },
    OrderStatus.COMPLETED: {
        OrderStatus.DELIVERED,
    },
    OrderStatus.DELIVERED: set(),  # Terminal
    OrderStatus.CANCELLED: set(),  # Terminal
}


def _as_values(table) -> Dict[str, Set[str]]:
    """Key transition tables by plain string so lookups with DB values work"""
    return {k.value: {s.value for s in v} for k, v in table.items()}


ORDER_TRANSITIONS: Dict[str, Set[str]] = _as_values(_ORDER_TRANSITIONS)


def get_allowed_order_transitions(current_status: str) -> List[str]:
    """Allowed next statuses for an order, sorted for stable error payloads"""
    return sorted(ORDER_TRANSITIONS.get(current_status, set()))


def is_valid_order_transition(current_status: str, new_status: str) -> bool:
    """Check if an order status transition is valid"""
    if current_status == new_status:
        return True  # No change is always valid
    return new_status in ORDER_TRANSITIONS.get(current_status, set())


# =============================================================================
# Production Order Status
# =============================================================================

class ProductionOrderStatus(str, Enum):
    """Valid status values for Production Orders"""
    PENDING = "pending"
    IN_PROGRESS = "in_progress"
    ON_HOLD = "on_hold"
    COMPLETED = "completed"
    CANCELLED = "cancelled"


_PRODUCTION_ORDER_TRANSITIONS = {
    ProductionOrderStatus.PENDING: {
        ProductionOrderStatus.IN_PROGRESS,
        ProductionOrderStatus.CANCELLED,
    },
    ProductionOrderStatus.IN_PROGRESS: {
        ProductionOrderStatus.ON_HOLD,
        ProductionOrderStatus.COMPLETED,
    },
    ProductionOrderStatus.ON_HOLD: {
        ProductionOrderStatus.IN_PROGRESS,
        ProductionOrderStatus.CANCELLED,
    },
    ProductionOrderStatus.COMPLETED: set(),  # Terminal
    ProductionOrderStatus.CANCELLED: set(),  # Terminal
}
PRODUCTION_ORDER_TRANSITIONS: Dict[str, Set[str]] = _as_values(_PRODUCTION_ORDER_TRANSITIONS)

# Child statuses that block cancelling the parent order.
# "in_production" is the legacy spelling still found in imported data.
ACTIVE_PRODUCTION_STATUSES: FrozenSet[str] = frozenset({"in_progress", "in_production"})

# Child statuses that count as finished when completing the parent order
FINISHED_PRODUCTION_STATUSES: FrozenSet[str] = frozenset({"completed", "cancelled"})

# No rolls may be added to production orders in these statuses
CLOSED_PRODUCTION_STATUSES: FrozenSet[str] = frozenset({"completed", "cancelled"})


def get_allowed_production_order_transitions(current_status: str) -> List[str]:
    """Allowed next statuses for a production order"""
    return sorted(PRODUCTION_ORDER_TRANSITIONS.get(current_status, set()))


def is_valid_production_order_transition(current_status: str, new_status: str) -> bool:
    """Check if a production order status transition is valid"""
    if current_status == new_status:
        return True
    return new_status in PRODUCTION_ORDER_TRANSITIONS.get(current_status, set())


# =============================================================================
# Roll Stage
# =============================================================================

class RollStage(str, Enum):
    """Physical stage of a roll, ordered"""
    FILM = "film"
    PRINTING = "printing"
    CUTTING = "cutting"
    DONE = "done"


ROLL_STAGE_ORDER: List[str] = [
    RollStage.FILM.value,
    RollStage.PRINTING.value,
    RollStage.CUTTING.value,
    RollStage.DONE.value,
]

_ROLL_STAGE_TRANSITIONS = {
    RollStage.FILM: {RollStage.PRINTING, RollStage.CUTTING},  # cutting only for unprinted products
    RollStage.PRINTING: {RollStage.CUTTING},
    RollStage.CUTTING: {RollStage.DONE},
    RollStage.DONE: set(),  # Terminal
}
ROLL_STAGE_TRANSITIONS: Dict[str, Set[str]] = _as_values(_ROLL_STAGE_TRANSITIONS)


# =============================================================================
# Machine Status / Type
# =============================================================================

class MachineStatus(str, Enum):
    """Operational status of a machine"""
    ACTIVE = "active"
    MAINTENANCE = "maintenance"
    DOWN = "down"


# active <-> maintenance <-> down, all directions allowed
_MACHINE_STATUS_TRANSITIONS = {
    MachineStatus.ACTIVE: {MachineStatus.MAINTENANCE, MachineStatus.DOWN},
    MachineStatus.MAINTENANCE: {MachineStatus.ACTIVE, MachineStatus.DOWN},
    MachineStatus.DOWN: {MachineStatus.ACTIVE, MachineStatus.MAINTENANCE},
}
MACHINE_STATUS_TRANSITIONS: Dict[str, Set[str]] = _as_values(_MACHINE_STATUS_TRANSITIONS)


class MachineType(str, Enum):
    """Machine kinds on the floor"""
    EXTRUDER = "extruder"
    PRINTER = "printer"
    CUTTER = "cutter"
    QUALITY_CHECK = "quality_check"


# Which machine type serves which roll stage
STAGE_MACHINE_TYPES: Dict[str, str] = {
    RollStage.FILM.value: MachineType.EXTRUDER.value,
    RollStage.PRINTING.value: MachineType.PRINTER.value,
    RollStage.CUTTING.value: MachineType.CUTTER.value,
}
