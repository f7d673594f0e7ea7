"""
Roll Workflow Service

Moves rolls through film → printing → cutting → done.

Stage rules (validate_stage_transition) are pure. The DB functions:
- create_roll: lock the production order, refuse rolls once its last roll is
  recorded, check machine and overrun, add the roll with the next sequence
  number
- start_printing / start_cutting: machine check, then compare-and-set on
  the current stage
- record_cut: lock the roll, check available weight, add the cut
- complete_roll: check the residual against the waste tolerance, store it
  as waste and refresh the production order totals

Every DB function commits on success. A stage change that loses a race
with another request raises ConcurrencyError instead of advancing twice.
"""
import json
from datetime import datetime
from decimal import Decimal
from typing import List, Optional, Union

from sqlalchemy import func
from sqlalchemy.exc import IntegrityError
from sqlalchemy.orm import Session

from app.core.status_config import (
    CLOSED_PRODUCTION_STATUSES,
    ROLL_STAGE_TRANSITIONS,
    STAGE_MACHINE_TYPES,
    ProductionOrderStatus,
    RollStage,
)
from app.exceptions import (
    ConcurrencyError,
    InvalidInputError,
    InvalidTransitionError,
    NotFoundError,
)
from app.models.production_order import ProductionOrder
from app.models.roll import Roll, Cut
from app.models.user import User
from app.services.machine_registry import get_active_machine
from app.services.notification_service import ProductionNotifier
from app.services.order_status import apply_production_order_status
from app.services.overrun_guard import check_cut_weight, check_new_roll_weight
from app.services.production_progress import refresh_production_order_totals
from app.services.production_settings import get_or_create_production_settings
from app.logging_config import get_logger

logger = get_logger(__name__)

MAX_ROLL_WEIGHT_KG = Decimal("2000")

Number = Union[Decimal, int, float, str]


# ============================================================================
# Stage rules
# ============================================================================

def allowed_next_stages(current_stage: str, is_printed: bool = True) -> List[str]:
    """Stages a roll may move to next, in production order."""
    candidates = ROLL_STAGE_TRANSITIONS.get(current_stage, set())
    allowed = []
    for stage in candidates:
        if stage == RollStage.PRINTING.value and not is_printed:
            continue
        # Printed products cannot skip the printing stage
        if current_stage == RollStage.FILM.value and stage == RollStage.CUTTING.value and is_printed:
            continue
        allowed.append(stage)
    return sorted(allowed, key=_stage_index)


def _stage_index(stage: str) -> int:
    return [s.value for s in RollStage].index(stage)


def validate_stage_transition(current_stage: str, requested_stage: str, is_printed: bool = True) -> None:
    """
    Raise InvalidTransitionError unless current → requested is allowed.

    Stages only move forward one step; the one skip is film → cutting for
    products that are not printed. done is terminal.
    """
    allowed = allowed_next_stages(current_stage, is_printed)
    if requested_stage in allowed:
        return

    if current_stage == RollStage.DONE.value:
        message = "Roll is already done, no further stage changes are accepted"
    elif requested_stage == RollStage.PRINTING.value and not is_printed:
        message = "Product is not printed, the roll goes from film directly to cutting"
    else:
        message = f"Invalid roll stage transition: '{current_stage}' → '{requested_stage}'"

    raise InvalidTransitionError(
        message,
        current=current_stage,
        requested=requested_stage,
        allowed=allowed,
        message_ar="لا يمكن نقل الرول إلى هذه المرحلة",
    )


# ============================================================================
# Helpers
# ============================================================================

def generate_roll_number(production_order_number: str, roll_seq: int) -> str:
    """PO-2026-0001 + 3 -> PO-2026-0001-R003"""
    return f"{production_order_number}-R{roll_seq:03d}"


def build_qr_code_text(prefix: str, roll_number: str, po: ProductionOrder, weight_kg: Decimal) -> str:
    """JSON payload printed on the roll label."""
    return json.dumps(
        {
            "type": prefix,
            "roll_number": roll_number,
            "production_order": po.production_order_number,
            "production_order_id": po.id,
            "weight_kg": str(weight_kg),
        },
        ensure_ascii=False,
    )


def _require_user(db: Session, user_id: int) -> User:
    user = db.query(User).filter(User.id == user_id).first()
    if not user:
        raise NotFoundError("User", user_id)
    return user


def _get_roll(db: Session, roll_id: int, lock: bool = False) -> Roll:
    query = db.query(Roll).filter(Roll.id == roll_id)
    if lock:
        query = query.with_for_update()
    roll = query.first()
    if not roll:
        raise NotFoundError("Roll", roll_id)
    return roll


def _is_printed(roll: Roll) -> bool:
    product = roll.production_order.customer_product
    return bool(product.is_printed) if product is not None else True


def _advance_stage(db: Session, roll: Roll, expected_stage: str, new_stage: str, **values) -> None:
    """
    Compare-and-set the roll stage.

    The UPDATE only matches while the stage is still expected_stage, so of two
    concurrent requests exactly one succeeds.
    """
    values["stage"] = new_stage
    updated = (
        db.query(Roll)
        .filter(Roll.id == roll.id, Roll.stage == expected_stage)
        .update(values, synchronize_session=False)
    )
    if updated != 1:
        db.rollback()
        logger.warning(
            "Roll stage changed concurrently",
            extra={"roll_id": roll.id, "expected_stage": expected_stage, "new_stage": new_stage},
        )
        raise ConcurrencyError(
            f"Roll {roll.roll_number} was modified by another request",
            details={"roll_id": roll.id, "expected_stage": expected_stage},
        )
    db.refresh(roll)


# ============================================================================
# Create
# ============================================================================

def create_roll(
    db: Session,
    *,
    production_order_id: int,
    weight_kg: Number,
    film_machine_id: str,
    created_by: int,
    is_last_roll: bool = False,
    notifier: Optional[ProductionNotifier] = None,
) -> Roll:
    """
    Create a roll in the film stage.

    The production order row is locked for the whole check-and-insert so two
    concurrent requests cannot both see the same remaining quantity.
    """
    weight = Decimal(str(weight_kg))
    if weight <= 0 or weight > MAX_ROLL_WEIGHT_KG:
        raise InvalidInputError(
            f"weight_kg must be greater than 0 and at most {MAX_ROLL_WEIGHT_KG}",
            field="weight_kg",
            value=weight,
        )

    po = (
        db.query(ProductionOrder)
        .filter(ProductionOrder.id == production_order_id)
        .with_for_update()
        .first()
    )
    if not po:
        raise NotFoundError("Production order", production_order_id)
    if po.status in CLOSED_PRODUCTION_STATUSES:
        raise InvalidTransitionError(
            f"Cannot add rolls to a {po.status} production order",
            current=po.status,
            message_ar="لا يمكن إضافة رولات لأمر إنتاج مغلق",
            details={"production_order_id": po.id},
        )

    # Only one roll per production order may carry the last-roll flag
    last_roll = (
        db.query(Roll)
        .filter(Roll.production_order_id == po.id, Roll.is_last_roll.is_(True))
        .first()
    )
    if last_roll is not None:
        raise InvalidTransitionError(
            f"Last roll {last_roll.roll_number} is already recorded for "
            f"{po.production_order_number}, no further rolls are accepted",
            current=po.status,
            message_ar="تم تسجيل الرول الأخير لأمر الإنتاج",
            details={"production_order_id": po.id, "last_roll_number": last_roll.roll_number},
        )

    get_active_machine(db, film_machine_id, STAGE_MACHINE_TYPES[RollStage.FILM.value])
    _require_user(db, created_by)

    production_settings = get_or_create_production_settings(db)
    existing_weights = [
        w for (w,) in db.query(Roll.weight_kg).filter(Roll.production_order_id == po.id).all()
    ]
    remaining = check_new_roll_weight(
        new_weight_kg=weight,
        base_quantity_kg=po.quantity_kg,
        final_quantity_kg=po.final_quantity_kg,
        existing_weights=existing_weights,
        tolerance_percent=production_settings.overrun_tolerance_percent,
        is_last_roll=is_last_roll,
        allow_last_roll_overrun=production_settings.allow_last_roll_overrun,
    )

    last_seq = db.query(func.max(Roll.roll_seq)).filter(Roll.production_order_id == po.id).scalar()
    roll_seq = (last_seq or 0) + 1
    roll_number = generate_roll_number(po.production_order_number, roll_seq)

    roll = Roll(
        roll_seq=roll_seq,
        roll_number=roll_number,
        production_order_id=po.id,
        qr_code_text=build_qr_code_text(production_settings.qr_prefix, roll_number, po, weight),
        stage=RollStage.FILM.value,
        weight_kg=weight,
        cut_weight_total_kg=Decimal("0"),
        waste_kg=Decimal("0"),
        is_last_roll=is_last_roll,
        film_machine_id=film_machine_id,
        created_by=created_by,
    )
    db.add(roll)
    try:
        db.flush()
    except IntegrityError as e:
        db.rollback()
        raise ConcurrencyError(
            f"Roll sequence {roll_seq} for {po.production_order_number} was taken by another request",
            details={"production_order_id": po.id, "roll_seq": roll_seq},
        ) from e

    if po.status == ProductionOrderStatus.PENDING.value:
        apply_production_order_status(
            db, po, ProductionOrderStatus.IN_PROGRESS.value, notifier=notifier, user_id=created_by
        )

    refresh_production_order_totals(db, po)
    if notifier is not None:
        notifier.roll_created(db, roll, user_id=created_by)
    db.commit()
    db.refresh(roll)

    logger.info(
        f"Roll {roll.roll_number} created",
        extra={
            "roll_id": roll.id,
            "production_order_id": po.id,
            "weight_kg": str(weight),
            "remaining_kg": str(remaining),
            "is_last_roll": is_last_roll,
        },
    )
    return roll


# ============================================================================
# Stage changes
# ============================================================================

def start_printing(
    db: Session,
    roll_id: int,
    *,
    printing_machine_id: str,
    printed_by: int,
    notifier: Optional[ProductionNotifier] = None,
) -> Roll:
    """film → printing"""
    roll = _get_roll(db, roll_id)
    previous = roll.stage
    validate_stage_transition(previous, RollStage.PRINTING.value, _is_printed(roll))
    get_active_machine(db, printing_machine_id, STAGE_MACHINE_TYPES[RollStage.PRINTING.value])
    _require_user(db, printed_by)

    _advance_stage(
        db, roll, previous, RollStage.PRINTING.value,
        printing_machine_id=printing_machine_id,
        printed_by=printed_by,
        printed_at=datetime.utcnow(),
    )
    refresh_production_order_totals(db, roll.production_order)
    if notifier is not None:
        notifier.roll_stage_changed(db, roll, previous, user_id=printed_by)
    db.commit()
    db.refresh(roll)

    logger.info(
        f"Roll {roll.roll_number}: {previous} → printing",
        extra={"roll_id": roll.id, "machine_id": printing_machine_id, "user_id": printed_by},
    )
    return roll


def start_cutting(
    db: Session,
    roll_id: int,
    *,
    cutting_machine_id: str,
    cut_by: int,
    notifier: Optional[ProductionNotifier] = None,
) -> Roll:
    """printing → cutting (or film → cutting for unprinted products)"""
    roll = _get_roll(db, roll_id)
    previous = roll.stage
    validate_stage_transition(previous, RollStage.CUTTING.value, _is_printed(roll))
    get_active_machine(db, cutting_machine_id, STAGE_MACHINE_TYPES[RollStage.CUTTING.value])
    _require_user(db, cut_by)

    _advance_stage(
        db, roll, previous, RollStage.CUTTING.value,
        cutting_machine_id=cutting_machine_id,
        cut_by=cut_by,
        cut_started_at=datetime.utcnow(),
    )
    refresh_production_order_totals(db, roll.production_order)
    if notifier is not None:
        notifier.roll_stage_changed(db, roll, previous, user_id=cut_by)
    db.commit()
    db.refresh(roll)

    logger.info(
        f"Roll {roll.roll_number}: {previous} → cutting",
        extra={"roll_id": roll.id, "machine_id": cutting_machine_id, "user_id": cut_by},
    )
    return roll


def record_cut(
    db: Session,
    *,
    roll_id: int,
    cut_weight_kg: Number,
    pieces_count: Optional[int] = None,
    performed_by: Optional[int] = None,
    notifier: Optional[ProductionNotifier] = None,
) -> Cut:
    """Record a cut against a roll in the cutting stage."""
    roll = _get_roll(db, roll_id, lock=True)
    if roll.stage != RollStage.CUTTING.value:
        raise InvalidTransitionError(
            f"Cuts can only be recorded while the roll is in cutting (roll is in {roll.stage})",
            current=roll.stage,
            message_ar="الرول ليس في مرحلة التقطيع",
            details={"roll_id": roll.id},
        )
    if performed_by is not None:
        _require_user(db, performed_by)

    cut_weight = Decimal(str(cut_weight_kg))
    check_cut_weight(
        cut_weight_kg=cut_weight,
        roll_weight_kg=roll.weight_kg,
        cut_weight_total_kg=roll.cut_weight_total_kg,
    )

    cut = Cut(
        roll_id=roll.id,
        cut_weight_kg=cut_weight,
        pieces_count=pieces_count,
        performed_by=performed_by,
    )
    db.add(cut)
    roll.cut_weight_total_kg = Decimal(roll.cut_weight_total_kg or 0) + cut_weight
    db.flush()

    refresh_production_order_totals(db, roll.production_order)
    if notifier is not None:
        notifier.cut_recorded(db, cut, roll, user_id=performed_by)
    db.commit()
    db.refresh(cut)

    logger.info(
        f"Cut recorded on roll {roll.roll_number}",
        extra={
            "roll_id": roll.id,
            "cut_weight_kg": str(cut_weight),
            "cut_weight_total_kg": str(roll.cut_weight_total_kg),
        },
    )
    return cut


def complete_roll(
    db: Session,
    roll_id: int,
    *,
    user_id: Optional[int] = None,
    notifier: Optional[ProductionNotifier] = None,
) -> Roll:
    """
    cutting → done

    The roll's cutter must still be active. The uncut residual must be within roll_waste_tolerance_percent of the roll
    weight; it is stored as waste.
    """
    roll = _get_roll(db, roll_id, lock=True)
    previous = roll.stage
    validate_stage_transition(previous, RollStage.DONE.value, _is_printed(roll))
    get_active_machine(db, roll.cutting_machine_id, STAGE_MACHINE_TYPES[RollStage.CUTTING.value])

    production_settings = get_or_create_production_settings(db)
    weight = Decimal(roll.weight_kg)
    residual = weight - Decimal(roll.cut_weight_total_kg or 0)
    allowed_waste = weight * Decimal(production_settings.roll_waste_tolerance_percent) / Decimal("100")

    if residual > allowed_waste:
        raise InvalidTransitionError(
            f"Roll {roll.roll_number} still has {residual} kg uncut "
            f"(at most {allowed_waste.quantize(Decimal('0.001'))} kg may be written off as waste)",
            current=previous,
            requested=RollStage.DONE.value,
            message_ar="لم يكتمل تقطيع الرول",
            details={
                "residual_kg": float(residual),
                "allowed_waste_kg": float(allowed_waste),
                "cut_weight_total_kg": float(roll.cut_weight_total_kg or 0),
            },
        )

    now = datetime.utcnow()
    _advance_stage(
        db, roll, previous, RollStage.DONE.value,
        waste_kg=residual,
        cut_completed_at=now,
        completed_at=now,
    )
    refresh_production_order_totals(db, roll.production_order)
    if notifier is not None:
        notifier.roll_stage_changed(db, roll, previous, user_id=user_id)
    db.commit()
    db.refresh(roll)

    logger.info(
        f"Roll {roll.roll_number} done",
        extra={"roll_id": roll.id, "waste_kg": str(residual), "user_id": user_id},
    )
    return roll
