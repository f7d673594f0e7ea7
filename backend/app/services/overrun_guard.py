"""
Overrun Guard

Pure checks run before a roll or a cut weight is admitted. Callers lock the
owning row, run the check, then persist in the same transaction.

Roll admission:
    remaining    = max(0, final - sum(existing roll weights))
    tolerance_kg = max(0, base * (1 + tolerance% / 100) - final)
    reject when new_weight > remaining + tolerance_kg

The final quantity already includes the product overrun, so the tolerance
only adds headroom when the configured tolerance is larger than that
overrun. A roll flagged is_last_roll skips the check entirely when
allow_last_roll_overrun is on: a roll cannot be produced partially, so the
last one absorbs whatever is left.
"""
from decimal import Decimal
from typing import Iterable

from app.exceptions import InvalidInputError, RemainingQuantityExceededError

ZERO = Decimal("0")


def remaining_quantity(final_quantity_kg: Decimal, existing_weights: Iterable[Decimal]) -> Decimal:
    """What is left to produce, never negative."""
    produced = sum((Decimal(w) for w in existing_weights), ZERO)
    return max(ZERO, Decimal(final_quantity_kg) - produced)


def tolerance_quantity(
    base_quantity_kg: Decimal,
    final_quantity_kg: Decimal,
    tolerance_percent: Decimal,
) -> Decimal:
    """Extra kg admitted above the remaining quantity."""
    allowed_total = Decimal(base_quantity_kg) * (Decimal("1") + Decimal(tolerance_percent) / Decimal("100"))
    return max(ZERO, allowed_total - Decimal(final_quantity_kg))


def check_new_roll_weight(
    *,
    new_weight_kg: Decimal,
    base_quantity_kg: Decimal,
    final_quantity_kg: Decimal,
    existing_weights: Iterable[Decimal],
    tolerance_percent: Decimal,
    is_last_roll: bool = False,
    allow_last_roll_overrun: bool = True,
) -> Decimal:
    """
    Validate a new roll weight against the production order.

    Returns:
        The remaining quantity before the roll was added.

    Raises:
        InvalidInputError: weight is not positive
        RemainingQuantityExceededError: weight exceeds remaining + tolerance
    """
    new_weight = Decimal(new_weight_kg)
    if new_weight <= 0:
        raise InvalidInputError("weight_kg must be greater than 0", field="weight_kg", value=new_weight)

    remaining = remaining_quantity(final_quantity_kg, existing_weights)

    if is_last_roll and allow_last_roll_overrun:
        return remaining

    tolerance_kg = tolerance_quantity(base_quantity_kg, final_quantity_kg, tolerance_percent)
    if new_weight > remaining + tolerance_kg:
        raise RemainingQuantityExceededError(
            requested=new_weight,
            remaining=remaining,
            tolerance=tolerance_kg,
        )
    return remaining


def check_cut_weight(
    *,
    cut_weight_kg: Decimal,
    roll_weight_kg: Decimal,
    cut_weight_total_kg: Decimal,
) -> Decimal:
    """
    Validate a cut against the roll's uncut weight.

    Returns:
        The roll's available weight before the cut.
    """
    cut_weight = Decimal(cut_weight_kg)
    if cut_weight <= 0:
        raise InvalidInputError("cut_weight_kg must be greater than 0", field="cut_weight_kg", value=cut_weight)

    available = max(ZERO, Decimal(roll_weight_kg) - Decimal(cut_weight_total_kg or 0))
    if cut_weight > available:
        raise RemainingQuantityExceededError(
            requested=cut_weight,
            remaining=available,
            subject="roll",
        )
    return available
