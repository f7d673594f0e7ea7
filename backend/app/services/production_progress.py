"""
Production Progress

Derives the tracking totals of a production order from its rolls:
produced (film), printed, net (cut) and waste weights, plus the completion
percentage of each stage against the final quantity.
"""
from dataclasses import dataclass
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable

from sqlalchemy.orm import Session

from app.models.production_order import ProductionOrder
from app.models.roll import Roll
from app.logging_config import get_logger

logger = get_logger(__name__)

ZERO = Decimal("0")
HUNDRED = Decimal("100")
PERCENT_PRECISION = Decimal("0.01")

# Stages at which a roll has been printed (or skipped printing)
_PRINTED_STAGES = {"printing", "cutting", "done"}


@dataclass(frozen=True)
class ProductionProgress:
    """Totals derived from the rolls of one production order"""
    final_quantity_kg: Decimal
    produced_quantity_kg: Decimal
    printed_quantity_kg: Decimal
    net_quantity_kg: Decimal
    waste_quantity_kg: Decimal
    roll_count: int
    done_roll_count: int

    @property
    def remaining_quantity_kg(self) -> Decimal:
        return max(ZERO, self.final_quantity_kg - self.produced_quantity_kg)

    @property
    def film_completion_percentage(self) -> Decimal:
        return _percentage(self.produced_quantity_kg, self.final_quantity_kg)

    @property
    def printing_completion_percentage(self) -> Decimal:
        return _percentage(self.printed_quantity_kg, self.final_quantity_kg)

    @property
    def cutting_completion_percentage(self) -> Decimal:
        return _percentage(self.net_quantity_kg, self.final_quantity_kg)


def _percentage(part: Decimal, whole: Decimal) -> Decimal:
    """part/whole as a percentage capped at 100"""
    if whole <= 0:
        return ZERO
    pct = (part / whole * HUNDRED).quantize(PERCENT_PRECISION, rounding=ROUND_HALF_UP)
    return min(HUNDRED, pct)


def summarize_rolls(final_quantity_kg: Decimal, rolls: Iterable[Roll]) -> ProductionProgress:
    """Aggregate rolls into progress totals. Pure: no session access."""
    produced = printed = net = waste = ZERO
    count = done = 0
    for roll in rolls:
        weight = Decimal(roll.weight_kg or 0)
        count += 1
        produced += weight
        if roll.stage in _PRINTED_STAGES:
            printed += weight
        net += Decimal(roll.cut_weight_total_kg or 0)
        waste += Decimal(roll.waste_kg or 0)
        if roll.stage == "done":
            done += 1

    return ProductionProgress(
        final_quantity_kg=Decimal(final_quantity_kg),
        produced_quantity_kg=produced,
        printed_quantity_kg=printed,
        net_quantity_kg=net,
        waste_quantity_kg=waste,
        roll_count=count,
        done_roll_count=done,
    )


def refresh_production_order_totals(db: Session, po: ProductionOrder) -> ProductionProgress:
    """
    Recompute and store the derived totals on the production order.

    Flushes but does not commit; the caller owns the transaction.
    """
    rolls = db.query(Roll).filter(Roll.production_order_id == po.id).all()
    progress = summarize_rolls(po.final_quantity_kg, rolls)

    po.produced_quantity_kg = progress.produced_quantity_kg
    po.printed_quantity_kg = progress.printed_quantity_kg
    po.net_quantity_kg = progress.net_quantity_kg
    po.waste_quantity_kg = progress.waste_quantity_kg
    po.film_completion_percentage = progress.film_completion_percentage
    po.printing_completion_percentage = progress.printing_completion_percentage
    po.cutting_completion_percentage = progress.cutting_completion_percentage
    po.updated_at = datetime.utcnow()
    db.flush()

    logger.debug(
        "Production order totals refreshed",
        extra={
            "production_order_id": po.id,
            "produced_kg": str(progress.produced_quantity_kg),
            "net_kg": str(progress.net_quantity_kg),
            "cutting_pct": str(progress.cutting_completion_percentage),
        },
    )
    return progress
