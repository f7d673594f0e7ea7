"""
Production Quantity Calculator

Computes the overrun allowance and final production target for a
production order from the ordered quantity and the product's punching
type. Bag styles that waste more film at the cutting stage carry a larger
overrun.

The server is the only authority for these values: request bodies never
carry an overrun or a final quantity, they are recomputed on every create
and on any quantity or product change.

Usage:
    from app.services.quantity_calculator import calculate_production_quantities

    calc = calculate_production_quantities(Decimal("1000"), "T-Shirt")
    calc.final_quantity_kg  # Decimal("1200.00")
"""
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP, InvalidOperation
from typing import Dict, Optional, Tuple, Union

from app.core.settings import settings
from app.exceptions import InvalidInputError, UnknownProductTypeError
from app.logging_config import get_logger

logger = get_logger(__name__)

QUANTITY_PRECISION = Decimal("0.01")

# Keys are normalized punching codes (see normalize_punching)
PUNCHING_OVERRUNS: Dict[str, Tuple[Decimal, str]] = {
    "t-shirt": (Decimal("20"), "T-shirt bags"),
    "t-shirt\\hook": (Decimal("20"), "T-shirt bags"),
    "banana": (Decimal("10"), "Banana bags"),
    "non": (Decimal("5"), "Non-punched bags"),
}

DEFAULT_OVERRUN_PERCENTAGE = Decimal("5")
DEFAULT_OVERRUN_REASON = "Default overrun (unknown punching type)"


@dataclass(frozen=True)
class QuantityCalculation:
    """Result of an overrun calculation"""
    base_quantity_kg: Decimal
    final_quantity_kg: Decimal
    overrun_percentage: Decimal
    overrun_reason: str

    @property
    def overrun_quantity_kg(self) -> Decimal:
        return self.final_quantity_kg - self.base_quantity_kg


def normalize_punching(punching: Optional[str]) -> str:
    """Lowercase and strip all whitespace: ' T-Shirt \\ Hook ' -> 't-shirt\\hook'"""
    if not punching:
        return ""
    return "".join(punching.split()).lower()


def to_decimal(value: Union[Decimal, int, float, str], field: str = "quantity_kg") -> Decimal:
    """Convert user input to Decimal, rejecting NaN/inf and non-numeric strings."""
    if isinstance(value, bool):
        raise InvalidInputError(f"{field} must be a number", field=field, value=value)
    try:
        result = value if isinstance(value, Decimal) else Decimal(str(value))
    except (InvalidOperation, ValueError, TypeError):
        raise InvalidInputError(f"{field} must be a number", field=field, value=value)
    if not result.is_finite():
        raise InvalidInputError(f"{field} must be a finite number", field=field, value=value)
    return result


def get_overrun_policy(punching: Optional[str], strict: Optional[bool] = None) -> Tuple[Decimal, str]:
    """
    Look up (overrun_percentage, reason) for a punching code.

    Unmapped or missing codes fall back to DEFAULT_OVERRUN_PERCENTAGE unless
    strict mode is on (STRICT_PUNCHING_CODES), in which case
    UnknownProductTypeError is raised.
    """
    strict = settings.STRICT_PUNCHING_CODES if strict is None else strict
    policy = PUNCHING_OVERRUNS.get(normalize_punching(punching))
    if policy is not None:
        return policy

    if strict:
        raise UnknownProductTypeError(punching, known=sorted(PUNCHING_OVERRUNS))

    logger.warning(
        "No overrun policy for punching type, using default",
        extra={"punching": punching, "overrun_percentage": str(DEFAULT_OVERRUN_PERCENTAGE)},
    )
    return DEFAULT_OVERRUN_PERCENTAGE, DEFAULT_OVERRUN_REASON


def calculate_production_quantities(
    base_quantity_kg: Union[Decimal, int, float, str],
    punching: Optional[str],
    strict: Optional[bool] = None,
) -> QuantityCalculation:
    """
    Compute final production quantity for an ordered quantity.

    final = base * (1 + overrun% / 100), rounded half-up to 2 places.

    Raises:
        InvalidInputError: base quantity is not a positive number
        UnknownProductTypeError: unmapped punching code in strict mode
    """
    base = to_decimal(base_quantity_kg)
    if base <= 0:
        raise InvalidInputError("quantity_kg must be greater than 0", field="quantity_kg", value=base)

    percentage, reason = get_overrun_policy(punching, strict=strict)
    final = (base * (Decimal("1") + percentage / Decimal("100"))).quantize(
        QUANTITY_PRECISION, rounding=ROUND_HALF_UP
    )

    return QuantityCalculation(
        base_quantity_kg=base,
        final_quantity_kg=final,
        overrun_percentage=percentage,
        overrun_reason=reason,
    )
