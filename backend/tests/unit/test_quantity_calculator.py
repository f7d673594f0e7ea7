"""
Unit tests for the production quantity calculator.

Covers the punching overrun table, rounding, input validation and the
fallback for unmapped punching codes.
"""
import logging
from decimal import Decimal

import pytest

from app.core.settings import settings
from app.exceptions import InvalidInputError, UnknownProductTypeError
from app.services.quantity_calculator import (
    DEFAULT_OVERRUN_PERCENTAGE,
    DEFAULT_OVERRUN_REASON,
    PUNCHING_OVERRUNS,
    calculate_production_quantities,
    normalize_punching,
)


class TestOverrunTable:
    """Known punching codes map to a fixed overrun"""

    @pytest.mark.unit
    @pytest.mark.parametrize("punching,pct,final", [
        ("T-Shirt", Decimal("20"), Decimal("1200.00")),
        ("T-Shirt\\Hook", Decimal("20"), Decimal("1200.00")),
        ("Banana", Decimal("10"), Decimal("1100.00")),
        ("NON", Decimal("5"), Decimal("1050.00")),
    ])
    def test_known_punching_codes(self, punching, pct, final):
        calc = calculate_production_quantities(Decimal("1000"), punching, strict=True)

        assert calc.overrun_percentage == pct
        assert calc.final_quantity_kg == final
        assert calc.base_quantity_kg == Decimal("1000")
        assert calc.overrun_quantity_kg == final - Decimal("1000")

    @pytest.mark.unit
    def test_tshirt_reason(self):
        calc = calculate_production_quantities(500, "T-Shirt")
        assert calc.overrun_reason == "T-shirt bags"

    @pytest.mark.unit
    @pytest.mark.parametrize("raw", ["t-shirt", "  T-SHIRT ", "T - Shirt", "t-shirt \\ hook"])
    def test_lookup_ignores_case_and_whitespace(self, raw):
        calc = calculate_production_quantities(100, raw, strict=True)
        assert calc.overrun_percentage == Decimal("20")

    @pytest.mark.unit
    def test_normalize_punching(self):
        assert normalize_punching(" T-Shirt \\ Hook ") == "t-shirt\\hook"
        assert normalize_punching(None) == ""
        assert normalize_punching("") == ""


class TestRounding:

    @pytest.mark.unit
    def test_rounds_half_up_to_two_places(self):
        # 333.33 * 1.05 = 349.9965
        calc = calculate_production_quantities("333.33", "NON")
        assert calc.final_quantity_kg == Decimal("350.00")

    @pytest.mark.unit
    def test_half_cent_rounds_up(self):
        # 0.1 * 1.05 = 0.105
        calc = calculate_production_quantities("0.1", "NON")
        assert calc.final_quantity_kg == Decimal("0.11")

    @pytest.mark.unit
    def test_accepts_float_without_binary_noise(self):
        calc = calculate_production_quantities(10.1, "Banana")
        assert calc.final_quantity_kg == Decimal("11.11")

    @pytest.mark.unit
    def test_final_never_below_base_for_known_types(self):
        for punching in ["T-Shirt", "T-Shirt\\Hook", "Banana", "NON"]:
            for qty in ["0.01", "1", "7.77", "999.99", "12500"]:
                calc = calculate_production_quantities(qty, punching)
                assert calc.final_quantity_kg >= Decimal(qty)

    @pytest.mark.unit
    def test_deterministic(self):
        first = calculate_production_quantities("1234.56", "Banana")
        second = calculate_production_quantities("1234.56", "Banana")
        assert first == second


class TestInvalidInput:

    @pytest.mark.unit
    @pytest.mark.parametrize("qty", [0, -1, "0", "-0.01"])
    def test_non_positive_quantity_rejected(self, qty):
        with pytest.raises(InvalidInputError) as exc_info:
            calculate_production_quantities(qty, "NON")
        assert exc_info.value.details["field"] == "quantity_kg"
        assert exc_info.value.status_code == 400

    @pytest.mark.unit
    @pytest.mark.parametrize("qty", ["abc", "NaN", "Infinity", True, None])
    def test_non_numeric_quantity_rejected(self, qty):
        with pytest.raises(InvalidInputError):
            calculate_production_quantities(qty, "NON")


class TestUnmappedPunching:

    @pytest.mark.unit
    @pytest.mark.parametrize("punching", ["Zipper", None, ""])
    def test_falls_back_to_default(self, punching):
        calc = calculate_production_quantities(1000, punching, strict=False)

        assert calc.overrun_percentage == DEFAULT_OVERRUN_PERCENTAGE
        assert calc.overrun_reason == DEFAULT_OVERRUN_REASON
        assert calc.final_quantity_kg == Decimal("1050.00")

    @pytest.mark.unit
    def test_fallback_logs_warning(self, caplog):
        with caplog.at_level(logging.WARNING, logger="app.services.quantity_calculator"):
            calculate_production_quantities(1000, "Zipper", strict=False)

        assert any("No overrun policy" in r.getMessage() for r in caplog.records)

    @pytest.mark.unit
    def test_strict_mode_raises(self):
        with pytest.raises(UnknownProductTypeError) as exc_info:
            calculate_production_quantities(1000, "Zipper", strict=True)

        error = exc_info.value
        assert error.error_code == "UNKNOWN_PRODUCT_TYPE"
        assert error.details["punching"] == "Zipper"
        assert error.details["known_punching_codes"] == sorted(PUNCHING_OVERRUNS)

    @pytest.mark.unit
    def test_strict_mode_from_settings(self, monkeypatch):
        monkeypatch.setattr(settings, "STRICT_PUNCHING_CODES", True)
        with pytest.raises(UnknownProductTypeError):
            calculate_production_quantities(1000, "Zipper")
