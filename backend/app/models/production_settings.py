"""
Production Settings model

Single-row table (id=1) holding the tolerances read by the overrun guard
and roll completion, editable at runtime. Seeded from Settings.DEFAULT_*.
"""
from sqlalchemy import Column, Integer, String, Numeric, DateTime, Boolean, ForeignKey, CheckConstraint
from datetime import datetime
from decimal import Decimal

from app.db.base import Base


class ProductionSettings(Base):
    """Factory-wide production tolerances (singleton)"""
    __tablename__ = "production_settings"
    __table_args__ = (
        CheckConstraint(
            "overrun_tolerance_percent >= 0 AND overrun_tolerance_percent <= 10",
            name="overrun_tolerance_range",
        ),
        CheckConstraint(
            "roll_waste_tolerance_percent >= 0 AND roll_waste_tolerance_percent <= 50",
            name="roll_waste_tolerance_range",
        ),
    )

    id = Column(Integer, primary_key=True, default=1)

    overrun_tolerance_percent = Column(Numeric(5, 2), default=Decimal("3.00"), nullable=False)
    allow_last_roll_overrun = Column(Boolean, default=True, nullable=False)
    roll_waste_tolerance_percent = Column(Numeric(5, 2), default=Decimal("10.00"), nullable=False)
    qr_prefix = Column(String(20), default="ROLL", nullable=False)

    updated_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    def __repr__(self):
        return (
            f"<ProductionSettings tolerance={self.overrun_tolerance_percent}% "
            f"last_roll_overrun={self.allow_last_roll_overrun}>"
        )
