"""
Machine model

Extruders, printers and cutters on the production floor. A roll stage
change is only accepted against a machine of the matching type whose
status is 'active'.
"""
from sqlalchemy import Column, String, DateTime, CheckConstraint
from datetime import datetime

from app.db.base import Base


class Machine(Base):
    """Production machine"""
    __tablename__ = "machines"
    __table_args__ = (
        CheckConstraint(
            "type IN ('extruder', 'printer', 'cutter', 'quality_check')",
            name="machine_type_valid",
        ),
        CheckConstraint(
            "status IN ('active', 'maintenance', 'down')",
            name="machine_status_valid",
        ),
    )

    id = Column(String(20), primary_key=True)  # e.g. M001
    name = Column(String(100), nullable=False)
    name_ar = Column(String(100), nullable=True)

    # extruder, printer, cutter, quality_check
    type = Column(String(50), nullable=False, index=True)

    # active, maintenance, down
    status = Column(String(20), default="active", nullable=False, index=True)

    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow, nullable=False)

    @property
    def is_active(self) -> bool:
        return self.status == "active"

    def __repr__(self):
        return f"<Machine {self.id} ({self.type}, {self.status})>"
