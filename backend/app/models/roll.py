"""
Roll and Cut models

A roll is one physical roll of extruded film. It moves film → printing →
cutting → done; cuts are recorded against it while it is in cutting.
The CHECK constraints mirror the rules enforced in
app.services.roll_workflow so bad rows cannot be written by other paths.
"""
from sqlalchemy import (
    Column, Integer, String, Numeric, DateTime, Boolean, ForeignKey, Text,
    CheckConstraint, UniqueConstraint,
)
from sqlalchemy.orm import relationship
from datetime import datetime

from app.db.base import Base


class Roll(Base):
    """Roll of film produced for a production order"""
    __tablename__ = "rolls"
    __table_args__ = (
        UniqueConstraint("production_order_id", "roll_seq", name="uq_roll_seq_per_po"),
        CheckConstraint("roll_seq > 0", name="roll_seq_positive"),
        CheckConstraint("weight_kg > 0 AND weight_kg <= 2000", name="roll_weight_range"),
        CheckConstraint(
            "cut_weight_total_kg >= 0 AND cut_weight_total_kg <= weight_kg",
            name="roll_cut_weight_valid",
        ),
        CheckConstraint("waste_kg >= 0 AND waste_kg <= weight_kg", name="roll_waste_valid"),
        CheckConstraint(
            "stage IN ('film', 'printing', 'cutting', 'done')",
            name="roll_stage_valid",
        ),
    )

    id = Column(Integer, primary_key=True, index=True)
    roll_seq = Column(Integer, nullable=False)
    roll_number = Column(String(64), unique=True, nullable=False, index=True)  # PO-0001-R001
    production_order_id = Column(
        Integer,
        ForeignKey("production_orders.id", ondelete="CASCADE"),
        nullable=False,
        index=True,
    )
    qr_code_text = Column(Text, nullable=False)  # JSON with roll metadata

    # film, printing, cutting, done
    stage = Column(String(20), default="film", nullable=False, index=True)

    # Weights (kg)
    weight_kg = Column(Numeric(12, 3), nullable=False)
    cut_weight_total_kg = Column(Numeric(12, 3), default=0, nullable=False)
    waste_kg = Column(Numeric(12, 3), default=0, nullable=False)

    # The last roll of a job may overshoot the remaining quantity
    is_last_roll = Column(Boolean, default=False, nullable=False)

    # Machines per stage
    film_machine_id = Column(String(20), ForeignKey("machines.id", ondelete="RESTRICT"), nullable=False)
    printing_machine_id = Column(String(20), ForeignKey("machines.id", ondelete="SET NULL"), nullable=True)
    cutting_machine_id = Column(String(20), ForeignKey("machines.id", ondelete="SET NULL"), nullable=True)

    # Attribution per stage
    created_by = Column(Integer, ForeignKey("users.id", ondelete="RESTRICT"), nullable=False)
    printed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    cut_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)

    # Timestamps per transition
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)
    printed_at = Column(DateTime, nullable=True)
    cut_started_at = Column(DateTime, nullable=True)
    cut_completed_at = Column(DateTime, nullable=True)
    completed_at = Column(DateTime, nullable=True)

    # Relationships
    production_order = relationship("ProductionOrder", back_populates="rolls")
    cuts = relationship("Cut", back_populates="roll", cascade="all, delete-orphan", order_by="Cut.id")

    @property
    def available_weight_kg(self):
        """Weight still available for cutting"""
        return (self.weight_kg or 0) - (self.cut_weight_total_kg or 0)

    def __repr__(self):
        return f"<Roll {self.roll_number} ({self.stage}, {self.weight_kg} kg)>"


class Cut(Base):
    """A single cutting operation against a roll. Never updated once written."""
    __tablename__ = "cuts"
    __table_args__ = (
        CheckConstraint("cut_weight_kg > 0", name="cut_weight_positive"),
        CheckConstraint("pieces_count IS NULL OR pieces_count >= 0", name="cut_pieces_non_negative"),
    )

    id = Column(Integer, primary_key=True, index=True)
    roll_id = Column(Integer, ForeignKey("rolls.id", ondelete="CASCADE"), nullable=False, index=True)
    cut_weight_kg = Column(Numeric(12, 3), nullable=False)
    pieces_count = Column(Integer, nullable=True)
    performed_by = Column(Integer, ForeignKey("users.id", ondelete="SET NULL"), nullable=True)
    created_at = Column(DateTime, default=datetime.utcnow, nullable=False)

    # Relationships
    roll = relationship("Roll", back_populates="cuts")

    def __repr__(self):
        return f"<Cut {self.id} roll={self.roll_id} {self.cut_weight_kg} kg>"
