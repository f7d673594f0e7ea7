"""
Production Settings Service

Reads and updates the singleton production_settings row. The row is
created on first access from the Settings.DEFAULT_* values.
"""
from datetime import datetime
from decimal import Decimal
from typing import Any, Dict, Optional

from sqlalchemy.orm import Session

from app.core.settings import settings
from app.models.production_settings import ProductionSettings
from app.logging_config import get_logger

logger = get_logger(__name__)

SETTINGS_ROW_ID = 1

UPDATABLE_FIELDS = (
    "overrun_tolerance_percent",
    "allow_last_roll_overrun",
    "roll_waste_tolerance_percent",
    "qr_prefix",
)


def get_or_create_production_settings(db: Session) -> ProductionSettings:
    """
    Return the settings row, creating it with defaults if missing.

    Only flushes; the caller commits.
    """
    row = db.query(ProductionSettings).filter(ProductionSettings.id == SETTINGS_ROW_ID).first()
    if row is None:
        row = ProductionSettings(
            id=SETTINGS_ROW_ID,
            overrun_tolerance_percent=settings.default_overrun_tolerance,
            allow_last_roll_overrun=settings.DEFAULT_ALLOW_LAST_ROLL_OVERRUN,
            roll_waste_tolerance_percent=settings.default_roll_waste_tolerance,
            qr_prefix=settings.DEFAULT_QR_PREFIX,
        )
        db.add(row)
        db.flush()
        logger.info(
            "Production settings initialized from defaults",
            extra={
                "overrun_tolerance_percent": str(row.overrun_tolerance_percent),
                "allow_last_roll_overrun": row.allow_last_roll_overrun,
            },
        )
    return row


def update_production_settings(
    db: Session,
    changes: Dict[str, Any],
    updated_by: Optional[int] = None,
) -> ProductionSettings:
    """Apply validated changes and commit."""
    row = get_or_create_production_settings(db)
    applied = {}
    for field in UPDATABLE_FIELDS:
        if field in changes and changes[field] is not None:
            value = changes[field]
            if field.endswith("_percent"):
                value = Decimal(str(value))
            setattr(row, field, value)
            applied[field] = str(value)

    if applied:
        row.updated_by = updated_by
        row.updated_at = datetime.utcnow()
    db.commit()
    db.refresh(row)

    logger.info("Production settings updated", extra={"changes": applied, "user_id": updated_by})
    return row
