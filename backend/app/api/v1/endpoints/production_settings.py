"""
Production Settings API Endpoints

Tolerances read by roll creation and roll completion.
"""
from fastapi import APIRouter, Depends
from sqlalchemy.orm import Session

from app.db.session import get_db
from app.schemas.production_settings import ProductionSettingsResponse, ProductionSettingsUpdate
from app.services.production_settings import (
    get_or_create_production_settings,
    update_production_settings,
)

router = APIRouter()


@router.get("", response_model=ProductionSettingsResponse)
def get_production_settings(db: Session = Depends(get_db)):
    row = get_or_create_production_settings(db)
    db.commit()
    return row


@router.patch("", response_model=ProductionSettingsResponse)
def patch_production_settings(request: ProductionSettingsUpdate, db: Session = Depends(get_db)):
    changes = request.model_dump(exclude_unset=True, exclude={"updated_by"})
    return update_production_settings(db, changes, updated_by=request.updated_by)
