"""
API v1 Router - BagFlow
"""
from fastapi import APIRouter
from app.api.v1.endpoints import (
    health,
    orders,
    production_orders,
    rolls,
    cuts,
    machines,
    production_settings,
)

router = APIRouter()

# Health
router.include_router(health.router, tags=["health"])

# Customer orders
router.include_router(
    orders.router,
    prefix="/orders",
    tags=["orders"]
)

# Production Orders
router.include_router(
    production_orders.router,
    prefix="/production-orders",
    tags=["production"]
)

# Rolls and cuts
router.include_router(
    rolls.router,
    prefix="/rolls",
    tags=["rolls"]
)
router.include_router(
    cuts.router,
    prefix="/cuts",
    tags=["rolls"]
)

# Machines
router.include_router(
    machines.router,
    prefix="/machines",
    tags=["machines"]
)

# Production settings
router.include_router(
    production_settings.router,
    prefix="/production-settings",
    tags=["settings"]
)
