"""
API Router - JSON Endpoints
"""
from fastapi import APIRouter
from datetime import datetime

from depopro.api.products import router as products_router
from depopro.api.transactions import router as transactions_router
from depopro.api.imports import router as imports_router
from depopro.api.orders import router as orders_router
from depopro.api.picking import router as picking_router
from depopro.api.cycle_count import router as cycle_count_router
from depopro.api.reports import router as reports_router
from depopro.api.backup import router as backup_router

api_router = APIRouter(tags=["API"])

# Include sub-routers
api_router.include_router(products_router)
api_router.include_router(transactions_router)
api_router.include_router(imports_router)
api_router.include_router(orders_router)
api_router.include_router(picking_router)
api_router.include_router(cycle_count_router)
api_router.include_router(reports_router)
api_router.include_router(backup_router)

# ===================== HEALTH & STATUS =====================

@api_router.get("/status")
async def api_status():
    return {"status": "ok", "version": "1.0.0", "timestamp": datetime.now().isoformat()}
