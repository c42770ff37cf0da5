"""
API Router - aggregates the JSON endpoints under /api
"""
from datetime import datetime
from fastapi import APIRouter

from stockbook.api import auth, batches, finished_goods, locations, raw_materials, reports, stock_movements, users

api_router = APIRouter()

api_router.include_router(auth.router)
api_router.include_router(raw_materials.router)
api_router.include_router(finished_goods.router)
api_router.include_router(locations.router)
api_router.include_router(stock_movements.router)
api_router.include_router(batches.router)
api_router.include_router(reports.router)
api_router.include_router(users.router)


@api_router.get("/status", tags=["API"])
def api_status():
    return {"status": "ok", "version": "1.0.0", "timestamp": datetime.now().isoformat()}
