"""API v1 router aggregation.

Includes all endpoint modules with consistent prefix and tags. All routes
use dependencies from stallsync.api.v1.dependencies (no manual repo/service
construction).
"""

from fastapi import APIRouter

from stallsync.api.v1.endpoints import (
    admin,
    exports,
    food,
    google_oauth,
    health,
    imports,
    sales,
    sites,
    staff,
    stalls,
    stock_items,
    stock_movements,
    users,
    websocket as ws_endpoint,
)

api_router = APIRouter()

api_router.include_router(health.router, prefix="/health", tags=["health"])
api_router.include_router(admin.router, prefix="/admin", tags=["admin"])
api_router.include_router(users.router, prefix="/users", tags=["users"])
api_router.include_router(sites.router, prefix="/sites", tags=["sites"])
api_router.include_router(stalls.router, prefix="/stalls", tags=["stalls"])
api_router.include_router(stock_items.router, prefix="/stock-items", tags=["stock"])
api_router.include_router(
    stock_movements.router, prefix="/stock-movements", tags=["stock"]
)
api_router.include_router(sales.router, prefix="/sales", tags=["sales"])
api_router.include_router(food.router, prefix="/food", tags=["food"])
api_router.include_router(staff.router, prefix="/staff", tags=["staff"])
api_router.include_router(imports.router, prefix="/imports", tags=["imports"])
api_router.include_router(exports.router, prefix="/exports", tags=["exports"])
api_router.include_router(
    google_oauth.router, prefix="/auth/google", tags=["google-oauth"]
)
api_router.include_router(ws_endpoint.router, prefix="/ws", tags=["websocket"])
