"""API routers package"""
from propledger.routers.auth import router as auth_router
from propledger.routers.properties import router as properties_router
from propledger.routers.transactions import router as transactions_router
from propledger.routers.dashboard import router as dashboard_router

__all__ = [
    "auth_router",
    "properties_router",
    "transactions_router",
    "dashboard_router",
]
