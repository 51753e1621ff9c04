from clearstock.routers.batches import router as batches_router
from clearstock.routers.dashboard import router as dashboard_router
from clearstock.routers.health import router as health_router
from clearstock.routers.history import router as history_router
from clearstock.routers.restaurants import router as restaurants_router

__all__ = [
    "batches_router",
    "dashboard_router",
    "health_router",
    "history_router",
    "restaurants_router",
]
