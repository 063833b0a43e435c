"""API route modules."""

from src.api.routes.checkout import router as checkout_router
from src.api.routes.health import router as health_router
from src.api.routes.inventory import router as inventory_router
from src.api.routes.transactions import router as transactions_router

__all__ = [
    "health_router",
    "transactions_router",
    "inventory_router",
    "checkout_router",
]
