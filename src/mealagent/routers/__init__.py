"""API routers for the mealagent application."""

from mealagent.routers.plans import router as plans_router
from mealagent.routers.pricing import router as pricing_router
from mealagent.routers.shopping import router as shopping_router

__all__ = [
    "plans_router",
    "pricing_router",
    "shopping_router",
]
