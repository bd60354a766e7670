from cardbored.api.cards import router as cards_router
from cardbored.api.decklist import router as decklist_router
from cardbored.api.health import router as health_router

__all__ = [
    "cards_router",
    "decklist_router",
    "health_router",
]
