# Routes package __init__.py - re-exports routers for main.py convenience
from .decks import router as decks_router
from .cards import router as cards_router
from .review import router as review_router
from .backups import router as backups_router
from .imports import router as imports_router

__all__ = ['decks_router', 'cards_router', 'review_router', 'backups_router', 'imports_router']
