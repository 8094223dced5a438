from .events import router as events_router
from .memories import router as memories_router
from .memories import search_router

__all__ = ["events_router", "memories_router", "search_router"]
