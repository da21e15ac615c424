"""API routers."""

from app.routers.background import router as background_router
from app.routers.events import router as events_router
from app.routers.inbound import router as inbound_router
from app.routers.preferences import router as preferences_router
from app.routers.transcribe import router as transcribe_router

__all__ = ["inbound_router", "background_router", "transcribe_router", "preferences_router", "events_router"]
