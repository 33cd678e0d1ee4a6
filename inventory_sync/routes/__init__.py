from .inventory_routes import router as inventory_router
from .settings_routes import router as settings_router
from .trigger_routes import router as trigger_router

__all__ = ["inventory_router", "settings_router", "trigger_router"]
