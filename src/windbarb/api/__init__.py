from windbarb.api.dependencies import get_refresher, get_service
from windbarb.api.routes import router

__all__ = ["get_refresher", "get_service", "router"]
