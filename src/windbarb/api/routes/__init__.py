from fastapi import APIRouter

from windbarb.api.routes.wind import router as wind_router

router = APIRouter()
router.include_router(wind_router)

__all__ = ["router"]
