from fastapi import APIRouter

from .upload import router as upload_router
from .dashboard import router as dashboard_router

api_router = APIRouter()

api_router.include_router(upload_router, prefix="/upload", tags=["Upload"])
api_router.include_router(dashboard_router, tags=["Dashboard"])
