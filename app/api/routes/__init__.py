from fastapi import APIRouter

from app.api.routes.health import router as health_router
from app.api.routes.whatsapp import router as whatsapp_router

api_router = APIRouter()

# Public / health
api_router.include_router(health_router, tags=["health"])
api_router.include_router(whatsapp_router, tags=["whatsapp"])
