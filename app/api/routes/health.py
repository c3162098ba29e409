from fastapi import APIRouter

from app.config.settings import settings

router = APIRouter()


@router.get("/")
async def health():
    return {"status": "ok", "message": f"{settings.PLATFORM_NAME} onboarding bot running"}
