from fastapi import FastAPI
from loguru import logger

from app.api.routes import api_router
from app.config.settings import settings
from app.core.logging_config import setup_logging

setup_logging()

app = FastAPI(title=settings.APP_NAME, debug=settings.DEBUG)


@app.on_event("startup")
async def startup():
    logger.info(
        "{} starting (env={}, sessions={}, vendors={})",
        settings.APP_NAME,
        settings.ENVIRONMENT,
        settings.SESSION_BACKEND,
        settings.VENDOR_BACKEND,
    )


app.include_router(api_router)
