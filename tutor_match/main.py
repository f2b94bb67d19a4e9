from contextlib import asynccontextmanager
from fastapi import FastAPI
import logging

from tutor_match.api.v1.api import api_router
from tutor_match.core.config import settings
from tutor_match.services.tutor_directory import TutorDirectoryClient

# Configure logging
logging.basicConfig(
    level=getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO),
    format="%(asctime)s - %(name)s - %(levelname)s - %(message)s"
)

logger = logging.getLogger(__name__)


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Open the tutor directory client for the lifetime of the app"""
    logger.info(f"{settings.APP_NAME} starting up, tutor directory at {settings.TUTOR_API_BASE_URL}")
    app.state.directory_client = TutorDirectoryClient()
    try:
        yield
    finally:
        await app.state.directory_client.aclose()
        logger.info(f"{settings.APP_NAME} shut down")


app = FastAPI(
    title=settings.APP_NAME,
    version=settings.APP_VERSION,
    debug=settings.DEBUG,
    lifespan=lifespan,
)

app.include_router(api_router, prefix="/api/v1")


@app.get("/health")
async def health():
    return {"status": "ok", "version": settings.APP_VERSION}
