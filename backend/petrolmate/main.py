"""
PetrolMate crawler service
Serves the HTTP trigger for the fuel price crawl
"""
import logging

import uvicorn
from fastapi import FastAPI
from fastapi.responses import PlainTextResponse

from petrolmate.api.v1 import crawl
from petrolmate.core.config import settings
from petrolmate.core.monitoring import configure_logging

configure_logging(settings.LOG_LEVEL)
logger = logging.getLogger(__name__)

app = FastAPI(
    title="PetrolMate Crawler",
    description="Crawls PetrolSpy fuel prices into the Firebase Realtime Database",
    version="1.0.0",
)

app.include_router(crawl.router, tags=["crawl"])


@app.get("/", response_class=PlainTextResponse)
async def home():
    return "Petrol Mate crawler home page. Call /craw-data to start a crawl."


@app.get("/health")
async def health():
    """Service liveness and the state of the last triggered crawl"""
    return {
        "status": "healthy",
        "environment": settings.ENVIRONMENT,
        "crawl_state": crawl.tracker.last_status.state.value,
    }


if __name__ == "__main__":
    logger.info(f"Starting PetrolMate crawler on port {settings.PORT}")
    uvicorn.run(app, host="0.0.0.0", port=settings.PORT)
