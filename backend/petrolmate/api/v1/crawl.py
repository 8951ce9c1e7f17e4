"""
Crawl trigger API endpoints
Start a fuel price crawl from an external scheduler
"""
import logging
from datetime import datetime
from typing import Optional

from fastapi import APIRouter, BackgroundTasks, Depends
from pydantic import BaseModel

from petrolmate.core.security import verify_cron_secret
from petrolmate.schemas.fuel import RunState
from petrolmate.workers.crawl_fuel_prices import run_fuel_crawl_job

logger = logging.getLogger(__name__)

router = APIRouter()


# ==================== SCHEMAS ====================

class CrawlTriggerResponse(BaseModel):
    """Acknowledgement returned by the crawl trigger"""
    message: str
    started: bool

    model_config = {
        "json_schema_extra": {
            "example": {
                "message": "Crawling for data...",
                "started": True
            }
        }
    }


class CrawlStatusResponse(BaseModel):
    """State of the most recent crawl started by this process"""
    state: RunState
    started_at: Optional[datetime] = None
    finished_at: Optional[datetime] = None
    combinations_succeeded: int = 0
    combinations_failed: int = 0
    stations_written: int = 0


# ==================== RUN TRACKING ====================

class CrawlTracker:
    """
    Tracks the crawl started through the trigger.

    Only one run may be in flight per process; try_start() claims the slot
    before the background task is scheduled so two quick triggers cannot
    both start a run.
    """

    def __init__(self):
        self.in_flight = False
        self.last_status = CrawlStatusResponse(state=RunState.IDLE)

    def try_start(self) -> bool:
        if self.in_flight:
            return False
        self.in_flight = True
        self.last_status = CrawlStatusResponse(state=RunState.RUNNING, started_at=datetime.utcnow())
        return True

    async def run(self):
        """Background task body; failures are logged, never raised to the server"""
        try:
            result = await run_fuel_crawl_job()
            summary = result['run']
            self.last_status = CrawlStatusResponse(
                state=summary.state,
                started_at=summary.started_at,
                finished_at=summary.finished_at,
                combinations_succeeded=summary.combinations_succeeded,
                combinations_failed=summary.combinations_failed,
                stations_written=summary.stations_written,
            )
        except Exception as e:
            logger.error(f"❌ Triggered crawl failed: {e}", exc_info=True)
            self.last_status = CrawlStatusResponse(
                state=RunState.FAILED,
                started_at=self.last_status.started_at,
                finished_at=datetime.utcnow(),
            )
        finally:
            self.in_flight = False


tracker = CrawlTracker()


# ==================== ENDPOINTS ====================

@router.get(
    "/craw-data",
    response_model=CrawlTriggerResponse,
    summary="Trigger a crawl",
    description="Start one fuel price crawl in the background and return immediately"
)
async def trigger_crawl(
    background_tasks: BackgroundTasks,
    _: None = Depends(verify_cron_secret)
):
    """
    Start a crawl of every city and fuel type.

    A trigger received while a run is still going is acknowledged without
    starting a second run.
    """
    if not tracker.try_start():
        logger.info("Crawl already in progress, ignoring trigger")
        return CrawlTriggerResponse(message="Crawl already in progress", started=False)

    background_tasks.add_task(tracker.run)
    logger.info("Crawl triggered")

    return CrawlTriggerResponse(message="Crawling for data...", started=True)


@router.get(
    "/craw-data/status",
    response_model=CrawlStatusResponse,
    summary="Crawl status",
    description="State and counts of the most recent triggered crawl"
)
async def get_crawl_status():
    return tracker.last_status
