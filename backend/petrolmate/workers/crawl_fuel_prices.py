"""
Fuel Price Crawl Worker
Crawls every city/fuel-type page and stores the reports in the Realtime Database
"""
import asyncio
import logging
import sys
from typing import Any, Dict, Optional

from petrolmate.core.config import Settings, settings as default_settings
from petrolmate.core.firebase import get_database
from petrolmate.core.monitoring import acquire_lock, configure_logging, track_job, validate_environment
from petrolmate.schemas.fuel import RunState
from petrolmate.services.fuel.catalog import load_catalog
from petrolmate.services.fuel.geocode import GeocodeEnricher
from petrolmate.services.fuel.orchestrator import CrawlOrchestrator
from petrolmate.services.fuel.page_source import playwright_session_factory
from petrolmate.services.fuel.persistence import PersistenceWriter

logger = logging.getLogger(__name__)

JOB_NAME = 'crawl_fuel_prices'


def build_orchestrator(
    app_settings: Settings,
    geocoder: Optional[GeocodeEnricher] = None,
    database=None,
    page_source_factory=None,
) -> CrawlOrchestrator:
    """
    Wire a CrawlOrchestrator from configuration.

    Any collaborator passed in explicitly replaces the configured one.
    """
    catalog = load_catalog(app_settings.CATALOG_PATH)
    writer = PersistenceWriter(
        database if database is not None else get_database(app_settings),
        default_mode=app_settings.WRITE_MODE,
        timezone=app_settings.TIMEZONE,
    )

    return CrawlOrchestrator(
        catalog=catalog,
        page_source_factory=page_source_factory or playwright_session_factory(app_settings),
        writer=writer,
        geocoder=geocoder,
        concurrent=app_settings.CONCURRENT_CITIES,
        stagger_seconds=app_settings.CITY_STAGGER_SECONDS,
        intersection_mode=app_settings.INTERSECTION_MODE,
    )


async def run_fuel_crawl_job(app_settings: Optional[Settings] = None) -> Dict[str, Any]:
    """
    Run one full crawl.

    Returns:
        Dictionary with the job status and the CrawlRun summary

    Raises:
        Exception: Setup failures and faults escaping the run
    """
    app_settings = app_settings or default_settings
    counts = {'combinations': 0, 'failed': 0, 'stations': 0}

    with track_job(JOB_NAME, counts):
        async with GeocodeEnricher(
            base_url=app_settings.GEOCODE_URL,
            country=app_settings.GEOCODE_COUNTRY,
            timeout=app_settings.GEOCODE_TIMEOUT_SECONDS,
            user_agent=app_settings.GEOCODE_USER_AGENT,
            use_cache=app_settings.GEOCODE_CACHE_ENABLED,
        ) as geocoder:
            orchestrator = build_orchestrator(app_settings, geocoder=geocoder)
            summary = await orchestrator.run()

        counts['combinations'] = summary.combinations_succeeded
        counts['failed'] = summary.combinations_failed
        counts['stations'] = summary.stations_written

        return {
            'status': 'success' if summary.state is RunState.COMPLETED else 'error',
            'run': summary,
        }


def main():
    """
    Run the fuel price crawl worker

    Usage:
        python3 -m petrolmate.workers.crawl_fuel_prices

    Environment Variables:
        GOOGLE_APPLICATION_CREDENTIALS: Path to Firebase service account JSON
        PRIVATE_KEY_BASE64, CLIENT_EMAIL, ...: Service account fields (alternative)
        USE_MOCK_FIREBASE: Write to the in-memory database instead
        CONCURRENT_CITIES: Crawl cities as staggered concurrent tasks (default: false)
        INTERSECTION_MODE: keep | truncate (default: keep)
        WRITE_MODE: merge | replace (default: merge)
    """
    configure_logging(default_settings.LOG_LEVEL)
    validate_environment(default_settings)

    exit_code = 1
    try:
        with acquire_lock(JOB_NAME):
            result = asyncio.run(run_fuel_crawl_job(default_settings))

        if result['status'] == 'success':
            logger.info("✅ Fuel price crawl completed successfully")
            exit_code = 0
        else:
            logger.error("❌ Fuel price crawl failed")

    except KeyboardInterrupt:
        logger.info("Job interrupted by user")
        exit_code = 130
    except RuntimeError as e:
        logger.error(f"❌ {e}")
    except Exception as e:
        logger.error(f"❌ Fuel price crawl failed with error: {e}", exc_info=True)

    sys.exit(exit_code)


if __name__ == "__main__":
    main()
