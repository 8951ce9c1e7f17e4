"""
Crawl orchestration
Runs the city x fuel-type cross product and hands each page's report to the writer
"""
import asyncio
import logging
from datetime import datetime
from typing import Callable, List, Optional

from petrolmate.schemas.fuel import Catalog, City, CrawlRun, FuelType, RawListing, RunState
from petrolmate.services.fuel.address import IntersectionMode
from petrolmate.services.fuel.aggregator import build_report
from petrolmate.services.fuel.extractor import extract_stations
from petrolmate.services.fuel.geocode import Geocoder
from petrolmate.services.fuel.persistence import PersistenceWriter

logger = logging.getLogger(__name__)


class CrawlOrchestrator:
    """
    Drives one crawl run across the catalog.

    Each city gets its own page source session from page_source_factory (an
    async context manager). Fuel types inside a city run strictly in catalog
    order on that session. With concurrent=True, cities run as separate
    asyncio tasks, city i starting i * stagger_seconds after the first.

    Failures are contained: a failed combination is logged and skipped, a
    failed session start skips that city only. Only an error escaping the
    run loop itself marks the run FAILED and propagates.
    """

    def __init__(
        self,
        catalog: Catalog,
        page_source_factory: Callable,
        writer: PersistenceWriter,
        geocoder: Optional[Geocoder] = None,
        concurrent: bool = False,
        stagger_seconds: float = 30.0,
        intersection_mode: IntersectionMode = IntersectionMode.KEEP,
    ):
        self.catalog = catalog
        self.page_source_factory = page_source_factory
        self.writer = writer
        self.geocoder = geocoder
        self.concurrent = concurrent
        self.stagger_seconds = stagger_seconds
        self.intersection_mode = IntersectionMode(intersection_mode)
        self.run_summary = CrawlRun()

    @property
    def state(self) -> RunState:
        return self.run_summary.state

    async def run(self) -> CrawlRun:
        """
        Execute one full crawl and write the freshness marker.

        The marker is only written when at least one combination succeeded;
        otherwise the run ends FAILED and the previous marker stays.

        Returns:
            CrawlRun summary in COMPLETED or FAILED state

        Raises:
            Exception: Anything escaping the run loop (state is set to FAILED first)
        """
        summary = CrawlRun(state=RunState.RUNNING, started_at=datetime.utcnow())
        self.run_summary = summary

        logger.info("=" * 80)
        logger.info(
            f"Starting fuel price crawl: {len(self.catalog.cities)} cities x "
            f"{len(self.catalog.fuel_types)} fuel types "
            f"({'concurrent' if self.concurrent else 'sequential'})"
        )
        logger.info("=" * 80)

        try:
            if self.concurrent:
                await self._run_concurrent()
            else:
                for city in self.catalog.cities:
                    await self._crawl_city(city)

            summary.finished_at = datetime.utcnow()
            if summary.combinations_succeeded:
                summary.metadata_written = await self.writer.write_run_metadata(summary)
                if not summary.metadata_written:
                    summary.writes_failed += 1

        except Exception as e:
            summary.state = RunState.FAILED
            summary.finished_at = summary.finished_at or datetime.utcnow()
            summary.errors.append(f"run: {e}")
            logger.error(f"❌ Crawl run failed: {e}")
            raise

        if not summary.combinations_succeeded:
            # /Updated keeps the last successful refresh
            summary.state = RunState.FAILED
            summary.errors.append("run: no combination succeeded, freshness marker not updated")
            logger.error("❌ Crawl run failed: no combination succeeded")
        else:
            summary.state = RunState.COMPLETED
        self._log_summary(summary)
        return summary

    async def _run_concurrent(self):
        tasks = [
            asyncio.create_task(self._crawl_city_after(city, index * self.stagger_seconds))
            for index, city in enumerate(self.catalog.cities)
        ]
        await asyncio.gather(*tasks)

    async def _crawl_city_after(self, city: City, delay: float):
        if delay > 0:
            logger.info(f"{city.key}: starting in {delay:.0f}s")
            await asyncio.sleep(delay)
        await self._crawl_city(city)

    async def _crawl_city(self, city: City):
        summary = self.run_summary
        fuel_types = self.catalog.fuel_types
        completed = 0

        logger.info(f"{'=' * 60}")
        logger.info(f"Crawling {city.key}")
        logger.info(f"{'=' * 60}")

        try:
            async with self.page_source_factory() as source:
                for fuel_type in fuel_types:
                    await self._crawl_combination(source, city, fuel_type)
                    completed += 1
        except Exception as e:
            remaining = len(fuel_types) - completed
            summary.combinations_failed += remaining
            error_msg = f"{city.key}: session failed, {remaining} fuel types skipped: {e}"
            summary.errors.append(error_msg)
            logger.error(f"❌ {error_msg}")

    async def _fetch_listings(self, source, city: City, fuel_type: FuelType) -> List[RawListing]:
        await source.navigate_to(city.location_descriptor)
        await source.select_fuel_type(fuel_type.site_id)
        await source.switch_to_list_view()
        return list(await source.list_stations())

    async def _crawl_combination(self, source, city: City, fuel_type: FuelType) -> bool:
        summary = self.run_summary

        try:
            listings = await self._fetch_listings(source, city, fuel_type)
        except Exception as e:
            summary.combinations_failed += 1
            error_msg = f"{city.key}/{fuel_type.key}: {e}"
            summary.errors.append(error_msg)
            logger.error(f"  ❌ {error_msg}")
            return False

        stations = await extract_stations(listings, self.geocoder, self.intersection_mode)
        report = build_report(stations)

        summary.combinations_succeeded += 1
        if await self.writer.write_report(city.key, fuel_type.key, report):
            summary.stations_written += len(report.stations)
        else:
            summary.writes_failed += 1

        logger.info(
            f"  ✅ {city.key}/{fuel_type.key}: {len(report.stations)} stations, "
            f"min={report.min_price} max={report.max_price}"
        )
        return True

    def _log_summary(self, summary: CrawlRun):
        logger.info("=" * 80)
        logger.info("Fuel price crawl complete:")
        logger.info(f"  Combinations succeeded: {summary.combinations_succeeded}")
        logger.info(f"  Combinations failed: {summary.combinations_failed}")
        logger.info(f"  Stations written: {summary.stations_written}")
        logger.info(f"  Duration: {summary.duration.total_seconds():.1f}s")
        if summary.writes_failed:
            logger.warning(f"  Failed writes: {summary.writes_failed}")
        if summary.errors:
            logger.warning(f"  Errors: {len(summary.errors)}")
        logger.info("=" * 80)
