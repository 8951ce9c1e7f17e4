"""
Persistence of fuel reports and run metadata to the Realtime Database

Store layout:
    /City/{cityKey}/{fuelTypeKey}  -> FuelReport document
    /Updated                       -> {at, duration} freshness marker

Every (city, fuel type) write targets its own subtree, so concurrent city
tasks never write the same path.
"""
import asyncio
import logging
from datetime import datetime, timedelta
from enum import Enum
from typing import Any, Dict, Optional

import pytz

from petrolmate.schemas.fuel import CrawlRun, FuelReport

logger = logging.getLogger(__name__)

CITY_ROOT = "City"
UPDATED_PATH = "/Updated"
TIMESTAMP_FORMAT = "%d-%m-%Y %H:%M:%S"


class WriteMode(str, Enum):
    MERGE = "merge"
    REPLACE = "replace"


def city_fuel_path(city_key: str, fuel_key: str) -> str:
    return f"/{CITY_ROOT}/{city_key}/{fuel_key}"


def format_timestamp(moment: datetime, timezone: str = "Australia/Adelaide") -> str:
    """DD-MM-YYYY HH:mm:ss in the given timezone; naive datetimes are taken as UTC"""
    if moment.tzinfo is None:
        moment = pytz.utc.localize(moment)
    return moment.astimezone(pytz.timezone(timezone)).strftime(TIMESTAMP_FORMAT)


def format_duration(duration: timedelta) -> str:
    total_seconds = max(int(duration.total_seconds()), 0)
    hours, remainder = divmod(total_seconds, 3600)
    return f"{hours} hours and {remainder // 60} minutes"


class PersistenceWriter:
    """
    Writes documents to the store, never raising on failure.

    MERGE updates only the named children of the target node (siblings are
    left alone); REPLACE overwrites the whole node. The mode is chosen per
    call, falling back to the writer's default.
    """

    def __init__(
        self,
        database,
        default_mode: WriteMode = WriteMode.MERGE,
        timezone: str = "Australia/Adelaide",
    ):
        self.database = database
        self.default_mode = WriteMode(default_mode)
        self.timezone = timezone

    def _write_sync(self, path: str, value: Dict[str, Any], mode: WriteMode):
        ref = self.database.reference(path)
        if mode is WriteMode.MERGE:
            ref.update(value)
        else:
            ref.set(value)

    async def write(
        self,
        path: str,
        value: Dict[str, Any],
        mode: Optional[WriteMode] = None,
        success_msg: Optional[str] = None,
    ) -> bool:
        """
        Write value at path.

        Firebase Admin SDK calls are blocking, so they run in a worker thread.

        Returns:
            True if the write succeeded, False if it failed (already logged)
        """
        write_mode = WriteMode(mode) if mode is not None else self.default_mode
        try:
            await asyncio.to_thread(self._write_sync, path, value, write_mode)
        except Exception as e:
            logger.error(f"❌ Error writing {path} ({write_mode.value}): {e}")
            return False

        logger.info(success_msg or f"Saved {path} ({write_mode.value})")
        return True

    async def write_report(
        self,
        city_key: str,
        fuel_key: str,
        report: FuelReport,
        mode: Optional[WriteMode] = None,
    ) -> bool:
        """Write one combination's report; empty reports are written too"""
        return await self.write(
            city_fuel_path(city_key, fuel_key),
            report.to_document(),
            mode,
            success_msg=(
                f"Data saved successfully for City: {city_key}, Fuel type: {fuel_key} "
                f"({len(report.stations)} stations)"
            ),
        )

    def run_metadata(self, run: CrawlRun) -> Dict[str, str]:
        finished_at = run.finished_at or datetime.utcnow()
        duration = run.duration or timedelta(0)
        return {
            'at': format_timestamp(finished_at, self.timezone),
            'duration': format_duration(duration),
        }

    async def write_run_metadata(self, run: CrawlRun, mode: Optional[WriteMode] = None) -> bool:
        """Write the freshness marker for a finished run"""
        return await self.write(
            UPDATED_PATH,
            self.run_metadata(run),
            mode,
            success_msg="Timestamp is updated successfully",
        )
