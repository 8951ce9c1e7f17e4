"""
Monitoring utilities for crawl runs
"""
import logging
import os
import sys
from contextlib import contextmanager
from datetime import datetime
from pathlib import Path
from typing import Dict, Optional

from petrolmate.core.config import Settings

logger = logging.getLogger(__name__)


def configure_logging(level: str = "INFO"):
    """Configure root logging for worker and server entry points"""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )


def validate_environment(app_settings: Settings):
    """
    Validate that Firebase credentials are available before a run

    Raises:
        SystemExit: If no credential source is configured, or the key file is missing
    """
    if app_settings.USE_MOCK_FIREBASE:
        logger.warning("USE_MOCK_FIREBASE is set - results will not be persisted")
        return

    creds_path = app_settings.GOOGLE_APPLICATION_CREDENTIALS

    if creds_path:
        if not os.path.exists(creds_path):
            logger.error(f"Firebase credentials file not found: {creds_path}")
            logger.error("Verify GOOGLE_APPLICATION_CREDENTIALS points to a valid file")
            sys.exit(1)
        logger.info(f"Firebase credentials loaded from: {creds_path}")
        return

    if app_settings.FIREBASE_CREDENTIALS_JSON:
        return

    if app_settings.PRIVATE_KEY_BASE64 and app_settings.CLIENT_EMAIL:
        return

    logger.error("No Firebase credentials configured")
    logger.error("Set GOOGLE_APPLICATION_CREDENTIALS, FIREBASE_CREDENTIALS_JSON,")
    logger.error("or PRIVATE_KEY_BASE64 + CLIENT_EMAIL (or USE_MOCK_FIREBASE=true)")
    sys.exit(1)


@contextmanager
def acquire_lock(job_name: str, lock_dir: str = "/tmp"):
    """
    Acquire a file lock to prevent concurrent job execution

    Args:
        job_name: Name of the job (used for lock filename)
        lock_dir: Directory to store lock files (default: /tmp)

    Raises:
        RuntimeError: If lock cannot be acquired (job already running)
    """
    lock_file = Path(lock_dir) / f"{job_name}.lock"

    if lock_file.exists():
        try:
            pid = int(lock_file.read_text().strip())
        except ValueError:
            logger.warning(f"Removing unreadable lock file: {lock_file}")
            lock_file.unlink()
        else:
            try:
                os.kill(pid, 0)  # Signal 0 checks if process exists
            except OSError:
                logger.warning(f"Removing stale lock file: {lock_file} (PID {pid} not found)")
                lock_file.unlink()
            else:
                raise RuntimeError(
                    f"Job {job_name} is already running (PID: {pid}). "
                    f"Lock file: {lock_file}"
                )

    try:
        lock_file.write_text(str(os.getpid()))
        logger.info(f"Lock acquired: {lock_file}")

        yield

    finally:
        if lock_file.exists():
            lock_file.unlink()
            logger.info(f"Lock released: {lock_file}")


@contextmanager
def track_job(job_name: str, counts: Optional[Dict[str, int]] = None):
    """
    Context manager to log job execution

    Usage:
        with track_job('crawl_fuel_prices', counts={'written': 0}) as counts:
            counts['written'] += 10

    Args:
        job_name: Name of the job
        counts: Dictionary to track counts (mutated by caller)
    """
    counts = counts if counts is not None else {}
    started_at = datetime.utcnow()
    error_msg = None
    status = 'success'

    logger.info(f"Job {job_name} started at {started_at.isoformat()}Z")

    try:
        yield counts
    except Exception as e:
        status = 'fail'
        error_msg = str(e)
        logger.error(f"Job {job_name} failed: {error_msg}")
        raise
    finally:
        duration_ms = int((datetime.utcnow() - started_at).total_seconds() * 1000)
        log_msg = f"Job run: {job_name} [{status}] duration={duration_ms}ms"
        if counts:
            log_msg += f" counts={counts}"
        if error_msg:
            log_msg += f" error={error_msg}"
        logger.info(log_msg)
