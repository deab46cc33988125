"""Runs both step queries concurrently and writes the one-line report."""
import asyncio
import logging
from datetime import datetime
from pathlib import Path
from typing import Optional

import aiohttp

from .config import AppConfig
from .fitness import GoogleFitClient

logger = logging.getLogger(__name__)


def format_report(today: int, average: int) -> str:
    return f" Steps: {today} / {average}"


def write_report(path: Path, line: str) -> Path:
    """Overwrite ``path`` with exactly ``line``."""
    path = Path(path)
    path.write_text(line, encoding="utf-8")
    logger.info("Step count data saved to %s", path)
    return path


async def run_report_async(
    config: AppConfig,
    session: Optional[aiohttp.ClientSession] = None,
    now: Optional[datetime] = None,
) -> Path:
    """Fetch today's steps and the seven day average, then write the report.

    Either query failing aborts the whole run before anything is written.
    """
    config.require_refresh_token()

    if session is None:
        async with aiohttp.ClientSession() as own_session:
            return await run_report_async(config, own_session, now)

    client = GoogleFitClient(config, session)
    today, average = await asyncio.gather(
        client.steps_today(now),
        client.seven_day_average(now),
    )
    return write_report(config.output_path, format_report(today, average))


def run_report(config: AppConfig) -> bool:
    """Reporting flow boundary: logs any failure instead of raising.

    Returns True when the report file was written.
    """
    try:
        asyncio.run(run_report_async(config))
        return True
    except Exception:
        logger.exception("Error fetching step count data")
        return False
