"""Google Fit aggregate queries for step counts using aiohttp."""
import logging
import math
from datetime import datetime, time, timedelta
from typing import Any, Dict, Optional, Tuple

import aiohttp

from .auth import GoogleAuth
from .config import AppConfig

logger = logging.getLogger(__name__)

STEP_DATA_TYPE = "com.google.step_count.delta"
STEP_DATA_SOURCE = "derived:com.google.step_count.delta:com.google.android.gms:estimated_steps"
DAY_MILLIS = 24 * 60 * 60 * 1000
HISTORY_DAYS = 7


def dig(data: Any, *path, default: Any = 0) -> Any:
    """Walk nested dicts/lists along ``path``; return ``default`` if any level is missing."""
    current = data
    for key in path:
        try:
            current = current[key]
        except (KeyError, IndexError, TypeError):
            return default
        if current is None:
            return default
    return current


def bucket_steps(bucket: Any) -> int:
    """First integer step value of a bucket, 0 when the bucket carries no data."""
    return dig(bucket, "dataset", 0, "point", 0, "value", 0, "intVal") or 0


def _millis(moment: datetime) -> int:
    return int(moment.timestamp() * 1000)


def today_window(now: Optional[datetime] = None) -> Tuple[int, int]:
    """Local midnight today up to ``now``, in epoch millis."""
    now = now or datetime.now()
    start = datetime.combine(now.date(), time.min, tzinfo=now.tzinfo)
    return _millis(start), _millis(now)


def history_window(now: Optional[datetime] = None, days: int = HISTORY_DAYS) -> Tuple[int, int]:
    """Local midnight ``days`` days ago up to local midnight today (today excluded)."""
    now = now or datetime.now()
    today = now.date()
    start = datetime.combine(today - timedelta(days=days), time.min, tzinfo=now.tzinfo)
    end = datetime.combine(today, time.min, tzinfo=now.tzinfo)
    return _millis(start), _millis(end)


def aggregate_body(start_millis: int, end_millis: int) -> Dict[str, Any]:
    return {
        "aggregateBy": [
            {
                "dataTypeName": STEP_DATA_TYPE,
                "dataSourceId": STEP_DATA_SOURCE,
            }
        ],
        "bucketByTime": {"durationMillis": str(DAY_MILLIS)},
        "startTimeMillis": str(start_millis),
        "endTimeMillis": str(end_millis),
    }


def round_half_up(value: float) -> int:
    return int(math.floor(value + 0.5))


def average_steps(buckets: Any) -> int:
    """Mean steps per returned bucket; 0 when there are none.

    The divisor is the number of buckets Google returned, not a fixed
    seven, so missing days shrink the denominator.
    """
    if not buckets:
        return 0
    total = sum(bucket_steps(bucket) for bucket in buckets)
    return round_half_up(total / len(buckets))


class GoogleFitClient:
    """Thin async wrapper over the ``dataset:aggregate`` endpoint."""

    AGGREGATE_URL = "https://www.googleapis.com/fitness/v1/users/me/dataset:aggregate"

    def __init__(self, config: AppConfig, session: aiohttp.ClientSession, auth: Optional[GoogleAuth] = None) -> None:
        self.config = config
        self.session = session
        self.auth = auth or GoogleAuth(config)

    async def aggregate(self, start_millis: int, end_millis: int) -> Dict[str, Any]:
        token = await self.auth.ensure_token(self.session)
        headers = {"Authorization": f"Bearer {token}"}
        timeout = aiohttp.ClientTimeout(total=60)
        resp = await self.session.post(
            self.AGGREGATE_URL,
            headers=headers,
            json=aggregate_body(start_millis, end_millis),
            timeout=timeout,
        )
        logger.debug("Aggregate %s-%s: HTTP %s", start_millis, end_millis, resp.status)
        resp.raise_for_status()
        return await resp.json()

    async def steps_today(self, now: Optional[datetime] = None) -> int:
        start, end = today_window(now)
        data = await self.aggregate(start, end)
        steps = bucket_steps(dig(data, "bucket", 0, default=None))
        logger.info("Steps today: %s", steps)
        return steps

    async def seven_day_average(self, now: Optional[datetime] = None) -> int:
        start, end = history_window(now)
        data = await self.aggregate(start, end)
        buckets = dig(data, "bucket", default=[])
        average = average_steps(buckets)
        logger.info("Seven day average: %s over %d buckets", average, len(buckets))
        return average
