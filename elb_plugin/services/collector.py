from __future__ import annotations

import asyncio
from typing import Dict, Optional, Sequence, Tuple

from ..errors import PluginError
from ..log import get_logger
from ..metrics.base import SeriesDefinition
from ..metrics.client import CloudWatchClient
from ..metrics.elb import series_for

logger = get_logger(__name__)


class MetricCollector:
    """Fetches the latest value of every ELB series for one polling cycle."""

    def __init__(self, client: CloudWatchClient, max_concurrency: int = 4) -> None:
        self.client = client
        self.max_concurrency = max(max_concurrency, 1)

    async def collect_once(self, zones: Sequence[str]) -> Dict[str, float]:
        semaphore = asyncio.Semaphore(self.max_concurrency)
        results = await asyncio.gather(
            *(self._fetch(series, semaphore) for series in series_for(zones))
        )
        return {key: value for key, value in results if value is not None}

    async def _fetch(
        self, series: SeriesDefinition, semaphore: asyncio.Semaphore
    ) -> Tuple[str, Optional[float]]:
        async with semaphore:
            try:
                value = await asyncio.to_thread(
                    self.client.fetch_latest,
                    series.dimension,
                    series.metric_name,
                    series.statistic,
                )
            except PluginError as exc:
                logger.warning("Skipping %s: %s", series.key, exc)
                return series.key, None

        if value is None:
            logger.debug("No data points for %s", series.key)
        return series.key, value


def build_snapshot(
    client: CloudWatchClient, zones: Sequence[str], max_concurrency: int = 4
) -> Dict[str, float]:
    return asyncio.run(MetricCollector(client, max_concurrency).collect_once(zones))
