"""
Export fan-out — delivers one media item to every destination, in order.

The first destination failure aborts the item for all remaining destinations.
Destinations that already succeeded keep their effect; there is no rollback.
"""

import logging
import time
from collections import defaultdict

from media_harvester.core.errors import ExportError
from media_harvester.exporters.base import Exporter
from media_harvester.models.media import MediaItem

logger = logging.getLogger(__name__)


class ExportFanout:
    def __init__(self, exporters: list[Exporter]):
        self.exporters = list(exporters)
        self.stats: dict[str, dict[str, int]] = defaultdict(lambda: {"success": 0, "fail": 0})

    async def dispatch(self, item: MediaItem) -> None:
        """Export `item` to each destination sequentially, failing on the first error."""
        for exporter in self.exporters:
            start = time.monotonic()
            try:
                await exporter.export(item)
            except Exception as e:
                self.stats[exporter.kind]["fail"] += 1
                raise ExportError(exporter.kind, item.name, e) from e

            self.stats[exporter.kind]["success"] += 1
            logger.info(
                f"success: type={exporter.kind} media={item.name} "
                f"duration={time.monotonic() - start:.3f}s"
            )
