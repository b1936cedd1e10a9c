"""
Media Harvester — Poll-and-export pipeline.

Wires the source poller to the export fan-out:
- Poller task produces media items into a hand-off channel
- Consumer loop exports each item to every destination, in order
- First fetch or export error stops the whole pipeline
- Run statistics are printed on exit
"""

import logging
import time

import httpx
from rich.console import Console

from media_harvester.clients.twitter import TwitterClient
from media_harvester.core.checkpoint import CheckpointStore
from media_harvester.core.config import HarvestConfig
from media_harvester.core.downloader import MediaDownloader
from media_harvester.core.errors import ConfigError
from media_harvester.core.fanout import ExportFanout
from media_harvester.core.poller import SourcePoller
from media_harvester.exporters import build_exporters
from media_harvester.exporters.base import Exporter

logger = logging.getLogger("MediaHarvester")

HTTP_TIMEOUT = httpx.Timeout(60.0, connect=30.0)


class MediaHarvester:
    """
    Consumes media from a SourcePoller and fans it out to exporters.

    The consumer is strictly sequential: the poller cannot download the next
    item until the current one has been exported everywhere (or failed).
    """

    def __init__(
        self,
        poller: SourcePoller,
        exporters: list[Exporter],
        console: Console | None = None,
    ):
        if not exporters:
            raise ConfigError("at least one exporter needs to be enabled")

        self.poller = poller
        self.exporters = list(exporters)
        self.fanout = ExportFanout(self.exporters)
        self.console = console or Console(stderr=True)

        self.stats: dict = {
            "media_exported": 0,
            "bytes_exported": 0,
            "start_time": 0.0,
        }

    def stop(self) -> None:
        """Request a clean shutdown after the current poll cycle."""
        self.poller.request_stop()

    async def run(self) -> None:
        """
        Run until the poller stops or an error occurs.

        Raises:
            FetchError: polling or downloading failed.
            ExportError: a destination failed to export an item.
        """
        self.stats["start_time"] = time.time()
        channel = self.poller.start()
        try:
            while True:
                result = await channel.receive()
                if result.error is not None:
                    raise result.error
                if result.closed:
                    logger.info("Poller finished.")
                    return

                item = result.item
                await self.fanout.dispatch(item)
                channel.acknowledge()

                self.stats["media_exported"] += 1
                self.stats["bytes_exported"] += item.size
        finally:
            await self.poller.stop()
            for exporter in self.exporters:
                await exporter.finalize()
            self._print_final_statistics()

    # ──────────────────────────────────────────────
    # Statistics
    # ──────────────────────────────────────────────

    def _get_stats_summary(self) -> str:
        """Get human-readable statistics summary."""
        elapsed = time.time() - self.stats["start_time"] if self.stats["start_time"] else 0
        mb_exported = self.stats["bytes_exported"] / (1024 * 1024)
        mb_downloaded = self.poller.downloader.bytes_downloaded / (1024 * 1024)

        return (
            f"Media: {self.stats['media_exported']} | Exported: {mb_exported:.2f} MB | "
            f"Downloaded: {mb_downloaded:.2f} MB | Cycles: {self.poller.cycles} | "
            f"Cursor: {self.poller.cursor} | Elapsed: {elapsed:.0f}s"
        )

    def _print_final_statistics(self) -> None:
        self.console.print("\n[bold green][DONE] Harvest stopped[/bold green]")
        self.console.print(f"[cyan]Final Stats:[/cyan] {self._get_stats_summary()}")

        self.console.print("[cyan]Destination Statistics:[/cyan]")
        for exporter in self.exporters:
            stats = self.fanout.stats[exporter.kind]
            total = stats["success"] + stats["fail"]
            success_rate = (stats["success"] / total * 100) if total > 0 else 0
            self.console.print(
                f"  {exporter.kind}: {stats['success']}/{total} ({success_rate:.1f}% success)"
            )


async def harvest(config: HarvestConfig, console: Console | None = None) -> None:
    """Build every component from `config` and run the pipeline."""
    console = console or Console(stderr=True)

    async with httpx.AsyncClient(timeout=HTTP_TIMEOUT, follow_redirects=True) as http:
        exporters = await build_exporters(config, http, console)
        logger.info(f"Destinations: {', '.join(e.kind for e in exporters)}")

        poller = await SourcePoller.create(
            TwitterClient.from_config(config.twitter),
            MediaDownloader(http),
            config.twitter,
            CheckpointStore(config.state_path),
        )
        harvester = MediaHarvester(poller, exporters, console=console)
        await harvester.run()
