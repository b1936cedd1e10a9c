"""
Local Exporter — Writes media items into a directory.

Files are named after the media item and overwritten if they already exist
(last write wins).
"""

import logging
from pathlib import Path

import aiofiles

from media_harvester.core.errors import ConfigError
from media_harvester.models.media import MediaItem

logger = logging.getLogger(__name__)


class LocalExporter:
    """
    Exports MediaItem objects as files under a root directory.

    Output structure:
        root/
        ├── EaBcD12XkAAb3xY.jpg
        └── 1265486302546849792.mp4
    """

    kind = "local"

    def __init__(self, root: Path):
        self.root = Path(root)
        try:
            self.root.mkdir(parents=True, exist_ok=True)
        except OSError as e:
            raise ConfigError(f"cannot create local root {self.root}: {e}") from e
        self.count = 0

    async def export(self, item: MediaItem) -> None:
        """Write a single media item to `<root>/<name>`."""
        filepath = self.root / item.name

        async with aiofiles.open(filepath, "wb") as f:
            await f.write(item.payload)

        self.count += 1
        logger.debug(f"[Local] Exported {item.name} ({item.size} bytes)")

    async def finalize(self) -> None:
        """Log export summary."""
        logger.info(f"[Local] Export complete: {self.count} media exported to {self.root}")
