"""
Google Photos Exporter — Uploads media items into a named album.

Each item is staged in a temporary directory (the upload reads from disk),
uploaded for an upload token, then attached to the album. The staging
directory is removed whatever the outcome.
"""

import logging
import tempfile
from pathlib import Path

import aiofiles

from media_harvester.clients.gphotos import PhotosClient
from media_harvester.models.media import MediaItem

logger = logging.getLogger(__name__)

TEMP_PREFIX = "media-harvester-gphotos-"


class GooglePhotosExporter:
    """Exports MediaItem objects to a Google Photos album."""

    kind = "gphotos"

    def __init__(self, client: PhotosClient, album_name: str, album_id: str):
        self.client = client
        self.album_name = album_name
        self.album_id = album_id
        self.count = 0

    @classmethod
    async def create(cls, client: PhotosClient, album_name: str) -> "GooglePhotosExporter":
        """Resolve (or create) the album and return a ready exporter."""
        album_id = await client.get_or_create_album(album_name)
        return cls(client, album_name, album_id)

    async def export(self, item: MediaItem) -> None:
        """Upload a single media item into the album."""
        with tempfile.TemporaryDirectory(prefix=TEMP_PREFIX) as tmpdir:
            path = Path(tmpdir) / item.name
            async with aiofiles.open(path, "wb") as f:
                await f.write(item.payload)

            upload_token = await self.client.upload(path, item.name)
            await self.client.add_to_album(upload_token, self.album_id, item.name)

        self.count += 1
        logger.debug(f"[GPhotos] Exported {item.name} to album {self.album_name!r}")

    async def finalize(self) -> None:
        """Log export summary."""
        logger.info(f"[GPhotos] Export complete: {self.count} media uploaded to album {self.album_name!r}")
