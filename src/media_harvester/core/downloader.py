"""
Media downloader — resolves a media reference to its best variant and fetches it.

Retrieval is a single GET with no retry: any failure is fatal for the current
poll cycle and surfaces as DownloadError.
"""

import logging
import posixpath
import re
from urllib.parse import urlparse

import httpx

from media_harvester.core.errors import DownloadError
from media_harvester.models.media import PHOTO, VIDEO, MediaItem, MediaRef, VideoVariant

logger = logging.getLogger(__name__)

VIDEO_CONTENT_TYPE = "video/mp4"
VIDEO_EXTENSION = ".mp4"

_UNSAFE_CHARS = re.compile(r"[^A-Za-z0-9._-]")


def safe_name(name: str) -> str:
    """Make a name safe to use as a file name."""
    cleaned = _UNSAFE_CHARS.sub("_", name).lstrip(".")
    return cleaned or "media"


def select_video_variant(variants) -> VideoVariant | None:
    """Pick the mp4 variant with the highest bitrate. Ties keep the first one seen."""
    best: VideoVariant | None = None
    for variant in variants:
        if variant.content_type != VIDEO_CONTENT_TYPE:
            continue
        if best is None or variant.bitrate > best.bitrate:
            best = variant
    return best


def photo_name(url: str) -> str:
    return safe_name(posixpath.basename(urlparse(url).path))


class MediaDownloader:
    """Downloads photo and video attachments into MediaItem objects."""

    def __init__(self, client: httpx.AsyncClient):
        self.client = client
        self.bytes_downloaded = 0

    async def resolve(self, ref: MediaRef) -> MediaItem:
        """Resolve a media reference into a named, downloaded MediaItem."""
        match ref.kind:
            case "photo":
                if not ref.url:
                    raise DownloadError(f"photo {ref.media_id} has no url")
                url = ref.url
                name = photo_name(url)
            case "video":
                variant = select_video_variant(ref.variants)
                if variant is None:
                    raise DownloadError(f"video {ref.media_id} has no {VIDEO_CONTENT_TYPE} variant")
                url = variant.url
                name = safe_name(f"{ref.media_id}{VIDEO_EXTENSION}")
            case _:
                raise DownloadError(
                    f"unknown media type {ref.kind!r} (expected {PHOTO!r} or {VIDEO!r})"
                )

        payload = await self._get(url)
        logger.debug(f"[Download] {name}: {len(payload)} bytes from {url}")
        return MediaItem(name=name, payload=payload)

    async def _get(self, url: str) -> bytes:
        try:
            resp = await self.client.get(url)
            resp.raise_for_status()
        except httpx.HTTPError as e:
            raise DownloadError(f"cannot download {url}: {e}") from e

        self.bytes_downloaded += len(resp.content)
        return resp.content
