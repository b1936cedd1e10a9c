"""Shared fakes for the harvester tests."""

import pytest

from media_harvester.models.media import MediaItem, MediaRef, Post, VideoVariant


class FakeSource:
    """
    In-memory SourceClient.

    `pages` is a list of timeline responses returned by successive
    posts_since calls; an Exception entry is raised instead of returned.
    Like the real API when the since_id is stale, it does not filter posts.
    """

    def __init__(self, pages=None, latest=None, screen_name="alice"):
        self.pages = list(pages or [])
        self.latest = list(latest or [])
        self.screen_name = screen_name
        self.calls: list[int] = []
        self.latest_calls = 0
        self.on_exhausted = None

    async def verify_credentials(self) -> str:
        return self.screen_name

    async def latest_posts(self, screen_name: str, count: int = 1) -> list[Post]:
        self.latest_calls += 1
        return self.latest[:count]

    async def posts_since(self, screen_name: str, since_id: int) -> list[Post]:
        self.calls.append(since_id)
        if not self.pages:
            if self.on_exhausted is not None:
                self.on_exhausted()
            return []
        page = self.pages.pop(0)
        if isinstance(page, Exception):
            raise page
        return page


class FakeDownloader:
    """Resolves refs to MediaItem named after the media ID; fails for IDs in `failing`."""

    def __init__(self, failing=()):
        self.failing = set(failing)
        self.resolved: list[str] = []
        self.bytes_downloaded = 0

    async def resolve(self, ref: MediaRef) -> MediaItem:
        from media_harvester.core.errors import DownloadError

        if ref.media_id in self.failing:
            raise DownloadError(f"cannot download {ref.media_id}")
        self.resolved.append(ref.media_id)
        payload = f"bytes-of-{ref.media_id}".encode()
        self.bytes_downloaded += len(payload)
        return MediaItem(name=ref.media_id, payload=payload)


class RecordingExporter:
    """Exporter that records calls into a shared event log and can be told to fail."""

    def __init__(self, kind: str, events: list, fail: bool = False):
        self.kind = kind
        self.events = events
        self.fail = fail
        self.exported: list[str] = []
        self.finalized = False

    async def export(self, item: MediaItem) -> None:
        self.events.append((self.kind, item.name))
        if self.fail:
            raise OSError(f"{self.kind} is unavailable")
        self.exported.append(item.name)

    async def finalize(self) -> None:
        self.finalized = True


def photo(media_id: str) -> MediaRef:
    return MediaRef(kind="photo", media_id=media_id, url=f"https://pbs.twimg.com/media/{media_id}.jpg")


def video(media_id: str) -> MediaRef:
    return MediaRef(
        kind="video",
        media_id=media_id,
        variants=(
            VideoVariant("video/mp4", f"https://video.twimg.com/{media_id}/low.mp4", 256000),
            VideoVariant("application/x-mpegURL", f"https://video.twimg.com/{media_id}/pl.m3u8", 0),
            VideoVariant("video/mp4", f"https://video.twimg.com/{media_id}/high.mp4", 2176000),
        ),
    )


def post(post_id: int, *media: MediaRef) -> Post:
    return Post(id=post_id, media=tuple(media))


@pytest.fixture
def events():
    return []
