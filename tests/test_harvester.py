"""End-to-end tests for the poll-and-export pipeline."""

import io
import json
import tempfile

import httpx
import pytest
from google.oauth2.credentials import Credentials
from rich.console import Console

from conftest import FakeDownloader, FakeSource, RecordingExporter, photo, post, video
from media_harvester.clients.gphotos import PhotosClient
from media_harvester.core.checkpoint import CheckpointStore
from media_harvester.core.downloader import MediaDownloader
from media_harvester.core.errors import ConfigError, ExportError, FetchError
from media_harvester.core.harvester import MediaHarvester
from media_harvester.core.poller import SourcePoller
from media_harvester.exporters.gphotos import GooglePhotosExporter
from media_harvester.exporters.local import LocalExporter

PHOTO_ID = "EZDKaBcXkAAb3xY"
VIDEO_ID = "1300000000000000001"


def cdn_transport() -> httpx.MockTransport:
    """Serves photo and video bytes the way the media CDN does."""

    def handler(request: httpx.Request) -> httpx.Response:
        url = str(request.url)
        if url == f"https://pbs.twimg.com/media/{PHOTO_ID}.jpg":
            return httpx.Response(200, content=b"photo-bytes")
        if url == f"https://video.twimg.com/{VIDEO_ID}/high.mp4":
            return httpx.Response(200, content=b"high-bitrate-video")
        if url == f"https://video.twimg.com/{VIDEO_ID}/low.mp4":
            return httpx.Response(200, content=b"low-bitrate-video")
        return httpx.Response(404)

    return httpx.MockTransport(handler)


class PhotosApi:
    """Photos API double that checks the local copy exists before each upload."""

    def __init__(self, local_root, fail_uploads=False):
        self.local_root = local_root
        self.fail_uploads = fail_uploads
        self.uploaded: list[str] = []
        self.added: list[str] = []

    def __call__(self, request: httpx.Request) -> httpx.Response:
        path = request.url.path.removeprefix("/v1")
        if path == "/uploads":
            name = request.headers["X-Goog-Upload-File-Name"]
            assert (self.local_root / name).exists(), f"{name} uploaded before the local copy"
            if self.fail_uploads:
                return httpx.Response(503, text="backend unavailable")
            self.uploaded.append(name)
            return httpx.Response(200, text=f"token-{name}")
        if path == "/mediaItems:batchCreate":
            body = json.loads(request.content)
            self.added.append(body["newMediaItems"][0]["simpleMediaItem"]["fileName"])
            return httpx.Response(200, json={"newMediaItemResults": [{"status": {"message": "Success"}}]})
        return httpx.Response(404)


def quiet_console() -> Console:
    return Console(file=io.StringIO())


async def build_pipeline(tmp_path, source, cursor=100, fail_uploads=False):
    local_root = tmp_path / "local"
    store = CheckpointStore(tmp_path / "state" / "cursor.json")
    api = PhotosApi(local_root, fail_uploads=fail_uploads)

    cdn = httpx.AsyncClient(transport=cdn_transport())
    photos = PhotosClient(Credentials(token="access-1"), httpx.AsyncClient(transport=httpx.MockTransport(api)))

    poller = SourcePoller(source, MediaDownloader(cdn), "alice", cursor, poll_interval=0.01, checkpoints=store)
    exporters = [
        LocalExporter(root=local_root),
        GooglePhotosExporter(photos, "Twitter backup", "album-7"),
    ]
    harvester = MediaHarvester(poller, exporters, console=quiet_console())
    return harvester, api, store, local_root


# ═══════════════════════════════════════════
# Full Pipeline
# ═══════════════════════════════════════════


class TestPipeline:
    @pytest.mark.asyncio
    async def test_new_post_reaches_every_destination(self, tmp_path, monkeypatch):
        monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))
        source = FakeSource(pages=[[post(101, photo(PHOTO_ID), video(VIDEO_ID))]])
        harvester, api, store, local_root = await build_pipeline(tmp_path, source)
        source.on_exhausted = harvester.stop

        await harvester.run()

        photo_name = f"{PHOTO_ID}.jpg"
        video_name = f"{VIDEO_ID}.mp4"
        assert (local_root / photo_name).read_bytes() == b"photo-bytes"
        assert (local_root / video_name).read_bytes() == b"high-bitrate-video"
        assert api.uploaded == [photo_name, video_name]
        assert api.added == [photo_name, video_name]

        assert harvester.poller.cursor == 101
        assert store.load().cursor == 101
        assert store.load().media_emitted == 2
        assert harvester.stats["media_exported"] == 2
        assert harvester.fanout.stats["local"] == {"success": 2, "fail": 0}
        assert harvester.fanout.stats["gphotos"] == {"success": 2, "fail": 0}

    @pytest.mark.asyncio
    async def test_prints_final_statistics(self, tmp_path, events):
        source = FakeSource(pages=[[post(101, photo("a"))]])
        exporter = RecordingExporter("local", events)
        poller = SourcePoller(source, FakeDownloader(), "alice", 100, poll_interval=0.01)
        console = quiet_console()
        harvester = MediaHarvester(poller, [exporter], console=console)
        source.on_exhausted = harvester.stop

        await harvester.run()

        output = console.file.getvalue()
        assert "Harvest stopped" in output
        assert "Cursor: 101" in output
        assert "local: 1/1 (100.0% success)" in output
        assert exporter.finalized


# ═══════════════════════════════════════════
# Fail-Fast
# ═══════════════════════════════════════════


class TestFailFast:
    @pytest.mark.asyncio
    async def test_export_failure_stops_run_and_keeps_cursor(self, tmp_path, monkeypatch):
        monkeypatch.setattr(tempfile, "tempdir", str(tmp_path))
        source = FakeSource(pages=[[post(101, photo(PHOTO_ID))], [post(102, photo("never"))]])
        harvester, api, store, local_root = await build_pipeline(tmp_path, source, fail_uploads=True)

        with pytest.raises(ExportError) as exc_info:
            await harvester.run()

        assert exc_info.value.destination == "gphotos"
        assert exc_info.value.media_name == f"{PHOTO_ID}.jpg"
        # local copy stays, cursor is not advanced past the failed post
        assert (local_root / f"{PHOTO_ID}.jpg").exists()
        assert harvester.poller.cursor == 100
        assert store.load() is None
        assert source.calls == [100]

    @pytest.mark.asyncio
    async def test_later_destinations_are_skipped(self, tmp_path, events):
        source = FakeSource(pages=[[post(101, photo("a"))]])
        first = RecordingExporter("first", events, fail=True)
        second = RecordingExporter("second", events)
        poller = SourcePoller(source, FakeDownloader(), "alice", 100, poll_interval=0.01)
        harvester = MediaHarvester(poller, [first, second], console=quiet_console())

        with pytest.raises(ExportError):
            await harvester.run()

        assert events == [("first", "a")]
        assert first.finalized and second.finalized

    @pytest.mark.asyncio
    async def test_fetch_failure_stops_run(self, tmp_path, events):
        source = FakeSource(pages=[RuntimeError("rate limited")])
        poller = SourcePoller(source, FakeDownloader(), "alice", 100, poll_interval=0.01)
        harvester = MediaHarvester(poller, [RecordingExporter("local", events)], console=quiet_console())

        with pytest.raises(FetchError, match="rate limited"):
            await harvester.run()

        assert events == []

    def test_requires_an_exporter(self):
        poller = SourcePoller(FakeSource(), FakeDownloader(), "alice", 100)

        with pytest.raises(ConfigError, match="at least one exporter"):
            MediaHarvester(poller, [])
