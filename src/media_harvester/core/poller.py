"""
Source Poller — incremental, restartable fetch loop.

Keeps a high-water-mark cursor (the largest post ID already handled) and
repeatedly asks the platform for newer posts, downloading every photo and
video attachment and handing it to the consumer one item at a time.

Failure policy is fail-fast: the first query or download error is pushed on
the channel and the loop ends. Items already handed off stay exported and the
cursor only covers posts whose media were all emitted.
"""

import asyncio
import contextlib
import logging
from collections.abc import Awaitable, Callable

from media_harvester.clients.base import SourceClient
from media_harvester.core.channel import MediaChannel
from media_harvester.core.checkpoint import CheckpointStore, CursorCheckpoint
from media_harvester.core.config import DEFAULT_POLL_INTERVAL, TwitterConfig
from media_harvester.core.downloader import MediaDownloader
from media_harvester.core.errors import FetchError, HarvestError
from media_harvester.models.media import SUPPORTED_KINDS, MediaItem

logger = logging.getLogger(__name__)

Emit = Callable[[MediaItem], Awaitable[None]]


class SourcePoller:
    """
    Polls one account for new media.

    The cursor is owned by this object and only ever moves forward.
    """

    def __init__(
        self,
        source: SourceClient,
        downloader: MediaDownloader,
        screen_name: str,
        cursor: int,
        poll_interval: float = DEFAULT_POLL_INTERVAL,
        checkpoints: CheckpointStore | None = None,
    ):
        self.source = source
        self.downloader = downloader
        self.screen_name = screen_name
        self.poll_interval = poll_interval
        self.checkpoints = checkpoints
        self.checkpoint = CursorCheckpoint.create(screen_name, cursor)
        self.cycles = 0

        self._stop = asyncio.Event()
        self._task: asyncio.Task | None = None

    @classmethod
    async def create(
        cls,
        source: SourceClient,
        downloader: MediaDownloader,
        config: TwitterConfig,
        checkpoints: CheckpointStore | None = None,
    ) -> "SourcePoller":
        """
        Build a poller with a seeded cursor.

        The cursor is the larger of the configured `since_id` and a persisted
        checkpoint for the same account. With neither, it is seeded from the
        account's latest post so that only posts published after startup are
        harvested.
        """
        try:
            screen_name = config.screen_name or await source.verify_credentials()
        except Exception as e:
            raise FetchError(f"cannot authenticate with the source platform: {e}") from e

        candidates = []
        if config.since_id is not None:
            candidates.append(config.since_id)

        persisted = checkpoints.load() if checkpoints else None
        if persisted is not None:
            if persisted.screen_name == screen_name:
                logger.info(f"[Poller] Resuming @{screen_name} from checkpoint cursor {persisted.cursor}")
                candidates.append(persisted.cursor)
            else:
                logger.warning(
                    f"[Poller] Checkpoint belongs to @{persisted.screen_name}, not @{screen_name}; ignoring it"
                )

        if candidates:
            cursor = max(candidates)
        else:
            cursor = await cls._latest_post_id(source, screen_name)
            logger.info(f"[Poller] Seeded cursor from latest post of @{screen_name}: {cursor}")

        poller = cls(
            source,
            downloader,
            screen_name,
            cursor,
            poll_interval=config.poll_interval,
            checkpoints=checkpoints,
        )
        if persisted is not None and persisted.screen_name == screen_name:
            poller.checkpoint.posts_processed = persisted.posts_processed
            poller.checkpoint.media_emitted = persisted.media_emitted
        return poller

    @staticmethod
    async def _latest_post_id(source: SourceClient, screen_name: str) -> int:
        try:
            posts = await source.latest_posts(screen_name, count=1)
        except Exception as e:
            raise FetchError(f"cannot fetch latest post of @{screen_name}: {e}") from e
        if not posts:
            raise FetchError(
                f"cannot fetch latest post of @{screen_name}: account has no posts, "
                "set an explicit starting post id (--since)"
            )
        return posts[0].id

    @property
    def cursor(self) -> int:
        return self.checkpoint.cursor

    # ──────────────────────────────────────────────
    # Polling
    # ──────────────────────────────────────────────

    async def poll_once(self, emit: Emit) -> int:
        """
        Run one polling cycle and return the number of emitted media items.

        Posts are handled in the order the platform returns them; the cursor
        is tracked as a running maximum so either ordering works.
        """
        floor = self.cursor
        try:
            posts = await self.source.posts_since(self.screen_name, floor)
        except Exception as e:
            raise FetchError(f"cannot list posts of @{self.screen_name} since {floor}: {e}") from e

        self.cycles += 1
        logger.debug(f"[Poller] since={floor} posts={len(posts)}")

        emitted = 0
        for post in posts:
            if post.id <= floor:
                continue

            count = 0
            for ref in post.media:
                if ref.kind not in SUPPORTED_KINDS:
                    logger.debug(f"[Poller] Skipping {ref.kind} {ref.media_id} of post {post.id}")
                    continue
                item = await self.downloader.resolve(ref)
                await emit(item)
                count += 1

            self._advance(post.id, count)
            emitted += count

        return emitted

    def _advance(self, post_id: int, media_count: int) -> None:
        self.checkpoint.advance(post_id, media_count)
        if self.checkpoints is not None:
            self.checkpoints.save(self.checkpoint)

    async def _run(self, channel: MediaChannel) -> None:
        try:
            while not self._stop.is_set():
                await self.poll_once(channel.send)
                with contextlib.suppress(asyncio.TimeoutError):
                    await asyncio.wait_for(self._stop.wait(), timeout=self.poll_interval)
        except HarvestError as e:
            logger.error(f"[Poller] Stopped after error: {e}")
            await channel.fail(e)
            return
        except Exception as e:
            logger.exception("[Poller] Unexpected error")
            await channel.fail(e)
            return

        await channel.close()

    # ──────────────────────────────────────────────
    # Lifecycle
    # ──────────────────────────────────────────────

    def start(self) -> MediaChannel:
        """Spawn the polling task and return the channel it produces into."""
        if self._task is not None:
            raise RuntimeError("poller already started")

        channel = MediaChannel()
        self._stop.clear()
        self._task = asyncio.create_task(self._run(channel), name=f"poller:{self.screen_name}")
        logger.info(
            f"[Poller] Watching @{self.screen_name} every {self.poll_interval:g}s (cursor={self.cursor})"
        )
        return channel

    def request_stop(self) -> None:
        """Ask the loop to finish after the current cycle."""
        self._stop.set()

    async def stop(self) -> None:
        """Stop and cancel the polling task, waiting for it to exit."""
        self._stop.set()
        task, self._task = self._task, None
        if task is None or task.done():
            return
        task.cancel()
        with contextlib.suppress(asyncio.CancelledError):
            await task
