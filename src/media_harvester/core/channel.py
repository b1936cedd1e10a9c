"""
Hand-off channel between the poller task and the export consumer.

A single queue carries tagged results: a media item, an error, or the
"closed" marker. `send` only returns once the consumer has acknowledged the
item, so at most one item is in flight at any time.
"""

import asyncio
from dataclasses import dataclass

from media_harvester.models.media import MediaItem


@dataclass(frozen=True)
class PollResult:
    """Either an item, an error, or neither (the producer finished)."""

    item: MediaItem | None = None
    error: BaseException | None = None

    @property
    def closed(self) -> bool:
        return self.item is None and self.error is None


class MediaChannel:
    def __init__(self):
        self._queue: asyncio.Queue[PollResult] = asyncio.Queue(maxsize=1)

    async def send(self, item: MediaItem) -> None:
        """Hand an item to the consumer and wait until it has been processed."""
        await self._queue.put(PollResult(item=item))
        await self._queue.join()

    async def fail(self, error: BaseException) -> None:
        await self._queue.put(PollResult(error=error))

    async def close(self) -> None:
        await self._queue.put(PollResult())

    async def receive(self) -> PollResult:
        return await self._queue.get()

    def acknowledge(self) -> None:
        """Mark the last received item as processed, releasing the producer."""
        self._queue.task_done()
