"""
SourceClient Protocol — Contract the poller needs from a platform client.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from media_harvester.models.media import Post


@runtime_checkable
class SourceClient(Protocol):
    """
    Protocol that platform clients must implement.

    Posts are returned in the platform's order; callers must not assume it is
    sorted.
    """

    async def verify_credentials(self) -> str:
        """Authenticate and return the screen name of the authenticated account."""
        ...

    async def latest_posts(self, screen_name: str, count: int = 1) -> list[Post]:
        """Return the `count` most recent posts of an account."""
        ...

    async def posts_since(self, screen_name: str, since_id: int) -> list[Post]:
        """Return posts newer than `since_id`, excluding replies and reshares."""
        ...
