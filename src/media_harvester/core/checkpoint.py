"""
Cursor checkpoint management for restartable polling.

Persists the poller's high-water mark as JSON so a restarted process only
emits posts newer than what it already handled.
"""

import json
import logging
import os
import time
from dataclasses import asdict, dataclass
from pathlib import Path

logger = logging.getLogger(__name__)


@dataclass
class CursorCheckpoint:
    """Checkpoint data for a polled account."""

    screen_name: str
    cursor: int
    posts_processed: int
    media_emitted: int
    last_updated: float

    @staticmethod
    def create(screen_name: str, cursor: int) -> "CursorCheckpoint":
        """Create a fresh checkpoint at the given cursor."""
        return CursorCheckpoint(
            screen_name=screen_name,
            cursor=cursor,
            posts_processed=0,
            media_emitted=0,
            last_updated=time.time(),
        )

    def advance(self, post_id: int, media_count: int) -> None:
        """Record a fully processed post. The cursor never moves backwards."""
        self.cursor = max(self.cursor, post_id)
        self.posts_processed += 1
        self.media_emitted += media_count
        self.last_updated = time.time()

    def to_dict(self) -> dict:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict) -> "CursorCheckpoint":
        return cls(
            screen_name=str(data["screen_name"]),
            cursor=int(data["cursor"]),
            posts_processed=int(data.get("posts_processed", 0)),
            media_emitted=int(data.get("media_emitted", 0)),
            last_updated=float(data.get("last_updated", 0.0)),
        )


class CheckpointStore:
    """Loads and saves a CursorCheckpoint at a fixed path."""

    def __init__(self, path: Path):
        self.path = Path(path)

    def load(self) -> CursorCheckpoint | None:
        """Load checkpoint from disk if it exists and is readable."""
        if not self.path.exists():
            return None

        try:
            with open(self.path) as f:
                return CursorCheckpoint.from_dict(json.load(f))
        except (OSError, ValueError, KeyError, TypeError) as e:
            logger.warning(f"Ignoring unreadable checkpoint {self.path}: {e}")
            return None

    def save(self, checkpoint: CursorCheckpoint) -> None:
        """Atomically write the checkpoint (temp file + rename)."""
        self.path.parent.mkdir(parents=True, exist_ok=True)
        tmp = self.path.with_name(self.path.name + ".tmp")
        with open(tmp, "w") as f:
            json.dump(checkpoint.to_dict(), f, indent=2)
        os.replace(tmp, self.path)
