"""
Exporter Protocol — Base interface for all export destinations.
"""

from __future__ import annotations

from typing import Protocol, runtime_checkable

from media_harvester.models.media import MediaItem


@runtime_checkable
class Exporter(Protocol):
    """
    Protocol that all exporters must implement.

    Exporters receive downloaded MediaItem objects and store them durably in
    their destination (local directory, remote album, etc.).
    """

    kind: str

    async def export(self, item: MediaItem) -> None:
        """Export a single media item. Raise on failure."""
        ...

    async def finalize(self) -> None:
        """Called once when the pipeline stops. Use for cleanup."""
        ...
