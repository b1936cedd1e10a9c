"""
Media Harvester - Continuous Twitter media backup.

Polls an account for newly posted photos and videos and relays each item to
one or more destinations (a local directory, a Google Photos album).
"""

__version__ = "0.1.0"


def __getattr__(name: str):
    """Lazy import for heavy dependencies."""
    if name == "MediaHarvester":
        from media_harvester.core.harvester import MediaHarvester

        return MediaHarvester
    if name == "MediaItem":
        from media_harvester.models.media import MediaItem

        return MediaItem
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")


__all__ = ["MediaHarvester", "MediaItem", "__version__"]
