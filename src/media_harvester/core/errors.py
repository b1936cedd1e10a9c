"""
Error taxonomy for the harvest pipeline.

Every error names the phase that failed (config, fetch, export, auth) so the
owning process can report which item, which destination and which step broke.
"""


class HarvestError(Exception):
    """Base error for media-harvester."""

    phase = "harvest"


class ConfigError(HarvestError):
    """Invalid or missing configuration. Raised before any polling starts."""

    phase = "config"


class FetchError(HarvestError):
    """Querying the source platform failed."""

    phase = "fetch"


class DownloadError(FetchError):
    """Retrieving the bytes of a media asset failed."""


class CredentialError(HarvestError):
    """Acquiring or persisting a destination credential failed."""

    phase = "auth"


class ExportError(HarvestError):
    """
    A destination failed to export a media item.

    Attributes:
        destination: Kind of the failing exporter (e.g. "local", "gphotos").
        media_name: Name of the media item being exported.
        cause: The underlying exception.
    """

    phase = "export"

    def __init__(self, destination: str, media_name: str, cause: BaseException):
        self.destination = destination
        self.media_name = media_name
        self.cause = cause
        super().__init__(f"cannot export {media_name!r} to {destination}: {cause}")
