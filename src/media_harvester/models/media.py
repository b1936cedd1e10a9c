"""
Media Model — Posts, media references and downloaded media items.

Defines the data exchanged between the source poller, the downloader and the
export destinations.
"""

from dataclasses import dataclass, field

PHOTO = "photo"
VIDEO = "video"
ANIMATED_GIF = "animated_gif"

SUPPORTED_KINDS = (PHOTO, VIDEO)


@dataclass(frozen=True)
class VideoVariant:
    """One encoding of a video attachment."""

    content_type: str
    url: str
    bitrate: int = 0


@dataclass(frozen=True)
class MediaRef:
    """
    Reference to a remote media asset attached to a post.

    Photos carry a single `url`; videos carry several `variants`
    (encodings/bitrates) and the downloader picks one of them.
    """

    kind: str  # "photo", "video", "animated_gif"
    media_id: str
    url: str = ""
    variants: tuple[VideoVariant, ...] = ()


@dataclass(frozen=True)
class Post:
    """A post authored by the harvested account."""

    id: int
    media: tuple[MediaRef, ...] = field(default_factory=tuple)


@dataclass(frozen=True)
class MediaItem:
    """
    An in-memory, named blob of media content ready for export.

    `name` is filesystem-safe and unique within a run for practical purposes.
    """

    name: str
    payload: bytes = field(repr=False)

    @property
    def size(self) -> int:
        return len(self.payload)
