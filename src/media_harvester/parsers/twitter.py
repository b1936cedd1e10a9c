"""
Twitter status parser.

Turns the v1.1 status JSON (as returned with tweet_mode=extended) into Post
and MediaRef objects. Media lives under `extended_entities.media`; the legacy
`entities.media` block only ever lists the first photo.
"""

from typing import Any

from media_harvester.models.media import MediaRef, Post, VideoVariant


def parse_variants(video_info: dict[str, Any] | None) -> tuple[VideoVariant, ...]:
    """Extract video variants. Streaming playlists carry no bitrate and default to 0."""
    if not video_info:
        return ()

    variants = []
    for v in video_info.get("variants", []):
        url = v.get("url")
        if not url:
            continue
        variants.append(
            VideoVariant(
                content_type=v.get("content_type", ""),
                url=url,
                bitrate=int(v.get("bitrate") or 0),
            )
        )
    return tuple(variants)


def parse_media(entry: dict[str, Any]) -> MediaRef:
    """Parse one entry of `extended_entities.media`."""
    return MediaRef(
        kind=entry.get("type", ""),
        media_id=str(entry.get("id_str") or entry.get("id") or ""),
        url=entry.get("media_url_https") or entry.get("media_url") or "",
        variants=parse_variants(entry.get("video_info")),
    )


def parse_status(data: dict[str, Any]) -> Post:
    """Parse a status payload into a Post."""
    extended = data.get("extended_entities") or {}
    media = tuple(parse_media(m) for m in extended.get("media", []))
    return Post(id=int(data["id"]), media=media)


def parse_timeline(statuses: list[dict[str, Any]]) -> list[Post]:
    """Parse a timeline page, preserving the platform's order."""
    return [parse_status(s) for s in statuses]
