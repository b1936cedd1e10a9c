"""
Google Photos Library API client.

Implements the three calls the album exporter needs (raw byte upload,
album get-or-create, batch media item creation) on top of an httpx client,
authenticating with google-auth Credentials that are refreshed on demand.
"""

import asyncio
import logging
from collections.abc import Callable
from pathlib import Path

import aiofiles
import httpx
from google.auth.transport.requests import Request
from google.oauth2.credentials import Credentials

logger = logging.getLogger(__name__)

PHOTOS_API_URL = "https://photoslibrary.googleapis.com/v1"
ALBUMS_PAGE_SIZE = 50


class PhotosApiError(Exception):
    """The Photos API answered with an error payload."""


class PhotosClient:
    """
    Thin async client for photoslibrary.googleapis.com.

    `on_refresh` is called with the credentials after every token refresh so
    the caller can persist them.
    """

    def __init__(
        self,
        credentials: Credentials,
        client: httpx.AsyncClient,
        on_refresh: Callable[[Credentials], None] | None = None,
        base_url: str = PHOTOS_API_URL,
    ):
        self.credentials = credentials
        self.client = client
        self.on_refresh = on_refresh
        self.base_url = base_url.rstrip("/")

    async def _auth_headers(self) -> dict[str, str]:
        if not self.credentials.valid:
            logger.debug("[GPhotos] Refreshing access token")
            await asyncio.to_thread(self.credentials.refresh, Request())
            if self.on_refresh is not None:
                self.on_refresh(self.credentials)
        return {"Authorization": f"Bearer {self.credentials.token}"}

    async def _request(self, method: str, path: str, **kwargs) -> httpx.Response:
        headers = await self._auth_headers()
        headers.update(kwargs.pop("headers", {}))
        resp = await self.client.request(method, f"{self.base_url}{path}", headers=headers, **kwargs)
        resp.raise_for_status()
        return resp

    # ──────────────────────────────────────────────
    # Albums
    # ──────────────────────────────────────────────

    async def find_album(self, title: str) -> str | None:
        """Return the ID of the first album with the given title, if any."""
        page_token = None
        while True:
            params = {"pageSize": ALBUMS_PAGE_SIZE}
            if page_token:
                params["pageToken"] = page_token
            data = (await self._request("GET", "/albums", params=params)).json()

            for album in data.get("albums", []):
                if album.get("title") == title:
                    return album["id"]

            page_token = data.get("nextPageToken")
            if not page_token:
                return None

    async def create_album(self, title: str) -> str:
        resp = await self._request("POST", "/albums", json={"album": {"title": title}})
        return resp.json()["id"]

    async def get_or_create_album(self, title: str) -> str:
        """Reuse an album by title or create it. Duplicate titles are not disambiguated."""
        album_id = await self.find_album(title)
        if album_id is not None:
            logger.debug(f"[GPhotos] Reusing album {title!r} ({album_id})")
            return album_id

        album_id = await self.create_album(title)
        logger.info(f"[GPhotos] Created album {title!r} ({album_id})")
        return album_id

    # ──────────────────────────────────────────────
    # Media
    # ──────────────────────────────────────────────

    async def upload(self, path: Path, file_name: str) -> str:
        """Upload the raw bytes of a local file and return its upload token."""
        async with aiofiles.open(path, "rb") as f:
            content = await f.read()

        resp = await self._request(
            "POST",
            "/uploads",
            content=content,
            headers={
                "Content-Type": "application/octet-stream",
                "X-Goog-Upload-Protocol": "raw",
                "X-Goog-Upload-File-Name": file_name,
            },
        )
        token = resp.text.strip()
        if not token:
            raise PhotosApiError(f"empty upload token for {file_name}")
        return token

    async def add_to_album(self, upload_token: str, album_id: str, file_name: str) -> str:
        """Create a media item from an upload token inside an album. Returns the item ID."""
        body = {
            "albumId": album_id,
            "newMediaItems": [
                {"simpleMediaItem": {"uploadToken": upload_token, "fileName": file_name}}
            ],
        }
        data = (await self._request("POST", "/mediaItems:batchCreate", json=body)).json()

        results = data.get("newMediaItemResults", [])
        if not results:
            raise PhotosApiError(f"no result for {file_name} in batchCreate response")

        status = results[0].get("status", {})
        if status.get("code", 0) != 0:
            raise PhotosApiError(f"cannot create {file_name}: {status.get('message', 'unknown error')}")
        return results[0].get("mediaItem", {}).get("id", "")
