"""Export destinations for harvested media."""

import httpx
from google.auth.exceptions import GoogleAuthError
from rich.console import Console

from media_harvester.core.errors import CredentialError
from media_harvester.exporters.base import Exporter
from media_harvester.exporters.gphotos import GooglePhotosExporter
from media_harvester.exporters.local import LocalExporter


async def create_gphotos_exporter(
    config, http: httpx.AsyncClient, console: Console | None = None
) -> GooglePhotosExporter:
    """
    Acquire the Photos credential (consent flow if needed) and resolve the album.

    Raises CredentialError if the token cannot be obtained or refreshed, or if
    the album cannot be looked up or created with it.
    """
    from media_harvester.auth.consent import ConsentFlow
    from media_harvester.auth.credentials import CredentialStore, acquire_credentials
    from media_harvester.clients.gphotos import PhotosApiError, PhotosClient

    store = CredentialStore(config.token_path)
    creds = await acquire_credentials(store, lambda: ConsentFlow(config, console=console))
    client = PhotosClient(creds, http, on_refresh=store.save)
    try:
        return await GooglePhotosExporter.create(client, config.album)
    except (httpx.HTTPError, GoogleAuthError, PhotosApiError) as e:
        raise CredentialError(f"cannot open album {config.album!r}: {e}") from e


async def build_exporters(
    config, http: httpx.AsyncClient, console: Console | None = None
) -> list[Exporter]:
    """Factory creating the enabled exporters, local first, from a HarvestConfig."""
    exporters: list[Exporter] = []
    if config.local is not None:
        exporters.append(LocalExporter(root=config.local.root))
    if config.gphotos is not None:
        exporters.append(await create_gphotos_exporter(config.gphotos, http, console))
    return exporters


__all__ = [
    "Exporter",
    "LocalExporter",
    "GooglePhotosExporter",
    "build_exporters",
    "create_gphotos_exporter",
]
