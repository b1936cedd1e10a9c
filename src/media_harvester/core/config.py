"""
Configuration records for a harvest run.

Each record validates itself at construction and raises ConfigError with a
descriptive message, so a bad configuration fails before any polling starts.
"""

import json
import tempfile
from dataclasses import dataclass
from pathlib import Path
from urllib.parse import urlparse

from media_harvester.core.errors import ConfigError

DEFAULT_POLL_INTERVAL = 10.0
DEFAULT_STATE_DIR = Path(tempfile.gettempdir()) / "media-harvester"
DEFAULT_STATE_PATH = DEFAULT_STATE_DIR / "cursor.json"
DEFAULT_TOKEN_PATH = DEFAULT_STATE_DIR / "gphotos" / "token.json"
DEFAULT_REDIRECT_URL = "http://localhost:8080/callback"
DEFAULT_CALLBACK_PORT = 8080


def _require(value: str | None, name: str) -> None:
    if not value:
        raise ConfigError(f"missing required setting: {name}")


@dataclass(frozen=True)
class TwitterConfig:
    """Source account settings. `since_id=None` means "seed from the latest post"."""

    consumer_key: str
    consumer_secret: str
    access_token: str
    access_token_secret: str
    screen_name: str | None = None
    since_id: int | None = None
    poll_interval: float = DEFAULT_POLL_INTERVAL

    def __post_init__(self):
        _require(self.consumer_key, "twitter consumer key")
        _require(self.consumer_secret, "twitter consumer secret")
        _require(self.access_token, "twitter access token")
        _require(self.access_token_secret, "twitter access token secret")
        if self.poll_interval <= 0:
            raise ConfigError(f"poll interval must be positive, got {self.poll_interval}")
        if self.since_id is not None and self.since_id < 0:
            raise ConfigError(f"since id must not be negative, got {self.since_id}")


@dataclass(frozen=True)
class LocalConfig:
    """Local filesystem destination."""

    root: Path

    def __post_init__(self):
        if not str(self.root):
            raise ConfigError("missing required setting: local root path")


@dataclass(frozen=True)
class GooglePhotosConfig:
    """
    Google Photos album destination.

    redirect_url / port are only used when no token exists yet and the
    consent flow has to run. consent_timeout=None waits indefinitely.
    """

    client_id: str
    client_secret: str
    album: str
    token_path: Path = DEFAULT_TOKEN_PATH
    redirect_url: str = DEFAULT_REDIRECT_URL
    port: int = DEFAULT_CALLBACK_PORT
    consent_timeout: float | None = None

    def __post_init__(self):
        _require(self.client_id, "gphotos oauth2 client id")
        _require(self.client_secret, "gphotos oauth2 client secret")
        _require(self.album, "gphotos album name")
        if not 0 < self.port < 65536:
            raise ConfigError(f"callback port out of range: {self.port}")
        parsed = urlparse(self.redirect_url)
        if parsed.scheme not in ("http", "https") or not parsed.netloc:
            raise ConfigError(f"invalid redirect url: {self.redirect_url!r}")
        if self.consent_timeout is not None and self.consent_timeout <= 0:
            raise ConfigError(f"consent timeout must be positive, got {self.consent_timeout}")

    @property
    def callback_path(self) -> str:
        return urlparse(self.redirect_url).path or "/"


@dataclass(frozen=True)
class HarvestConfig:
    """Complete configuration of a harvest run."""

    twitter: TwitterConfig
    local: LocalConfig | None = None
    gphotos: GooglePhotosConfig | None = None
    state_path: Path = DEFAULT_STATE_PATH

    def __post_init__(self):
        if not self.destinations:
            raise ConfigError("at least one exporter needs to be enabled (--local and/or --gphotos)")

    @property
    def destinations(self) -> list[str]:
        """Kinds of the enabled destinations, in export order."""
        kinds = []
        if self.local is not None:
            kinds.append("local")
        if self.gphotos is not None:
            kinds.append("gphotos")
        return kinds


def load_config_file(path: str | Path) -> dict:
    """Load a JSON settings file whose keys are CLI option names."""
    try:
        with open(path) as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError) as e:
        raise ConfigError(f"cannot read config file {path}: {e}") from e

    if not isinstance(data, dict):
        raise ConfigError(f"config file {path} must contain a JSON object")
    return {str(k).replace("-", "_"): v for k, v in data.items()}
