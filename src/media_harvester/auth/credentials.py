"""
Credential store for the Google Photos destination.

The OAuth2 credential moves through three states:

    NO_TOKEN -> AWAITING_CONSENT -> TOKEN_ACQUIRED

A persisted token skips consent entirely. Otherwise the interactive consent
flow runs once and its result is written to disk, so later runs (and
restarts) reuse it until it is revoked.
"""

import enum
import json
import logging
import os
from collections.abc import Callable
from pathlib import Path
from typing import Protocol

from google.oauth2.credentials import Credentials

from media_harvester.core.errors import CredentialError

logger = logging.getLogger(__name__)

# Album listing is limited to app-created data; uploads and album creation
# only need append access.
SCOPES = [
    "https://www.googleapis.com/auth/photoslibrary.appendonly",
    "https://www.googleapis.com/auth/photoslibrary.readonly.appcreateddata",
]


class CredentialState(enum.Enum):
    NO_TOKEN = "no_token"
    AWAITING_CONSENT = "awaiting_consent"
    TOKEN_ACQUIRED = "token_acquired"


class CredentialStore:
    """Reads and writes the persisted OAuth2 token at a fixed path."""

    def __init__(self, path: Path, scopes: list[str] | None = None):
        self.path = Path(path)
        self.scopes = scopes or SCOPES

    def load(self) -> Credentials | None:
        """Return the persisted credentials, or None if missing or unusable."""
        try:
            with open(self.path) as f:
                info = json.load(f)
            creds = Credentials.from_authorized_user_info(info, self.scopes)
        except FileNotFoundError:
            logger.debug(f"[Auth] No token at {self.path}")
            return None
        except (OSError, ValueError) as e:
            logger.warning(f"[Auth] Ignoring unreadable token {self.path}: {e}")
            return None

        if not creds.valid and not creds.refresh_token:
            logger.warning(f"[Auth] Token at {self.path} expired and cannot be refreshed")
            return None
        return creds

    def save(self, creds: Credentials) -> None:
        """Persist credentials with owner-only permissions."""
        try:
            self.path.parent.mkdir(mode=0o700, parents=True, exist_ok=True)
            tmp = self.path.with_name(self.path.name + ".tmp")
            fd = os.open(tmp, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, 0o600)
            with os.fdopen(fd, "w") as f:
                f.write(creds.to_json())
            os.replace(tmp, self.path)
        except OSError as e:
            raise CredentialError(f"cannot save token to {self.path}: {e}") from e
        logger.debug(f"[Auth] Token saved to {self.path}")


class Consent(Protocol):
    async def run(self) -> Credentials: ...


async def acquire_credentials(
    store: CredentialStore,
    consent_factory: Callable[[], Consent],
    on_state: Callable[[CredentialState], None] | None = None,
) -> Credentials:
    """
    Load the persisted token or mint a new one through the consent flow.

    `consent_factory` is only called when no usable token exists, so a valid
    token never binds the callback listener.
    """
    state = CredentialState.NO_TOKEN

    def transition(new_state: CredentialState) -> None:
        nonlocal state
        logger.debug(f"[Auth] {state.value} -> {new_state.value}")
        state = new_state
        if on_state is not None:
            on_state(new_state)

    creds = store.load()
    if creds is None:
        transition(CredentialState.AWAITING_CONSENT)
        creds = await consent_factory().run()
        store.save(creds)
        logger.info(f"[Auth] New token stored at {store.path}")

    transition(CredentialState.TOKEN_ACQUIRED)
    return creds
