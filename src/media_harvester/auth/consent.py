"""
Interactive OAuth2 consent flow for Google Photos.

Prints the authorization URL for the operator, then serves exactly one
callback request on 127.0.0.1:<port> at the redirect URL's path. Whichever
comes first wins: the authorization code, or a listener failure. The listener
is torn down on every outcome and the code is exchanged for a token.
"""

import asyncio
import logging

from aiohttp import web
from google.oauth2.credentials import Credentials
from google_auth_oauthlib.flow import Flow
from rich.console import Console

from media_harvester.auth.credentials import SCOPES
from media_harvester.core.config import GooglePhotosConfig
from media_harvester.core.errors import CredentialError

logger = logging.getLogger(__name__)

AUTH_URI = "https://accounts.google.com/o/oauth2/v2/auth"
TOKEN_URI = "https://oauth2.googleapis.com/token"
CALLBACK_HOST = "127.0.0.1"

SUCCESS_PAGE = "Authorization complete. You can close this window and return to media-harvester."


def client_config(client_id: str, client_secret: str, redirect_url: str) -> dict:
    """Build an installed-app client config for google_auth_oauthlib."""
    return {
        "installed": {
            "client_id": client_id,
            "client_secret": client_secret,
            "auth_uri": AUTH_URI,
            "token_uri": TOKEN_URI,
            "redirect_uris": [redirect_url],
        }
    }


class ConsentFlow:
    """One-shot authorization-code flow driven by a local callback listener."""

    def __init__(
        self,
        config: GooglePhotosConfig,
        console: Console | None = None,
        scopes: list[str] | None = None,
    ):
        self.config = config
        self.console = console or Console(stderr=True)
        self.flow = Flow.from_client_config(
            client_config(config.client_id, config.client_secret, config.redirect_url),
            scopes=scopes or SCOPES,
            redirect_uri=config.redirect_url,
        )

    def authorization_url(self) -> tuple[str, str]:
        """Return the consent URL and its anti-forgery state."""
        return self.flow.authorization_url(access_type="offline", prompt="consent")

    async def wait_for_code(self, state: str | None = None) -> str:
        """
        Serve the callback endpoint until an authorization code arrives.

        Raises CredentialError if the listener cannot bind, the provider
        reports an error, the request is malformed, or the configured consent
        timeout elapses.
        """
        loop = asyncio.get_running_loop()
        outcome: asyncio.Future[str] = loop.create_future()

        async def handle_callback(request: web.Request) -> web.Response:
            if outcome.done():
                return web.Response(status=410, text="Authorization already handled.")

            query = request.query
            if "error" in query:
                outcome.set_exception(CredentialError(f"authorization denied: {query['error']}"))
                return web.Response(status=400, text=f"Authorization failed: {query['error']}")
            if state is not None and query.get("state") != state:
                outcome.set_exception(CredentialError("authorization callback state mismatch"))
                return web.Response(status=400, text="Authorization failed: state mismatch.")
            code = query.get("code")
            if not code:
                outcome.set_exception(CredentialError("authorization callback without code"))
                return web.Response(status=400, text="Authorization failed: missing code.")

            outcome.set_result(code)
            return web.Response(text=SUCCESS_PAGE)

        app = web.Application()
        app.router.add_get(self.config.callback_path, handle_callback)
        runner = web.AppRunner(app, access_log=None)
        await runner.setup()
        try:
            site = web.TCPSite(runner, CALLBACK_HOST, self.config.port)
            try:
                await site.start()
            except OSError as e:
                raise CredentialError(
                    f"cannot start callback listener on {CALLBACK_HOST}:{self.config.port}: {e}"
                ) from e

            logger.debug(
                f"[Auth] Listening on http://{CALLBACK_HOST}:{self.config.port}{self.config.callback_path}"
            )
            try:
                return await asyncio.wait_for(outcome, timeout=self.config.consent_timeout)
            except asyncio.TimeoutError as e:
                raise CredentialError(
                    f"no authorization callback within {self.config.consent_timeout:g}s"
                ) from e
        finally:
            await runner.cleanup()

    async def exchange(self, code: str) -> Credentials:
        """Exchange an authorization code for credentials at the token endpoint."""
        try:
            await asyncio.to_thread(self.flow.fetch_token, code=code)
        except Exception as e:
            raise CredentialError(f"cannot exchange authorization code: {e}") from e
        return self.flow.credentials

    async def run(self) -> Credentials:
        """Run the full consent flow and return fresh credentials."""
        url, state = self.authorization_url()
        self.console.print("[bold cyan]Google Photos authorization required.[/bold cyan]")
        self.console.print(f"Visit the URL for the auth dialog: {url}", soft_wrap=True)

        with self.console.status("[cyan]Waiting for authorization callback...[/cyan]"):
            code = await self.wait_for_code(state)

        creds = await self.exchange(code)
        logger.info("[Auth] Authorization code exchanged for a token")
        return creds
