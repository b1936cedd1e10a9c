"""
Media Harvester CLI — Back up media posted on Twitter somewhere else.

Usage:
    media-harvester run --local --local-root ./backup
    media-harvester run --gphotos --gphotos-album "Twitter backup" --poll-interval 30
    media-harvester --config settings.json run
    media-harvester auth --gphotos-album "Twitter backup"
    media-harvester cursor
"""

import asyncio
import logging
import tempfile
from pathlib import Path

import click

from media_harvester.core.config import (
    DEFAULT_CALLBACK_PORT,
    DEFAULT_POLL_INTERVAL,
    DEFAULT_REDIRECT_URL,
    DEFAULT_STATE_PATH,
    DEFAULT_TOKEN_PATH,
)

logger = logging.getLogger("media_harvester")

LOG_LEVELS = ["DEBUG", "INFO", "WARNING", "ERROR"]

# Read when --config is not given.
DEFAULT_CONFIG_FILE = Path.home() / ".media-harvester.json"


def _configure_logging(verbose: bool, log_level: str | None) -> None:
    level = logging.DEBUG if verbose else getattr(logging, (log_level or "INFO").upper())
    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )


def _load_config_file(ctx, param, value):
    """Use a JSON settings file as defaults for every subcommand."""
    if not value:
        if not DEFAULT_CONFIG_FILE.is_file():
            return value
        value = str(DEFAULT_CONFIG_FILE)

    from media_harvester.core.config import load_config_file
    from media_harvester.core.errors import ConfigError

    try:
        data = load_config_file(value)
    except ConfigError as e:
        raise click.BadParameter(str(e), ctx=ctx, param=param) from e
    ctx.default_map = {name: data for name in ("run", "auth", "cursor")}
    return value


def logging_options(f):
    f = click.option(
        "--log-level",
        type=click.Choice(LOG_LEVELS, case_sensitive=False),
        default=None,
        envvar="MEDIA_HARVESTER_LOG_LEVEL",
        help="Log level (default INFO).",
    )(f)
    f = click.option("--verbose", "-v", is_flag=True, help="Enable verbose logging.")(f)
    return f


def gphotos_options(f):
    options = [
        click.option("--gphotos-client-id", envvar="GPHOTOS_CLIENT_ID", help="Google Photos OAuth2 client ID."),
        click.option(
            "--gphotos-client-secret", envvar="GPHOTOS_CLIENT_SECRET", help="Google Photos OAuth2 client secret."
        ),
        click.option("--gphotos-album", envvar="GPHOTOS_ALBUM", help="Google Photos destination album name."),
        click.option(
            "--gphotos-token-path",
            type=click.Path(),
            default=str(DEFAULT_TOKEN_PATH),
            show_default=True,
            help="OAuth2 token file location.",
        ),
        click.option(
            "--gphotos-redirect-url",
            default=DEFAULT_REDIRECT_URL,
            show_default=True,
            help="OAuth2 redirect URL used when the token file does not exist yet.",
        ),
        click.option(
            "--gphotos-port",
            type=int,
            default=DEFAULT_CALLBACK_PORT,
            show_default=True,
            help="Local callback port used when the token file does not exist yet.",
        ),
        click.option(
            "--consent-timeout",
            type=float,
            default=None,
            help="Seconds to wait for the authorization callback (default: wait forever).",
        ),
    ]
    for option in reversed(options):
        f = option(f)
    return f


def _gphotos_config(gphotos_client_id, gphotos_client_secret, gphotos_album, gphotos_token_path,
                    gphotos_redirect_url, gphotos_port, consent_timeout):
    from media_harvester.core.config import GooglePhotosConfig

    return GooglePhotosConfig(
        client_id=gphotos_client_id,
        client_secret=gphotos_client_secret,
        album=gphotos_album,
        token_path=Path(gphotos_token_path),
        redirect_url=gphotos_redirect_url,
        port=gphotos_port,
        consent_timeout=consent_timeout,
    )


@click.group()
@click.version_option(package_name="media-harvester")
@click.option(
    "--config",
    type=click.Path(exists=True, dir_okay=False),
    is_eager=True,
    expose_value=False,
    callback=_load_config_file,
    help="JSON file with option values (keys are option names). Default: ~/.media-harvester.json if present.",
)
def cli():
    """Media Harvester — Back up media posted on Twitter somewhere else."""
    pass


@cli.command()
@click.option("--twitter-consumer-key", envvar="TWITTER_CONSUMER_KEY", help="Twitter application key.")
@click.option("--twitter-consumer-secret", envvar="TWITTER_CONSUMER_SECRET", help="Twitter application secret.")
@click.option("--twitter-access-token", envvar="TWITTER_ACCESS_TOKEN", help="Twitter user access token.")
@click.option(
    "--twitter-access-token-secret", envvar="TWITTER_ACCESS_TOKEN_SECRET", help="Twitter user access token secret."
)
@click.option("--screen-name", default=None, help="Account to harvest (default: the authenticated user).")
@click.option("--since", type=int, default=None, help="Only harvest posts newer than this post ID.")
@click.option(
    "--poll-interval",
    type=float,
    default=DEFAULT_POLL_INTERVAL,
    show_default=True,
    help="Polling interval in seconds.",
)
@click.option(
    "--state-path",
    type=click.Path(),
    default=str(DEFAULT_STATE_PATH),
    show_default=True,
    help="Cursor checkpoint file.",
)
@click.option("--local", is_flag=True, help="Enable the local exporter.")
@click.option(
    "--local-root",
    type=click.Path(file_okay=False),
    default=tempfile.gettempdir(),
    show_default=True,
    help="Local exporter destination directory.",
)
@click.option("--gphotos", is_flag=True, help="Enable the Google Photos exporter.")
@gphotos_options
@logging_options
def run(twitter_consumer_key, twitter_consumer_secret, twitter_access_token, twitter_access_token_secret,
        screen_name, since, poll_interval, state_path, local, local_root, gphotos, verbose, log_level,
        **gphotos_settings):
    """Poll the account for new media and export it to the enabled destinations."""
    from media_harvester.core.config import HarvestConfig, LocalConfig, TwitterConfig
    from media_harvester.core.errors import ConfigError, HarvestError
    from media_harvester.core.harvester import harvest

    _configure_logging(verbose, log_level)

    try:
        config = HarvestConfig(
            twitter=TwitterConfig(
                consumer_key=twitter_consumer_key,
                consumer_secret=twitter_consumer_secret,
                access_token=twitter_access_token,
                access_token_secret=twitter_access_token_secret,
                screen_name=screen_name,
                since_id=since,
                poll_interval=poll_interval,
            ),
            local=LocalConfig(root=Path(local_root)) if local else None,
            gphotos=_gphotos_config(**gphotos_settings) if gphotos else None,
            state_path=Path(state_path),
        )
    except ConfigError as e:
        raise click.UsageError(str(e)) from e

    try:
        asyncio.run(harvest(config))
    except HarvestError as e:
        logger.error(f"{e.phase} failed: {e}")
        raise SystemExit(1) from e
    except KeyboardInterrupt:
        logger.info("Interrupted.")
        raise SystemExit(130)


@cli.command()
@gphotos_options
@logging_options
def auth(verbose, log_level, **gphotos_settings):
    """Obtain and store the Google Photos token, then exit."""
    from media_harvester.auth.consent import ConsentFlow
    from media_harvester.auth.credentials import CredentialStore, acquire_credentials
    from media_harvester.core.errors import ConfigError, CredentialError

    _configure_logging(verbose, log_level)

    try:
        config = _gphotos_config(**gphotos_settings)
    except ConfigError as e:
        raise click.UsageError(str(e)) from e

    store = CredentialStore(config.token_path)
    try:
        asyncio.run(acquire_credentials(store, lambda: ConsentFlow(config)))
    except CredentialError as e:
        logger.error(f"{e.phase} failed: {e}")
        raise SystemExit(1) from e

    click.echo(f"Token ready at {config.token_path}")


@cli.command()
@click.option(
    "--state-path",
    type=click.Path(),
    default=str(DEFAULT_STATE_PATH),
    show_default=True,
    help="Cursor checkpoint file.",
)
def cursor(state_path):
    """Show the persisted polling cursor."""
    from datetime import datetime

    from media_harvester.core.checkpoint import CheckpointStore

    checkpoint = CheckpointStore(Path(state_path)).load()
    if checkpoint is None:
        click.echo(f"No checkpoint at {state_path}")
        return

    updated = datetime.fromtimestamp(checkpoint.last_updated).isoformat(timespec="seconds")
    click.echo(f"@{checkpoint.screen_name}: cursor={checkpoint.cursor}")
    click.echo(
        f"posts={checkpoint.posts_processed} media={checkpoint.media_emitted} updated={updated}"
    )


if __name__ == "__main__":
    cli()
