"""
Example: Back up new media of the authenticated account to a local folder.

Usage:
    export TWITTER_CONSUMER_KEY=... TWITTER_CONSUMER_SECRET=...
    export TWITTER_ACCESS_TOKEN=... TWITTER_ACCESS_TOKEN_SECRET=...
    python examples/backup_to_local.py
"""

import asyncio
import os
from pathlib import Path

from media_harvester.core.config import HarvestConfig, LocalConfig, TwitterConfig
from media_harvester.core.harvester import harvest


async def main():
    # Poll every 30 seconds, starting from the latest post
    twitter = TwitterConfig(
        consumer_key=os.environ["TWITTER_CONSUMER_KEY"],
        consumer_secret=os.environ["TWITTER_CONSUMER_SECRET"],
        access_token=os.environ["TWITTER_ACCESS_TOKEN"],
        access_token_secret=os.environ["TWITTER_ACCESS_TOKEN_SECRET"],
        poll_interval=30.0,
    )

    output_dir = Path("./twitter_media")
    config = HarvestConfig(
        twitter=twitter,
        local=LocalConfig(root=output_dir),
        state_path=output_dir / ".cursor.json",
    )

    print(f"Backing up new media to: {output_dir.absolute()} (Ctrl+C to stop)")
    await harvest(config)


if __name__ == "__main__":
    asyncio.run(main())
