"""
Twitter client — tweepy-backed implementation of SourceClient.

tweepy is synchronous, so every API call runs in a worker thread to keep the
event loop free for the export side of the pipeline.
"""

import asyncio
import logging

import tweepy

from media_harvester.models.media import Post
from media_harvester.parsers.twitter import parse_timeline

logger = logging.getLogger(__name__)

# Maximum page size of statuses/user_timeline.
TIMELINE_PAGE_SIZE = 200


class TwitterClient:
    """Reads an account's timeline through the v1.1 API with OAuth1 user context."""

    def __init__(
        self,
        consumer_key: str,
        consumer_secret: str,
        access_token: str,
        access_token_secret: str,
        api: tweepy.API | None = None,
    ):
        if api is None:
            auth = tweepy.OAuth1UserHandler(
                consumer_key, consumer_secret, access_token, access_token_secret
            )
            api = tweepy.API(auth)
        self.api = api

    @classmethod
    def from_config(cls, config) -> "TwitterClient":
        return cls(
            consumer_key=config.consumer_key,
            consumer_secret=config.consumer_secret,
            access_token=config.access_token,
            access_token_secret=config.access_token_secret,
        )

    async def verify_credentials(self) -> str:
        user = await asyncio.to_thread(self.api.verify_credentials)
        logger.debug(f"[Twitter] Authenticated as @{user.screen_name}")
        return user.screen_name

    async def latest_posts(self, screen_name: str, count: int = 1) -> list[Post]:
        statuses = await asyncio.to_thread(
            self.api.user_timeline,
            screen_name=screen_name,
            count=count,
            tweet_mode="extended",
        )
        return parse_timeline([s._json for s in statuses])

    async def posts_since(self, screen_name: str, since_id: int) -> list[Post]:
        statuses = await asyncio.to_thread(
            self.api.user_timeline,
            screen_name=screen_name,
            since_id=since_id,
            count=TIMELINE_PAGE_SIZE,
            exclude_replies=True,
            include_rts=False,
            tweet_mode="extended",
        )
        return parse_timeline([s._json for s in statuses])
