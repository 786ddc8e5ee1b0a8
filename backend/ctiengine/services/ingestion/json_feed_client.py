# backend/ctiengine/services/ingestion/json_feed_client.py
import logging
from datetime import datetime, timezone
from typing import Any, List, Optional

import httpx

from ctiengine.core.config import settings
from ctiengine.schemas.feeds import FeedType, ThreatFeed
from ctiengine.schemas.threats import ThreatRecord
from ctiengine.services.ingestion.feed_normalizer import normalize_json_item
from ctiengine.services.ingestion.retry import async_retry

logger = logging.getLogger(__name__)

SUPPORTED_TYPES = (FeedType.JSON, FeedType.API)


def _items(payload: Any) -> List[dict]:
    if isinstance(payload, list):
        items = payload
    elif isinstance(payload, dict):
        items = payload.get("items") or payload.get("results") or []
    else:
        items = []
    return [i for i in items if isinstance(i, dict)]


class JSONFeedClient:
    """
    Polls JSON threat feeds and normalises their items into ThreatRecords.

    Failures are logged per feed and yield an empty list; one bad feed
    never stops the others.
    """

    def __init__(
        self,
        timeout: Optional[float] = None,
        transport: Optional[httpx.AsyncBaseTransport] = None,
        attempts: int = 3,
    ) -> None:
        self.timeout = settings.FEED_TIMEOUT_SECONDS if timeout is None else timeout
        self._transport = transport
        self.attempts = attempts

    def _client(self) -> httpx.AsyncClient:
        return httpx.AsyncClient(
            timeout=self.timeout,
            transport=self._transport,
            headers={"User-Agent": settings.FEED_USER_AGENT},
        )

    async def _get_json(self, client: httpx.AsyncClient, url: str) -> Any:
        resp = await client.get(url)
        resp.raise_for_status()
        return resp.json()

    async def fetch_feed(self, feed: ThreatFeed) -> List[ThreatRecord]:
        if feed.type not in SUPPORTED_TYPES:
            logger.warning("Unsupported feed type %s for %s", feed.type.value, feed.name)
            return []

        logger.info("Fetching data from %s...", feed.name)
        try:
            async with self._client() as client:
                payload = await async_retry(
                    lambda: self._get_json(client, feed.url),
                    attempts=self.attempts,
                    base_delay=0.5,
                )
        except Exception as e:
            logger.warning("Fetching %s failed: %s: %s", feed.name, type(e).__name__, e)
            return []

        threats: List[ThreatRecord] = []
        for item in _items(payload):
            try:
                threats.append(normalize_json_item(feed, item))
            except Exception:
                logger.exception("Skipping malformed item from %s", feed.name)

        feed.last_fetch = datetime.now(timezone.utc)
        logger.info("Fetched %s threats from %s", len(threats), feed.name)
        return threats

    async def fetch_feeds(self, feeds: List[ThreatFeed]) -> List[ThreatRecord]:
        threats: List[ThreatRecord] = []
        for feed in feeds:
            if feed.enabled:
                threats.extend(await self.fetch_feed(feed))
        return threats
