# backend/ctiengine/schemas/feeds.py
from typing import Optional
from datetime import datetime
from enum import Enum

from pydantic import BaseModel, Field


class FeedType(str, Enum):
    RSS = "rss"
    API = "api"
    CSV = "csv"
    JSON = "json"
    WEB = "web"
    XML = "xml"


class FeedCategory(str, Enum):
    OPEN_WEB = "open_web"
    DARK_WEB = "dark_web"
    THREAT_FEEDS = "threat_feeds"


class ThreatFeed(BaseModel):
    id: str
    name: str = Field(..., description="Display name, written into ThreatRecord.source")
    url: str
    type: FeedType
    category: FeedCategory
    enabled: bool = True
    last_fetch: Optional[datetime] = None
    fetch_interval: str = Field(
        "0 */4 * * *", description="Cron-style polling interval (informational)."
    )
