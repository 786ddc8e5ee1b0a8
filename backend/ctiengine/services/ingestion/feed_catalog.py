# backend/ctiengine/services/ingestion/feed_catalog.py
from typing import List

from ctiengine.schemas.feeds import FeedCategory, FeedType, ThreatFeed


DEFAULT_FEEDS: List[ThreatFeed] = [
    # Open web
    ThreatFeed(
        id="cve-mitre",
        name="CVE Database",
        url="https://cve.mitre.org/data/downloads/allitems.xml",
        type=FeedType.XML,
        category=FeedCategory.OPEN_WEB,
        fetch_interval="0 */6 * * *",
    ),
    ThreatFeed(
        id="nvd-nist",
        name="NVD Database",
        url="https://nvd.nist.gov/feeds/xml/cve/misc/nvd-rss.xml",
        type=FeedType.RSS,
        category=FeedCategory.OPEN_WEB,
        fetch_interval="0 */4 * * *",
    ),
    ThreatFeed(
        id="us-cert",
        name="US-CERT Alerts",
        url="https://www.us-cert.gov/ncas/alerts.xml",
        type=FeedType.RSS,
        category=FeedCategory.OPEN_WEB,
        fetch_interval="0 */2 * * *",
    ),
    ThreatFeed(
        id="krebs-security",
        name="Krebs on Security",
        url="https://krebsonsecurity.com/feed/",
        type=FeedType.RSS,
        category=FeedCategory.OPEN_WEB,
        fetch_interval="0 */3 * * *",
    ),
    ThreatFeed(
        id="threatpost",
        name="Threatpost",
        url="https://threatpost.com/feed/",
        type=FeedType.RSS,
        category=FeedCategory.OPEN_WEB,
        fetch_interval="0 */2 * * *",
    ),
    ThreatFeed(
        id="bleepingcomputer",
        name="Bleeping Computer",
        url="https://www.bleepingcomputer.com/feed/",
        type=FeedType.RSS,
        category=FeedCategory.OPEN_WEB,
        fetch_interval="0 */2 * * *",
    ),
    # Threat intelligence feeds
    ThreatFeed(
        id="alienvault-otx",
        name="AlienVault OTX",
        url="https://otx.alienvault.com/api/v1/pulses/subscribed",
        type=FeedType.JSON,
        category=FeedCategory.THREAT_FEEDS,
        fetch_interval="0 */4 * * *",
    ),
    ThreatFeed(
        id="misp-threats",
        name="MISP Threat Sharing",
        url="https://misp.example.com/events/index.json",
        type=FeedType.JSON,
        category=FeedCategory.THREAT_FEEDS,
        fetch_interval="0 */6 * * *",
    ),
]


def enabled_feeds(feeds: List[ThreatFeed] = DEFAULT_FEEDS) -> List[ThreatFeed]:
    return [f for f in feeds if f.enabled]
