# backend/ctiengine/services/ingestion/feed_normalizer.py
import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Dict, Optional

from pydantic import TypeAdapter, ValidationError

from ctiengine.schemas.feeds import ThreatFeed
from ctiengine.schemas.threats import ThreatCategory, ThreatRecord

logger = logging.getLogger(__name__)

_datetime_adapter = TypeAdapter(datetime)

# Checked in order; first hit wins
CATEGORY_RULES = (
    (ThreatCategory.VULNERABILITY, ("cve", "vulnerability")),
    (ThreatCategory.MALWARE, ("malware", "virus", "trojan")),
    (ThreatCategory.PHISHING, ("phishing", "scam")),
    (ThreatCategory.ATTACK, ("ddos", "attack")),
    (ThreatCategory.BREACH, ("breach", "leak")),
    (ThreatCategory.RANSOMWARE, ("ransomware",)),
)

TEXT_SEVERITY_RULES = (
    (0.9, ("critical", "severe")),
    (0.7, ("high", "serious")),
    (0.5, ("medium", "moderate")),
    (0.3, ("low", "minor")),
)


def categorize_threat(title: str, description: str) -> str:
    text = f"{title} {description}".lower()
    for category, keywords in CATEGORY_RULES:
        if any(k in text for k in keywords):
            return category.value
    return ThreatCategory.GENERAL.value


def severity_from_text(text: str) -> float:
    """Ingestion-time severity guess; the scorer refines it later."""
    text_l = (text or "").lower()
    for severity, keywords in TEXT_SEVERITY_RULES:
        if any(k in text_l for k in keywords):
            return severity
    return 0.5


def severity_from_cvss(score: Any) -> float:
    try:
        cvss = float(score)
    except (TypeError, ValueError):
        return 0.5

    if cvss >= 9.0:
        return 0.9
    if cvss >= 7.0:
        return 0.7
    if cvss >= 4.0:
        return 0.5
    return 0.3


def parse_timestamp(value: Any) -> datetime:
    if value in (None, ""):
        return datetime.now(timezone.utc)
    try:
        return _datetime_adapter.validate_python(value)
    except ValidationError:
        logger.debug("Unparseable feed timestamp %r; using now()", value)
        return datetime.now(timezone.utc)


def threat_id_for(feed_id: str, identifier: Optional[Any]) -> str:
    return f"{feed_id}_{identifier if identifier else uuid.uuid4().hex}"


def normalize_json_item(feed: ThreatFeed, item: Dict[str, Any]) -> ThreatRecord:
    """
    Map one item of a JSON feed into a ThreatRecord.

    Understands the usual field spellings (title/name, description/summary,
    timestamp/date) and a CVSS score when one is present.
    """
    title = item.get("title") or item.get("name") or "Threat Alert"
    description = item.get("description") or item.get("summary") or ""

    if item.get("cvss") is not None:
        severity = severity_from_cvss(item.get("cvss"))
    else:
        severity = severity_from_text(description)

    return ThreatRecord(
        id=threat_id_for(feed.id, item.get("id") or item.get("url")),
        title=str(title),
        description=str(description),
        source=feed.name,
        severity=severity,
        category=categorize_threat(str(title), str(description)),
        timestamp=parse_timestamp(item.get("timestamp") or item.get("date")),
        metadata={**item, "feedId": feed.id},
    )
