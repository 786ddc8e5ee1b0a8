# backend/ctiengine/services/monitoring/threat_monitoring_service.py
import logging
import uuid
from datetime import datetime, timezone
from typing import Callable, Dict, List, Optional

from ctiengine.core.config import settings
from ctiengine.schemas.alerts import (
    AlertStatus,
    BatchReport,
    MonitoringStats,
    ThreatAlert,
)
from ctiengine.schemas.correlation import ThreatPattern, ThreatRelationship
from ctiengine.schemas.feeds import ThreatFeed
from ctiengine.schemas.threats import ThreatRecord
from ctiengine.services.alerting.alert_dispatcher import dispatch_alert, dispatch_patterns
from ctiengine.services.correlation.pattern_detector import PatternDetector, pattern_detector
from ctiengine.services.correlation.relationship_builder import (
    RelationshipBuilder,
    relationship_builder,
)
from ctiengine.services.filtering.noise_filter import NoiseFilter, noise_filter
from ctiengine.services.graph.relationship_store_service import (
    RelationshipStoreService,
    relationship_store_service,
)
from ctiengine.services.ingestion.json_feed_client import JSONFeedClient
from ctiengine.services.monitoring.alert_cache import AlertCache
from ctiengine.services.risk_scoring.risk_utils import severity_from_score
from ctiengine.services.risk_scoring.threat_scorer import ThreatScorer, threat_scorer

logger = logging.getLogger(__name__)


class ThreatMonitoringService:
    """
    One monitoring cycle over a batch of threat records:

      1. Drop noise (low relevance)
      2. Score each survivor; alert once per threat when priority > threshold
      3. Detect patterns over the filtered batch and broadcast them
      4. Build similarity edges and hand them to the relationship store
      5. Return a BatchReport

    Alerts live in memory. The set of alerted threats is bounded by
    ALERT_CACHE_CAPACITY; when a threat is evicted its alert is dropped too.
    """

    def __init__(
        self,
        scorer: Optional[ThreatScorer] = None,
        noise: Optional[NoiseFilter] = None,
        detector: Optional[PatternDetector] = None,
        builder: Optional[RelationshipBuilder] = None,
        store: Optional[RelationshipStoreService] = None,
        alert_sink: Optional[Callable[[ThreatAlert], None]] = None,
        pattern_sink: Optional[Callable[[List[ThreatPattern]], None]] = None,
        alert_threshold: Optional[float] = None,
        cache_capacity: Optional[int] = None,
    ) -> None:
        self.scorer = scorer or threat_scorer
        self.noise = noise or noise_filter
        self.detector = detector or pattern_detector
        self.builder = builder or relationship_builder
        self.store = store or relationship_store_service
        self.alert_sink = alert_sink or dispatch_alert
        self.pattern_sink = pattern_sink or dispatch_patterns
        self.alert_threshold = (
            settings.ALERT_PRIORITY_THRESHOLD if alert_threshold is None else alert_threshold
        )

        self._alerted = AlertCache(cache_capacity or settings.ALERT_CACHE_CAPACITY)
        self._alerts: Dict[str, ThreatAlert] = {}

    # -------------------------------------------------------------------------
    # Batch processing
    # -------------------------------------------------------------------------
    def process_batch(
        self,
        threats: List[ThreatRecord],
        persist_relationships: bool = True,
    ) -> BatchReport:
        logger.info("Processing %s new threats...", len(threats))

        filtered = self.noise.filter(threats)

        alerts: List[ThreatAlert] = []
        for threat in filtered:
            alert = self.analyze_and_alert(threat)
            if alert is not None:
                alerts.append(alert)

        patterns = self.detector.detect(filtered)
        if patterns:
            self.pattern_sink(patterns)

        relationships = self.builder.build(filtered)
        if persist_relationships:
            self._persist(relationships)

        logger.info(
            "Processed %s threats, generated %s alerts, %s patterns, %s relationships",
            len(filtered),
            len(alerts),
            len(patterns),
            len(relationships),
        )

        return BatchReport(
            received=len(threats),
            retained=len(filtered),
            dropped=len(threats) - len(filtered),
            alerts=alerts,
            patterns=patterns,
            relationships=relationships,
        )

    async def run_feed_cycle(
        self,
        feeds: List[ThreatFeed],
        client: Optional[JSONFeedClient] = None,
    ) -> BatchReport:
        """Fetch every enabled feed, then process the combined batch."""
        client = client or JSONFeedClient()
        threats = await client.fetch_feeds(feeds)
        return self.process_batch(threats)

    def _persist(self, relationships: List[ThreatRelationship]) -> None:
        if not relationships:
            return
        try:
            self.store.store_relationships(relationships)
        except Exception:
            logger.exception("Storing %s threat relationships failed.", len(relationships))

    # -------------------------------------------------------------------------
    # Alerting
    # -------------------------------------------------------------------------
    def analyze_and_alert(self, threat: ThreatRecord) -> Optional[ThreatAlert]:
        if self._alerted.get(threat.id) is not None:
            return None

        score = self.scorer.score(threat)
        if score.priority <= self.alert_threshold:
            return None

        alert = ThreatAlert(
            id=f"alert_{uuid.uuid4().hex}",
            threat_id=threat.id,
            title=threat.title,
            description=threat.description,
            severity=score.severity,
            category=threat.category,
            source=threat.source,
            timestamp=datetime.now(timezone.utc),
            metadata={
                **threat.metadata,
                "threat_score": score.model_dump(),
                "relevance": score.relevance,
                "confidence": score.confidence,
            },
        )

        self._alerts[alert.id] = alert
        evicted = self._alerted.add(threat.id, alert.id)
        if evicted is not None:
            self._drop_alerts_for(evicted)

        if score.severity > settings.CRITICAL_SEVERITY_THRESHOLD:
            logger.warning(
                "Critical threat detected: %s (severity=%.2f, source=%s)",
                threat.id,
                score.severity,
                threat.source,
            )

        try:
            self.alert_sink(alert)
        except Exception:
            logger.exception("Alert dispatch failed for %s", alert.id)

        return alert

    def _drop_alerts_for(self, threat_id: str) -> None:
        for alert_id in [a.id for a in self._alerts.values() if a.threat_id == threat_id]:
            del self._alerts[alert_id]

    def acknowledge_alert(self, alert_id: str, user_id: str) -> Optional[ThreatAlert]:
        return self.update_alert_status(alert_id, AlertStatus.ACKNOWLEDGED, user_id=user_id)

    def update_alert_status(
        self,
        alert_id: str,
        status: AlertStatus,
        notes: Optional[str] = None,
        user_id: Optional[str] = None,
    ) -> Optional[ThreatAlert]:
        alert = self._alerts.get(alert_id)
        if alert is None:
            return None

        update = {"status": status}
        if user_id:
            update["assigned_to"] = user_id
        if notes:
            update["notes"] = notes

        alert = alert.model_copy(update=update)
        self._alerts[alert_id] = alert
        logger.info("Alert %s status updated to %s by %s", alert_id, status.value, user_id)
        return alert

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------
    def get_alert(self, alert_id: str) -> Optional[ThreatAlert]:
        return self._alerts.get(alert_id)

    def get_alerts(
        self,
        category: Optional[str] = None,
        min_severity: Optional[float] = None,
        status: Optional[AlertStatus] = None,
        limit: Optional[int] = None,
    ) -> List[ThreatAlert]:
        alerts = list(self._alerts.values())

        if category:
            alerts = [a for a in alerts if a.category == category]
        if min_severity is not None:
            alerts = [a for a in alerts if a.severity >= min_severity]
        if status:
            alerts = [a for a in alerts if a.status == status]

        # newest first
        alerts.sort(key=lambda a: a.timestamp, reverse=True)

        if limit:
            alerts = alerts[:limit]
        return alerts

    def get_monitoring_stats(self) -> MonitoringStats:
        alerts = list(self._alerts.values())
        stats = MonitoringStats(total_threats=len(alerts))

        for a in alerts:
            band = severity_from_score(a.severity)
            if band == "critical":
                stats.critical_threats += 1
            elif band == "high":
                stats.high_threats += 1
            elif band == "medium":
                stats.medium_threats += 1
            else:
                stats.low_threats += 1

            stats.threats_by_category[a.category] = stats.threats_by_category.get(a.category, 0) + 1
            stats.threats_by_source[a.source] = stats.threats_by_source.get(a.source, 0) + 1

        stats.recent_alerts = sorted(alerts, key=lambda a: a.timestamp, reverse=True)[:10]
        return stats


threat_monitoring_service = ThreatMonitoringService()
