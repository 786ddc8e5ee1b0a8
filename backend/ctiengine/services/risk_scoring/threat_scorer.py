# backend/ctiengine/services/risk_scoring/threat_scorer.py
import logging
from typing import Callable, Optional

from ctiengine.schemas.threats import ThreatRecord, ThreatScore
from ctiengine.services.risk_scoring.keyword_tables import (
    DEFAULT_SCORING_TABLES,
    ScoringTables,
)
from ctiengine.services.risk_scoring.risk_utils import clamp
from ctiengine.services.risk_scoring.sentiment import lexicon_valence

logger = logging.getLogger(__name__)

# Returned for a sub-score that could not be computed
DEFAULT_SUBSCORE = 0.5

PRIORITY_WEIGHTS = {
    "relevance": 0.4,
    "severity": 0.4,
    "confidence": 0.2,
}

MIN_CONFIDENCE = 0.1
SHORT_DESCRIPTION_CHARS = 50


class ThreatScorer:
    """
    Rule-based scoring of a single threat record.

      relevance  – keyword hits + negative-sentiment boost
      severity   – first matching severity tier x source credibility
      confidence – data completeness + source credibility
      priority   – 0.4*relevance + 0.4*severity + 0.2*confidence

    Each component degrades to 0.5 on a malformed record instead of raising.
    """

    def __init__(
        self,
        tables: Optional[ScoringTables] = None,
        sentiment: Optional[Callable[[str], float]] = None,
    ) -> None:
        self.tables = tables or DEFAULT_SCORING_TABLES
        self._sentiment = sentiment or lexicon_valence

    # -------------------------------------------------------------------------
    # Public entry point
    # -------------------------------------------------------------------------
    def score(self, threat: ThreatRecord) -> ThreatScore:
        relevance = self.relevance(threat)
        severity = self.severity(threat)
        confidence = self.confidence(threat)
        priority = self.priority(relevance, severity, confidence)

        return ThreatScore(
            relevance=relevance,
            severity=severity,
            confidence=confidence,
            priority=priority,
        )

    # -------------------------------------------------------------------------
    # Components
    # -------------------------------------------------------------------------
    def relevance(self, threat: ThreatRecord) -> float:
        try:
            text = threat.text
            score = 0.0

            for keyword, weight in self.tables.high_relevance.items():
                if keyword in text:
                    score += weight

            for keyword, weight in self.tables.medium_relevance.items():
                if keyword in text:
                    score += weight

            if self._sentiment(text) < self.tables.negative_sentiment_threshold:
                score += self.tables.negative_sentiment_boost

            return clamp(score)
        except Exception:
            logger.exception("Relevance scoring failed for threat %s", getattr(threat, "id", None))
            return DEFAULT_SUBSCORE

    def severity(self, threat: ThreatRecord) -> float:
        try:
            text = threat.text
            score = self.tables.default_severity

            for tier_score, keywords in self.tables.severity_tiers:
                if any(k in text for k in keywords):
                    score = tier_score
                    break

            score *= self.source_credibility(threat.source)
            return clamp(score)
        except Exception:
            logger.exception("Severity scoring failed for threat %s", getattr(threat, "id", None))
            return DEFAULT_SUBSCORE

    def confidence(self, threat: ThreatRecord) -> float:
        try:
            confidence = 0.5

            if threat.title and threat.description:
                confidence += 0.2
            if threat.metadata:
                confidence += 0.1

            confidence += self.source_credibility(threat.source) * 0.2

            if len(threat.description) < SHORT_DESCRIPTION_CHARS:
                confidence -= 0.2

            return clamp(confidence, MIN_CONFIDENCE, 1.0)
        except Exception:
            logger.exception("Confidence scoring failed for threat %s", getattr(threat, "id", None))
            return DEFAULT_SUBSCORE

    def source_credibility(self, source: str) -> float:
        source_l = (source or "").lower()
        for credibility, sources in self.tables.credibility_tiers:
            if any(s in source_l for s in sources):
                return credibility
        return self.tables.default_credibility

    @staticmethod
    def priority(relevance: float, severity: float, confidence: float) -> float:
        total = (
            relevance * PRIORITY_WEIGHTS["relevance"]
            + severity * PRIORITY_WEIGHTS["severity"]
            + confidence * PRIORITY_WEIGHTS["confidence"]
        )
        return min(total, 1.0)


threat_scorer = ThreatScorer()


def score_threat(threat: ThreatRecord) -> ThreatScore:
    return threat_scorer.score(threat)
