# backend/ctiengine/services/correlation/pattern_detector.py
import logging
from typing import Dict, Iterable, List, Optional

from ctiengine.core.config import settings
from ctiengine.schemas.correlation import PatternType, ThreatPattern, Timeframe
from ctiengine.schemas.threats import ThreatRecord
from ctiengine.services.correlation.rule_engine import RuleEngine
from ctiengine.services.risk_scoring.risk_utils import clamp

logger = logging.getLogger(__name__)


SECTOR_KEYWORDS = {
    "healthcare": "Healthcare",
    "financial": "Financial Services",
    "government": "Government",
    "education": "Education",
    "retail": "Retail",
    "manufacturing": "Manufacturing",
    "energy": "Energy",
    "telecommunications": "Telecommunications",
}

# label -> any of these keywords
ATTACK_VECTOR_KEYWORDS = {
    "Email": ("email", "phishing"),
    "Web": ("web", "browser"),
    "Network": ("network",),
    "Social Engineering": ("social", "social engineering"),
    "Physical": ("physical",),
    "Supply Chain": ("supply chain",),
}

TIMEFRAME_TEXT = {
    Timeframe.WITHIN_HOUR.value: "within the last hour",
    Timeframe.WITHIN_DAY.value: "within the last 24 hours",
    Timeframe.WITHIN_WEEK.value: "within the last week",
    Timeframe.OVER_WEEK.value: "over the past week",
}

HOUR_SECONDS = 3600
DAY_SECONDS = 24 * HOUR_SECONDS
WEEK_SECONDS = 7 * DAY_SECONDS


# --------------------------------------------------------
# Helper functions
# --------------------------------------------------------

def _unique(values: Iterable[str]) -> List[str]:
    return list(dict.fromkeys(values))


def _max_severity(threats: List[ThreatRecord]) -> float:
    return max(t.severity for t in threats)


def calculate_timeframe(threats: List[ThreatRecord]) -> str:
    """Bucket the span between the earliest and latest observation."""
    times = [t.epoch_seconds for t in threats]
    duration = max(times) - min(times)

    if duration < HOUR_SECONDS:
        return Timeframe.WITHIN_HOUR.value
    if duration < DAY_SECONDS:
        return Timeframe.WITHIN_DAY.value
    if duration < WEEK_SECONDS:
        return Timeframe.WITHIN_WEEK.value
    return Timeframe.OVER_WEEK.value


def temporal_clustering(threats: List[ThreatRecord]) -> float:
    """
    1 - variance/mean^2 of the gaps between consecutive observations,
    floored at 0. Evenly spaced (or simultaneous) threats score 1.
    """
    if len(threats) < 2:
        return 0.0

    times = sorted(t.epoch_seconds for t in threats)
    intervals = [b - a for a, b in zip(times, times[1:])]

    mean = sum(intervals) / len(intervals)
    if mean == 0:
        return 1.0

    variance = sum((i - mean) ** 2 for i in intervals) / len(intervals)
    return max(0.0, 1.0 - variance / (mean * mean))


def extract_indicators(threats: List[ThreatRecord]) -> List[str]:
    return _unique(v for t in threats for v in (*t.iocs, *t.tags))


def extract_affected_sectors(threats: List[ThreatRecord]) -> List[str]:
    sectors: List[str] = []
    for t in threats:
        text = t.text
        sectors.extend(label for kw, label in SECTOR_KEYWORDS.items() if kw in text)
        sectors.extend(t.declared_sectors)
    return _unique(sectors)


def extract_attack_vectors(threats: List[ThreatRecord]) -> List[str]:
    vectors: List[str] = []
    for t in threats:
        text = t.text
        vectors.extend(
            label
            for label, keywords in ATTACK_VECTOR_KEYWORDS.items()
            if any(k in text for k in keywords)
        )
    return _unique(vectors)


def _group_by(threats: List[ThreatRecord], key) -> Dict[object, List[ThreatRecord]]:
    groups: Dict[object, List[ThreatRecord]] = {}
    for t in threats:
        groups.setdefault(key(t), []).append(t)
    return groups


class PatternDetector:
    """
    Finds clusters in a batch of threat records.

    Detectors (run independently, results concatenated in this order):
      1. Category cluster   – many threats of one category.
      2. Temporal cluster   – many threats observed in the same hour of day.
      3. Source correlation – many threats from one source.
      4. Severity escalation – severities stepping up over time.

    A detector that fails is logged and yields no patterns; the others
    are unaffected.
    """

    def __init__(
        self,
        category_threshold: Optional[int] = None,
        temporal_threshold: Optional[int] = None,
        source_threshold: Optional[int] = None,
        escalation_min_count: Optional[int] = None,
        escalation_step: Optional[float] = None,
    ) -> None:
        self.category_threshold = (
            settings.CATEGORY_CLUSTER_THRESHOLD if category_threshold is None else category_threshold
        )
        self.temporal_threshold = (
            settings.TEMPORAL_CLUSTER_THRESHOLD if temporal_threshold is None else temporal_threshold
        )
        self.source_threshold = (
            settings.SOURCE_CORRELATION_THRESHOLD if source_threshold is None else source_threshold
        )
        self.escalation_min_count = (
            settings.ESCALATION_MIN_COUNT if escalation_min_count is None else escalation_min_count
        )
        self.escalation_step = (
            settings.ESCALATION_STEP if escalation_step is None else escalation_step
        )

        self.rules = RuleEngine()
        self.rules.register_rule(self._rule_category_clusters, "category_cluster")
        self.rules.register_rule(self._rule_temporal_clusters, "temporal_cluster")
        self.rules.register_rule(self._rule_source_correlation, "source_correlation")
        self.rules.register_rule(self._rule_severity_escalation, "severity_escalation")

    # -------------------------------------------------------------------------
    # Public entry point
    # -------------------------------------------------------------------------
    def detect(self, threats: List[ThreatRecord]) -> List[ThreatPattern]:
        if not threats:
            return []
        return self.rules.run(list(threats))

    # -------------------------------------------------------------------------
    # Rule 1: Category clusters
    # -------------------------------------------------------------------------
    def _rule_category_clusters(self, threats: List[ThreatRecord]) -> List[ThreatPattern]:
        patterns: List[ThreatPattern] = []

        for category, group in _group_by(threats, lambda t: t.category).items():
            if len(group) <= self.category_threshold:
                continue

            patterns.append(
                ThreatPattern(
                    type=PatternType.CATEGORY_CLUSTER,
                    category=category,
                    count=len(group),
                    severity=_max_severity(group),
                    timeframe=calculate_timeframe(group),
                    confidence=self._cluster_confidence(group),
                    description=self._cluster_description(category, group),
                    indicators=extract_indicators(group),
                    affected_sectors=extract_affected_sectors(group),
                    attack_vectors=extract_attack_vectors(group),
                )
            )

        return patterns

    @staticmethod
    def _cluster_confidence(group: List[ThreatRecord]) -> float:
        count_score = min(len(group) / 10, 1.0)
        return clamp(
            count_score * 0.4
            + _max_severity(group) * 0.4
            + temporal_clustering(group) * 0.2
        )

    @staticmethod
    def _cluster_description(category: str, group: List[ThreatRecord]) -> str:
        severity = _max_severity(group)
        if severity > 0.8:
            severity_text = "critical"
        elif severity > 0.6:
            severity_text = "high"
        else:
            severity_text = "medium"

        timeframe_text = TIMEFRAME_TEXT[calculate_timeframe(group)]
        return (
            f"Cluster of {len(group)} {severity_text} severity {category} "
            f"threats detected {timeframe_text}"
        )

    # -------------------------------------------------------------------------
    # Rule 2: Hour-of-day clusters
    # -------------------------------------------------------------------------
    def _rule_temporal_clusters(self, threats: List[ThreatRecord]) -> List[ThreatPattern]:
        patterns: List[ThreatPattern] = []
        groups = _group_by(threats, lambda t: t.timestamp.hour)

        for hour in sorted(groups):
            group = groups[hour]
            if len(group) <= self.temporal_threshold:
                continue

            patterns.append(
                ThreatPattern(
                    type=PatternType.TEMPORAL_CLUSTER,
                    category="timing_pattern",
                    count=len(group),
                    severity=_max_severity(group),
                    timeframe=f"hour_{hour}",
                    confidence=min(len(group) / 5, 1.0),
                    description=f"Unusual threat activity detected at hour {hour}:00",
                    indicators=[f"hour_{hour}", "temporal_clustering"],
                    affected_sectors=extract_affected_sectors(group),
                    attack_vectors=extract_attack_vectors(group),
                )
            )

        return patterns

    # -------------------------------------------------------------------------
    # Rule 3: Source correlation
    # -------------------------------------------------------------------------
    def _rule_source_correlation(self, threats: List[ThreatRecord]) -> List[ThreatPattern]:
        patterns: List[ThreatPattern] = []

        for source, group in _group_by(threats, lambda t: t.source).items():
            if len(group) <= self.source_threshold:
                continue

            patterns.append(
                ThreatPattern(
                    type=PatternType.SOURCE_CORRELATION,
                    category="source_pattern",
                    count=len(group),
                    severity=_max_severity(group),
                    timeframe=calculate_timeframe(group),
                    confidence=min(len(group) / 3, 1.0),
                    description=f"High activity from source: {source}",
                    indicators=[source, "source_correlation"],
                    affected_sectors=extract_affected_sectors(group),
                    attack_vectors=extract_attack_vectors(group),
                )
            )

        return patterns

    # -------------------------------------------------------------------------
    # Rule 4: Severity escalation over time
    # -------------------------------------------------------------------------
    def _rule_severity_escalation(self, threats: List[ThreatRecord]) -> List[ThreatPattern]:
        ordered = sorted(threats, key=lambda t: t.epoch_seconds)

        escalations = 0
        current = 0.0
        for t in ordered:
            if t.severity > current + self.escalation_step:
                escalations += 1
                current = t.severity

        if escalations <= self.escalation_min_count:
            return []

        return [
            ThreatPattern(
                type=PatternType.SEVERITY_ESCALATION,
                category="escalation_pattern",
                count=escalations,
                severity=_max_severity(threats),
                timeframe=calculate_timeframe(threats),
                confidence=min(escalations / 5, 1.0),
                description=(
                    f"Severity escalation pattern detected with {escalations} "
                    f"escalating threats"
                ),
                indicators=["severity_escalation", "increasing_threat_level"],
                affected_sectors=extract_affected_sectors(threats),
                attack_vectors=extract_attack_vectors(threats),
            )
        ]


pattern_detector = PatternDetector()


def detect_patterns(threats: List[ThreatRecord]) -> List[ThreatPattern]:
    return pattern_detector.detect(threats)
