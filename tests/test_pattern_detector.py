from datetime import timedelta

import pytest

from ctiengine.schemas.correlation import PatternType
from ctiengine.services.correlation.pattern_detector import (
    PatternDetector,
    calculate_timeframe,
    extract_affected_sectors,
    extract_attack_vectors,
    extract_indicators,
    temporal_clustering,
)
from ctiengine.services.correlation.rule_engine import RuleEngine


def _by_type(patterns, pattern_type):
    return [p for p in patterns if p.type == pattern_type]


@pytest.fixture
def ransomware_burst(make_threat):
    return [
        make_threat(
            title=f"Ransomware wave {i}",
            category="ransomware",
            source=f"Feed {i}",
            severity=severity,
            minutes=5 * i,
        )
        for i, severity in enumerate([0.9, 0.85, 0.8, 0.95])
    ]


def test_empty_batch_has_no_patterns():
    assert PatternDetector().detect([]) == []


def test_category_cluster(ransomware_burst):
    patterns = PatternDetector().detect(ransomware_burst)

    [cluster] = _by_type(patterns, PatternType.CATEGORY_CLUSTER)
    assert cluster.category == "ransomware"
    assert cluster.count == 4
    assert cluster.severity == 0.95
    assert cluster.timeframe == "within_hour"
    # 0.4 * 4/10 + 0.4 * 0.95 + 0.2 * 1.0 (evenly spaced)
    assert cluster.confidence == pytest.approx(0.74)
    assert cluster.description == (
        "Cluster of 4 critical severity ransomware threats detected within the last hour"
    )


def test_category_threshold_is_configurable(ransomware_burst):
    patterns = PatternDetector(category_threshold=4).detect(ransomware_burst)
    assert _by_type(patterns, PatternType.CATEGORY_CLUSTER) == []


def test_temporal_cluster_by_hour_of_day(ransomware_burst):
    [cluster] = _by_type(PatternDetector().detect(ransomware_burst), PatternType.TEMPORAL_CLUSTER)

    assert cluster.category == "timing_pattern"
    assert cluster.timeframe == "hour_10"
    assert cluster.count == 4
    assert cluster.confidence == pytest.approx(0.8)
    assert cluster.indicators == ["hour_10", "temporal_clustering"]


def test_source_correlation(make_threat):
    threats = [
        make_threat(title=f"Item {i}", source="Bleeping Computer", category=c, minutes=90 * i)
        for i, c in enumerate(["malware", "phishing", "breach"])
    ]

    [pattern] = PatternDetector().detect(threats)

    assert pattern.type == PatternType.SOURCE_CORRELATION
    assert pattern.count == 3
    assert pattern.confidence == 1.0
    assert pattern.indicators == ["Bleeping Computer", "source_correlation"]
    assert pattern.description == "High activity from source: Bleeping Computer"


def test_severity_escalation(make_threat, base_time):
    threats = [
        make_threat(
            title=f"Event {i}",
            category=f"cat-{i}",
            source=f"src-{i}",
            severity=severity,
            timestamp=base_time + timedelta(days=i, hours=i),
        )
        for i, severity in enumerate([0.1, 0.3, 0.5, 0.7, 0.9])
    ]

    # arrival order must not matter
    shuffled = [threats[3], threats[0], threats[4], threats[2], threats[1]]
    [pattern] = _by_type(PatternDetector().detect(shuffled), PatternType.SEVERITY_ESCALATION)

    assert pattern.count == 4
    assert pattern.severity == 0.9
    assert pattern.confidence == pytest.approx(0.8)
    assert pattern.timeframe == "within_week"
    assert shuffled[0] is threats[3]


def test_flat_severity_does_not_escalate(make_threat):
    threats = [make_threat(category=f"c{i}", source=f"s{i}", minutes=60 * i) for i in range(5)]
    assert _by_type(PatternDetector().detect(threats), PatternType.SEVERITY_ESCALATION) == []


def test_failing_rule_does_not_stop_the_others(ransomware_burst):
    detector = PatternDetector()

    def boom(threats):
        raise RuntimeError("broken rule")

    detector.rules.rules[0] = ("category_cluster", boom)
    patterns = detector.detect(ransomware_burst)

    assert _by_type(patterns, PatternType.CATEGORY_CLUSTER) == []
    assert len(_by_type(patterns, PatternType.TEMPORAL_CLUSTER)) == 1


def test_rule_engine_runs_rules_in_order():
    engine = RuleEngine()
    engine.register_rule(lambda ctx: [ctx, "a"], "first")
    engine.register_rule(lambda ctx: 1 / 0, "broken")
    engine.register_rule(lambda ctx: [], "empty")
    engine.register_rule(lambda ctx: ["b"], "last")

    assert engine.run("ctx") == ["ctx", "a", "b"]


def test_temporal_clustering(make_threat, base_time):
    assert temporal_clustering([make_threat()]) == 0.0

    same_time = [make_threat(), make_threat()]
    assert temporal_clustering(same_time) == 1.0

    uneven = [
        make_threat(timestamp=base_time + timedelta(seconds=s)) for s in (0, 10, 100)
    ]
    # intervals 10, 90: mean 50, variance 1600
    assert temporal_clustering(uneven) == pytest.approx(0.36)


@pytest.mark.parametrize(
    "span,expected",
    [
        (timedelta(minutes=59), "within_hour"),
        (timedelta(hours=5), "within_day"),
        (timedelta(days=3), "within_week"),
        (timedelta(days=8), "over_week"),
    ],
)
def test_calculate_timeframe(make_threat, base_time, span, expected):
    threats = [make_threat(), make_threat(timestamp=base_time + span)]
    assert calculate_timeframe(threats) == expected


def test_extractors(make_threat):
    threats = [
        make_threat(
            title="Phishing email targets healthcare",
            metadata={"iocs": ["1.2.3.4", "evil.example"], "tags": ["apt29"]},
        ),
        make_threat(
            title="Supply chain compromise",
            description="financial sector hit over the network",
            metadata={"iocs": ["1.2.3.4"], "affectedSectors": ["Energy"]},
        ),
    ]

    assert extract_indicators(threats) == ["1.2.3.4", "evil.example", "apt29"]
    assert extract_affected_sectors(threats) == ["Healthcare", "Financial Services", "Energy"]
    assert extract_attack_vectors(threats) == ["Email", "Network", "Supply Chain"]
