import pytest

from ctiengine.schemas.threats import ThreatRecord
from ctiengine.services.risk_scoring.keyword_tables import ScoringTables
from ctiengine.services.risk_scoring.sentiment import lexicon_valence
from ctiengine.services.risk_scoring.threat_scorer import ThreatScorer

from conftest import BASE_TIME, LONG_DESCRIPTION


@pytest.fixture
def scorer():
    return ThreatScorer(sentiment=lambda text: 0.0)


def test_zero_day_from_cve_database_scores_high_severity_and_confidence(scorer, make_threat):
    threat = make_threat(
        title="Critical Zero-Day Vulnerability",
        description=LONG_DESCRIPTION,
        source="CVE Database",
    )

    score = scorer.score(threat)

    # critical tier (0.9) x high credibility (0.9)
    assert score.severity >= 0.8
    assert score.severity == pytest.approx(0.81)
    assert score.confidence >= 0.7


def test_relevance_counts_each_keyword_once(scorer, make_threat):
    once = make_threat(title="ransomware exploit")
    repeated = make_threat(title="exploit exploit exploit")

    assert scorer.relevance(once) == pytest.approx(0.6)
    assert scorer.relevance(repeated) == pytest.approx(0.3)


def test_relevance_medium_keywords_and_cap(scorer, make_threat):
    assert scorer.relevance(make_threat(title="security patch")) == pytest.approx(0.2)

    loaded = make_threat(
        title="ransomware exploit malware phishing",
        description="backdoor trojan intrusion",
    )
    assert scorer.relevance(loaded) == 1.0


def test_negative_sentiment_boosts_relevance(make_threat):
    gloomy = ThreatScorer(sentiment=lambda text: -3.0)
    neutral = ThreatScorer(sentiment=lambda text: -2.0)
    threat = make_threat(title="security patch")

    assert gloomy.relevance(threat) == pytest.approx(0.4)
    assert neutral.relevance(threat) == pytest.approx(0.2)


def test_severity_defaults_and_tier_order(scorer, make_threat):
    plain = make_threat(title="Routine notice")
    # unknown source credibility 0.4
    assert scorer.severity(plain) == pytest.approx(0.5 * 0.4)

    mixed = make_threat(title="low impact but critical", source="nvd.nist.gov feed")
    assert scorer.severity(mixed) == pytest.approx(0.9 * 0.9)

    minor = make_threat(title="minor issue", source="https://github.com/org/repo")
    assert scorer.severity(minor) == pytest.approx(0.3 * 0.6)


@pytest.mark.parametrize(
    "source,expected",
    [
        ("https://NVD.NIST.GOV/vuln", 0.9),
        ("Krebs on Security", 0.9),
        ("reddit.com/r/netsec", 0.6),
        ("Some Blog", 0.4),
        ("", 0.4),
    ],
)
def test_source_credibility(scorer, source, expected):
    assert scorer.source_credibility(source) == expected


def test_confidence_components(scorer, make_threat):
    sparse = make_threat(title="", description="short", source="Some Blog")
    # 0.5 + 0.4*0.2 - 0.2
    assert scorer.confidence(sparse) == pytest.approx(0.38)

    complete = make_threat(
        title="Advisory",
        description=LONG_DESCRIPTION,
        source="us-cert.gov",
        metadata={"iocs": ["1.2.3.4"]},
    )
    # 0.5 + 0.2 + 0.1 + 0.9*0.2
    assert scorer.confidence(complete) == pytest.approx(0.98)


def test_priority_is_weighted_sum(scorer, make_threat):
    threat = make_threat(title="ransomware exploit", description=LONG_DESCRIPTION)
    score = scorer.score(threat)

    expected = 0.4 * score.relevance + 0.4 * score.severity + 0.2 * score.confidence
    assert score.priority == pytest.approx(min(expected, 1.0))


def test_custom_tables_are_used(make_threat):
    tables = ScoringTables(
        high_relevance={"widget": 0.5},
        medium_relevance={},
        credibility_tiers=((1.0, ("acme",)),),
    )
    scorer = ThreatScorer(tables=tables, sentiment=lambda text: 0.0)

    threat = make_threat(title="widget ransomware", source="ACME labs")
    assert scorer.relevance(threat) == pytest.approx(0.5)
    assert scorer.source_credibility("ACME labs") == 1.0


def test_failing_component_falls_back_to_default(make_threat):
    def broken(text):
        raise RuntimeError("lexicon unavailable")

    scorer = ThreatScorer(sentiment=broken)
    score = scorer.score(make_threat(title="ransomware", description=LONG_DESCRIPTION))

    assert score.relevance == 0.5
    assert 0.0 <= score.priority <= 1.0


def test_malformed_record_never_raises(scorer):
    record = ThreatRecord.model_construct(
        id="broken",
        title=None,
        description=None,
        source=None,
        category="general",
        severity=0.5,
        timestamp=BASE_TIME,
        metadata={},
    )

    score = scorer.score(record)

    assert score.confidence == 0.5
    for value in (score.relevance, score.severity, score.confidence, score.priority):
        assert 0.0 <= value <= 1.0


@pytest.mark.parametrize(
    "title,description,source,metadata",
    [
        ("", "", "", {}),
        ("Critical urgent severe exploit", LONG_DESCRIPTION * 3, "cve.mitre.org", {"a": 1}),
        ("patch", "x", "github.com", {}),
    ],
)
def test_scores_stay_in_unit_interval(scorer, make_threat, title, description, source, metadata):
    score = scorer.score(
        make_threat(title=title, description=description, source=source, metadata=metadata)
    )
    for value in (score.relevance, score.severity, score.confidence, score.priority):
        assert 0.0 <= value <= 1.0


def test_record_severity_is_clamped(make_threat):
    assert make_threat(severity=1.7).severity == 1.0
    assert make_threat(severity=-0.2).severity == 0.0


def test_lexicon_valence():
    assert lexicon_valence("") == 0.0
    assert lexicon_valence("   ") == 0.0
    assert lexicon_valence("This is a terrible and horrible attack.") < 0
    assert lexicon_valence("victims hurt, serious damage") < -2


def test_alarming_prose_gets_the_sentiment_boost(make_threat):
    threat = make_threat(
        title="Outage report",
        description="serious damage, victims hurt",
    )
    quiet = ThreatScorer(sentiment=lambda text: 0.0)

    assert quiet.relevance(threat) == 0.0
    assert ThreatScorer().relevance(threat) == pytest.approx(0.2)
