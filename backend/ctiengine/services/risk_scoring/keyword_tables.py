# backend/ctiengine/services/risk_scoring/keyword_tables.py
from __future__ import annotations

from dataclasses import dataclass, field
from typing import Dict, Tuple


# --------------------------------------------------------
# Relevance keywords (keyword -> weight)
# --------------------------------------------------------

HIGH_RELEVANCE_KEYWORDS = (
    "zero-day", "exploit", "ransomware", "malware", "phishing",
    "ddos", "breach", "vulnerability", "cve", "apt", "threat",
    "attack", "compromise", "intrusion", "backdoor", "trojan",
)

MEDIUM_RELEVANCE_KEYWORDS = (
    "security", "patch", "update", "fix", "alert", "warning",
    "advisory", "bulletin", "incident", "event",
)

HIGH_RELEVANCE_WEIGHT = 0.3
MEDIUM_RELEVANCE_WEIGHT = 0.1

# Valence below this (AFINN scale) marks the text as alarming
NEGATIVE_SENTIMENT_THRESHOLD = -2.0
NEGATIVE_SENTIMENT_BOOST = 0.2

# --------------------------------------------------------
# Severity tiers, checked in order; first hit wins
# --------------------------------------------------------

SEVERITY_TIERS: Tuple[Tuple[float, Tuple[str, ...]], ...] = (
    (0.9, ("critical", "severe", "high-risk", "emergency", "urgent")),
    (0.7, ("high", "serious", "important", "significant")),
    (0.5, ("medium", "moderate", "normal")),
    (0.3, ("low", "minor", "informational")),
)

DEFAULT_SEVERITY = 0.5

# --------------------------------------------------------
# Source credibility (source substring -> credibility tier)
# --------------------------------------------------------

HIGH_CREDIBILITY_SOURCES = (
    "cve.mitre.org", "nvd.nist.gov", "us-cert.gov", "krebsonsecurity.com",
    "threatpost.com", "bleepingcomputer.com", "securityweek.com",
    # display names the feed catalog writes into ThreatRecord.source
    "cve database", "nvd database", "us-cert", "krebs on security",
    "threatpost", "bleeping computer",
)

MEDIUM_CREDIBILITY_SOURCES = (
    "github.com", "twitter.com", "reddit.com", "hackernews.com",
)

HIGH_CREDIBILITY = 0.9
MEDIUM_CREDIBILITY = 0.6
DEFAULT_CREDIBILITY = 0.4


def _weighted(keywords, weight: float) -> Dict[str, float]:
    return {k: weight for k in keywords}


@dataclass(frozen=True)
class ScoringTables:
    """
    Keyword and credibility tables used by ThreatScorer.

    Pass a custom instance to the scorer to swap in synthetic keyword sets.
    """
    high_relevance: Dict[str, float] = field(
        default_factory=lambda: _weighted(HIGH_RELEVANCE_KEYWORDS, HIGH_RELEVANCE_WEIGHT)
    )
    medium_relevance: Dict[str, float] = field(
        default_factory=lambda: _weighted(MEDIUM_RELEVANCE_KEYWORDS, MEDIUM_RELEVANCE_WEIGHT)
    )
    negative_sentiment_threshold: float = NEGATIVE_SENTIMENT_THRESHOLD
    negative_sentiment_boost: float = NEGATIVE_SENTIMENT_BOOST
    severity_tiers: Tuple[Tuple[float, Tuple[str, ...]], ...] = SEVERITY_TIERS
    default_severity: float = DEFAULT_SEVERITY
    credibility_tiers: Tuple[Tuple[float, Tuple[str, ...]], ...] = (
        (HIGH_CREDIBILITY, HIGH_CREDIBILITY_SOURCES),
        (MEDIUM_CREDIBILITY, MEDIUM_CREDIBILITY_SOURCES),
    )
    default_credibility: float = DEFAULT_CREDIBILITY


DEFAULT_SCORING_TABLES = ScoringTables()
