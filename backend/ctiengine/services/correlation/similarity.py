# backend/ctiengine/services/correlation/similarity.py
import logging
from typing import Set

from ctiengine.schemas.threats import ThreatRecord

logger = logging.getLogger(__name__)

TEXT_WEIGHT = 0.4
CATEGORY_WEIGHT = 0.3
SEVERITY_WEIGHT = 0.2
SOURCE_WEIGHT = 0.1

# Words of this length or shorter never count as shared
SHORT_WORD_CHARS = 3


def _words(threat: ThreatRecord) -> Set[str]:
    return set(threat.text.split())


def text_overlap(a: ThreatRecord, b: ThreatRecord) -> float:
    """Shared long words over all distinct words of both records."""
    words_a = _words(a)
    words_b = _words(b)

    total = len(words_a | words_b)
    if total == 0:
        return 0.0

    common = sum(1 for w in words_a & words_b if len(w) > SHORT_WORD_CHARS)
    return common / total


def severity_correlation(a: ThreatRecord, b: ThreatRecord) -> float:
    return 1.0 - abs(a.severity - b.severity)


def threat_similarity(a: ThreatRecord, b: ThreatRecord) -> float:
    """
    Similarity in [0, 1]; symmetric in its arguments.

    0.4 * text overlap + 0.3 if same category
    + 0.2 * severity closeness + 0.1 if same source.
    """
    try:
        score = text_overlap(a, b) * TEXT_WEIGHT

        if a.category == b.category:
            score += CATEGORY_WEIGHT

        score += severity_correlation(a, b) * SEVERITY_WEIGHT

        if a.source == b.source:
            score += SOURCE_WEIGHT

        return min(score, 1.0)
    except Exception:
        logger.exception(
            "Similarity failed for %s / %s",
            getattr(a, "id", None),
            getattr(b, "id", None),
        )
        return 0.0
