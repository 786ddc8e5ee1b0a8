# backend/ctiengine/services/filtering/noise_filter.py
import logging
from typing import List, Optional

from ctiengine.core.config import settings
from ctiengine.schemas.threats import ThreatRecord
from ctiengine.services.risk_scoring.threat_scorer import ThreatScorer, threat_scorer

logger = logging.getLogger(__name__)


class NoiseFilter:
    """
    Drops low-relevance records from a batch, keeping the survivors in
    their original order.
    """

    def __init__(
        self,
        scorer: Optional[ThreatScorer] = None,
        threshold: Optional[float] = None,
    ) -> None:
        self.scorer = scorer or threat_scorer
        self.threshold = (
            settings.NOISE_RELEVANCE_THRESHOLD if threshold is None else threshold
        )

    def filter(self, threats: List[ThreatRecord]) -> List[ThreatRecord]:
        kept = [t for t in threats if self.scorer.relevance(t) > self.threshold]

        dropped = len(threats) - len(kept)
        if dropped:
            logger.info("Filtered %s low-relevance threats", dropped)

        return kept


noise_filter = NoiseFilter()


def filter_noise(threats: List[ThreatRecord]) -> List[ThreatRecord]:
    return noise_filter.filter(threats)
