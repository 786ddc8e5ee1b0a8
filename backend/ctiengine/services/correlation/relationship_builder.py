# backend/ctiengine/services/correlation/relationship_builder.py
import logging
from typing import List, Optional

from ctiengine.core.config import settings
from ctiengine.schemas.correlation import (
    RelationshipMetadata,
    RelationshipType,
    ThreatRelationship,
)
from ctiengine.schemas.threats import ThreatRecord
from ctiengine.services.correlation.similarity import (
    severity_correlation,
    threat_similarity,
)

logger = logging.getLogger(__name__)

# (upper bound in hours, proximity score), checked in order
TEMPORAL_PROXIMITY_STEPS = (
    (1, 1.0),
    (24, 0.8),
    (24 * 7, 0.6),
    (24 * 30, 0.4),
)
DISTANT_PROXIMITY = 0.2


def temporal_proximity(first: ThreatRecord, second: ThreatRecord) -> float:
    hours = abs(first.epoch_seconds - second.epoch_seconds) / 3600.0
    for limit, proximity in TEMPORAL_PROXIMITY_STEPS:
        if hours < limit:
            return proximity
    return DISTANT_PROXIMITY


class RelationshipBuilder:
    """
    Compares every unordered pair in a batch and emits a "similar" edge
    for pairs whose similarity is above the threshold. Records sharing an id
    are the same threat and never get an edge to themselves.

    Deduplication against stored edges is the store's job.
    """

    def __init__(self, threshold: Optional[float] = None) -> None:
        self.threshold = settings.SIMILARITY_THRESHOLD if threshold is None else threshold

    def build(self, threats: List[ThreatRecord]) -> List[ThreatRelationship]:
        relationships: List[ThreatRelationship] = []

        for i in range(len(threats)):
            for j in range(i + 1, len(threats)):
                first = threats[i]
                second = threats[j]
                if first.id == second.id:
                    continue

                similarity = threat_similarity(first, second)
                if similarity <= self.threshold:
                    continue

                relationships.append(
                    ThreatRelationship(
                        threat_id=first.id,
                        related_threat_id=second.id,
                        relationship_type=RelationshipType.SIMILAR,
                        confidence=similarity,
                        metadata=RelationshipMetadata(
                            similarity_score=similarity,
                            temporal_proximity=temporal_proximity(first, second),
                            source_overlap=1 if first.source == second.source else 0,
                            category_match=first.category == second.category,
                            severity_correlation=severity_correlation(first, second),
                        ),
                    )
                )

        logger.debug(
            "Built %s relationships from %s threats", len(relationships), len(threats)
        )
        return relationships


relationship_builder = RelationshipBuilder()


def build_relationships(threats: List[ThreatRecord]) -> List[ThreatRelationship]:
    return relationship_builder.build(threats)
