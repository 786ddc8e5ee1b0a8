# backend/ctiengine/schemas/correlation.py
from typing import List, Optional
from enum import Enum

from pydantic import BaseModel, ConfigDict, Field
from pydantic.alias_generators import to_camel

from ctiengine.schemas.threats import ThreatRecord


class _CamelModel(BaseModel):
    """Serialised with the camelCase names the dashboard consumes."""
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True)


class RelationshipType(str, Enum):
    SIMILAR = "similar"
    RELATED = "related"
    DERIVED = "derived"
    CONFLICT = "conflict"
    TIMELINE = "timeline"


class RelationshipMetadata(_CamelModel):
    similarity_score: Optional[float] = None
    temporal_proximity: Optional[float] = None
    source_overlap: Optional[int] = None  # 1 if both sources are equal, else 0
    category_match: Optional[bool] = None
    severity_correlation: Optional[float] = None


class ThreatRelationship(_CamelModel):
    """
    A graph edge between two threat records.

    Stored directionally (threat_id -> related_threat_id) although the
    similarity behind it is symmetric.
    """
    threat_id: str
    related_threat_id: str
    relationship_type: RelationshipType = RelationshipType.SIMILAR
    confidence: float = Field(..., ge=0.0, le=1.0)
    metadata: RelationshipMetadata = Field(default_factory=RelationshipMetadata)


class PatternType(str, Enum):
    CATEGORY_CLUSTER = "category_cluster"
    TEMPORAL_CLUSTER = "temporal_cluster"
    SOURCE_CORRELATION = "source_correlation"
    SEVERITY_ESCALATION = "severity_escalation"


class Timeframe(str, Enum):
    WITHIN_HOUR = "within_hour"
    WITHIN_DAY = "within_day"
    WITHIN_WEEK = "within_week"
    OVER_WEEK = "over_week"


class ThreatPattern(_CamelModel):
    """
    A cluster of threats found in one batch. Patterns carry no identity
    across runs; they are recomputed per batch.
    """
    type: PatternType
    category: str
    count: int
    severity: float
    timeframe: str  # a Timeframe value, or "hour_<H>" for temporal clusters
    confidence: float
    description: str
    indicators: List[str] = Field(default_factory=list)
    affected_sectors: List[str] = Field(default_factory=list)
    attack_vectors: List[str] = Field(default_factory=list)


class SimilarityRequest(BaseModel):
    threat: ThreatRecord
    other: ThreatRecord


class SimilarityResponse(BaseModel):
    threat_id: str
    other_id: str
    similarity: float
