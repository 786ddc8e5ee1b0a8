# backend/ctiengine/api/v1/routes_analysis.py

from typing import List

from fastapi import APIRouter

from ctiengine.schemas.correlation import (
    SimilarityRequest,
    SimilarityResponse,
    ThreatPattern,
    ThreatRelationship,
)
from ctiengine.schemas.threats import ThreatRecord, ThreatScore
from ctiengine.services.correlation.pattern_detector import detect_patterns
from ctiengine.services.correlation.relationship_builder import build_relationships
from ctiengine.services.correlation.similarity import threat_similarity
from ctiengine.services.filtering.noise_filter import filter_noise
from ctiengine.services.graph.relationship_store_service import relationship_store_service
from ctiengine.services.risk_scoring.threat_scorer import score_threat

router = APIRouter(
    prefix="/analysis",
    tags=["analysis"],
)


@router.post("/score", response_model=ThreatScore, summary="Score a single threat")
def score(payload: ThreatRecord) -> ThreatScore:
    return score_threat(payload)


@router.post(
    "/filter",
    response_model=List[ThreatRecord],
    summary="Drop low-relevance threats from a batch",
)
def filter_batch(payload: List[ThreatRecord]) -> List[ThreatRecord]:
    return filter_noise(payload)


@router.post("/similarity", response_model=SimilarityResponse)
def similarity(payload: SimilarityRequest) -> SimilarityResponse:
    return SimilarityResponse(
        threat_id=payload.threat.id,
        other_id=payload.other.id,
        similarity=threat_similarity(payload.threat, payload.other),
    )


@router.post("/patterns", response_model=List[ThreatPattern])
def patterns(payload: List[ThreatRecord]) -> List[ThreatPattern]:
    return detect_patterns(payload)


@router.post("/relationships", response_model=List[ThreatRelationship])
def relationships(payload: List[ThreatRecord], persist: bool = False) -> List[ThreatRelationship]:
    """
    Pairwise similarity edges for a batch. With `persist=true` the edges are
    also upserted into the threat graph store.
    """
    edges = build_relationships(payload)
    if persist:
        relationship_store_service.store_relationships(edges)
    return edges
