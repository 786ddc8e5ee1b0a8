# backend/ctiengine/api/v1/routes_graph.py

from typing import List

from fastapi import APIRouter, Query

from ctiengine.schemas.graph import GraphStats, RelatedThreatsResponse, ThreatNetwork
from ctiengine.schemas.threats import ThreatRecord
from ctiengine.services.graph.network_builder import build_threat_network
from ctiengine.services.graph.relationship_store_service import relationship_store_service

router = APIRouter(
    prefix="/graph",
    tags=["graph"],
)


@router.get("/related/{threat_id}", response_model=RelatedThreatsResponse)
def related_threats(threat_id: str, limit: int = Query(10, ge=1, le=100)) -> RelatedThreatsResponse:
    return RelatedThreatsResponse(
        threat_id=threat_id,
        relationships=relationship_store_service.find_related(threat_id, limit=limit),
    )


@router.post("/network", response_model=ThreatNetwork, summary="Graph view of stored edges")
def threat_network(payload: List[ThreatRecord]) -> ThreatNetwork:
    edges = relationship_store_service.list_for_threats([t.id for t in payload])
    return build_threat_network(payload, edges)


@router.get("/stats", response_model=GraphStats)
def graph_stats() -> GraphStats:
    return relationship_store_service.graph_stats()
