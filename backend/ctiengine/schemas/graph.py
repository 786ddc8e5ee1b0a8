# backend/ctiengine/schemas/graph.py
from typing import Dict, List
from datetime import datetime

from pydantic import BaseModel, Field

from ctiengine.schemas.correlation import RelationshipType, ThreatRelationship


class NetworkNode(BaseModel):
    id: str
    title: str
    category: str
    severity: float
    timestamp: datetime


class NetworkEdge(BaseModel):
    source: str
    target: str
    relationship_type: RelationshipType
    confidence: float


class ThreatNetwork(BaseModel):
    nodes: List[NetworkNode] = Field(default_factory=list)
    edges: List[NetworkEdge] = Field(default_factory=list)


class TopThreat(BaseModel):
    threat_id: str
    relationship_count: int


class GraphStats(BaseModel):
    total_relationships: int = 0
    relationships_by_type: Dict[str, int] = Field(default_factory=dict)
    average_confidence: float = 0.0
    top_threats: List[TopThreat] = Field(default_factory=list)


class RelatedThreatsResponse(BaseModel):
    threat_id: str
    relationships: List[ThreatRelationship] = Field(default_factory=list)
