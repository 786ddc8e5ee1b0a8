# backend/ctiengine/services/graph/network_builder.py
from typing import Dict, List

from ctiengine.schemas.correlation import ThreatRelationship
from ctiengine.schemas.graph import NetworkEdge, NetworkNode, ThreatNetwork
from ctiengine.schemas.threats import ThreatRecord


def build_threat_network(
    threats: List[ThreatRecord],
    relationships: List[ThreatRelationship],
) -> ThreatNetwork:
    """
    Nodes/edges view for the dashboard graph.

    Only threats that take part in at least one edge become nodes; edges
    pointing at threats missing from `threats` are kept without a node.
    """
    by_id: Dict[str, ThreatRecord] = {t.id: t for t in threats}
    nodes: Dict[str, NetworkNode] = {}
    edges: List[NetworkEdge] = []

    for rel in relationships:
        for threat_id in (rel.threat_id, rel.related_threat_id):
            t = by_id.get(threat_id)
            if t is not None and threat_id not in nodes:
                nodes[threat_id] = NetworkNode(
                    id=t.id,
                    title=t.title,
                    category=t.category,
                    severity=t.severity,
                    timestamp=t.timestamp,
                )

        edges.append(
            NetworkEdge(
                source=rel.threat_id,
                target=rel.related_threat_id,
                relationship_type=rel.relationship_type,
                confidence=rel.confidence,
            )
        )

    return ThreatNetwork(nodes=list(nodes.values()), edges=edges)
