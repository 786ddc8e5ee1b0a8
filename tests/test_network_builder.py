from ctiengine.schemas.correlation import ThreatRelationship
from ctiengine.services.graph.network_builder import build_threat_network


def test_network_nodes_and_edges(make_threat):
    a = make_threat(title="A")
    b = make_threat(title="B")
    lonely = make_threat(title="C")
    edges = [
        ThreatRelationship(threat_id=a.id, related_threat_id=b.id, confidence=0.9),
        ThreatRelationship(threat_id=a.id, related_threat_id="elsewhere", confidence=0.7),
    ]

    network = build_threat_network([a, b, lonely], edges)

    assert [n.id for n in network.nodes] == [a.id, b.id]
    assert [(e.source, e.target) for e in network.edges] == [
        (a.id, b.id),
        (a.id, "elsewhere"),
    ]
    assert network.edges[0].confidence == 0.9


def test_empty_network(make_threat):
    network = build_threat_network([make_threat()], [])
    assert network.nodes == []
    assert network.edges == []
