import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from ctiengine.db.init_db import init_db
from ctiengine.schemas.correlation import (
    RelationshipMetadata,
    RelationshipType,
    ThreatRelationship,
)
from ctiengine.services.correlation.relationship_builder import RelationshipBuilder
from ctiengine.services.graph.relationship_store_service import RelationshipStoreService


@pytest.fixture
def store(tmp_path):
    engine = create_engine(f"sqlite:///{tmp_path / 'graph.db'}")
    init_db(bind=engine)
    # same session settings as SessionLocal
    return RelationshipStoreService(
        session_factory=sessionmaker(autocommit=False, autoflush=False, bind=engine)
    )


def _edge(a, b, confidence, rel_type=RelationshipType.SIMILAR):
    return ThreatRelationship(
        threat_id=a,
        related_threat_id=b,
        relationship_type=rel_type,
        confidence=confidence,
        metadata=RelationshipMetadata(similarity_score=confidence, source_overlap=1),
    )


def test_store_is_an_upsert(store):
    assert store.store_relationships([_edge("a", "b", 0.7)]) == 1
    assert store.store_relationships([_edge("a", "b", 0.9)]) == 0

    [stored] = store.find_related("a")
    assert stored.confidence == 0.9
    assert stored.metadata.similarity_score == 0.9
    assert stored.metadata.source_overlap == 1
    assert store.graph_stats().total_relationships == 1


def test_other_relationship_type_is_a_new_edge(store):
    store.store_relationships([_edge("a", "b", 0.7)])
    store.store_relationships([_edge("a", "b", 0.7, RelationshipType.TIMELINE)])

    assert store.graph_stats().relationships_by_type == {"similar": 1, "timeline": 1}


def test_find_related_both_directions_strongest_first(store):
    store.store_relationships(
        [_edge("a", "b", 0.65), _edge("c", "a", 0.95), _edge("a", "d", 0.8), _edge("x", "y", 0.99)]
    )

    related = store.find_related("a")
    assert [r.confidence for r in related] == [0.95, 0.8, 0.65]
    assert len(store.find_related("a", limit=2)) == 2
    assert store.find_related("nobody") == []


def test_list_for_threats(store):
    store.store_relationships([_edge("a", "b", 0.7), _edge("x", "y", 0.8)])

    assert [(r.threat_id, r.related_threat_id) for r in store.list_for_threats(["b"])] == [("a", "b")]
    assert store.list_for_threats([]) == []


def test_graph_stats(store):
    store.store_relationships([_edge("a", "b", 0.7), _edge("a", "c", 0.9), _edge("b", "c", 0.8)])

    stats = store.graph_stats()
    assert stats.total_relationships == 3
    assert stats.average_confidence == pytest.approx(0.8)
    assert stats.top_threats[0].threat_id == "a"
    assert stats.top_threats[0].relationship_count == 2


def test_empty_store(store):
    assert store.store_relationships([]) == 0
    stats = store.graph_stats()
    assert stats.total_relationships == 0
    assert stats.average_confidence == 0.0


def test_repeated_key_in_one_call_keeps_last_edge(store):
    inserted = store.store_relationships(
        [_edge("a", "b", 0.7), _edge("a", "c", 0.8), _edge("a", "b", 0.75)]
    )

    assert inserted == 2
    assert store.graph_stats().total_relationships == 2
    assert [r.confidence for r in store.find_related("b")] == [0.75]


def test_batch_with_repeated_threat_is_stored(store, make_threat):
    a = make_threat(id="a", title="Same exploit chain", category="attack")
    b = make_threat(id="b", title="Same exploit chain", category="attack")
    b_again = make_threat(id="b", title="Same exploit chain", category="attack", minutes=5)

    edges = RelationshipBuilder().build([a, b, b_again])

    assert store.store_relationships(edges) == 1
    [stored] = store.find_related("a")
    assert (stored.threat_id, stored.related_threat_id) == ("a", "b")
