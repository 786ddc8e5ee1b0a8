# backend/ctiengine/models/threat_relationship_record.py
from sqlalchemy import Column, String, Float, DateTime, JSON, UniqueConstraint
from datetime import datetime
from ctiengine.db.base_class import Base


class ThreatRelationshipRecord(Base):
    __tablename__ = "threat_graphs"
    __table_args__ = (
        UniqueConstraint(
            "threat_id", "related_threat_id", "relationship_type",
            name="uq_threat_graph_edge",
        ),
    )

    id = Column(String, primary_key=True, index=True)   # store UUID as string
    threat_id = Column(String, index=True, nullable=False)
    related_threat_id = Column(String, index=True, nullable=False)
    relationship_type = Column(String, index=True, nullable=False)
    confidence = Column(Float, index=True, nullable=False)

    # `metadata` is reserved on declarative classes
    details = Column("metadata", JSON)   # similarityScore, temporalProximity, ...

    created_at = Column(DateTime, default=datetime.utcnow, index=True)
    updated_at = Column(DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)
