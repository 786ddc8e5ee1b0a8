# backend/ctiengine/services/graph/relationship_store_service.py

import logging
import uuid
from datetime import datetime
from typing import Callable, Dict, List, Optional, Tuple

from sqlalchemy import func, or_
from sqlalchemy.orm import Session

from ctiengine.db.session import SessionLocal
from ctiengine.models.threat_relationship_record import ThreatRelationshipRecord
from ctiengine.schemas.correlation import RelationshipMetadata, ThreatRelationship
from ctiengine.schemas.graph import GraphStats, TopThreat

logger = logging.getLogger(__name__)


class RelationshipStoreService:
    """
    DB-backed storage for threat graph edges (SQLAlchemy).

    Edges are keyed by (threat_id, related_threat_id, relationship_type):
    storing an edge that already exists refreshes its confidence and
    metadata instead of inserting a duplicate.
    """

    def __init__(self, session_factory: Optional[Callable[[], Session]] = None) -> None:
        self._session_factory = session_factory or SessionLocal

    def _get_db(self) -> Session:
        return self._session_factory()

    @staticmethod
    def _to_schema(record: ThreatRelationshipRecord) -> ThreatRelationship:
        return ThreatRelationship(
            threat_id=record.threat_id,
            related_threat_id=record.related_threat_id,
            relationship_type=record.relationship_type,
            confidence=record.confidence,
            metadata=RelationshipMetadata.model_validate(record.details or {}),
        )

    # --------------------------------------------------------
    # Upsert
    # --------------------------------------------------------
    def store_relationships(self, relationships: List[ThreatRelationship]) -> int:
        """
        Upsert edges; returns how many were newly inserted.
        """
        if not relationships:
            return 0

        # one row per (threat, related, type) key; the last edge for a key wins
        latest: Dict[Tuple[str, str, str], ThreatRelationship] = {}
        for rel in relationships:
            latest[(rel.threat_id, rel.related_threat_id, rel.relationship_type.value)] = rel

        db = self._get_db()
        try:
            inserted = 0
            for rel in latest.values():
                rel_type = rel.relationship_type.value
                details = rel.metadata.model_dump(by_alias=True, exclude_none=True)

                existing = (
                    db.query(ThreatRelationshipRecord)
                    .filter(
                        ThreatRelationshipRecord.threat_id == rel.threat_id,
                        ThreatRelationshipRecord.related_threat_id == rel.related_threat_id,
                        ThreatRelationshipRecord.relationship_type == rel_type,
                    )
                    .one_or_none()
                )

                if existing is not None:
                    existing.confidence = rel.confidence
                    existing.details = details
                    existing.updated_at = datetime.utcnow()
                    continue

                db.add(
                    ThreatRelationshipRecord(
                        id=str(uuid.uuid4()),
                        threat_id=rel.threat_id,
                        related_threat_id=rel.related_threat_id,
                        relationship_type=rel_type,
                        confidence=rel.confidence,
                        details=details,
                    )
                )
                inserted += 1
                logger.info(
                    "Created threat relationship: %s -> %s",
                    rel.threat_id,
                    rel.related_threat_id,
                )

            db.commit()
            return inserted
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    # --------------------------------------------------------
    # Read
    # --------------------------------------------------------
    def find_related(self, threat_id: str, limit: int = 10) -> List[ThreatRelationship]:
        """
        Edges touching `threat_id` in either direction, strongest first.
        """
        db = self._get_db()
        try:
            q = (
                db.query(ThreatRelationshipRecord)
                .filter(
                    or_(
                        ThreatRelationshipRecord.threat_id == threat_id,
                        ThreatRelationshipRecord.related_threat_id == threat_id,
                    )
                )
                .order_by(ThreatRelationshipRecord.confidence.desc())
                .limit(limit)
            )
            return [self._to_schema(r) for r in q]
        finally:
            db.close()

    def list_for_threats(self, threat_ids: List[str]) -> List[ThreatRelationship]:
        if not threat_ids:
            return []

        db = self._get_db()
        try:
            q = db.query(ThreatRelationshipRecord).filter(
                or_(
                    ThreatRelationshipRecord.threat_id.in_(threat_ids),
                    ThreatRelationshipRecord.related_threat_id.in_(threat_ids),
                )
            )
            return [self._to_schema(r) for r in q]
        finally:
            db.close()

    # --------------------------------------------------------
    # Stats
    # --------------------------------------------------------
    def graph_stats(self) -> GraphStats:
        db = self._get_db()
        try:
            total = db.query(func.count(ThreatRelationshipRecord.id)).scalar() or 0

            by_type: Dict[str, int] = {
                rel_type: count
                for rel_type, count in (
                    db.query(
                        ThreatRelationshipRecord.relationship_type,
                        func.count(ThreatRelationshipRecord.id),
                    )
                    .group_by(ThreatRelationshipRecord.relationship_type)
                    .all()
                )
            }

            avg_conf = db.query(func.avg(ThreatRelationshipRecord.confidence)).scalar()

            top = (
                db.query(
                    ThreatRelationshipRecord.threat_id,
                    func.count(ThreatRelationshipRecord.id).label("cnt"),
                )
                .group_by(ThreatRelationshipRecord.threat_id)
                .order_by(func.count(ThreatRelationshipRecord.id).desc())
                .limit(10)
                .all()
            )

            return GraphStats(
                total_relationships=total,
                relationships_by_type=by_type,
                average_confidence=float(avg_conf or 0.0),
                top_threats=[
                    TopThreat(threat_id=threat_id, relationship_count=cnt)
                    for threat_id, cnt in top
                ],
            )
        finally:
            db.close()


relationship_store_service = RelationshipStoreService()
