# backend/ctiengine/db/init_db.py

from ctiengine.db.session import engine
from ctiengine.db.base_class import Base

# Import models so they are registered with Base.metadata
from ctiengine.models import threat_relationship_record  # noqa: F401


def init_db(bind=None) -> None:
    """
    Create all tables (development only).
    In production, replace this with Alembic migrations.
    """
    Base.metadata.create_all(bind=bind or engine)
