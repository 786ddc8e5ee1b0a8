# backend/ctiengine/db/session.py

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from ctiengine.core.config import settings

# Example:
# DATABASE_URL="postgresql+psycopg2://user:pass@db:5432/cti"
# Defaults to a local SQLite file.

_connect_args = (
    {"check_same_thread": False}
    if settings.DATABASE_URL.startswith("sqlite")
    else {}
)

engine = create_engine(
    settings.DATABASE_URL,
    pool_pre_ping=True,
    connect_args=_connect_args,
)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
)
