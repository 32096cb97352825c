from __future__ import annotations

from pathlib import Path

from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker

from subdetect.db.models import Base

def make_engine(db_path: Path):
    db_path.parent.mkdir(parents=True, exist_ok=True)
    return create_engine(f"sqlite:///{db_path}", future=True)

def init_db(db_path: Path) -> None:
    engine = make_engine(db_path)
    Base.metadata.create_all(engine)

def make_session_factory(db_path: Path):
    engine = make_engine(db_path)
    # Commands that skip init_db still get a schema
    Base.metadata.create_all(engine)
    return sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
