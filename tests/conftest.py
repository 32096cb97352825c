import pytest
from sqlalchemy import create_engine
from sqlalchemy.orm import sessionmaker
from sqlalchemy.pool import StaticPool

from subdetect.db.models import Base
from subdetect.db.repo import Repo


@pytest.fixture
def engine():
    # StaticPool keeps every connection on the same in-memory database
    eng = create_engine(
        "sqlite:///:memory:",
        connect_args={"check_same_thread": False},
        poolclass=StaticPool,
        future=True,
    )
    Base.metadata.create_all(eng)
    try:
        yield eng
    finally:
        Base.metadata.drop_all(eng)
        eng.dispose()


@pytest.fixture
def session(engine):
    SessionFactory = sessionmaker(bind=engine, autoflush=False, autocommit=False, future=True)
    with SessionFactory() as s:
        yield s


@pytest.fixture
def repo(session):
    return Repo(session)
