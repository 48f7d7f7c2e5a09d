import pytest
from sqlalchemy.orm import sessionmaker

from taskcycle.db import Base, build_engine


@pytest.fixture
def test_db():
    """Create an in-memory SQLite database for testing."""
    engine = build_engine("sqlite:///:memory:")
    Base.metadata.create_all(engine)

    SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)
    session = SessionLocal()

    yield session

    session.close()
