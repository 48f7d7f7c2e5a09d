import pytest
from datetime import date
from sqlalchemy.orm import sessionmaker

from taskcycle.core.config import Settings
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


@pytest.fixture
def config():
    """Engine settings independent of the environment."""
    return Settings(
        timezone="Asia/Tokyo",
        shopping_category="shopping",
        generation_catchup_days=7,
        generation_lookahead_days=0,
        rollover_lookback_days=7,
        rollover_mode="per_date",
        leap_day_policy="skip",
        auto_rollover=False,
    )


@pytest.fixture
def user_id():
    return "user_test"


@pytest.fixture
def today():
    """A fixed civil date (a Wednesday) the engine runs are pinned to."""
    return date(2025, 9, 10)


@pytest.fixture
def sample_template_data():
    """Sample weekly template data for testing."""
    return {
        "title": "Gym",
        "memo": "Leg day",
        "category": "health",
        "importance": 4,
        "pattern": "WEEKLY",
        "weekdays": [1, 3],
        "start_date": date(2025, 9, 9),
    }


@pytest.fixture
def sample_task_data():
    """Sample task data for testing."""
    return {
        "title": "Write report",
        "memo": "Quarterly numbers",
        "category": "work",
        "importance": 3,
        "due_date": date(2025, 9, 12),
    }
