from __future__ import annotations

import os
from fastapi import FastAPI
from sqlalchemy.orm import sessionmaker

from taskcycle.db import Base, build_engine

TEST_DATABASE_URL = "sqlite:///./test.db"


def is_test_mode() -> bool:
    return os.getenv("TASKCYCLE_TEST_MODE") == "1"


def configure_test_overrides(app: FastAPI) -> None:
    """Point the DB dependency at a freshly created SQLite file."""
    from taskcycle.db import get_db as real_get_db

    test_engine = build_engine(TEST_DATABASE_URL)
    TestingSessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=test_engine)

    # Recreate schema fresh each run
    Base.metadata.drop_all(bind=test_engine)
    Base.metadata.create_all(bind=test_engine)

    def override_get_db():
        db = TestingSessionLocal()
        try:
            yield db
        finally:
            db.close()

    app.dependency_overrides[real_get_db] = override_get_db
