from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, declarative_base
from taskcycle.core.config import settings


def build_engine(database_url: str) -> Engine:
    """Create an engine; SQLite connections get foreign keys switched on."""
    is_sqlite = database_url.startswith("sqlite")
    new_engine = create_engine(
        database_url,
        connect_args={"check_same_thread": False} if is_sqlite else {}
    )
    if is_sqlite:
        @event.listens_for(new_engine, "connect")
        def _enable_foreign_keys(dbapi_connection, connection_record):
            cursor = dbapi_connection.cursor()
            cursor.execute("PRAGMA foreign_keys=ON")
            cursor.close()
    return new_engine


engine = build_engine(settings.database_url)
SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
