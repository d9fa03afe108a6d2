from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker, declarative_base
from slotbook.core.config import settings


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def build_engine(url: str, **kwargs):
    """
    Create an engine. SQLite connections are shared across request threads
    and enforce foreign keys like PostgreSQL does.
    """
    sqlite = url.startswith("sqlite")
    if sqlite:
        kwargs.setdefault("connect_args", {"check_same_thread": False})
    engine = create_engine(url, pool_pre_ping=True, **kwargs)
    if sqlite:
        event.listen(engine, "connect", _enable_sqlite_foreign_keys)
    return engine


# For PostgreSQL, we might need to adjust pool_size and max_overflow in production
engine = build_engine(settings.DATABASE_URL)

SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=engine)

Base = declarative_base()

def get_db():
    db = SessionLocal()
    try:
        yield db
    finally:
        db.close()
