"""Database connection and initialization."""

from sqlalchemy import event
from sqlmodel import SQLModel, Session, create_engine

from familyhub.config import settings

# Import all models so SQLModel registers them
import familyhub.models  # noqa: F401

engine = create_engine(
    f"sqlite:///{settings.db_path}",
    echo=settings.debug,
    connect_args={"check_same_thread": False},
)


@event.listens_for(engine, "connect")
def _set_sqlite_pragmas(dbapi_conn, _record) -> None:
    # foreign_keys is per-connection in SQLite
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


def init_db() -> None:
    """Create all tables and enable WAL mode."""
    SQLModel.metadata.create_all(engine)

    # Enable WAL mode for better concurrent read performance
    with engine.connect() as conn:
        conn.exec_driver_sql("PRAGMA journal_mode=WAL")
        conn.exec_driver_sql("PRAGMA synchronous=NORMAL")
        conn.commit()


def get_session():
    """FastAPI dependency: yields a database session."""
    with Session(engine) as session:
        yield session
