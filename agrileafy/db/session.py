"""Database session and engine management."""
from loguru import logger
from sqlalchemy import create_engine, event
from sqlalchemy.orm import sessionmaker

from agrileafy.config import settings
from agrileafy.db.events import install_alert_watcher

_is_sqlite = settings.DATABASE_URL.startswith("sqlite")

if _is_sqlite:
    engine = create_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        pool_pre_ping=True,
        connect_args={"check_same_thread": False, "timeout": 30},
    )
    logger.info("Using SQLite database")
else:
    engine = create_engine(
        settings.DATABASE_URL,
        echo=settings.DEBUG,
        pool_pre_ping=True,
        pool_size=10,
        max_overflow=20,
        pool_recycle=3600,  # Recycle connections after 1 hour
    )


def enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    """Let ON DELETE CASCADE work on SQLite connections."""
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


if _is_sqlite:
    event.listen(engine, "connect", enable_sqlite_foreign_keys)

SessionLocal = sessionmaker(
    autocommit=False,
    autoflush=False,
    bind=engine,
    expire_on_commit=False,  # Keep objects usable after commit
)

if settings.ALERT_TRIGGER_ENABLED:
    install_alert_watcher(SessionLocal)
