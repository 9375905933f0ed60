"""
Database connection and session management.

`Database` owns one SQLite engine and its session factory. It is constructed
explicitly at process start and handed to the components that need it.

Sessions are single-owner: use `Database.session()` in the thread that does
the work and do not pass the yielded session (or ORM objects) to another thread.
"""
import logging
import threading
from contextlib import contextmanager
from typing import Generator, Optional

from sqlalchemy import create_engine, event
from sqlalchemy.engine import Engine
from sqlalchemy.orm import sessionmaker, Session
from sqlalchemy.pool import NullPool

from planwise.core.config import Settings, get_database_url
from planwise.core.memory.models import Base


logger = logging.getLogger(__name__)


def _set_sqlite_pragma(dbapi_conn, connection_record):
    """Enable foreign key constraints and WAL mode in SQLite."""
    cursor = dbapi_conn.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    # WAL allows concurrent readers while the synchronizer writes
    cursor.execute("PRAGMA journal_mode=WAL")
    cursor.execute("PRAGMA busy_timeout=30000")
    cursor.close()


class Database:
    """Engine plus session factory with an explicit lifecycle (init_schema / dispose)."""

    def __init__(self, url: str, echo: bool = False) -> None:
        # NullPool: new connection per session, nothing shared across threads.
        self.url = url
        self.engine: Engine = create_engine(
            url,
            connect_args={"timeout": 30},
            poolclass=NullPool,
            echo=echo,
        )
        if url.startswith("sqlite"):
            event.listen(self.engine, "connect", _set_sqlite_pragma)
        self._session_factory = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)
        self._init_lock = threading.Lock()

    @classmethod
    def from_settings(cls, cfg: Settings) -> "Database":
        return cls(get_database_url(cfg), echo=cfg.database_echo)

    def init_schema(self) -> None:
        """Create missing tables."""
        with self._init_lock:
            try:
                Base.metadata.create_all(bind=self.engine)
                logger.info("Database schema initialized (%s)", self.url)
            except Exception as e:
                logger.error("Failed to initialize database: %s", e, exc_info=True)
                raise

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Context manager for database sessions.

        Commits when the block exits cleanly, rolls back and re-raises otherwise.
        """
        db = self._session_factory()
        logger.debug("DB session created id=%s thread_id=%s", id(db), threading.get_ident())
        try:
            yield db
            db.commit()
        except Exception:
            db.rollback()
            raise
        finally:
            db.close()

    def dispose(self) -> None:
        self.engine.dispose()
        logger.info("Database engine disposed")


def open_database(cfg: Settings, url: Optional[str] = None) -> Database:
    """Construct a Database for cfg (or an explicit url) and make sure the schema exists."""
    database = Database(url, echo=cfg.database_echo) if url else Database.from_settings(cfg)
    database.init_schema()
    return database
