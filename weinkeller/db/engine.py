"""SQLite database engine and session management."""

import logging
import os
from collections.abc import Generator
from contextlib import contextmanager
from pathlib import Path

from sqlalchemy import Engine, create_engine
from sqlalchemy.orm import Session, sessionmaker

logger = logging.getLogger(__name__)

# Default database path (can be overridden via the DB_PATH environment variable)
DEFAULT_DB_PATH = Path("run") / "database" / "wine_inventory.db"


def get_database_path(db_path: Path | str | None = None) -> Path:
    """
    Resolve the SQLite database file path.

    Args:
        db_path: Optional explicit path. If None, uses the DB_PATH env var
                 or the default path.

    Returns:
        Absolute path to the database file.
    """
    if db_path is not None:
        path = Path(db_path)
    elif os.environ.get("DB_PATH"):
        path = Path(os.environ["DB_PATH"])
    else:
        path = DEFAULT_DB_PATH
    return path.resolve()


def get_database_url(db_path: Path | str | None = None) -> str:
    """
    Get the SQLite database URL, creating the parent directory if needed.

    Args:
        db_path: Optional path to the database file.

    Returns:
        SQLite connection URL.
    """
    path = get_database_path(db_path)
    if not path.parent.exists():
        logger.info(f"Creating database directory: {path.parent}")
        path.parent.mkdir(parents=True, exist_ok=True)
    return f"sqlite:///{path}"


class Database:
    """
    Owner of the SQLite engine and session factory.

    Constructed explicitly by the web app factory or the CLI, opened on
    startup and closed on shutdown.

    Usage:
        db = Database(tmp_path / "cellar.db").open()
        db.init_schema()
        with db.session() as session:
            ...
        db.close()
    """

    def __init__(self, db_path: Path | str | None = None, echo: bool = False):
        self.path = get_database_path(db_path)
        self.echo = echo
        self._engine: Engine | None = None
        self._session_factory: sessionmaker[Session] | None = None

    @property
    def url(self) -> str:
        return get_database_url(self.path)

    @property
    def is_open(self) -> bool:
        return self._engine is not None

    @property
    def engine(self) -> Engine:
        if self._engine is None:
            raise RuntimeError("Database is not open")
        return self._engine

    def open(self) -> "Database":
        """Create the engine and session factory (idempotent)."""
        if self._engine is None:
            logger.info(f"Connecting to SQLite database at: {self.path}")
            self._engine = create_engine(
                self.url,
                echo=self.echo,
                connect_args={"check_same_thread": False},  # Allow multi-threaded access
            )
            self._session_factory = sessionmaker(
                autocommit=False, autoflush=False, bind=self._engine
            )
        return self

    def close(self) -> None:
        """Dispose of the engine and its pooled connections."""
        if self._engine is not None:
            self._engine.dispose()
            logger.info("Database connection closed")
        self._engine = None
        self._session_factory = None

    def __enter__(self) -> "Database":
        return self.open()

    def __exit__(self, exc_type, exc_val, exc_tb) -> bool:
        self.close()
        return False

    @contextmanager
    def session(self) -> Generator[Session, None, None]:
        """
        Context manager for database sessions.

        The caller commits; anything left uncommitted is rolled back on close.

        Yields:
            SQLAlchemy Session instance.
        """
        if self._session_factory is None:
            self.open()
        session = self._session_factory()
        try:
            yield session
        finally:
            session.close()

    def init_schema(self) -> None:
        """
        Create all tables that do not exist yet and seed the default tags.

        Safe to call on every start.
        """
        from weinkeller.db.models import Base
        from weinkeller.db.repositories import TagRepository

        Base.metadata.create_all(bind=self.engine)
        with self.session() as session:
            seeded = TagRepository(session).seed_defaults()
            session.commit()
        logger.info(f"Database schema initialized ({seeded} default tags seeded)")
