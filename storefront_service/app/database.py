import logging
from contextlib import contextmanager

from sqlalchemy import create_engine, event, text
from sqlalchemy.engine import make_url
from sqlalchemy.orm import declarative_base, sessionmaker
from sqlalchemy.pool import StaticPool

logger = logging.getLogger(__name__)

# Base class for declarative ORM models.
Base = declarative_base()


def _enable_sqlite_foreign_keys(dbapi_connection, connection_record):
    # SQLite ignores ON DELETE CASCADE unless foreign keys are switched on per connection.
    cursor = dbapi_connection.cursor()
    cursor.execute("PRAGMA foreign_keys=ON")
    cursor.close()


class Database:
    """
    Owns the SQLAlchemy engine and session factory for one application instance.

    Created when the app is built and disposed when it shuts down, so tests can
    run several independent apps side by side.
    """

    def __init__(self, url, connect_timeout=3, statement_timeout_ms=0):
        self.url = make_url(url)
        self.engine = create_engine(self.url, **self._engine_options(connect_timeout, statement_timeout_ms))
        if self.url.get_backend_name() == "sqlite":
            event.listen(self.engine, "connect", _enable_sqlite_foreign_keys)

        # Create a configured "Session" class for database interactions.
        self.SessionLocal = sessionmaker(autocommit=False, autoflush=False, bind=self.engine)

    def _engine_options(self, connect_timeout, statement_timeout_ms):
        backend = self.url.get_backend_name()
        if backend == "sqlite":
            options = {"connect_args": {"check_same_thread": False}}
            if self.url.database in (None, "", ":memory:"):
                # One shared connection, otherwise every session sees an empty database.
                options["poolclass"] = StaticPool
            return options

        connect_args = {}
        if backend == "postgresql":
            connect_args["connect_timeout"] = connect_timeout
            if statement_timeout_ms:
                connect_args["options"] = f"-c statement_timeout={statement_timeout_ms}"
        return {"connect_args": connect_args, "pool_pre_ping": True}

    def probe(self) -> bool:
        """Returns True when the database answers a trivial query."""
        try:
            with self.engine.connect() as connection:
                connection.execute(text("SELECT 1"))
            return True
        except Exception as e:
            logger.debug("Database probe failed: %s", e)
            return False

    def create_all(self):
        """Creates tables and indexes that do not exist yet."""
        # Import models so they are registered on Base.metadata.
        from . import models  # noqa: F401

        Base.metadata.create_all(bind=self.engine)
        return sorted(Base.metadata.tables)

    @contextmanager
    def session(self):
        """Yields a session for a single request and always closes it."""
        db = self.SessionLocal()
        try:
            yield db
        finally:
            # Ensure the session is always closed after the request is finished.
            db.close()

    def dispose(self):
        self.engine.dispose()

