"""Database connection and store wiring."""

import logging
from pathlib import Path

from sqlmodel import Session, SQLModel, create_engine

from caretaker.database.deferred_store import DeferredMessageStore
from caretaker.database.incident_store import IncidentStore
from caretaker.database.message_store import MessageStore
from caretaker.database.provider_store import ProviderStore
from caretaker.database.user_store import UserStore
from caretaker.database.window_store import WindowStateStore

logger = logging.getLogger(__name__)


class Database:
    """Database manager exposing one store per record family."""

    def __init__(self, db_path: str):
        """
        Initialize database connection.

        Args:
            db_path: Path to SQLite database file
        """
        self.db_path = db_path

        Path(db_path).parent.mkdir(parents=True, exist_ok=True)

        self.engine = create_engine(f"sqlite:///{db_path}")

        self.users = UserStore(self.engine)
        self.incidents = IncidentStore(self.engine)
        self.messages = MessageStore(self.engine)
        self.providers = ProviderStore(self.engine)
        self.windows = WindowStateStore(self.engine)
        self.deferred = DeferredMessageStore(self.engine)

        logger.info("Database initialized: %s", db_path)

    def create_tables(self) -> None:
        """Create all tables if they don't exist."""
        SQLModel.metadata.create_all(self.engine)
        logger.info("Database tables created")

    def get_session(self) -> Session:
        """Get a database session."""
        return Session(self.engine)

    def close(self) -> None:
        """Dispose of pooled connections."""
        self.engine.dispose()
