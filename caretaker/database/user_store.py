"""User store: staff and reporter lookups by phone number."""

import logging

from sqlmodel import Session, select

from caretaker.database.models import User

logger = logging.getLogger(__name__)


class UserStore:
    """Manages User records."""

    def __init__(self, engine):
        self.engine = engine

    def _session(self) -> Session:
        return Session(self.engine)

    def get(self, user_id: str) -> User | None:
        """Get a user by ID."""
        with self._session() as session:
            return session.get(User, user_id)

    def get_by_phone(self, phone_number: str) -> User | None:
        """Get the user linked to a WhatsApp phone number."""
        with self._session() as session:
            return session.exec(select(User).where(User.phone_number == phone_number)).first()

    def add(self, name: str, phone_number: str | None, role: str = "staff") -> User:
        """Create a user."""
        with self._session() as session:
            user = User(name=name, phone_number=phone_number, role=role)
            session.add(user)
            session.commit()
            session.refresh(user)
            logger.debug("Added user %s (%s)", user.id, role)
            return user
