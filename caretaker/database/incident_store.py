"""Incident store: incident lookups, listings, and atomic status/note writes."""

import logging
from datetime import UTC, datetime

from sqlmodel import Session, col, select

from caretaker.constants import CaretakerConstants
from caretaker.database.models import Category, Incident, IncidentUpdate

logger = logging.getLogger(__name__)

_OPEN_STATUSES = (
    CaretakerConstants.IncidentStatus.OPEN,
    CaretakerConstants.IncidentStatus.IN_PROGRESS,
)


class IncidentStore:
    """Manages Incident, IncidentUpdate and Category records."""

    def __init__(self, engine):
        self.engine = engine

    def _session(self) -> Session:
        return Session(self.engine)

    def get(self, incident_id: str) -> Incident | None:
        """Get an incident by its exact ID."""
        with self._session() as session:
            return session.get(Incident, incident_id)

    def find_by_id_match(
        self, term: str, strategy: CaretakerConstants.MatchStrategy
    ) -> list[Incident]:
        """Find incidents whose ID matches ``term`` under a single strategy.

        Results come back in store order (oldest first) so that ambiguous loose
        matches resolve the same way every time.
        """
        column = col(Incident.id)
        match strategy:
            case CaretakerConstants.MatchStrategy.EXACT:
                condition = column == term
            case CaretakerConstants.MatchStrategy.STARTS_WITH:
                condition = column.startswith(term, autoescape=True)
            case CaretakerConstants.MatchStrategy.ENDS_WITH:
                condition = column.endswith(term, autoescape=True)
            case CaretakerConstants.MatchStrategy.CONTAINS:
                condition = column.contains(term, autoescape=True)

        with self._session() as session:
            return list(
                session.exec(
                    select(Incident).where(condition).order_by(col(Incident.timestamp))
                ).unique()
            )

    def list_open_assigned(self, user_id: str, limit: int) -> list[Incident]:
        """Open or in-progress incidents assigned to a user, newest first."""
        with self._session() as session:
            return list(
                session.exec(
                    select(Incident)
                    .where(
                        Incident.assigned_to_id == user_id,
                        col(Incident.status).in_(_OPEN_STATUSES),
                    )
                    .order_by(col(Incident.timestamp).desc())
                    .limit(limit)
                ).unique()
            )

    def list_reported(self, user_id: str, limit: int) -> list[Incident]:
        """Incidents reported by a user, newest first."""
        with self._session() as session:
            return list(
                session.exec(
                    select(Incident)
                    .where(Incident.reporter_id == user_id)
                    .order_by(col(Incident.timestamp).desc())
                    .limit(limit)
                ).unique()
            )

    def list_updates(self, incident_id: str) -> list[IncidentUpdate]:
        """All notes for an incident, oldest first."""
        with self._session() as session:
            return list(
                session.exec(
                    select(IncidentUpdate)
                    .where(IncidentUpdate.incident_id == incident_id)
                    .order_by(col(IncidentUpdate.id))
                )
            )

    def create(
        self,
        category_id: str,
        subcategory: str,
        location: str,
        notes: str | None,
        reporter_id: str,
        assigned_to_id: str | None = None,
    ) -> Incident:
        """Create a new open incident."""
        with self._session() as session:
            incident = Incident(
                category_id=category_id,
                subcategory=subcategory,
                location=location,
                notes=notes,
                reporter_id=reporter_id,
                assigned_to_id=assigned_to_id,
            )
            session.add(incident)
            session.commit()
            return self._reload(session, incident.id)

    def record_progress(self, incident_id: str, author_id: str, notes: str) -> Incident:
        """Append a progress note, moving an Open incident to In Progress.

        The note and the status change are committed together.
        """
        with self._session() as session:
            incident = session.get(Incident, incident_id)
            if incident is None:
                raise LookupError(f"Incident {incident_id} not found")

            status_context = None
            if incident.status == CaretakerConstants.IncidentStatus.OPEN:
                incident.status = CaretakerConstants.IncidentStatus.IN_PROGRESS
                incident.updated_at = datetime.now(UTC)
                status_context = CaretakerConstants.IncidentStatus.IN_PROGRESS
                session.add(incident)

            session.add(
                IncidentUpdate(
                    incident_id=incident_id,
                    author_id=author_id,
                    notes=notes,
                    update_type=CaretakerConstants.UpdateType.PROGRESS,
                    status_context=status_context,
                )
            )
            session.commit()
            logger.debug("Recorded progress on incident %s", incident_id[-6:])
            return self._reload(session, incident_id)

    def record_completion(self, incident_id: str, author_id: str, notes: str) -> Incident:
        """Resolve an incident and append the completion note in one commit."""
        with self._session() as session:
            incident = session.get(Incident, incident_id)
            if incident is None:
                raise LookupError(f"Incident {incident_id} not found")

            incident.status = CaretakerConstants.IncidentStatus.RESOLVED
            incident.resolution_notes = notes
            incident.updated_at = datetime.now(UTC)
            session.add(incident)
            session.add(
                IncidentUpdate(
                    incident_id=incident_id,
                    author_id=author_id,
                    notes=notes,
                    update_type=CaretakerConstants.UpdateType.COMPLETION,
                    status_context=CaretakerConstants.IncidentStatus.RESOLVED,
                )
            )
            session.commit()
            logger.debug("Resolved incident %s", incident_id[-6:])
            return self._reload(session, incident_id)

    def list_categories(self) -> list[Category]:
        """All categories, alphabetically."""
        with self._session() as session:
            return list(session.exec(select(Category).order_by(col(Category.name))))

    def add_category(self, name: str, description: str | None = None) -> Category:
        """Create a category."""
        with self._session() as session:
            category = Category(name=name, description=description)
            session.add(category)
            session.commit()
            session.refresh(category)
            return category

    def _reload(self, session: Session, incident_id: str) -> Incident:
        """Re-read an incident after commit so its relationships are loaded."""
        incident = session.exec(select(Incident).where(Incident.id == incident_id)).unique().one()
        return incident
