"""Provider store: read access to configured generative backends."""

import logging

from sqlmodel import Session, col, select

from caretaker.database.models import ProviderConfig

logger = logging.getLogger(__name__)


class ProviderStore:
    """Manages ProviderConfig records."""

    def __init__(self, engine):
        self.engine = engine

    def _session(self) -> Session:
        return Session(self.engine)

    def list_active(self, exclude_provider: str | None = None) -> list[ProviderConfig]:
        """Active configurations, default first, then in creation order."""
        query = select(ProviderConfig).where(ProviderConfig.is_active == True)  # noqa: E712
        if exclude_provider is not None:
            query = query.where(ProviderConfig.provider != exclude_provider)
        with self._session() as session:
            return list(
                session.exec(
                    query.order_by(col(ProviderConfig.is_default).desc(), col(ProviderConfig.id))
                )
            )

    def add(
        self,
        provider: str,
        encrypted_api_key: str | None = None,
        model: str | None = None,
        base_url: str | None = None,
        is_default: bool = False,
        is_active: bool = True,
    ) -> ProviderConfig:
        """Create a provider configuration."""
        with self._session() as session:
            config = ProviderConfig(
                provider=provider,
                encrypted_api_key=encrypted_api_key,
                model=model,
                base_url=base_url,
                is_default=is_default,
                is_active=is_active,
            )
            session.add(config)
            session.commit()
            session.refresh(config)
            logger.info("Added %s provider configuration (default=%s)", provider, is_default)
            return config
