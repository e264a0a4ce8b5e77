"""Provider fallback selection.

Configured providers are probed one at a time in priority order (default
first) and the first one that answers is used. When none answers, callers get
the offline backend, so there is always something to call.
"""

from __future__ import annotations

import asyncio
import logging
from collections import Counter
from collections.abc import Callable
from datetime import UTC, datetime
from typing import Any

from pydantic import BaseModel

from caretaker.constants import CaretakerConstants
from caretaker.database.models import ProviderConfig
from caretaker.database.provider_store import ProviderStore
from caretaker.providers.backends import create_backend
from caretaker.providers.base import GenerativeBackend
from caretaker.providers.errors import FallbackReason, classify_error
from caretaker.providers.offline import OfflineBackend
from caretaker.providers.secrets import SecretDecryptionError, SecretStore

logger = logging.getLogger(__name__)

BackendFactory = Callable[[ProviderConfig, str | None], GenerativeBackend]


class FallbackEvent(BaseModel):
    """One switch from a failing provider to another."""

    timestamp: datetime
    from_provider: str
    to_provider: str
    reason: FallbackReason


class FallbackStats:
    """Process-wide fallback counters. Diagnostic only."""

    def __init__(self) -> None:
        self.total_fallbacks = 0
        self.by_provider: Counter[str] = Counter()
        self.rate_limit_fallbacks = 0
        self.timeout_fallbacks = 0
        self.last_event: FallbackEvent | None = None

    def record(self, from_provider: str, to_provider: str, reason: FallbackReason) -> None:
        self.total_fallbacks += 1
        self.by_provider[from_provider] += 1
        if reason == FallbackReason.RATE_LIMIT:
            self.rate_limit_fallbacks += 1
        elif reason == FallbackReason.TIMEOUT:
            self.timeout_fallbacks += 1
        self.last_event = FallbackEvent(
            timestamp=datetime.now(UTC),
            from_provider=from_provider,
            to_provider=to_provider,
            reason=reason,
        )

    def snapshot(self) -> dict[str, Any]:
        return {
            "total_fallbacks": self.total_fallbacks,
            "fallbacks_by_provider": dict(self.by_provider),
            "rate_limit_fallbacks": self.rate_limit_fallbacks,
            "timeout_fallbacks": self.timeout_fallbacks,
            "last_fallback": self.last_event.model_dump(mode="json") if self.last_event else None,
        }


class ProviderSelector:
    """Picks a working generative backend from the stored configurations."""

    def __init__(
        self,
        providers: ProviderStore,
        secrets: SecretStore | None,
        probe_timeout: float = 10.0,
        fallback_probe_timeout: float = 5.0,
        backend_factory: BackendFactory = create_backend,
        stats: FallbackStats | None = None,
    ):
        self._providers = providers
        self._secrets = secrets
        self.probe_timeout = probe_timeout
        self.fallback_probe_timeout = fallback_probe_timeout
        self._backend_factory = backend_factory
        self.stats = stats or FallbackStats()

    async def get_working_provider(self) -> GenerativeBackend:
        """First configured backend that answers a probe, else the offline backend."""
        try:
            backend = await self._first_working(exclude=None, timeout=self.probe_timeout)
        except Exception:
            logger.exception("Provider selection failed, using offline backend")
            backend = None

        if backend is None:
            logger.warning("No working AI provider, using offline backend")
            return OfflineBackend()

        logger.info("Using %s as AI provider", backend.name)
        return backend

    async def get_fallback_for(
        self, failed_provider: str, error: BaseException
    ) -> GenerativeBackend | None:
        """Replacement for a backend that failed mid-request.

        Returns None when the error is not one that another provider could fix.
        """
        reason = classify_error(error)
        if reason is None:
            logger.info("Error from %s is not fallback-eligible: %s", failed_provider, error)
            return None

        try:
            backend = await self._first_working(
                exclude=failed_provider, timeout=self.fallback_probe_timeout
            )
        except Exception:
            logger.exception("Fallback search failed")
            backend = None
        backend = backend or OfflineBackend()

        self.stats.record(failed_provider, backend.name, reason)
        logger.warning("Falling back from %s to %s (%s)", failed_provider, backend.name, reason)
        return backend

    async def probe(self, backend: GenerativeBackend, timeout: float) -> bool:
        """Send a tiny request. True if a non-empty answer came back in time."""
        try:
            result = await asyncio.wait_for(
                backend.generate_content(
                    CaretakerConstants.PROBE_PROMPT,
                    max_tokens=CaretakerConstants.PROBE_MAX_TOKENS,
                ),
                timeout=timeout,
            )
        except Exception as e:
            reason = classify_error(e)
            if reason is not None:
                logger.warning("Probe of %s failed (%s): %s", backend.name, reason, e)
            else:
                logger.warning(
                    "Probe of %s failed with provider-specific error: %s", backend.name, e
                )
            return False
        return bool(result.text.strip())

    async def _first_working(
        self, exclude: str | None, timeout: float
    ) -> GenerativeBackend | None:
        for config in self._providers.list_active(exclude_provider=exclude):
            backend = self._instantiate(config)
            if backend is None:
                continue
            if await self.probe(backend, timeout):
                return backend
            await backend.close()
        return None

    def _instantiate(self, config: ProviderConfig) -> GenerativeBackend | None:
        api_key = None
        if config.encrypted_api_key:
            if self._secrets is None:
                logger.warning("No CREDENTIAL_KEY set, skipping %s", config.provider)
                return None
            try:
                api_key = self._secrets.decrypt(config.encrypted_api_key)
            except SecretDecryptionError as e:
                logger.warning("Could not decrypt key for %s, skipping: %s", config.provider, e)
                return None

        try:
            return self._backend_factory(config, api_key)
        except ValueError as e:
            logger.warning("Could not create backend for %s: %s", config.provider, e)
            return None
