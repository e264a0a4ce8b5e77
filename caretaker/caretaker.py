"""Application wiring and entry point for Caretaker."""

import asyncio
import logging
import signal
import sys
from typing import Any

from caretaker.channels import MessageChannel, create_channel
from caretaker.commands import SessionFlow, TaskService, create_command_registry
from caretaker.config import Config, setup_logging
from caretaker.database import Database
from caretaker.dispatcher import CommandDispatcher
from caretaker.messaging import Messenger, WindowEconomics
from caretaker.providers import ProviderSelector, SecretStore
from caretaker.reports import IncidentReporter
from caretaker.scheduler import (
    BackgroundScheduler,
    DeferredDeliveryJob,
    PeriodicSchedule,
    SessionSweepJob,
    WindowPruneJob,
)
from caretaker.sessions import MemorySessionStore, SenderLocks, SessionManager

logger = logging.getLogger(__name__)

SESSION_SWEEP_INTERVAL = 60.0
DEFERRED_DELIVERY_INTERVAL = 60.0
WINDOW_PRUNE_INTERVAL = 24 * 60 * 60.0


class Caretaker:
    """WhatsApp task assistant: owns every long-lived component."""

    def __init__(self, config: Config, channel: MessageChannel | None = None):
        """Build the object graph from configuration."""
        self.config = config
        self.db = Database(config.db_path)
        self.db.create_tables()

        secrets = SecretStore.from_base64(config.credential_key) if config.credential_key else None
        if secrets is None:
            logger.warning("CREDENTIAL_KEY not set, providers with API keys will be skipped")
        self.selector = ProviderSelector(
            self.db.providers,
            secrets,
            probe_timeout=config.probe_timeout,
            fallback_probe_timeout=config.fallback_probe_timeout,
        )

        self.sessions = SessionManager(MemorySessionStore(), ttl_seconds=config.session_ttl_seconds)
        self.tasks = TaskService(self.db, config.timezone)
        self.flow = SessionFlow(self.sessions, self.tasks)
        self.registry = create_command_registry(self.flow)
        self.reporter = IncidentReporter(self.db, self.selector)
        self.dispatcher = CommandDispatcher(
            db=self.db,
            sessions=self.sessions,
            flow=self.flow,
            tasks=self.tasks,
            registry=self.registry,
            reporter=self.reporter,
            locks=SenderLocks(),
        )

        self.channel = channel or create_channel(config, self.dispatcher, self.db)
        self.economics = WindowEconomics(
            free_window_hours=config.free_window_hours,
            max_free_messages=config.max_free_messages,
            text_message_cost=config.text_message_cost,
            media_message_cost=config.media_message_cost,
            business_hour=config.business_hour,
            timezone=config.timezone,
        )
        self.messenger = Messenger(self.channel, self.db.windows, self.economics, self.db)
        self.channel.set_messenger(self.messenger)

        self.scheduler = BackgroundScheduler(
            schedules=[
                PeriodicSchedule(SessionSweepJob(self.sessions), SESSION_SWEEP_INTERVAL),
                PeriodicSchedule(DeferredDeliveryJob(self.messenger), DEFERRED_DELIVERY_INTERVAL),
                PeriodicSchedule(
                    WindowPruneJob(self.db.windows, config.window_retention_days),
                    WINDOW_PRUNE_INTERVAL,
                ),
            ],
            tick_interval=config.scheduler_tick_interval,
        )

    def install_signal_handlers(self) -> None:
        signal.signal(signal.SIGINT, self._signal_handler)
        signal.signal(signal.SIGTERM, self._signal_handler)

    def _signal_handler(self, signum: int, frame: Any) -> None:
        """Handle shutdown signals."""
        logger.info("Received shutdown signal, stopping...")
        self.scheduler.stop()

    async def handle_webhook(self, payload: dict[str, Any]) -> int:
        """Entry point for the HTTP layer: process one verified webhook body."""
        return await self.channel.handle_webhook(payload)

    async def run(self) -> None:
        """Run background jobs until stopped. Webhooks arrive through handle_webhook."""
        logger.info("Starting Caretaker...")
        try:
            await self.scheduler.run()
        finally:
            await self.shutdown()

    async def shutdown(self) -> None:
        """Clean shutdown of resources."""
        logger.info("Shutting down Caretaker...")
        self.scheduler.stop()
        await self.channel.close()
        self.db.close()
        logger.info("Caretaker shutdown complete")


async def main() -> None:
    """Main entry point."""
    config = Config.load()
    setup_logging(config.log_level, config.log_file, config.log_max_bytes, config.log_backup_count)

    logger.info("Starting Caretaker with config:")
    logger.info("  whatsapp_api_url: %s", config.whatsapp_api_url)
    logger.info("  db_path: %s", config.db_path)
    logger.info("  session_ttl: %.0fs", config.session_ttl_seconds)
    logger.info("  timezone: %s", config.timezone)

    app = Caretaker(config)
    app.install_signal_handlers()
    await app.run()


def run() -> None:
    """Console script entry point."""
    try:
        asyncio.run(main())
    except KeyboardInterrupt:
        logger.info("Caretaker stopped by user")
        sys.exit(0)


if __name__ == "__main__":
    run()
