"""Configuration management for Caretaker."""

from __future__ import annotations

import logging
import logging.handlers
import os
from dataclasses import dataclass
from pathlib import Path

from dotenv import load_dotenv


def _load_dotenv() -> None:
    """Load .env file from project root or container path."""
    env_paths = [
        Path.cwd() / ".env",
        Path("/caretaker/.env"),
    ]
    for env_path in env_paths:
        if env_path.exists():
            load_dotenv(env_path)
            break


def _validate_whatsapp_config() -> None:
    """Validate the WhatsApp Cloud API credentials are present."""
    if not os.getenv("WHATSAPP_PHONE_NUMBER_ID"):
        raise ValueError("WHATSAPP_PHONE_NUMBER_ID is required")
    access_token = os.getenv("WHATSAPP_ACCESS_TOKEN")
    if not access_token or access_token == "your-access-token-here":
        raise ValueError(
            "WHATSAPP_ACCESS_TOKEN is required. "
            "Create a system user token in Meta Business Manager."
        )


def _collect_env_vars() -> dict:
    """Read all config environment variables and return as constructor kwargs."""
    return {
        "whatsapp_phone_number_id": os.environ["WHATSAPP_PHONE_NUMBER_ID"],
        "whatsapp_access_token": os.environ["WHATSAPP_ACCESS_TOKEN"],
        "whatsapp_api_url": os.getenv("WHATSAPP_API_URL", "https://graph.facebook.com/v21.0"),
        "db_path": os.getenv("DB_PATH", "/caretaker/data/caretaker.db"),
        "credential_key": os.getenv("CREDENTIAL_KEY"),
        "log_level": os.getenv("LOG_LEVEL", "INFO"),
        "log_file": os.getenv("LOG_FILE"),
        "log_max_bytes": int(os.getenv("LOG_MAX_BYTES", str(10 * 1024 * 1024))),
        "log_backup_count": int(os.getenv("LOG_BACKUP_COUNT", "5")),
        "session_ttl_seconds": float(os.getenv("SESSION_TTL_SECONDS", "300")),
        "probe_timeout": float(os.getenv("PROBE_TIMEOUT_SECONDS", "10.0")),
        "fallback_probe_timeout": float(os.getenv("FALLBACK_PROBE_TIMEOUT_SECONDS", "5.0")),
        "free_window_hours": float(os.getenv("FREE_WINDOW_HOURS", "24")),
        "max_free_messages": int(os.getenv("MAX_FREE_MESSAGES", "1000")),
        "text_message_cost": float(os.getenv("TEXT_MESSAGE_COST", "0.05")),
        "media_message_cost": float(os.getenv("MEDIA_MESSAGE_COST", "0.10")),
        "business_hour": int(os.getenv("BUSINESS_HOUR", "9")),
        "timezone": os.getenv("TIMEZONE", "UTC"),
        "send_max_retries": int(os.getenv("SEND_MAX_RETRIES", "3")),
        "send_retry_delay": float(os.getenv("SEND_RETRY_DELAY", "0.5")),
        "scheduler_tick_interval": float(os.getenv("SCHEDULER_TICK_INTERVAL", "30.0")),
        "window_retention_days": int(os.getenv("WINDOW_RETENTION_DAYS", "30")),
    }


@dataclass
class Config:
    """Application configuration loaded from .env file."""

    # WhatsApp Cloud API
    whatsapp_phone_number_id: str
    whatsapp_access_token: str
    whatsapp_api_url: str

    # Database configuration
    db_path: str

    # Base64-encoded 32-byte key for provider API key decryption
    credential_key: str | None

    # Logging configuration
    log_level: str
    log_file: str | None = None
    log_max_bytes: int = 10 * 1024 * 1024  # 10 MB
    log_backup_count: int = 5

    # Conversation sessions
    session_ttl_seconds: float = 300.0

    # Provider probing (seconds)
    probe_timeout: float = 10.0  # Primary selection, thorough
    fallback_probe_timeout: float = 5.0  # Mid-request fallback, responsive

    # Free messaging window economics
    free_window_hours: float = 24.0
    max_free_messages: int = 1000
    text_message_cost: float = 0.05
    media_message_cost: float = 0.10
    business_hour: int = 9  # Local hour for deferred proactive sends
    timezone: str = "UTC"  # IANA timezone of the school

    # Outbound send retries
    send_max_retries: int = 3
    send_retry_delay: float = 0.5

    # Background jobs
    scheduler_tick_interval: float = 30.0
    window_retention_days: int = 30

    @classmethod
    def load(cls) -> Config:
        """Load configuration from .env file."""
        _load_dotenv()
        _validate_whatsapp_config()
        return cls(**_collect_env_vars())


def setup_logging(
    log_level: str,
    log_file: str | None = None,
    max_bytes: int = 10 * 1024 * 1024,
    backup_count: int = 5,
) -> None:
    """
    Configure logging for the application.

    Args:
        log_level: Log level (DEBUG, INFO, WARNING, ERROR)
        log_file: Optional path to log file. If provided, logs to both file and console.
        max_bytes: Maximum log file size in bytes before rotation (default 10 MB).
        backup_count: Number of rotated backup files to keep (default 5).
    """
    formatter = logging.Formatter(
        fmt="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        datefmt="%Y-%m-%d %H:%M:%S",
    )

    root_logger = logging.getLogger()
    root_logger.setLevel(getattr(logging, log_level.upper()))
    root_logger.handlers.clear()

    console_handler = logging.StreamHandler()
    console_handler.setFormatter(formatter)
    root_logger.addHandler(console_handler)

    if log_file:
        log_path = Path(log_file)
        log_path.parent.mkdir(parents=True, exist_ok=True)

        file_handler = logging.handlers.RotatingFileHandler(
            log_file,
            maxBytes=max_bytes,
            backupCount=backup_count,
        )
        file_handler.setFormatter(formatter)
        root_logger.addHandler(file_handler)

        root_logger.info("Logging to file: %s", log_file)

    # Silence noisy third-party loggers
    for name in ("httpcore", "httpx", "sqlalchemy.engine"):
        logging.getLogger(name).setLevel(logging.WARNING)


def mask_phone(phone_number: str) -> str:
    """Mask all but the last four digits of a phone number for logging."""
    if len(phone_number) < 4:
        return "****"
    return "*" * (len(phone_number) - 4) + phone_number[-4:]
