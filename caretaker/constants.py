"""Constants for Caretaker."""

from enum import StrEnum


class CaretakerConstants:
    """Enums and fixed values shared across Caretaker."""

    class MessageDirection(StrEnum):
        """Direction of a logged message."""

        INCOMING = "incoming"
        OUTGOING = "outgoing"

    class MessageKind(StrEnum):
        """Kinds of inbound WhatsApp messages."""

        TEXT = "text"
        IMAGE = "image"
        LOCATION = "location"
        AUDIO = "audio"
        DOCUMENT = "document"
        VIDEO = "video"
        UNSUPPORTED = "unsupported"

    class IncidentStatus(StrEnum):
        """Lifecycle status of an incident record."""

        OPEN = "Open"
        IN_PROGRESS = "In Progress"
        RESOLVED = "Resolved"

    class UpdateType(StrEnum):
        """Kind of note appended to an incident."""

        PROGRESS = "progress"
        COMPLETION = "completion"

    class SessionStep(StrEnum):
        """States of a multi-step task conversation."""

        SELECT_TASK = "select_task"
        PROVIDE_UPDATE = "provide_update"
        CONFIRM_COMPLETION = "confirm_completion"

    class SessionPurpose(StrEnum):
        """Which bare command opened the session."""

        UPDATE = "update"
        COMPLETE = "complete"

    class WindowReason(StrEnum):
        """Outcome of a free-window analysis."""

        NEW_WINDOW = "new_window"
        FREE_WINDOW = "free_window"
        PAID_REQUIRED = "paid_required"

    class ProviderType(StrEnum):
        """Generative backends that can be configured."""

        OLLAMA = "ollama"
        CLAUDE = "claude"
        GEMINI = "gemini"
        DEEPSEEK = "deepseek"
        KIMI = "kimi"
        OFFLINE = "offline"

    class FallbackReason(StrEnum):
        """Failure classes for which trying another provider is appropriate."""

        RATE_LIMIT = "rate_limit"
        TIMEOUT = "timeout"
        AUTH = "auth"
        SERVER_ERROR = "server_error"
        NETWORK = "network"

    class MatchStrategy(StrEnum):
        """ID matching strategies for reference resolution, tightest first."""

        EXACT = "exact"
        STARTS_WITH = "starts_with"
        ENDS_WITH = "ends_with"
        CONTAINS = "contains"

    # Reply words accepted inside a session
    CANCEL_WORD = "cancel"
    COMPLETE_WORD = "complete"
    CONFIRM_YES = "yes"
    CONFIRM_NO = "no"

    # Task listing
    TASK_LIST_LIMIT = 10
    STATUS_LIST_LIMIT = 5
    DIRECT_COMMAND_VERBS = ("update", "complete")
    DEFAULT_COMPLETION_NOTES = "Task completed via WhatsApp"
    STATUS_ICONS = {
        IncidentStatus.OPEN: "🔴",
        IncidentStatus.IN_PROGRESS: "🟡",
        IncidentStatus.RESOLVED: "🟢",
    }
    UNKNOWN_STATUS_ICON = "⚪"
    DATE_FORMAT = "%d %b %Y"
    TIME_FORMAT = "%d %b %Y %H:%M"

    # Reference codes
    REFERENCE_PREFIX = "#"
    REFERENCE_SHORT_LENGTH = 6
    REFERENCE_FULL_ID_THRESHOLD = 8
    LEGACY_DEFAULT_PREFIX = "TASK"
    LEGACY_CATEGORY_PREFIXES = {
        "maintenance": "MAIN",
        "repair": "MAIN",
        "electrical": "ELEC",
        "plumbing": "PLUMB",
        "cleaning": "CLEAN",
        "hvac": "HVAC",
        "security": "SEC",
        "it": "TECH",
        "technology": "TECH",
        "grounds": "GRND",
        "landscaping": "GRND",
        "administrative": "ADMIN",
        "discipline": "DISC",
        "academic": "ACAD",
        "sports": "SPORT",
        "event": "EVENT",
        "emergency": "EMRG",
        "safety": "SAFE",
    }

    # Provider probing
    PROBE_PROMPT = "Test"
    PROBE_MAX_TOKENS = 10
    HTTP_STATUS_RATE_LIMIT = 429
    HTTP_STATUS_AUTH = (401, 403)

    # Incident parsing
    PARSE_MAX_TOKENS = 500
    PARSE_TEMPERATURE = 0.3
    UNKNOWN_LOCATION = "Unknown Location"
    GENERAL_SUBCATEGORY = "General Task"
