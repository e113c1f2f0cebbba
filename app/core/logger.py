import logging
from dataclasses import dataclass, field
from enum import StrEnum

import orjson
import structlog
from asgi_correlation_id import correlation_id
from beartype import beartype

from app.core.settings import settings


class LoggerError(Exception):
    """Exception for logger related issues."""


class LogLevel(StrEnum):
    """LogLevel types for logger configuration."""
    DEBUG = "DEBUG"
    INFO = "INFO"
    WARNING = "WARNING"
    ERROR = "ERROR"
    CRITICAL = "CRITICAL"


class LogIcon(StrEnum):
    """Icon mappings for different log categories."""

    DEFAULT = "📋"

    # Outcomes
    SUCCESS = "✅"
    ERROR = "❌"
    WARNING = "⚠️"
    CRITICAL = "🔴"

    # Lifecycle
    START = "🚀"
    PROCESSING = "🔄"
    COMPLETE = "✨"

    # Service parts
    TOOL = "🔧"
    ADAPTER = "🔌"
    DATABASE = "💾"
    NETWORK = "🌐"
    HEALTHCHECK = "❤️"

    # Intake
    UPLOAD = "📤"
    DETECTION = "🔍"
    VALIDATION = "✓"
    SECURITY = "🔒"
    FORBIDDEN = "🚫"


# Client-supplied values, escaped before rendering
CLIENT_FIELDS = frozenset({"upload_name", "declared_type"})
CONTROL_ESCAPES = {code: f"\\x{code:02x}" for code in [*range(0x20), 0x7F]}


@dataclass
class LoggerConfig:
    """Logger configuration with debug-specific settings."""
    debug: bool = field(default_factory=lambda: settings.DEBUG)
    log_level: LogLevel = field(default_factory=lambda: LogLevel(settings.LOG_LEVEL))
    max_event_length: int = 80
    max_client_value_length: int = 120


def add_correlation_id(logger, method_name: str, event_dict: dict) -> dict:
    """Add the request id bound by the router, if any."""
    if request_id := correlation_id.get():
        event_dict["correlation_id"] = request_id
    return event_dict


class ClientValueSanitizer:
    """Escape control characters in client-supplied values and cap their length.

    Filenames and declared types are client controlled, so a CR or LF in them is
    rendered as an escape and never starts a new line.
    """

    def __init__(self, max_length: int, fields: frozenset[str] = CLIENT_FIELDS) -> None:
        self.max_length = max_length
        self.fields = fields

    def __call__(self, logger, name: str, event_dict: dict) -> dict:
        for key in self.fields & event_dict.keys():
            value = event_dict[key]
            if isinstance(value, str):
                escaped = value.translate(CONTROL_ESCAPES)
                if len(escaped) > self.max_length:
                    escaped = escaped[: self.max_length] + "..."
                event_dict[key] = escaped
        return event_dict


class BusinessRulesProcessor:
    """
    Apply business rules to log events.

    Business Rules:
    - Rule 1: Event messages are uppercased.
    - Rule 2: Event messages are cut to ``max_length`` characters.
    - Rule 3: The icon kwarg, if provided, must be a LogIcon member.
    - Rule 4: Icons are prepended only in DEBUG mode.
    """

    def __init__(self, debug: bool, max_length: int = 80) -> None:
        self.debug = debug
        self.max_length = max_length

    @beartype
    def __call__(self, logger, name: str, event_dict: dict) -> dict:
        try:
            icon = LogIcon(event_dict.pop("icon", LogIcon.DEFAULT))
        except ValueError as err:
            raise LoggerError("Wrong Icon chosen, please choose a valid LogIcon enum member") from err

        event = str(event_dict.get("event", ""))[: self.max_length].upper()
        event_dict["event"] = f"{icon.value} {event}" if self.debug else event
        return event_dict


def dev_pipeline_renderer(logger, name: str, event_dict: dict) -> str:
    """Render `timestamp | LEVEL | [request] | EVENT | key=value ... | file:line`."""
    event_dict = dict(event_dict)
    timestamp = event_dict.pop("timestamp", "")
    level = str(event_dict.pop("level", LogLevel.INFO.value)).upper()
    event = event_dict.pop("event", "")
    request_id = event_dict.pop("correlation_id", "")
    filename = event_dict.pop("filename", "")
    lineno = event_dict.pop("lineno", "")

    fields = " | ".join(f"{key}={value}" for key, value in event_dict.items())
    parts = [
        timestamp,
        level,
        f"[{request_id[:8]}]" if request_id else "",
        event,
        fields,
        f"{filename}:{lineno}" if filename else "",
    ]
    return " | ".join(filter(None, parts))


def build_processors(config: LoggerConfig) -> list:
    """Shared enrichment chain followed by the renderer for the configured mode."""
    processors = [
        structlog.contextvars.merge_contextvars,
        structlog.processors.add_log_level,
        structlog.processors.TimeStamper(fmt="iso"),
        structlog.processors.CallsiteParameterAdder(
            parameters=[
                structlog.processors.CallsiteParameter.FILENAME,
                structlog.processors.CallsiteParameter.LINENO,
            ],
            additional_ignores=["logger"]
        ),
        add_correlation_id,
        ClientValueSanitizer(max_length=config.max_client_value_length),
        BusinessRulesProcessor(debug=config.debug, max_length=config.max_event_length),
    ]

    if config.debug:
        return processors + [dev_pipeline_renderer]
    return processors + [
        structlog.processors.dict_tracebacks,
        structlog.processors.JSONRenderer(serializer=orjson.dumps),
    ]


def setup_logging(config: LoggerConfig) -> None:
    """Configure structlog; JSON lines in production, pipe-separated text in debug."""
    structlog.configure(
        processors=build_processors(config),
        # orjson renders bytes
        logger_factory=structlog.PrintLoggerFactory() if config.debug else structlog.BytesLoggerFactory(),
        wrapper_class=structlog.make_filtering_bound_logger(logging.getLevelName(config.log_level.value)),
        cache_logger_on_first_use=True,
    )


setup_logging(LoggerConfig())

logger = structlog.get_logger()
