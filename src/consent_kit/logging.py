"""
Structured logging configuration for the consent kit.

Every resolution pass logs under a PassLogContext, so the lines of one
pass share a pass_id together with the user and the trigger that started
it. User ids can be pseudonymized before they reach the log output.
"""

import hashlib
import logging
import os
import sys
import time
import uuid
from typing import Any, Optional

import structlog

# What started a resolution pass
TRIGGER_DIRECT = "direct"
TRIGGER_KIT_CREATE = "kit_create"
TRIGGER_CONSENT_UPDATED = "consent_updated"
TRIGGER_USER_IDENTIFIED = "user_identified"


def generate_pass_id() -> str:
    """Generate a new unique resolution pass ID."""
    return f"{int(time.time())}-{uuid.uuid4().hex[:8]}"


def get_pass_id() -> Optional[str]:
    """The pass ID bound on this thread, or None outside a pass."""
    return structlog.contextvars.get_contextvars().get("pass_id")


def add_service_info(
    logger: structlog.typing.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Processor to add service info to log entries."""
    event_dict["service"] = "consent_kit"
    return event_dict


def pseudonymize_user_id(
    logger: structlog.typing.WrappedLogger,
    method_name: str,
    event_dict: dict[str, Any],
) -> dict[str, Any]:
    """Processor replacing user_id with a stable hash so passes still correlate."""
    user_id = event_dict.get("user_id")
    if user_id is not None:
        digest = hashlib.sha256(str(user_id).encode("utf-8")).hexdigest()
        event_dict["user_id"] = f"u-{digest[:12]}"
    return event_dict


def configure_logging(
    level: str = "INFO",
    format: str = "json",
    show_timestamps: bool = True,
    redact_user_ids: Optional[bool] = None,
) -> None:
    """
    Configure structured logging for the kit.

    Args:
        level: Log level (DEBUG, INFO, WARNING, ERROR)
        format: Output format ('json' or 'console')
        show_timestamps: Whether to include timestamps
        redact_user_ids: Pseudonymize user ids (default: LOG_REDACT_USER_IDS)
    """
    level = os.getenv("LOG_LEVEL", level).upper()
    format = os.getenv("LOG_FORMAT", format).lower()
    if redact_user_ids is None:
        redact_user_ids = os.getenv("LOG_REDACT_USER_IDS", "").lower() in ("1", "true", "yes")

    logging.basicConfig(
        format="%(message)s",
        stream=sys.stdout,
        level=getattr(logging, level, logging.INFO),
    )

    processors: list[structlog.typing.Processor] = [
        structlog.contextvars.merge_contextvars,
        add_service_info,
        structlog.stdlib.add_log_level,
        structlog.processors.StackInfoRenderer(),
        structlog.processors.format_exc_info,
    ]

    if redact_user_ids:
        processors.append(pseudonymize_user_id)

    if show_timestamps:
        processors.insert(0, structlog.processors.TimeStamper(fmt="iso"))

    if format == "console":
        processors.append(
            structlog.dev.ConsoleRenderer(colors=sys.stdout.isatty())
        )
    else:
        processors.append(structlog.processors.JSONRenderer())

    structlog.configure(
        processors=processors,
        wrapper_class=structlog.stdlib.BoundLogger,
        context_class=dict,
        logger_factory=structlog.stdlib.LoggerFactory(),
        cache_logger_on_first_use=True,
    )


def get_logger(name: str = __name__) -> structlog.stdlib.BoundLogger:
    """Get a structured logger instance."""
    return structlog.get_logger(name)


# Pre-configured loggers for the kit components
def mapping_logger() -> structlog.stdlib.BoundLogger:
    """Get logger for consent mapping configuration."""
    return get_logger("consent_kit.mapping")


def resolver_logger() -> structlog.stdlib.BoundLogger:
    """Get logger for consent resolution passes."""
    return get_logger("consent_kit.resolver")


def applicator_logger() -> structlog.stdlib.BoundLogger:
    """Get logger for consent record writes."""
    return get_logger("consent_kit.applicator")


def events_logger() -> structlog.stdlib.BoundLogger:
    """Get logger for consent-updated signal delivery."""
    return get_logger("consent_kit.events")


def kit_logger() -> structlog.stdlib.BoundLogger:
    """Get logger for kit lifecycle events."""
    return get_logger("consent_kit.kit")


class PassLogContext:
    """
    Context manager binding one resolution pass to the log context.

    Nested passes (a listener resolving inside another pass) get their own
    pass_id and restore the outer one on exit.

    Example:
        with PassLogContext(user.id, trigger=TRIGGER_CONSENT_UPDATED) as ctx:
            logger.info("Consent resolution finished", duration_ms=ctx.elapsed_ms)
    """

    def __init__(
        self,
        user_id: str,
        trigger: str = TRIGGER_DIRECT,
        pass_id: Optional[str] = None,
    ):
        self.user_id = user_id
        self.trigger = trigger
        self.pass_id = pass_id or generate_pass_id()
        self._tokens: Optional[dict] = None
        self._started = 0.0

    @property
    def elapsed_ms(self) -> float:
        """Milliseconds since the pass started."""
        return round((time.perf_counter() - self._started) * 1000, 3)

    def __enter__(self) -> "PassLogContext":
        self._started = time.perf_counter()
        self._tokens = structlog.contextvars.bind_contextvars(
            pass_id=self.pass_id,
            user_id=self.user_id,
            trigger=self.trigger,
        )
        return self

    def __exit__(self, exc_type, exc_val, exc_tb) -> None:
        structlog.contextvars.reset_contextvars(**self._tokens)
        self._tokens = None


# Initialize with defaults on module load
configure_logging()
