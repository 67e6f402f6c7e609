"""
Logging configuration.

Application code logs through ``get_logger(name)``, a stdlib logger
adapter whose bound context and per-call ``extra`` end up as fields on
the record. The root handler writes JSON (python-json-logger) or plain
text to stdout. structlog is configured with the same context and
masking rules for code that logs through it.

Guest contact details are masked before any record is written.
"""

import logging
import sys
from contextvars import ContextVar
from datetime import datetime, timezone
from typing import Any, Dict, MutableMapping, Optional, Tuple

import structlog
from pythonjsonlogger import jsonlogger

from propdesk.config.settings import settings

# Context variables for request tracking
request_id: ContextVar[Optional[str]] = ContextVar('request_id', default=None)
organization_id: ContextVar[Optional[str]] = ContextVar('organization_id', default=None)

SECRET_KEYS = ('password', 'token', 'secret', 'authorization', 'cookie')
GUEST_CONTACT_KEYS = ('guest_email', 'guest_phone')


def mask_email(value: str) -> str:
    local, at, domain = value.partition('@')
    if not at:
        return '***'
    return f"{local[:1]}***@{domain}"


def mask_phone(value: str) -> str:
    digits = [c for c in value if c.isdigit()]
    return f"***{''.join(digits[-3:])}" if len(digits) > 3 else '***'


def mask_value(key: str, value: Any) -> Any:
    """Masked form of a logged value, or the value itself when the key is harmless."""
    lowered = key.lower()
    if any(secret in lowered for secret in SECRET_KEYS):
        return '[REDACTED]'
    if value is None or not isinstance(value, str):
        return value
    if lowered == 'guest_email':
        return mask_email(value)
    if lowered == 'guest_phone':
        return mask_phone(value)
    return value


def _masked(data: Dict[str, Any]) -> Dict[str, Any]:
    """Masked copy of a mapping; the original is left untouched."""
    return {
        key: _masked(value) if isinstance(value, dict) else mask_value(key, value)
        for key, value in data.items()
    }


def context_fields() -> Dict[str, str]:
    fields = {}
    req_id = request_id.get()
    if req_id:
        fields['request_id'] = req_id
    org_id = organization_id.get()
    if org_id:
        fields['organization_id'] = org_id
    return fields


# -----------------------------------------------------------------------------
# structlog processors
# -----------------------------------------------------------------------------

def add_request_context(logger, method_name, event_dict):
    for key, value in context_fields().items():
        event_dict.setdefault(key, value)
    event_dict['timestamp'] = datetime.now(timezone.utc).isoformat()
    event_dict['service'] = 'propdesk'
    event_dict['environment'] = settings.ENVIRONMENT
    return event_dict


def mask_sensitive_fields(logger, method_name, event_dict):
    return _masked(event_dict)


# -----------------------------------------------------------------------------
# stdlib handler pieces
# -----------------------------------------------------------------------------

class GuestDataFilter(logging.Filter):
    """Masks secrets and guest contact details carried on log records."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in list(vars(record).items()):
            if key in GUEST_CONTACT_KEYS or any(secret in key.lower() for secret in SECRET_KEYS):
                setattr(record, key, mask_value(key, value))
            elif isinstance(value, dict) and key != 'args':
                setattr(record, key, _masked(value))
        return True


class ContextFilter(logging.Filter):
    """Stamps request and organization ids onto records that lack them."""

    def filter(self, record: logging.LogRecord) -> bool:
        for key, value in context_fields().items():
            if not hasattr(record, key):
                setattr(record, key, value)
        return True


class JsonLogFormatter(jsonlogger.JsonFormatter):
    def add_fields(self, log_record, record, message_dict):
        super().add_fields(log_record, record, message_dict)
        log_record['level'] = record.levelname
        log_record['logger'] = record.name
        log_record['service'] = 'propdesk'
        if record.exc_info:
            log_record['exception'] = self.formatException(record.exc_info)


class LoggingConfig:
    """Centralized logging configuration"""

    @staticmethod
    def configure_structured_logging():
        renderer = (
            structlog.processors.JSONRenderer()
            if settings.LOG_FORMAT == "json"
            else structlog.processors.KeyValueRenderer(key_order=['timestamp', 'level', 'event'])
        )
        structlog.configure(
            processors=[
                structlog.stdlib.filter_by_level,
                structlog.stdlib.add_logger_name,
                structlog.stdlib.add_log_level,
                add_request_context,
                mask_sensitive_fields,
                structlog.processors.format_exc_info,
                renderer,
            ],
            wrapper_class=structlog.stdlib.BoundLogger,
            logger_factory=structlog.stdlib.LoggerFactory(),
            context_class=dict,
            cache_logger_on_first_use=True,
        )

    @staticmethod
    def configure_standard_logging():
        level = getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO)

        handler = logging.StreamHandler(sys.stdout)
        handler.setLevel(level)
        handler.addFilter(ContextFilter())
        handler.addFilter(GuestDataFilter())
        if settings.LOG_FORMAT == "json":
            handler.setFormatter(JsonLogFormatter('%(asctime)s %(name)s %(levelname)s %(message)s'))
        else:
            handler.setFormatter(logging.Formatter('%(asctime)s - %(name)s - %(levelname)s - %(message)s'))

        root_logger = logging.getLogger()
        root_logger.setLevel(level)
        root_logger.handlers.clear()
        root_logger.addHandler(handler)

        logging.getLogger("uvicorn.access").setLevel(logging.WARNING)
        logging.getLogger("httpx").setLevel(logging.WARNING)
        logging.getLogger("sqlalchemy.engine").setLevel(
            logging.INFO if settings.DB_ECHO else logging.WARNING
        )


class LoggerAdapter(logging.LoggerAdapter):
    """
    Adapter that merges bound context and per-call ``extra`` into the record.

    Per-call values win over bound ones.
    """

    def __init__(self, logger: logging.Logger, context: Optional[Dict[str, Any]] = None):
        super().__init__(logger, dict(context or {}))

    def add_context(self, **kwargs) -> "LoggerAdapter":
        self.extra.update(kwargs)
        return self

    def remove_context(self, *keys) -> "LoggerAdapter":
        for key in keys:
            self.extra.pop(key, None)
        return self

    def process(self, msg: Any, kwargs: MutableMapping[str, Any]) -> Tuple[Any, MutableMapping[str, Any]]:
        kwargs['extra'] = {**self.extra, **(kwargs.get('extra') or {})}
        return msg, kwargs


def get_logger(name: Optional[str] = None) -> LoggerAdapter:
    """
    Get configured logger instance.

    Args:
        name: Logger name (defaults to the package logger)
    """
    return LoggerAdapter(logging.getLogger(name or 'propdesk'))


def setup_logging():
    """Initialize logging configuration"""
    if settings.ENABLE_STRUCTURED_LOGGING:
        LoggingConfig.configure_structured_logging()

    LoggingConfig.configure_standard_logging()

    get_logger(__name__).info("Logging system initialized", extra={
        'log_level': settings.LOG_LEVEL,
        'log_format': settings.LOG_FORMAT,
        'structured_logging': settings.ENABLE_STRUCTURED_LOGGING,
    })


__all__ = [
    'get_logger',
    'setup_logging',
    'mask_value',
    'GuestDataFilter',
    'LoggerAdapter',
    'LoggingConfig',
    'request_id',
    'organization_id',
]
