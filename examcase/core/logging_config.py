"""
ExamCase logging.

Development gets readable console lines tagged with request and user id;
production emits one JSON object per line for the log shipper. Every record
carries the request id set by RequestLoggingMiddleware and the user id set
once the bearer token has been resolved.
"""

import logging
import sys
import json
import traceback
import uuid
from datetime import datetime
from pathlib import Path
from logging.handlers import RotatingFileHandler
from typing import Any, Dict, Optional
from contextvars import ContextVar

from examcase.core.config import settings


request_id_var: ContextVar[str] = ContextVar('request_id', default='')
user_id_var: ContextVar[str] = ContextVar('user_id', default='')

LOG_FILE_MAX_BYTES = 10 * 1024 * 1024


def get_request_id() -> str:
    return request_id_var.get() or ''


def set_request_id(request_id: str) -> None:
    request_id_var.set(request_id)


def get_user_id() -> str:
    return user_id_var.get() or ''


def set_user_id(user_id: str) -> None:
    user_id_var.set(user_id)


def generate_request_id() -> str:
    """Short id for correlating log lines of one request"""
    return uuid.uuid4().hex[:8]


# Attributes every LogRecord has; anything else came in through `extra=`
_STANDARD_ATTRS = set(vars(logging.LogRecord('', 0, '', 0, '', (), None))) | {'message', 'taskName'}


class JSONFormatter(logging.Formatter):
    """One JSON document per record, with `extra=` fields flattened in"""

    def format(self, record: logging.LogRecord) -> str:
        payload: Dict[str, Any] = {
            "timestamp": datetime.utcnow().isoformat() + "Z",
            "level": record.levelname,
            "logger": record.name,
            "message": record.getMessage(),
            "location": f"{record.module}.{record.funcName}:{record.lineno}",
        }

        for key, getter in (("request_id", get_request_id), ("user_id", get_user_id)):
            value = getter()
            if value:
                payload[key] = value

        if record.exc_info and record.exc_info[0]:
            exc_type, exc_value, _ = record.exc_info
            payload["exception"] = {
                "type": exc_type.__name__,
                "message": str(exc_value),
                "traceback": traceback.format_exception(*record.exc_info),
            }

        payload.update(
            (key, value) for key, value in record.__dict__.items()
            if key not in _STANDARD_ATTRS and not key.startswith('_')
        )
        return json.dumps(payload, default=str)


class ContextualFormatter(logging.Formatter):
    """Plain-text formatter that exposes %(request_id)s and %(user_id)s"""

    def format(self, record: logging.LogRecord) -> str:
        record.request_id = get_request_id() or '-'
        record.user_id = get_user_id() or '-'
        return super().format(record)


class ExamCaseLogger(logging.Logger):
    """Logger with helpers for the events the service cares about"""

    def log_request(self, method: str, path: str, status_code: int,
                    duration_ms: float, **kwargs) -> None:
        self.info(
            f"{method} {path} -> {status_code} ({duration_ms:.1f}ms)",
            extra={
                "event_type": "http_request",
                "http_method": method,
                "http_path": path,
                "http_status": status_code,
                "duration_ms": round(duration_ms, 2),
                **kwargs
            }
        )

    def log_auth_event(self, event: str, success: bool, user_email: Optional[str] = None,
                       reason: Optional[str] = None, **kwargs) -> None:
        """Logins, refreshes, password changes; failures go out at WARNING"""
        message = f"Auth {event} {'ok' if success else 'rejected'}"
        if user_email:
            message += f" for {user_email}"
        if reason:
            message += f" ({reason})"
        self.log(
            logging.INFO if success else logging.WARNING,
            message,
            extra={
                "event_type": "auth",
                "auth_event": event,
                "auth_success": success,
                "user_email": user_email,
                "failure_reason": reason,
                **kwargs
            }
        )

    def log_workflow_event(self, violation_id: str, action: str, from_status: str,
                           to_status: str, actor_id: Optional[str] = None, **kwargs) -> None:
        """Log a case moving through the approval chain"""
        self.info(
            f"Workflow {action}: {violation_id} {from_status} -> {to_status}",
            extra={
                "event_type": "workflow",
                "violation_id": violation_id,
                "workflow_action": action,
                "from_status": from_status,
                "to_status": to_status,
                "actor_id": actor_id,
                **kwargs
            }
        )

    def log_error_with_context(self, error: Exception, context: Optional[str] = None,
                               **kwargs) -> None:
        self.error(
            f"{type(error).__name__} in {context or 'unknown'}: {error}",
            exc_info=True,
            extra={
                "event_type": "error",
                "error_type": type(error).__name__,
                "error_message": str(error),
                "error_context": context,
                **kwargs
            }
        )


def _build_formatters(json_logs: bool):
    """Return (console formatter, file formatter)"""
    if json_logs:
        formatter = JSONFormatter()
        return formatter, formatter
    console = ContextualFormatter("%(levelname)-8s | [%(request_id)s] %(message)s")
    detailed = ContextualFormatter(
        "%(asctime)s | %(levelname)-8s | [%(request_id)s] [%(user_id)s] | "
        "%(name)s:%(lineno)d | %(message)s"
    )
    return console, detailed


def setup_logging() -> ExamCaseLogger:
    """Configure the `examcase` logger from settings; safe to call twice"""
    logging.setLoggerClass(ExamCaseLogger)
    logger = logging.getLogger("examcase")
    logger.__class__ = ExamCaseLogger
    logger.setLevel(getattr(logging, settings.LOG_LEVEL.upper(), logging.INFO))
    logger.handlers.clear()
    logger.propagate = False

    json_logs = settings.ENVIRONMENT == "production"
    console_formatter, file_formatter = _build_formatters(json_logs)

    console_handler = logging.StreamHandler(sys.stdout)
    console_handler.setFormatter(console_formatter)
    logger.addHandler(console_handler)

    if settings.LOG_FILE:
        log_file = Path(settings.LOG_FILE)
        log_file.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            log_file,
            maxBytes=LOG_FILE_MAX_BYTES,
            backupCount=10 if json_logs else 3,
            encoding="utf-8",
        )
        file_handler.setLevel(logging.DEBUG)
        file_handler.setFormatter(file_formatter)
        logger.addHandler(file_handler)

    for noisy in ("uvicorn.access", "sqlalchemy.engine", "multipart"):
        logging.getLogger(noisy).setLevel(logging.WARNING)

    logger.debug(
        "Logging configured",
        extra={"environment": settings.ENVIRONMENT, "json_logging": json_logs}
    )
    return logger


logger: ExamCaseLogger = setup_logging()


__all__ = [
    'logger',
    'setup_logging',
    'get_request_id',
    'set_request_id',
    'get_user_id',
    'set_user_id',
    'generate_request_id',
    'ExamCaseLogger',
]
