"""
Structured JSON Logging Configuration

Every record is written as one JSON object to the console and to a rotating
file under LOG_DIR. Records logged while a directory session is active carry
that session's ID, so the device stream of one account can be followed
through reconciliation, dispatch and host updates.
"""
import contextvars
import logging
import logging.handlers
import os
import re
from datetime import datetime, timezone
from typing import List, Optional

from pythonjsonlogger import jsonlogger

from arlo_bridge.core.config import settings

session_id_var: contextvars.ContextVar[Optional[str]] = contextvars.ContextVar(
    'session_id', default=None
)

APP_VERSION = "0.1.0"

LOG_FILE_NAME = 'bridge.log'

# Loggers of libraries that log every characteristic write at INFO
QUIET_LOGGERS = ('pyhap', 'apscheduler')

_LINE_BREAKS = re.compile(r'\r\n|\r|\n')


class SessionIdFilter(logging.Filter):
    """
    Stamp the current session ID on each record.

    Session tasks copy the context when they are created, so records they
    log see the ID that was set before they were spawned. A session_id
    passed through `extra` wins over the context.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if not getattr(record, 'session_id', None):
            record.session_id = session_id_var.get() or '-'
        return True


class SanitizingFilter(logging.Filter):
    """
    Flatten line breaks in messages and string arguments.

    Device names come from the remote directory and end up in log lines
    verbatim.
    """

    def filter(self, record: logging.LogRecord) -> bool:
        if isinstance(record.msg, str):
            record.msg = _LINE_BREAKS.sub(' ', record.msg)
        if isinstance(record.args, tuple):
            record.args = tuple(
                _LINE_BREAKS.sub(' ', arg) if isinstance(arg, str) else arg
                for arg in record.args
            )
        return True


class CustomJsonFormatter(jsonlogger.JsonFormatter):
    """
    JSON formatter with the fields every bridge log line carries:
    timestamp, level, logger, module, function and session_id, plus any
    `extra` fields (device_id, identity, ...).
    """

    def add_fields(
        self,
        log_record: dict,
        record: logging.LogRecord,
        message_dict: dict
    ) -> None:
        super().add_fields(log_record, record, message_dict)
        log_record.setdefault('timestamp', datetime.now(timezone.utc).isoformat())
        log_record.setdefault('message', record.getMessage())
        log_record.update(
            level=record.levelname,
            logger=record.name,
            module=record.module,
            function=record.funcName,
            session_id=getattr(record, 'session_id', '-'),
        )


def _build_handlers(directory: str, level: int) -> List[logging.Handler]:
    formatter = CustomJsonFormatter('%(timestamp)s %(level)s %(name)s %(message)s')
    handlers: List[logging.Handler] = [
        logging.StreamHandler(),
        # Max 10MB per file, 5 backups
        logging.handlers.RotatingFileHandler(
            os.path.join(directory, LOG_FILE_NAME),
            maxBytes=10 * 1024 * 1024,
            backupCount=5,
            encoding='utf-8'
        ),
    ]
    for handler in handlers:
        handler.setLevel(level)
        handler.setFormatter(formatter)
        handler.addFilter(SessionIdFilter())
        handler.addFilter(SanitizingFilter())
    return handlers


def setup_logging(
    log_level: Optional[str] = None,
    log_dir: Optional[str] = None,
) -> logging.Logger:
    """
    Replace the root logger's handlers with the bridge's JSON handlers.

    Args:
        log_level: Override log level (default from settings.LOG_LEVEL)
        log_dir: Override log directory (default from settings.LOG_DIR)

    Returns:
        The configured root logger
    """
    level = getattr(logging, (log_level or settings.LOG_LEVEL).upper(), logging.INFO)
    directory = log_dir or settings.LOG_DIR
    os.makedirs(directory, exist_ok=True)

    root_logger = logging.getLogger()
    root_logger.setLevel(level)
    root_logger.handlers.clear()
    for handler in _build_handlers(directory, level):
        root_logger.addHandler(handler)

    for name in QUIET_LOGGERS:
        logging.getLogger(name).setLevel(logging.WARNING)

    root_logger.info(
        f"Logging configured (version {APP_VERSION})",
        extra={"log_level": logging.getLevelName(level), "log_dir": directory}
    )
    return root_logger


def set_session_id(session_id: Optional[str]) -> contextvars.Token:
    """Set the session ID for the current context; returns the reset token."""
    return session_id_var.set(session_id)


def clear_session_id(token: contextvars.Token) -> None:
    session_id_var.reset(token)
