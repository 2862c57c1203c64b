#!/usr/bin/env python3
"""
🔍 Centralized Logging System for Alarmist
Logs scheduler and API activity to console and rotating files
Supports structured JSON logging for production observability
"""

import json
import logging
import logging.handlers
import os
import platform
import sys
from datetime import datetime, timezone
from pathlib import Path
from typing import Any, Dict

ROOT_LOGGER_NAME = "alarmist"

# Environment detection
IS_PRODUCTION = os.getenv('ALARMIST_ENV', 'development').lower() == 'production'
IS_DEV_MODE = '--dev' in sys.argv or os.getenv('ALARMIST_DEV') == '1'

ENABLE_JSON_LOGS = os.getenv('ALARMIST_JSON_LOGS', '0') == '1'

# Base defaults depending on environment (before overrides)
if IS_PRODUCTION and not IS_DEV_MODE:
    LOG_LEVEL = logging.WARNING
    ENABLE_FILE_LOGGING = False
    ENABLE_ERROR_LOGS = True
    MAX_LOG_SIZE = 1 * 1024 * 1024
    BACKUP_COUNT = 1
    ENABLE_SYSTEM_INFO = False
    # JSON logs by default in production unless explicitly disabled
    if os.getenv('ALARMIST_JSON_LOGS') is None:
        ENABLE_JSON_LOGS = True
else:
    LOG_LEVEL = logging.INFO
    ENABLE_FILE_LOGGING = True
    ENABLE_ERROR_LOGS = True
    MAX_LOG_SIZE = 10 * 1024 * 1024
    BACKUP_COUNT = 5
    ENABLE_SYSTEM_INFO = True


def _get_app_log_dir() -> Path:
    """Get application log directory path-agnostically"""
    env_log_dir = os.getenv('ALARMIST_LOG_DIR')
    if env_log_dir:
        return Path(env_log_dir)
    return Path.home() / ".alarmist" / "logs"


LOG_DIR = _get_app_log_dir()

# ---- Environment overrides ----
_env_level = os.getenv('ALARMIST_LOG_LEVEL')
if _env_level:
    LOG_LEVEL = getattr(logging, _env_level.upper(), LOG_LEVEL)

if os.getenv('ALARMIST_FORCE_FILE_LOG') == '1':
    ENABLE_FILE_LOGGING = True

if os.getenv('ALARMIST_SYSTEM_INFO') == '0':
    ENABLE_SYSTEM_INFO = False

try:
    LOG_DIR.mkdir(parents=True, exist_ok=True)
except OSError:
    # Console-only logging if directory is not writable
    ENABLE_FILE_LOGGING = False
    ENABLE_ERROR_LOGS = False

_PLAIN_FORMAT = '%(asctime)s | %(name)s | %(levelname)s | %(filename)s:%(lineno)d | %(message)s'

_RESERVED_RECORD_KEYS = frozenset((
    'name', 'msg', 'args', 'created', 'filename', 'funcName',
    'levelname', 'levelno', 'lineno', 'module', 'msecs',
    'message', 'pathname', 'process', 'processName', 'relativeCreated',
    'thread', 'threadName', 'taskName', 'exc_info', 'exc_text', 'stack_info',
    'getMessage', 'no_color',
))


class ColoredFormatter(logging.Formatter):
    """Custom formatter with colors for console output."""

    COLORS = {
        'DEBUG': '\033[36m',     # Cyan
        'INFO': '\033[32m',      # Green
        'WARNING': '\033[33m',   # Yellow
        'ERROR': '\033[31m',     # Red
        'CRITICAL': '\033[35m',  # Magenta
        'RESET': '\033[0m'       # Reset
    }

    def format(self, record: logging.LogRecord) -> str:
        if getattr(record, 'no_color', False):
            return super().format(record)

        color = self.COLORS.get(record.levelname, self.COLORS['RESET'])
        reset = self.COLORS['RESET']
        original = record.levelname
        record.levelname = f"{color}{record.levelname}{reset}"
        try:
            return super().format(record)
        finally:
            record.levelname = original


class JSONFormatter(logging.Formatter):
    """Structured JSON formatter for production observability.

    Example output:
        {"timestamp": "2026-03-02T06:30:00.123Z", "level": "INFO",
         "logger": "alarmist.scheduler", "message": "Alarm fired",
         "alarm_id": "9f1c...", "target": "2026-03-02T06:30:00+01:00"}
    """

    def format(self, record: logging.LogRecord) -> str:
        created = datetime.fromtimestamp(record.created, tz=timezone.utc)
        log_data: Dict[str, Any] = {
            'timestamp': created.isoformat(timespec='milliseconds').replace('+00:00', 'Z'),
            'level': record.levelname,
            'logger': record.name,
            'message': record.getMessage(),
        }

        if record.levelno >= logging.WARNING:
            log_data['source'] = f"{record.filename}:{record.lineno}"
            log_data['function'] = record.funcName

        if record.exc_info:
            log_data['exception'] = self.formatException(record.exc_info)

        # Extra fields passed via logger.info("msg", extra={...})
        for key, value in record.__dict__.items():
            if key in _RESERVED_RECORD_KEYS:
                continue
            try:
                json.dumps(value)
                log_data[key] = value
            except (TypeError, ValueError):
                log_data[key] = str(value)

        return json.dumps(log_data, ensure_ascii=True, sort_keys=True)


def _build_file_handler(path: Path, level: int) -> logging.Handler:
    handler = logging.handlers.RotatingFileHandler(
        path,
        maxBytes=MAX_LOG_SIZE,
        backupCount=BACKUP_COUNT,
        encoding='utf-8'
    )
    handler.setLevel(level)
    handler.setFormatter(JSONFormatter() if ENABLE_JSON_LOGS else logging.Formatter(_PLAIN_FORMAT))
    return handler


def setup_logger(name: str) -> logging.Logger:
    """
    Sets up a logger with appropriate handlers based on environment

    Args:
        name: Logger name (usually module name)

    Returns:
        Configured logger instance
    """
    logger = logging.getLogger(name)

    # Prevent duplicate handlers if logger already exists
    if logger.handlers:
        return logger

    logger.setLevel(LOG_LEVEL)

    console_handler = logging.StreamHandler()
    console_handler.setLevel(LOG_LEVEL)
    if ENABLE_JSON_LOGS:
        console_handler.setFormatter(JSONFormatter())
    elif IS_PRODUCTION and not IS_DEV_MODE:
        console_handler.setFormatter(logging.Formatter('%(asctime)s | %(levelname)s | %(message)s'))
    else:
        console_handler.setFormatter(ColoredFormatter('%(asctime)s | %(name)s | %(levelname)s | %(message)s'))
    logger.addHandler(console_handler)

    if ENABLE_FILE_LOGGING:
        try:
            logger.addHandler(_build_file_handler(LOG_DIR / "alarmist.log", LOG_LEVEL))
        except OSError:
            pass

    if ENABLE_ERROR_LOGS:
        try:
            logger.addHandler(_build_file_handler(LOG_DIR / "alarmist_errors.log", logging.ERROR))
        except OSError:
            pass

    return logger


def setup_logging(level: str | None = None) -> logging.Logger:
    """Initialize logging for the application.

    Module loggers are children of ``alarmist`` (``alarmist.scheduler``,
    ``alarmist.store`` ...) and propagate to the handlers installed here.
    """
    logger = setup_logger(ROOT_LOGGER_NAME)
    if level and not _env_level:
        resolved = getattr(logging, level.upper(), None)
        if isinstance(resolved, int):
            logger.setLevel(resolved)
            for handler in logger.handlers:
                if handler.level != logging.ERROR:
                    handler.setLevel(resolved)
    return logger


def get_logger(component: str) -> logging.Logger:
    """Return the child logger for ``component`` (e.g. ``scheduler``)."""
    return logging.getLogger(f"{ROOT_LOGGER_NAME}.{component}")


def log_startup(module_name: str) -> None:
    """Log startup information for a module.

    Only shows detailed system info in development mode.
    """
    logger = logging.getLogger(ROOT_LOGGER_NAME)
    logger.info(f"⏰ Starting {module_name}")

    if not ENABLE_SYSTEM_INFO:
        logger.info(f"📂 Logs: {LOG_DIR}")
        return

    import psutil

    try:
        logger.info("=" * 50)
        logger.info("🚀 Alarmist System Information")
        logger.info("=" * 50)
        logger.info(f"🖥️  Platform: {platform.platform()}")
        logger.info(f"🐍 Python: {platform.python_version()}")
        memory_gb = psutil.virtual_memory().available / (1024**3)
        logger.info(f"💾 Memory: {memory_gb:.1f}GB available")
        disk_gb = psutil.disk_usage('/').free / (1024**3)
        logger.info(f"💽 Disk: {disk_gb:.1f}GB free")
        logger.info(f"📂 Log Directory: {LOG_DIR}")
        logger.info("=" * 50)
    except OSError as e:
        logger.warning(f"Could not gather system info: {e}")


def log_shutdown(logger: logging.Logger, component_name: str) -> None:
    """Log component shutdown and flush handlers."""
    logger.info(f"🛑 Shutting down {component_name}")
    for handler in logger.handlers:
        handler.flush()


def log_structured(logger: logging.Logger, level: int, message: str, **context: Any) -> None:
    """Log a message with structured context fields.

    In JSON mode, context fields appear as separate JSON keys. In traditional
    mode, they're appended to the message as ``key=value`` pairs.

    Args:
        logger: Logger instance to use
        level: Log level (e.g., logging.INFO)
        message: Human-readable log message
        **context: Additional structured fields (e.g., alarm_id="...", delay_sec=45.2)
    """
    if ENABLE_JSON_LOGS:
        logger.log(level, message, extra=context)
    elif context:
        context_str = " ".join(f"{k}={v}" for k, v in context.items())
        logger.log(level, f"{message} | {context_str}")
    else:
        logger.log(level, message)
