"""
⏰ Alarmist - Flask application factory
=======================================

Wires configuration, logging, the alarm scheduler and the HTTP blueprints
into a Flask app. The scheduler is owned by the app and reachable through
``app.extensions["alarmist"]``.
"""

import logging
import os
from typing import Any, Dict, Optional

from flask import Flask
from flask_compress import Compress

from .config import load_config
from .core.alarm_scheduler import AlarmScheduler, build_alarm_scheduler
from .routes import alarm_bp, health_bp
from .routes.errors import register_error_handlers
from .routes.helpers import EXTENSION_KEY
from .services.alarm_service import AlarmService
from .utils.logger import setup_logging
from .version import get_app_info

logger = logging.getLogger("alarmist.app")


def _configure_compression(app: Flask) -> None:
    app.config.setdefault('COMPRESS_REGISTER', True)
    app.config.setdefault('COMPRESS_ALGORITHM', os.getenv('ALARMIST_COMPRESS_ALGO', 'gzip'))
    app.config.setdefault('COMPRESS_MIMETYPES', ('application/json',))
    try:
        app.config['COMPRESS_MIN_SIZE'] = max(256, int(os.getenv('ALARMIST_COMPRESS_MIN_BYTES', '1024')))
    except ValueError:
        app.config['COMPRESS_MIN_SIZE'] = 1024
    Compress().init_app(app)


def create_app(
    config: Optional[Dict[str, Any]] = None,
    *,
    scheduler: Optional[AlarmScheduler] = None,
    start_scheduler: bool = True,
) -> Flask:
    """Return a freshly constructed Flask application.

    Args:
        config: Validated configuration; loaded from ``config/`` when omitted
        scheduler: Pre-built scheduler (tests pass one driven by a ManualClock)
        start_scheduler: Start the scheduler if it is not running yet
    """
    if config is None:
        config = load_config()

    setup_logging(config.get("log_level"))

    app = Flask(__name__)
    app.config['ALARMIST'] = config
    _configure_compression(app)

    if scheduler is None:
        scheduler = build_alarm_scheduler(config)
    if start_scheduler and not scheduler.running:
        scheduler.start()

    alarm_service = AlarmService(scheduler)
    alarm_service.initialize()
    app.extensions[EXTENSION_KEY] = {
        "scheduler": scheduler,
        "alarm_service": alarm_service,
    }

    app.register_blueprint(alarm_bp)
    app.register_blueprint(health_bp)
    register_error_handlers(app)

    logger.info("🚀 %s ready (environment=%s)", get_app_info(), config.get("environment", "development"))
    return app


__all__ = ["create_app"]
