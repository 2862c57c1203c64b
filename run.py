#!/usr/bin/env python3
"""
Alarmist Runner - loads config, starts the alarm scheduler and serves the API
"""

import os

from waitress import serve

from src.app import create_app
from src.config import load_config
from src.utils.logger import get_logger, log_shutdown, log_startup, setup_logging


def main() -> None:
    config = load_config()
    setup_logging(config.get("log_level"))
    log_startup("runner")
    logger = get_logger("runner")

    port = int(os.environ.get("PORT", config.get("port", 5001)))
    host = config.get("host", "0.0.0.0")
    debug_mode = bool(config.get("debug", False))

    app = create_app(config)
    scheduler = app.extensions["alarmist"]["scheduler"]
    logger.info("⏰ Alarm scheduler started (phase=%s)", scheduler.phase.value)
    logger.info("🚀 Starting Alarmist on %s:%s (environment=%s, debug=%s)",
                host, port, config.get("environment", "unknown"), debug_mode)

    try:
        if debug_mode:
            # The reloader would start a second scheduler in the child process
            app.run(host=host, port=port, debug=True, use_reloader=False)
        else:
            threads = int(os.environ.get("ALARMIST_WAITRESS_THREADS", "4"))
            backlog = int(os.environ.get("ALARMIST_WAITRESS_BACKLOG", "128"))
            logger.info("🍽️ Using Waitress WSGI server (threads=%s, backlog=%s)", threads, backlog)
            serve(app, host=host, port=port, threads=threads, backlog=backlog)
    finally:
        scheduler.close()
        log_shutdown(logger, "runner")


if __name__ == "__main__":
    main()
