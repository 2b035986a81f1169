#!/usr/bin/env python3
"""
Shop Assistant Application Entry Point
- Works under both Gunicorn (`gunicorn run:app`) and `python run.py`.
- Initializes smart logging exactly once per process.
- Aligns Flask's app logger with the root logger.
"""

from __future__ import annotations

import logging
import os
import sys
from typing import Tuple

from dotenv import load_dotenv
from flask import request

# Load env before any import that reads it
load_dotenv()

from shop_assistant import create_app  # noqa: E402
from shop_assistant.utils.smart_logger import LogLevel, configure_logging  # noqa: E402

_LOGGING_INITIALIZED = False


def _to_python_level(level: LogLevel) -> int:
    return logging.DEBUG if level == LogLevel.DEBUG else logging.INFO


def setup_smart_logging() -> LogLevel:
    """Idempotent; level comes from BOT_LOG_LEVEL."""
    global _LOGGING_INITIALIZED

    desired = os.getenv("BOT_LOG_LEVEL", "STANDARD").upper()
    valid = {lvl.name for lvl in LogLevel}
    if desired not in valid:
        print(f"Warning: Invalid BOT_LOG_LEVEL '{desired}'. Valid options: {', '.join(sorted(valid))}")
        log_level = LogLevel.STANDARD
    else:
        log_level = LogLevel[desired]

    if not _LOGGING_INITIALIZED:
        if not logging.getLogger().handlers:
            configure_logging(
                level=log_level,
                format_string="%(asctime)s | %(levelname)s | %(name)s | %(message)s",
                silence_external=True,
            )
        _LOGGING_INITIALIZED = True

    return log_level


def _wire_app_logger(app, log_level: LogLevel) -> None:
    """Route app.logger into the root handlers without duplicates."""
    if app.logger.handlers:
        app.logger.handlers.clear()
    app.logger.propagate = True
    app.logger.setLevel(_to_python_level(log_level))


def create_application():
    log_level = setup_smart_logging()
    app = create_app()
    _wire_app_logger(app, log_level)

    @app.before_request
    def _log_request():
        app.logger.info("→ %s %s", request.method, request.path)

    return app


def _resolve_server_config() -> Tuple[str, int, bool]:
    host = os.getenv("HOST", "127.0.0.1")
    port = int(os.getenv("PORT", "8080"))

    flask_debug = os.getenv("FLASK_DEBUG", "").lower()
    if flask_debug in ("1", "true", "yes", "on"):
        debug = True
    elif flask_debug in ("0", "false", "no", "off"):
        debug = False
    else:
        debug = os.getenv("APP_ENV", "development").lower() == "development"

    return host, port, debug


def _print_startup_info(host: str, port: int, debug: bool, log_level: LogLevel) -> None:
    print("Shop Assistant Starting")
    print("=" * 60)
    print(f"Server:       http://{host}:{port}")
    print(f"Chat:         POST http://{host}:{port}/rs/chat")
    print(f"Health check: http://{host}:{port}/rs/health")
    print(f"Environment:  {os.getenv('APP_ENV', 'development')}")
    print(f"Debug mode:   {debug}")
    print(f"Log level:    {log_level.name}")
    print(f"Process ID:   {os.getpid()}")
    print("=" * 60)


def main() -> None:
    log_level = setup_smart_logging()
    host, port, debug = _resolve_server_config()
    _print_startup_info(host, port, debug, log_level)

    try:
        app.run(host=host, port=port, debug=debug, use_reloader=False, threaded=True)
    except KeyboardInterrupt:
        print("\nShutting down gracefully...")
    except Exception as e:
        print(f"Server error: {e}")
        sys.exit(1)


app = create_application()

if __name__ == "__main__":
    main()
