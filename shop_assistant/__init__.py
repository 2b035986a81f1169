"""
Shop Assistant Application Factory
==================================

Wires together:
- RedisSessionManager (conversation state per session)
- AssistantCore (intent cascade, comparison flow, replies)
- Flask blueprints under /rs
"""

from __future__ import annotations

import asyncio
import logging
import os
from datetime import datetime

from flask import Flask
from flask_cors import CORS

from .bot_core import AssistantCore
from .config import get_config
from .redis_manager import RedisSessionManager

log = logging.getLogger(__name__)


def create_app(session_mgr: RedisSessionManager | None = None,
               bot_core: AssistantCore | None = None) -> Flask:
    """
    Build the Flask app.

    INITIALIZATION ORDER:
    1. Redis session store & ping
    2. Assistant core (optionally preloading the catalog snapshot)
    3. Routes
    4. Error handlers

    `session_mgr` / `bot_core` may be injected, which tests use to avoid a
    live Redis and market API.
    """
    cfg = get_config()
    app = Flask(__name__)
    app.config.from_object(cfg)

    cors_origins_env = os.getenv("CORS_ALLOW_ORIGINS", "").strip()
    if cors_origins_env:
        allowed_origins = [o.strip() for o in cors_origins_env.split(",") if o.strip()]
    else:
        allowed_origins = ["*"]

    CORS(
        app,
        resources={r"/rs/*": {
            "origins": allowed_origins,
            "methods": ["GET", "POST", "OPTIONS"],
            "allow_headers": ["Content-Type", "Authorization"],
        }},
        supports_credentials=False,
    )

    # ────────────────────────────────────────────────────────
    # STEP 1: Session store
    # ────────────────────────────────────────────────────────
    if session_mgr is None:
        log.info("INIT_REDIS | starting Redis connection")
        session_mgr = RedisSessionManager()
        health = session_mgr.health_check()
        if health.get("ping_success"):
            log.info("INIT_REDIS_SUCCESS")
        else:
            # Turns still work; sessions just start fresh until Redis is back
            log.warning(f"INIT_REDIS_UNAVAILABLE | error={health.get('error')}")
    app.extensions["session_mgr"] = session_mgr

    # ────────────────────────────────────────────────────────
    # STEP 2: Assistant core
    # ────────────────────────────────────────────────────────
    if bot_core is None:
        bot_core = AssistantCore(session_mgr, cfg)
    app.extensions["bot_core"] = bot_core

    if cfg.PRELOAD_CATALOG:
        snapshot = asyncio.run(bot_core.refresh_catalog())
        log.info(f"INIT_CATALOG_PRELOAD | products={len(snapshot)}")

    # ────────────────────────────────────────────────────────
    # STEP 3: Routes
    # ────────────────────────────────────────────────────────
    from .routes import register_routes
    register_routes(app, url_prefix="/rs")

    # ────────────────────────────────────────────────────────
    # STEP 4: Error handlers
    # ────────────────────────────────────────────────────────
    @app.errorhandler(500)
    def handle_internal_error(error):
        log.error(f"INTERNAL_ERROR | error={error}", exc_info=True)
        return {
            "error": "Internal server error",
            "timestamp": datetime.now().isoformat(),
            "details": str(error) if app.debug else "Contact support",
        }, 500

    @app.errorhandler(404)
    def handle_not_found(error):
        return {
            "error": "Endpoint not found",
            "timestamp": datetime.now().isoformat(),
        }, 404

    log.info(f"APP_INIT_COMPLETE | extensions={list(app.extensions.keys())}")
    return app
