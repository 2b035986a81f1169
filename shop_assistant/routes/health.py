# shop_assistant/routes/health.py
"""
Readiness/liveness check.

200 when Redis answers a ping, 500 otherwise. The catalog snapshot size is
reported but does not affect the status; an empty catalog is a valid state.
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify

log = logging.getLogger(__name__)
bp = Blueprint("health", __name__)


@bp.get("/health")
def health_check() -> tuple[Dict[str, Any], int]:
    session_mgr = current_app.extensions.get("session_mgr")
    bot_core = current_app.extensions.get("bot_core")
    catalog_size = len(bot_core.catalog) if bot_core is not None else 0

    if session_mgr is None:
        return jsonify({"status": "unhealthy", "redis": "not_initialized", "service": "shop-assistant"}), 500

    health = session_mgr.health_check()
    if not health.get("ping_success"):
        log.warning(f"HEALTH_REDIS_DOWN | error={health.get('error')}")
        return jsonify({
            "status": "unhealthy",
            "redis": "disconnected",
            "catalog_products": catalog_size,
            "service": "shop-assistant",
        }), 500

    return jsonify({
        "status": "healthy",
        "redis": "connected",
        "catalog_products": catalog_size,
        "service": "shop-assistant",
    }), 200
