# shop_assistant/routes/reset.py
"""
/reset endpoint: drops a conversation session so the next message starts
from a fresh greeting with no pending comparison.

POST body:
{
  "session_id": "abc123"
}
"""

from __future__ import annotations

import logging
from typing import Any, Dict

from flask import Blueprint, current_app, jsonify, request

log = logging.getLogger(__name__)
bp = Blueprint("reset", __name__)


@bp.post("/reset")
def reset_session() -> tuple[Dict[str, Any], int]:
    data: Dict[str, Any] = request.get_json(silent=True) or {}
    session_id = data.get("session_id") or data.get("user_id")
    if not session_id:
        return jsonify({"error": "Missing session_id"}), 400

    session_mgr = current_app.extensions.get("session_mgr")
    if session_mgr is None:
        return jsonify({"error": "Session store not initialized"}), 500

    deleted = session_mgr.delete_session(str(session_id))
    log.info(f"SESSION_RESET | session={session_id} | existed={deleted}")
    return jsonify({"message": "Session reset successfully", "session_id": str(session_id)}), 200
