# shop_assistant/routes/chat.py
"""
Chat endpoints
==============

POST /chat                       one conversation turn
GET  /chat/history/<session_id>  stored message log for a session

Request body for /chat:
{
  "message": "so sánh Laptop HP Pavilion và Laptop Dell XPS",
  "session_id": "abc123"          # or "user_id"; defaults to "anonymous"
}
"""

from __future__ import annotations

import asyncio
import json
import logging
from typing import Any, Dict

from flask import Blueprint, Response, current_app, jsonify, request

log = logging.getLogger(__name__)
bp = Blueprint("chat", __name__)


def _log_final_payload(tag: str, payload: Any, *, session_id: str = "unknown") -> None:
    """Single compact JSON line per reply."""
    compact = json.dumps(payload, ensure_ascii=False, separators=(",", ":"), default=str)
    log.info(f"📤 FINAL_PAYLOAD | tag={tag} | session={session_id} | size_bytes={len(compact)}")
    log.debug(f"FINAL_PAYLOAD_BODY | session={session_id} | payload={compact}")


@bp.post("/chat")
async def chat() -> Response:
    request_start_time = asyncio.get_running_loop().time()

    data: Dict[str, Any] | None = request.get_json(silent=True)
    if not data:
        log.warning("CHAT_EMPTY_REQUEST | no JSON data received")
        return jsonify({"error": "No JSON data provided"}), 400

    if "message" not in data:
        log.warning("CHAT_MISSING_FIELDS | missing=['message']")
        return jsonify({"error": "Missing required fields: message"}), 400

    session_id = str(data.get("session_id") or data.get("user_id") or "anonymous")
    message = str(data["message"]).strip()
    if not message:
        log.warning(f"CHAT_EMPTY_MESSAGE | session={session_id}")
        return jsonify({"error": "Message cannot be empty"}), 400

    bot_core = current_app.extensions.get("bot_core")
    if bot_core is None:
        log.error("CHAT_NO_BOT_CORE | bot core not available")
        return jsonify({"error": "Bot core not initialized"}), 500

    log.info(f"CHAT_REQUEST | session={session_id} | message='{message[:50]}'")
    try:
        response, _ = await bot_core.handle_turn(session_id, message)
    except Exception as e:  # noqa: BLE001
        log.error(f"CHAT_PROCESSING_ERROR | session={session_id} | error={e}", exc_info=True)
        return jsonify({"error": "Failed to process message"}), 500

    payload = response.to_dict()
    payload["session_id"] = session_id
    payload["meta"] = {
        "elapsed_time": f"{asyncio.get_running_loop().time() - request_start_time:.3f}s",
    }
    _log_final_payload("chat", payload, session_id=session_id)
    return jsonify(payload), 200


@bp.get("/chat/history/<session_id>")
def chat_history(session_id: str) -> Response:
    session_mgr = current_app.extensions.get("session_mgr")
    if session_mgr is None:
        return jsonify({"error": "Session store not initialized"}), 500

    state = session_mgr.get_state(session_id)
    return jsonify({
        "session_id": session_id,
        "messages": [m.to_dict() for m in state.messages],
        "pending_comparison": state.pending.product.to_dict() if state.pending.product else None,
    }), 200
