"""
Redis session manager
=====================

Persists one ConversationState JSON blob per session under
`session:{session_id}:conversation` with a sliding TTL.

Redis trouble never breaks a turn: loads fall back to a fresh conversation,
saves report False, and both are logged.
"""
from __future__ import annotations

import json
import logging
import time
from datetime import timedelta
from typing import Any, Dict, Optional

import redis
from redis.exceptions import ConnectionError, RedisError, TimeoutError

from .bot_core import new_conversation
from .config import get_config
from .models import ConversationState

log = logging.getLogger(__name__)
Cfg = get_config()


def _session_key(session_id: str) -> str:
    return f"session:{session_id}:conversation"


class RedisSessionManager:
    def __init__(self, client: redis.Redis | None = None):
        self.redis: redis.Redis = client or redis.Redis(
            host=Cfg.REDIS_HOST,
            port=Cfg.REDIS_PORT,
            db=Cfg.REDIS_DB,
            decode_responses=Cfg.REDIS_DECODE_RESPONSES,
            socket_timeout=10,
            socket_connect_timeout=5,
            retry_on_timeout=True,
            health_check_interval=30,
        )
        self.ttl = timedelta(seconds=Cfg.REDIS_TTL_SECONDS) if Cfg.REDIS_TTL_SECONDS > 0 else None

        self._connection_healthy = True
        self._last_health_check = 0.0

    def _check_connection_health(self) -> bool:
        """Ping with a 30s cache."""
        now = time.time()
        if now - self._last_health_check < 30:
            return self._connection_healthy

        try:
            self.redis.ping()
            self._connection_healthy = True
        except Exception as e:  # noqa: BLE001
            log.error(f"REDIS_HEALTH_CHECK_FAILED | error={e}")
            self._connection_healthy = False
        self._last_health_check = now
        return self._connection_healthy

    # ────────────────────────────────────────────────────────
    # Public API
    # ────────────────────────────────────────────────────────

    def get_state(self, session_id: str) -> ConversationState:
        """Stored conversation, or a freshly greeted one."""
        if not self._check_connection_health():
            log.error(f"STATE_LOAD_UNHEALTHY | session={session_id}")
            return new_conversation(session_id)

        data = self._get_json_with_retry(_session_key(session_id), default=None)
        if not data:
            log.info(f"STATE_NEW | session={session_id}")
            return new_conversation(session_id)

        try:
            state = ConversationState.from_dict(data)
        except (KeyError, TypeError, ValueError) as e:
            log.warning(f"STATE_CORRUPT | session={session_id} | error={e}")
            self.delete_session(session_id)
            return new_conversation(session_id)

        state.session_id = session_id
        log.info(
            f"STATE_LOADED | session={session_id} | messages={len(state.messages)} | "
            f"pending={state.pending.status.value}"
        )
        return state

    def save_state(self, state: ConversationState) -> bool:
        if not state.session_id:
            log.error("STATE_SAVE_NO_SESSION_ID")
            return False
        if not self._check_connection_health():
            log.error(f"STATE_SAVE_UNHEALTHY | session={state.session_id}")
            return False
        return self._set_json_with_retry(_session_key(state.session_id), state.to_dict(), ttl=self.ttl)

    def delete_session(self, session_id: str) -> bool:
        try:
            deleted = self.redis.delete(_session_key(session_id))
            log.info(f"SESSION_DELETE_COMPLETE | session={session_id} | deleted_keys={deleted}")
            return bool(deleted)
        except RedisError as e:
            log.error(f"SESSION_DELETE_ERROR | session={session_id} | error={e}", exc_info=True)
            return False

    def health_check(self) -> Dict[str, Any]:
        health: Dict[str, Any] = {"ping_success": False, "error": None}
        try:
            health["ping_success"] = bool(self.redis.ping())
        except Exception as e:  # noqa: BLE001
            health["error"] = str(e)
        self._connection_healthy = health["ping_success"]
        self._last_health_check = time.time()
        return health

    # ────────────────────────────────────────────────────────
    # Internal helpers with retry logic
    # ────────────────────────────────────────────────────────

    def _get_json_with_retry(self, key: str, *, default: Any = None, max_retries: int = 3) -> Any:
        for attempt in range(max_retries):
            try:
                raw = self.redis.get(key)
                if raw is None:
                    return default
                try:
                    return json.loads(raw)
                except json.JSONDecodeError as je:
                    log.warning(f"REDIS_GET_JSON_ERROR | key={key} | error={je}")
                    self.redis.delete(key)
                    return default

            except (ConnectionError, TimeoutError) as ce:
                log.warning(f"REDIS_GET_CONNECTION_ERROR | key={key} | attempt={attempt + 1} | error={ce}")
                if attempt == max_retries - 1:
                    self._connection_healthy = False
                    return default
                time.sleep(0.1 * (attempt + 1))

            except RedisError as re:
                log.error(f"REDIS_GET_ERROR | key={key} | error={re}")
                return default

        return default

    def _set_json_with_retry(self, key: str, value: Any, *, ttl: Optional[timedelta],
                             max_retries: int = 3) -> bool:
        json_data = json.dumps(value, ensure_ascii=False, default=str)
        for attempt in range(max_retries):
            try:
                if ttl is None:
                    result = self.redis.set(key, json_data)
                else:
                    result = self.redis.setex(key, int(ttl.total_seconds()), json_data)
                if result:
                    log.debug(f"REDIS_SET_SUCCESS | key={key} | size={len(json_data)} | ttl={ttl}")
                    return True
                log.warning(f"REDIS_SET_FAILED | key={key} | attempt={attempt + 1}")

            except (ConnectionError, TimeoutError) as ce:
                log.warning(f"REDIS_SET_CONNECTION_ERROR | key={key} | attempt={attempt + 1} | error={ce}")
                if attempt == max_retries - 1:
                    self._connection_healthy = False
                    return False
                time.sleep(0.1 * (attempt + 1))

            except RedisError as re:
                log.error(f"REDIS_SET_ERROR | key={key} | error={re}")
                return False

        return False
