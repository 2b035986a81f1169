"""
Smart, modular logging for the shopping assistant.
Provides clean, contextual flow logs with configurable verbosity levels.
"""

import logging
import os
import sys
from datetime import datetime
from enum import Enum
from typing import Any, Dict, List, Optional


class LogLevel(Enum):
    MINIMAL = 1      # Only critical flow events
    STANDARD = 2     # Key decisions and state changes
    DETAILED = 3     # Include match scores and timing
    DEBUG = 4        # Everything including API calls


class SmartLogger:
    def __init__(self, name: str, level: LogLevel = LogLevel.STANDARD):
        self.logger = logging.getLogger(name)
        self.level = level
        self._request_contexts: Dict[str, str] = {}

    def set_level(self, level: LogLevel):
        """Change logging verbosity at runtime"""
        self.level = level

    def _should_log(self, required_level: LogLevel) -> bool:
        return self.level.value >= required_level.value

    def _format_request_id(self, session_id: str) -> str:
        timestamp = datetime.now().strftime('%H%M%S')
        return f"{session_id[-6:]}_{timestamp}"

    def _req(self, session_id: str) -> str:
        return self._request_contexts.get(session_id, "unknown")

    def _clean_log(self, level: str, emoji: str, category: str, message: str, **kwargs):
        details = " | ".join([f"{k}={v}" for k, v in kwargs.items() if v is not None])
        if details:
            full_message = f"{emoji} {category} | {message} | {details}"
        else:
            full_message = f"{emoji} {category} | {message}"

        getattr(self.logger, level.lower())(full_message)

    # ═══════════════════════════════════════════════════════════
    # HIGH-LEVEL FLOW EVENTS
    # ═══════════════════════════════════════════════════════════

    def query_start(self, session_id: str, query: str, catalog_size: int):
        if not self._should_log(LogLevel.MINIMAL):
            return

        req_id = self._format_request_id(session_id)
        self._request_contexts[session_id] = req_id

        query_preview = query[:50] + "..." if len(query) > 50 else query
        self._clean_log("info", "🚀", "QUERY_START", f"'{query_preview}'",
                        req=req_id, catalog=catalog_size)

    def intent_classified(self, session_id: str, intent: str, pending: bool):
        if not self._should_log(LogLevel.STANDARD):
            return
        self._clean_log("info", "🧠", "INTENT", intent, req=self._req(session_id), pending=pending)

    def products_matched(self, session_id: str, intent: str, product_ids: List[str]):
        if not self._should_log(LogLevel.STANDARD):
            return
        self._clean_log("info", "🔍", "MATCH", f"{len(product_ids)} products",
                        req=self._req(session_id), intent=intent)

        if self._should_log(LogLevel.DETAILED):
            self._clean_log("debug", "📊", "MATCH_DETAIL", "ids",
                            req=self._req(session_id), ids=product_ids)

    def comparison_transition(self, session_id: str, outcome: str, before: str, after: str):
        if not self._should_log(LogLevel.STANDARD):
            return
        self._clean_log("info", "⚖️", "COMPARISON", outcome,
                        req=self._req(session_id), state=f"{before}→{after}")

    def response_ready(self, session_id: str, response_type: str, product_count: int,
                       elapsed_time: Optional[float] = None):
        if not self._should_log(LogLevel.MINIMAL):
            return

        extras: Dict[str, Any] = {"req": self._req(session_id), "products": product_count}
        if elapsed_time is not None:
            extras["time"] = f"{elapsed_time:.3f}s"
        self._clean_log("info", "✅", "RESPONSE", response_type, **extras)
        self._request_contexts.pop(session_id, None)

    # ═══════════════════════════════════════════════════════════
    # DETAILED / ERROR EVENTS
    # ═══════════════════════════════════════════════════════════

    def fetch_failed(self, session_id: str, operation: str, error_msg: Optional[str] = None):
        if not self._should_log(LogLevel.STANDARD):
            return
        self._clean_log("warning", "⚠️", "FETCH_DEGRADED", operation,
                        req=self._req(session_id), msg=error_msg)

    def cache_hit(self, session_id: str, what: str, key: str):
        if not self._should_log(LogLevel.DETAILED):
            return
        self._clean_log("debug", "💾", "CACHE_HIT", what, req=self._req(session_id), key=key)

    def error_occurred(self, session_id: str, error_type: str, operation: str, error_msg: Optional[str] = None):
        """Errors are always logged regardless of level"""
        self._clean_log("error", "❌", "ERROR", f"{error_type} in {operation}",
                        req=self._req(session_id), msg=error_msg)


# ═══════════════════════════════════════════════════════════════════════════════
# GLOBAL LOGGER INSTANCES AND CONFIGURATION
# ═══════════════════════════════════════════════════════════════════════════════

_loggers: Dict[str, SmartLogger] = {}


def get_smart_logger(module_name: str, level: Optional[LogLevel] = None) -> SmartLogger:
    """Get or create a smart logger for a module"""
    if module_name not in _loggers:
        default_level = getattr(LogLevel, os.getenv('BOT_LOG_LEVEL', 'STANDARD').upper(), LogLevel.STANDARD)
        _loggers[module_name] = SmartLogger(module_name, level or default_level)

    if level:
        _loggers[module_name].set_level(level)

    return _loggers[module_name]


def configure_logging(level: LogLevel = LogLevel.STANDARD,
                      format_string: Optional[str] = None,
                      silence_external: bool = True):
    """Configure the entire logging system"""
    if not format_string:
        format_string = '%(asctime)s | %(message)s'

    logging.basicConfig(
        level=logging.DEBUG if level == LogLevel.DEBUG else logging.INFO,
        format=format_string,
        datefmt='%H:%M:%S',
        handlers=[logging.StreamHandler(sys.stdout)]
    )

    if silence_external:
        logging.getLogger('werkzeug').setLevel(logging.WARNING)
        logging.getLogger('urllib3').setLevel(logging.WARNING)
        logging.getLogger('redis').setLevel(logging.WARNING)

    for smart_logger in _loggers.values():
        smart_logger.set_level(level)
