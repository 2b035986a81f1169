# shop_assistant/routes/__init__.py
"""
Blueprint registration.

Every module here exposes a flask.Blueprint named **bp**. The app factory
stores the shared `session_mgr` and `bot_core` objects in `app.extensions`
so route modules reach them through `current_app`.
"""

from __future__ import annotations

import importlib
import logging
import pkgutil
from types import ModuleType

from flask import Blueprint, Flask

log = logging.getLogger(__name__)


def register_routes(app: Flask, url_prefix: str = "/rs") -> None:
    for _, name, _ in pkgutil.iter_modules(__path__):
        module: ModuleType = importlib.import_module(f"{__name__}.{name}")
        bp: Blueprint | None = getattr(module, "bp", None)
        if isinstance(bp, Blueprint):
            app.register_blueprint(bp, url_prefix=url_prefix)
            log.info(f"REGISTER_ROUTES_SUCCESS | blueprint={name} | prefix={url_prefix}")
