"""Flask application factory and bootstrap.

This module provides the create_app() factory function, the composition
root that owns the forum directory client for the lifetime of the process
(or until it is reset after a settings change).
"""
from __future__ import annotations
import logging
import os
import threading
from typing import Optional

import requests
from flask import Flask

from forum_connector.config import ConnectorConfig, load_settings


# ─────────────────────────────────────────────────────────────────────────────
# Application Factory
# ─────────────────────────────────────────────────────────────────────────────
def create_app(
    config: Optional[ConnectorConfig] = None,
    http_session: Optional[requests.Session] = None,
) -> Flask:
    """Create and configure Flask application.

    Args:
        config: Connector settings (loaded from the environment if omitted)
        http_session: Session used for forum calls (tests inject a fake one)
    """
    app = Flask(__name__)

    if config is None:
        loader = load_settings
    else:
        def loader() -> ConnectorConfig:
            return config

    # The directory client is built lazily by api.directory.get_directory();
    # a missing setting surfaces as 503 on first use, not at startup.
    app.config["CONNECTOR_SETTINGS_LOADER"] = loader
    app.config["CONNECTOR_CONFIG"] = loader()
    app.config["FORUM_HTTP_SESSION"] = http_session

    logging.basicConfig(level=os.environ.get("LOG_LEVEL", "INFO").upper())

    # Register blueprints
    from forum_connector.api import health, errors, directory, registration

    app.register_blueprint(health.bp)
    app.register_blueprint(directory.bp, url_prefix="/forums")
    app.register_blueprint(registration.bp, url_prefix="/forums")

    # One directory client per app, shared by request threads
    app.extensions[directory.LOCK_KEY] = threading.RLock()

    # Register error handlers
    errors.register_error_handlers(app)

    cfg = app.config["CONNECTOR_CONFIG"]
    print(f"[flask_app] Forum connector API registered at /forums")
    if not cfg.is_configured:
        print("[flask_app] WARNING: FORUM_COMMUNITY_URL / FORUM_API_KEY not set; directory calls will fail")

    return app
