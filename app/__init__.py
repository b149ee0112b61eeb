"""
Handyman Office - Application Package

This package contains the HTTP layer:
- api/: route handlers (Flask Blueprints)

The app factory lives in app_init.py at the project root; the
classification and chat logic lives in services/.

STORAGE POLICY:
- Production: DATABASE_URL is REQUIRED.
- Development/testing: without DATABASE_URL chat sessions are kept in
  memory and the classifier uses the built-in category rules.
"""

import logging

from app.api.chat import chat_bp
from app.api.emails import emails_bp
from app.api.categories import categories_bp

logger = logging.getLogger(__name__)


def validate_storage_policy(app, env=None):
    """
    Validate storage configuration at startup.

    Raises:
        RuntimeError: If production mode without DATABASE_URL
    """
    from config import validate_storage_config, get_app_env

    env = env or get_app_env()
    storage_mode = validate_storage_config(app.config, env)

    logger.info(f"🔧 Environment: {env.upper()}")
    logger.info(f"💾 Storage mode: {storage_mode}")

    if storage_mode == 'memory':
        logger.warning("⚠️  No database configured: chat sessions are lost on restart")

    return storage_mode


def register_blueprints(app):
    """
    Register all API blueprints with the Flask app.

    Args:
        app: Flask application instance
    """
    app.register_blueprint(chat_bp)
    app.register_blueprint(emails_bp)
    app.register_blueprint(categories_bp)


__all__ = ['register_blueprints', 'validate_storage_policy', 'app', 'chat_bp', 'emails_bp', 'categories_bp']


# ==============================================================================
# WSGI APP EXPORT FOR GUNICORN
# ==============================================================================
# Allows gunicorn to run with: gunicorn app:app
# The Flask app is created in application.py; loaded lazily to avoid
# circular imports.
# ==============================================================================

_flask_app = None


def __getattr__(name):
    """Lazy load the Flask app to avoid circular imports."""
    global _flask_app
    if name == 'app':
        if _flask_app is None:
            from application import app as flask_app
            _flask_app = flask_app
        return _flask_app
    raise AttributeError(f"module {__name__!r} has no attribute {name!r}")
