"""
Handyman Office back end

Flask application for a small handyman / contractor back office:
- /api/emails/*     : rule-based classification of inbound email
- /api/categories/* : management of the category rules
- /api/chat/*       : scripted chat assistant that collects quotations,
                      services and clients over several turns
- /api/health, /api/ready, /api/metrics, /api/ping

The app is built by create_app() in app_init.py. Database tables are
managed with Alembic (alembic upgrade head) or created on start when
AUTO_CREATE_TABLES is true.
"""
import os
import logging

from app_init import create_app

logger = logging.getLogger(__name__)

app = create_app()


if __name__ == '__main__':
    port = int(os.environ.get('PORT', 5000))
    logger.info(f"Starting development server on port {port}")
    app.run(host='0.0.0.0', port=port, debug=app.config.get('DEBUG', False))
