"""
Application Initialization Module
Initializes the Flask app with configuration, logging, storage and the
classification / chat services
"""
import logging
from flask import Flask
from config import get_config, get_app_env
from logging_config import setup_logging
from security import setup_security
from health_checks import register_health_checks
from services.chat_engine import ConversationEngine
from services.chat_store import InMemorySessionRepository, SQLAlchemySessionRepository
from services.email_classifier import EmailClassifier
from services.resource_service import ResourceCreator, DatabaseResourceCreator

logger = logging.getLogger(__name__)


def create_app(config_name=None, session_repository=None, random_source=None, database_url=None):
    """
    Application factory that creates and configures the Flask app

    Args:
        config_name: development, production or testing (defaults to FLASK_ENV)
        session_repository: chat session storage to use instead of the configured one
        random_source: random.Random used for canned replies and resource ids
        database_url: overrides DATABASE_URL

    Returns:
        Configured Flask application instance
    """
    from app import register_blueprints, validate_storage_policy

    app = Flask(__name__)

    config_class = get_config(config_name)
    app.config.from_object(config_class)
    if database_url:
        app.config['DATABASE_URL'] = database_url

    setup_logging(app)

    env = config_name or get_app_env()
    logger.info("=" * 60)
    logger.info("🚀 Initializing Handyman Office API")
    logger.info("=" * 60)
    logger.info(f"Environment: {env}")
    logger.info(f"Debug mode: {app.debug}")

    setup_security(app, app.config)

    storage_mode = validate_storage_policy(app, env)
    app.config['STORAGE_MODE'] = storage_mode

    session_factory = None
    if storage_mode == 'database':
        session_factory = initialize_database(app)

    app.extensions['email_classifier'] = EmailClassifier(app.config['UNCATEGORIZED_LABEL'])
    app.extensions['chat_engine'] = initialize_chat_engine(
        app, session_factory, session_repository, random_source
    )

    register_blueprints(app)
    register_health_checks(app)

    logger.info("✅ Application initialization complete")
    logger.info("=" * 60)

    return app


def initialize_database(app):
    """
    Create the engine, tables and default categories

    Args:
        app: Flask application instance

    Returns:
        SQLAlchemy session factory
    """
    from database.connection import init_engine, init_db
    from database.seed import seed_database

    session_factory = init_engine(app.config['DATABASE_URL'])

    if app.config.get('AUTO_CREATE_TABLES'):
        init_db()

    if app.config.get('SEED_DEFAULT_CATEGORIES'):
        seed_database()

    return session_factory


def initialize_chat_engine(app, session_factory=None, session_repository=None, random_source=None):
    """
    Build the conversation engine with the configured session backend

    Args:
        app: Flask application instance
        session_factory: SQLAlchemy session factory when a database is configured
        session_repository: explicit repository, wins over configuration
        random_source: random.Random for replies and ids

    Returns:
        ConversationEngine instance
    """
    if session_repository is None:
        if app.config.get('CHAT_SESSION_BACKEND') == 'database' and session_factory is not None:
            session_repository = SQLAlchemySessionRepository(session_factory)
        else:
            if app.config.get('CHAT_SESSION_BACKEND') == 'database':
                logger.warning("⚠️  CHAT_SESSION_BACKEND=database without a database, using memory")
            session_repository = InMemorySessionRepository()

    if session_factory is not None:
        resource_creator = DatabaseResourceCreator(session_factory, random_source)
    else:
        resource_creator = ResourceCreator(random_source)

    logger.info(f"Chat sessions stored in {type(session_repository).__name__}")
    return ConversationEngine(
        repository=session_repository,
        resource_creator=resource_creator,
        random_source=random_source
    )
