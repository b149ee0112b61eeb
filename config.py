"""
Centralized Configuration for the Handyman Office back end
Manages environment-specific settings, storage policy and service configuration.
"""
import os


def _env_bool(name, default):
    return os.environ.get(name, default).lower() == 'true'


class Config:
    """Base configuration with defaults"""

    # Flask Settings
    MAX_CONTENT_LENGTH = 5 * 1024 * 1024  # 5MB max request body
    JSON_SORT_KEYS = False

    # CORS Settings
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', '*').split(',')
    CORS_METHODS = ['GET', 'POST', 'PUT', 'DELETE', 'OPTIONS']
    CORS_ALLOW_HEADERS = ['Content-Type', 'Authorization', 'X-Requested-With']

    # Database Settings
    DATABASE_URL = os.environ.get('DATABASE_URL')
    AUTO_CREATE_TABLES = _env_bool('AUTO_CREATE_TABLES', 'true')
    SEED_DEFAULT_CATEGORIES = _env_bool('SEED_DEFAULT_CATEGORIES', 'true')

    # Chat Settings
    CHAT_SESSION_BACKEND = os.environ.get('CHAT_SESSION_BACKEND', 'memory')  # memory, database
    CHAT_MAX_MESSAGE_LENGTH = int(os.environ.get('CHAT_MAX_MESSAGE_LENGTH', '4000'))

    # Classifier Settings
    UNCATEGORIZED_LABEL = os.environ.get('UNCATEGORIZED_LABEL', 'uncategorized')
    CLASSIFIER_USE_DEFAULT_RULES = _env_bool('CLASSIFIER_USE_DEFAULT_RULES', 'true')
    CLASSIFY_BATCH_LIMIT = int(os.environ.get('CLASSIFY_BATCH_LIMIT', '500'))

    # Logging Configuration
    LOG_LEVEL = os.environ.get('LOG_LEVEL', 'INFO')
    LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'
    LOG_FILE = os.environ.get('LOG_FILE', 'app.log')
    LOG_TO_FILE = _env_bool('LOG_TO_FILE', 'true')


class DevelopmentConfig(Config):
    """Development-specific configuration"""
    DEBUG = True
    TESTING = False
    LOG_LEVEL = 'DEBUG'
    # Allow all CORS in development
    CORS_ORIGINS = ['*']


class ProductionConfig(Config):
    """Production-specific configuration"""
    DEBUG = False
    TESTING = False
    # Strict CORS in production
    CORS_ORIGINS = os.environ.get('CORS_ORIGINS', 'https://handyman-office.onrender.com').split(',')
    PREFERRED_URL_SCHEME = 'https'


class TestingConfig(Config):
    """Testing-specific configuration"""
    DEBUG = True
    TESTING = True
    DATABASE_URL = None
    CHAT_SESSION_BACKEND = 'memory'
    LOG_TO_FILE = False


# Configuration selector
config_by_name = {
    'development': DevelopmentConfig,
    'production': ProductionConfig,
    'testing': TestingConfig,
    'default': DevelopmentConfig,
}


def get_app_env():
    """Current environment name from FLASK_ENV"""
    return os.environ.get('FLASK_ENV', 'development')


def get_config(config_name=None):
    """Get configuration based on FLASK_ENV environment variable"""
    env = config_name or get_app_env()
    return config_by_name.get(env, DevelopmentConfig)


def has_database(config=None):
    """True if a DATABASE_URL is configured"""
    if config is not None:
        return bool(config.get('DATABASE_URL'))
    return bool(os.environ.get('DATABASE_URL'))


def get_storage_mode(config=None, env=None):
    """
    'database' when a DATABASE_URL is configured, otherwise 'memory'
    (chat sessions in process memory, built-in category rules).
    """
    return 'database' if has_database(config) else 'memory'


def validate_storage_config(config=None, env=None):
    """
    Enforce the storage policy.

    Raises:
        RuntimeError: production without DATABASE_URL
    """
    env = env or get_app_env()
    if env == 'production' and not has_database(config):
        raise RuntimeError(
            "DATABASE_URL is required in production. "
            "Set DATABASE_URL to your PostgreSQL connection string."
        )
    return get_storage_mode(config, env)
