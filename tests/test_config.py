"""
Tests for configuration system
"""
import os
import pytest
from config import (
    Config,
    DevelopmentConfig,
    ProductionConfig,
    TestingConfig,
    get_config,
    has_database,
    get_storage_mode,
    validate_storage_config
)


@pytest.mark.unit
class TestBaseConfig:
    """Tests for base configuration"""

    def test_base_config_has_max_content_length(self):
        """Test that base config has max content length"""
        config = Config()
        assert config.MAX_CONTENT_LENGTH == 5 * 1024 * 1024

    def test_base_config_has_cors_settings(self):
        """Test that base config has CORS settings"""
        config = Config()
        assert hasattr(config, 'CORS_ORIGINS')
        assert hasattr(config, 'CORS_METHODS')
        assert 'GET' in config.CORS_METHODS
        assert 'POST' in config.CORS_METHODS

    def test_base_config_has_chat_settings(self):
        """Test chat defaults"""
        config = Config()
        assert config.CHAT_MAX_MESSAGE_LENGTH > 0
        assert config.CHAT_SESSION_BACKEND in ('memory', 'database')

    def test_base_config_has_classifier_settings(self):
        """Test classifier defaults"""
        config = Config()
        assert config.CLASSIFY_BATCH_LIMIT > 0
        assert isinstance(config.CLASSIFIER_USE_DEFAULT_RULES, bool)

    def test_base_config_has_logging_settings(self):
        """Test that base config has logging settings"""
        config = Config()
        assert config.LOG_FORMAT
        assert config.LOG_FILE


@pytest.mark.unit
class TestDevelopmentConfig:
    """Tests for development configuration"""

    def test_development_config_has_debug(self):
        """Test that development config has debug enabled"""
        config = DevelopmentConfig()
        assert config.DEBUG is True

    def test_development_config_has_testing_disabled(self):
        """Test that development config has testing disabled"""
        config = DevelopmentConfig()
        assert config.TESTING is False

    def test_development_config_has_debug_log_level(self):
        """Test that development config has DEBUG log level"""
        config = DevelopmentConfig()
        assert config.LOG_LEVEL == 'DEBUG'

    def test_development_config_allows_all_cors(self):
        """Test that development config allows all CORS origins"""
        config = DevelopmentConfig()
        assert '*' in config.CORS_ORIGINS


@pytest.mark.unit
class TestProductionConfig:
    """Tests for production configuration"""

    def test_production_config_has_debug_disabled(self):
        """Test that production config has debug disabled"""
        config = ProductionConfig()
        assert config.DEBUG is False

    def test_no_cookie_session_settings(self):
        """Test cookie-session settings are not configured"""
        assert not hasattr(ProductionConfig, 'SESSION_COOKIE_SECURE')
        assert not hasattr(Config, 'SECRET_KEY')

    def test_production_config_has_https_scheme(self):
        """Test that production config prefers HTTPS"""
        config = ProductionConfig()
        assert config.PREFERRED_URL_SCHEME == 'https'


@pytest.mark.unit
class TestTestingConfig:
    """Tests for testing configuration"""

    def test_testing_config_has_testing_enabled(self):
        """Test that testing config has testing enabled"""
        config = TestingConfig()
        assert config.TESTING is True

    def test_testing_config_disables_database(self):
        """Test that testing config runs without a database"""
        config = TestingConfig()
        assert config.DATABASE_URL is None
        assert config.CHAT_SESSION_BACKEND == 'memory'

    def test_testing_config_disables_file_logging(self):
        """Test that tests don't write log files"""
        assert TestingConfig().LOG_TO_FILE is False


@pytest.mark.unit
class TestGetConfig:
    """Tests for configuration selector"""

    def test_get_config_returns_development_by_default(self, test_env_vars):
        """Test that get_config returns development config by default"""
        del os.environ['FLASK_ENV']
        assert get_config() == DevelopmentConfig

    def test_get_config_returns_production_when_set(self, test_env_vars):
        """Test that get_config returns production config when env is production"""
        os.environ['FLASK_ENV'] = 'production'
        assert get_config() == ProductionConfig

    def test_get_config_returns_testing_when_set(self, test_env_vars):
        """Test that get_config returns testing config when env is testing"""
        assert get_config() == TestingConfig

    def test_explicit_name_wins(self, test_env_vars):
        """Test an explicit name overrides FLASK_ENV"""
        assert get_config('production') == ProductionConfig

    def test_unknown_name_falls_back(self):
        """Test unknown names give development config"""
        assert get_config('staging') == DevelopmentConfig


@pytest.mark.unit
class TestStoragePolicy:
    """Tests for the storage policy"""

    def test_has_database(self):
        """Test DATABASE_URL detection from a config mapping"""
        assert has_database({'DATABASE_URL': 'postgresql://x'}) is True
        assert has_database({'DATABASE_URL': None}) is False

    def test_storage_mode(self):
        """Test database vs memory mode"""
        assert get_storage_mode({'DATABASE_URL': 'sqlite://'}) == 'database'
        assert get_storage_mode({}) == 'memory'

    def test_production_requires_database(self):
        """Test production refuses to start without DATABASE_URL"""
        with pytest.raises(RuntimeError):
            validate_storage_config({}, 'production')

    def test_development_allows_memory(self):
        """Test development can run in memory"""
        assert validate_storage_config({}, 'development') == 'memory'

