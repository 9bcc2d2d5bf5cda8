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
    is_production,
    normalize_database_url
)


@pytest.mark.unit
class TestBaseConfig:
    """Tests for base configuration"""

    def test_base_config_has_secret_key(self):
        """Test that base config has a secret key"""
        config = Config()
        assert config.SECRET_KEY

    def test_base_config_has_max_content_length(self):
        """Test that base config caps JSON request bodies"""
        config = Config()
        assert config.MAX_CONTENT_LENGTH == 2 * 1024 * 1024

    def test_base_config_has_cors_settings(self):
        """Test that base config has CORS settings"""
        config = Config()
        assert 'PATCH' in config.CORS_METHODS
        assert 'DELETE' in config.CORS_METHODS
        assert 'X-User-Id' in config.CORS_ALLOW_HEADERS

    def test_base_config_has_catalog_settings(self):
        """Test that the bundled catalog is the default"""
        config = Config()
        assert config.MAINTENANCE_CATALOG_PATH.endswith(
            os.path.join('services', 'data', 'regional_maintenance.json'))
        assert os.path.exists(config.MAINTENANCE_CATALOG_PATH)

    def test_base_config_has_logging_settings(self):
        """Test that base config has logging settings"""
        config = Config()
        assert config.LOG_LEVEL == 'INFO'
        assert config.LOG_FILE == 'app.log'


@pytest.mark.unit
class TestDevelopmentConfig:
    """Tests for development configuration"""

    def test_development_config(self):
        """Test debug settings and open CORS"""
        config = DevelopmentConfig()
        assert config.DEBUG is True
        assert config.TESTING is False
        assert config.LOG_LEVEL == 'DEBUG'
        assert '*' in config.CORS_ORIGINS


@pytest.mark.unit
class TestProductionConfig:
    """Tests for production configuration"""

    def test_production_config_has_debug_disabled(self):
        """Test that production config has debug disabled"""
        config = ProductionConfig()
        assert config.DEBUG is False
        assert config.TESTING is False

    def test_production_config_has_secure_cookies(self):
        """Test that production config has secure cookies"""
        config = ProductionConfig()
        assert config.SESSION_COOKIE_SECURE is True
        assert config.SESSION_COOKIE_HTTPONLY is True
        assert config.SESSION_COOKIE_SAMESITE == 'Lax'

    def test_production_config_has_https_scheme(self):
        """Test that production config prefers HTTPS"""
        config = ProductionConfig()
        assert config.PREFERRED_URL_SCHEME == 'https'


@pytest.mark.unit
class TestTestingConfig:
    """Tests for testing configuration"""

    def test_testing_config(self):
        """Test that testing config uses an in-memory database"""
        config = TestingConfig()
        assert config.TESTING is True
        assert config.DATABASE_URL == 'sqlite://'
        assert config.NOTIFY_ON_HIGH_PRIORITY is True


@pytest.mark.unit
class TestDatabaseUrl:
    """Tests for database URL normalization"""

    def test_postgres_scheme_rewritten(self):
        assert normalize_database_url('postgres://u:p@h/db') == 'postgresql://u:p@h/db'

    def test_other_urls_untouched(self):
        assert normalize_database_url('sqlite:///x.db') == 'sqlite:///x.db'
        assert normalize_database_url(None) is None


@pytest.mark.unit
class TestGetConfig:
    """Tests for configuration selector"""

    def test_get_config_returns_development_by_default(self, monkeypatch):
        """Test that get_config returns development config by default"""
        monkeypatch.delenv('FLASK_ENV', raising=False)
        assert get_config() == DevelopmentConfig
        assert is_production() is False

    def test_get_config_returns_production_when_set(self, monkeypatch):
        """Test that get_config returns production config when env is production"""
        monkeypatch.setenv('FLASK_ENV', 'production')
        assert get_config() == ProductionConfig
        assert is_production() is True

    def test_get_config_returns_testing_when_set(self, test_env_vars):
        """Test that get_config returns testing config when env is testing"""
        assert get_config() == TestingConfig

    def test_unknown_env_falls_back_to_development(self, monkeypatch):
        monkeypatch.setenv('FLASK_ENV', 'staging')
        assert get_config() == DevelopmentConfig
