"""
Tests for health check endpoints
"""
import pytest
import time
import psutil
from unittest.mock import Mock, patch
from health_checks import (
    get_system_metrics,
    get_uptime,
    check_database,
    check_catalog,
    SERVICE_NAME
)


@pytest.mark.unit
class TestSystemMetrics:
    """Tests for system metrics collection"""

    def test_get_system_metrics_returns_dict(self):
        """Test that get_system_metrics returns a dictionary"""
        metrics = get_system_metrics()
        assert isinstance(metrics, dict)

    def test_system_metrics_has_memory_info(self):
        """Test that system metrics includes memory info"""
        metrics = get_system_metrics()
        if metrics:
            assert 'memory_mb' in metrics
            assert 'memory_percent' in metrics

    @patch('health_checks.psutil.Process')
    def test_system_metrics_handles_errors(self, mock_process):
        """Test that get_system_metrics handles psutil errors gracefully"""
        mock_process.side_effect = psutil.Error("Test error")
        assert get_system_metrics() == {}


@pytest.mark.unit
class TestUptime:
    """Tests for uptime calculation"""

    def test_uptime_has_required_fields(self):
        """Test that uptime includes all required fields"""
        uptime = get_uptime()
        assert set(uptime) == {'uptime_seconds', 'uptime_minutes', 'uptime_hours', 'started_at'}
        assert uptime['uptime_seconds'] >= 0

    def test_uptime_increases_over_time(self):
        """Test that uptime increases over time"""
        uptime1 = get_uptime()
        time.sleep(0.1)
        uptime2 = get_uptime()
        assert uptime2['uptime_seconds'] > uptime1['uptime_seconds']


@pytest.mark.unit
class TestDependencyChecks:
    """Tests for database and catalog checks"""

    def test_database_not_initialized(self):
        """Test the database check without an engine"""
        mock_app = Mock()
        mock_app.extensions = {}
        assert check_database(mock_app) == {'healthy': False, 'error': 'Database not initialized'}

    def test_database_connection_failure(self):
        """Test the database check when the connection fails"""
        database = Mock()
        database.check_connection.side_effect = RuntimeError('Cannot connect to database: refused')
        mock_app = Mock()
        mock_app.extensions = {'database': database}

        result = check_database(mock_app)

        assert result['healthy'] is False
        assert 'refused' in result['error']

    def test_catalog_missing(self):
        """Test the catalog check before the catalog is loaded"""
        mock_app = Mock()
        mock_app.extensions = {}
        assert check_catalog(mock_app) == {'healthy': False, 'regions': 0}

    def test_catalog_loaded(self, catalog):
        """Test the catalog check with the bundled catalog"""
        mock_app = Mock()
        mock_app.extensions = {'maintenance_catalog': catalog}
        result = check_catalog(mock_app)
        assert result['healthy'] is True
        assert result['regions'] == len(catalog.regions)


@pytest.mark.integration
class TestHealthCheckEndpoints:
    """Integration tests for health check endpoints"""

    def test_health_endpoint(self, client):
        """Test that /health endpoint returns 200 and JSON"""
        response = client.get('/api/health')
        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'healthy'
        assert data['service'] == SERVICE_NAME
        assert 'timestamp' in data

    def test_ping_endpoint_returns_pong(self, client):
        """Test that /ping endpoint returns 'pong'"""
        response = client.get('/api/ping')
        assert response.status_code == 200
        assert response.data == b'pong'

    def test_ready_endpoint(self, client):
        """Test that /ready reports the database and catalog"""
        response = client.get('/api/ready')
        assert response.status_code == 200
        data = response.get_json()
        assert data['status'] == 'ready'
        assert data['checks']['database']['healthy'] is True
        assert data['checks']['database']['backend'] == 'sqlite'
        assert data['checks']['catalog']['healthy'] is True

    def test_ready_endpoint_not_ready(self, app, client):
        """Test that /ready returns 503 when the database is down"""
        database = Mock()
        database.check_connection.side_effect = RuntimeError('down')
        real = app.extensions['database']
        app.extensions['database'] = database
        try:
            response = client.get('/api/ready')
        finally:
            app.extensions['database'] = real
        assert response.status_code == 503
        assert response.get_json()['status'] == 'not_ready'

    def test_metrics_endpoint(self, client):
        """Test that /metrics includes uptime, version and catalog"""
        response = client.get('/api/metrics')
        assert response.status_code == 200
        data = response.get_json()
        assert 'uptime_seconds' in data['uptime']
        assert data['version']
        assert data['catalog']['healthy'] is True
