"""
Tests for security middleware and error handling
"""
import pytest
from security import SecurityConfig, sanitize_error_response


@pytest.mark.unit
class TestSecretKey:
    """Tests for secret key handling"""

    def test_generated_key_is_valid(self):
        key = SecurityConfig.generate_secret_key()
        assert len(key) == 64
        assert SecurityConfig.validate_secret_key(key) is True

    def test_weak_keys_rejected(self):
        assert SecurityConfig.validate_secret_key('') is False
        assert SecurityConfig.validate_secret_key('short') is False
        assert SecurityConfig.validate_secret_key('dev-' + 'x' * 40) is False

    def test_weak_key_replaced(self):
        key = SecurityConfig.ensure_secret_key({'SECRET_KEY': 'password'})
        assert key != 'password'
        assert SecurityConfig.validate_secret_key(key) is True


@pytest.mark.unit
class TestErrorSanitization:
    """Tests for sanitize_error_response"""

    def test_details_hidden_by_default(self):
        body = sanitize_error_response(ValueError('db password is hunter2'))
        assert body['success'] is False
        assert 'details' not in body

    def test_details_in_debug(self):
        body = sanitize_error_response(ValueError('boom'), include_details=True)
        assert body['details'] == 'boom'
        assert body['type'] == 'ValueError'


@pytest.mark.integration
class TestMiddleware:
    """Tests for headers and JSON error handlers on the app"""

    def test_security_headers(self, client):
        response = client.get('/api/health')
        assert response.headers['X-Frame-Options'] == 'DENY'
        assert response.headers['X-Content-Type-Options'] == 'nosniff'

    def test_unknown_route_is_json_404(self, client):
        response = client.get('/api/nowhere')
        assert response.status_code == 404
        assert response.get_json()['error'] == 'Not Found'

    def test_wrong_method_is_json_405(self, client):
        response = client.delete('/api/maintenance/regions')
        assert response.status_code == 405
        assert response.get_json()['success'] is False
