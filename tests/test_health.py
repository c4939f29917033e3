"""
Tests for health and version endpoints
"""
import json

from limits.storage import MemoryStorage

from keyforge import create_app
from keyforge.config import TestingConfig
from keyforge.services import TieredRateLimiter


def unreachable_storage():
    def fail():
        raise ConnectionError('counter store unreachable')

    storage = MemoryStorage()
    storage.check = fail
    return storage


class TestHealthEndpoint:
    """Tests for /health endpoint"""

    def test_health_endpoint_returns_200(self, client):
        response = client.get('/health')
        assert response.status_code == 200
        assert response.content_type == 'application/json'

    def test_health_endpoint_reports_checks(self, client):
        data = json.loads(client.get('/health').data)
        assert data['status'] == 'healthy'
        assert 'version' in data
        assert data['checks']['database']['status'] == 'ok'
        assert data['checks']['rate_limit_storage']['status'] == 'ok'

    def test_health_unhealthy_without_rate_limit_storage(self, db_factory):
        app = create_app(TestingConfig, db_factory=db_factory, rate_limiter=TieredRateLimiter(unreachable_storage()))
        response = app.test_client().get('/health')
        data = json.loads(response.data)
        assert response.status_code == 503
        assert data['status'] == 'unhealthy'
        assert data['checks']['rate_limit_storage']['status'] == 'error'

    def test_security_headers(self, client):
        response = client.get('/health')
        assert response.headers['X-Content-Type-Options'] == 'nosniff'


class TestVersionEndpoint:
    def test_version(self, client):
        data = json.loads(client.get('/version').data)
        assert data['version']
        assert 'python_version' in data


def test_unknown_route_returns_json_404(client):
    response = client.get('/nope')
    assert response.status_code == 404
    assert json.loads(response.data) == {'error': 'Not found'}
