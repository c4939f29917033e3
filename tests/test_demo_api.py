"""Tests for the key-protected demo endpoints"""
import json

from limits.storage import MemoryStorage

from keyforge import create_app
from keyforge.config import TestingConfig
from keyforge.services import TieredRateLimiter


def broken_storage():
    def fail(*args, **kwargs):
        raise ConnectionError('counter store unreachable')

    storage = MemoryStorage()
    storage.acquire_entry = fail
    return storage


def _issue(create_key, **overrides):
    return json.loads(create_key(**overrides).data)


class TestScenarios:
    """End-to-end flows across create, verify, rate limit and revoke"""

    def test_create_ping_revoke_ping(self, create_key, client, authenticated_client):
        created = _issue(create_key)
        assert created['key'].startswith('sk_live_')

        response = client.get('/ping', headers={'x-api-key': created['key']})
        assert response.status_code == 200
        assert json.loads(response.data) == {'ok': True, 'message': 'Hello GET', 'keyId': created['id']}

        authenticated_client.delete(f"/keys?keyId={created['id']}")

        response = client.get('/ping', headers={'x-api-key': created['key']})
        assert response.status_code == 401
        assert json.loads(response.data) == {'error': 'revoked'}

    def test_fourth_rapid_ping_is_limited(self, create_key, app):
        key = _issue(create_key)['key']
        with app.test_client() as client:
            statuses = [client.get('/ping', headers={'x-api-key': key}) for _ in range(4)]

        assert [response.status_code for response in statuses[:3]] == [200, 200, 200]
        denied = statuses[3]
        assert denied.status_code == 429
        assert int(denied.headers['Retry-After']) >= 1
        assert denied.headers['X-RateLimit-Limit'] == '3'
        assert denied.headers['X-RateLimit-Remaining'] == '0'
        assert json.loads(denied.data) == {'error': 'Rate limit exceeded'}


class TestApiKeyAuth:
    """x-api-key verification"""

    def test_missing_key(self, client):
        response = client.get('/ping')
        assert response.status_code == 401
        assert json.loads(response.data) == {'error': 'not_found'}

    def test_missing_key_is_not_rate_limited(self, client):
        for _ in range(5):
            response = client.get('/ping')
            assert response.status_code == 401
            assert json.loads(response.data) == {'error': 'not_found'}

        # The address budget is still whole for a caller that then sends a key
        statuses = [client.get('/ping', headers={'x-api-key': 'sk_live_guess'}).status_code for _ in range(4)]
        assert statuses == [401, 401, 401, 429]

    def test_unknown_key(self, client):
        response = client.get('/ping', headers={'x-api-key': 'sk_live_doesnotexist'})
        assert response.status_code == 401
        assert json.loads(response.data) == {'error': 'not_found'}

    def test_success_carries_rate_limit_headers(self, create_key, client):
        key = _issue(create_key)['key']
        response = client.get('/ping', headers={'x-api-key': key})
        assert response.headers['X-RateLimit-Limit'] == '3'
        assert response.headers['X-RateLimit-Remaining'] == '2'
        assert 'Retry-After' not in response.headers

    def test_invalid_keys_are_limited_by_address(self, create_key, client):
        for _ in range(3):
            assert client.get('/ping', headers={'x-api-key': 'sk_live_guess'}).status_code == 401
        assert client.get('/ping', headers={'x-api-key': 'sk_live_guess'}).status_code == 429

        # The real key's budget is untouched by the failed attempts
        key = _issue(create_key)['key']
        assert client.get('/ping', headers={'x-api-key': key}).status_code == 200

    def test_keys_have_separate_budgets(self, create_key, client):
        first = _issue(create_key, name='First')['key']
        second = _issue(create_key, name='Second')['key']
        for _ in range(3):
            client.get('/ping', headers={'x-api-key': first})
        assert client.get('/ping', headers={'x-api-key': first}).status_code == 429
        assert client.get('/ping', headers={'x-api-key': second}).status_code == 200

    def test_owner_tier_sets_the_window(self, create_key, authenticated_client, app):
        authenticated_client.post('/subscription', json={'tier': 'pro'})
        key = _issue(create_key)['key']

        with app.test_client() as client:
            statuses = [client.get('/ping', headers={'x-api-key': key}).status_code for _ in range(11)]
        assert statuses == [200] * 10 + [429]


class TestEcho:
    """GET and POST /echo"""

    def test_echo_get(self, create_key, client):
        created = _issue(create_key)
        response = client.get('/echo?hello=world', headers={'x-api-key': created['key']})
        data = json.loads(response.data)
        assert response.status_code == 200
        assert data['ok'] is True
        assert data['query'] == {'hello': 'world'}
        assert data['keyId'] == created['id']

    def test_echo_post_matches_names(self, create_key, client):
        created = _issue(create_key)
        response = client.post('/echo', json={'postBody': 'Vase'}, headers={'x-api-key': created['key']})
        data = json.loads(response.data)
        assert response.status_code == 200
        assert data['message'] == 'Hello POST'
        assert data['received'] == [{'id': created['id'], 'name': 'Vase'}]
        assert response.headers['X-RateLimit-Limit'] == '3'

    def test_echo_post_invalid_json(self, create_key, client):
        key = _issue(create_key)['key']
        response = client.post('/echo', data='{oops', content_type='application/json', headers={'x-api-key': key})
        assert response.status_code == 400
        assert json.loads(response.data) == {'error': 'Invalid JSON body'}

    def test_echo_requires_key(self, client):
        assert client.post('/echo', json={'postBody': 'Vase'}).status_code == 401


def test_limiter_outage_fails_closed(db_factory):
    app = create_app(TestingConfig, db_factory=db_factory, rate_limiter=TieredRateLimiter(broken_storage()))
    client = app.test_client()
    client.environ_base['HTTP_X_USER_ID'] = 'user_test'
    key = json.loads(client.post('/keys', json={'name': 'Vase', 'period': 'Ming', 'origin': 'China', 'value': 5000}).data)['key']

    response = client.get('/ping', headers={'x-api-key': key})
    assert response.status_code == 503
    assert json.loads(response.data) == {'error': 'Rate limiter unavailable'}
