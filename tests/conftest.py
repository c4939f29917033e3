"""
Pytest fixtures for Keyforge tests
"""
import os
import tempfile

import pytest

from keyforge import create_app
from keyforge.config import TestingConfig
from keyforge.db import init_db, make_db_factory

TEST_USER_ID = 'user_test'


@pytest.fixture
def db_factory():
    """Connection factory bound to a throwaway database"""
    db_fd, db_path = tempfile.mkstemp(suffix='.db')
    factory = make_db_factory(db_path)
    init_db(factory)

    yield factory

    os.close(db_fd)
    os.unlink(db_path)


@pytest.fixture
def app(db_factory):
    """Create application for testing"""
    flask_app = create_app(TestingConfig, db_factory=db_factory)
    yield flask_app


@pytest.fixture
def client(app):
    """Create a test client"""
    return app.test_client()


@pytest.fixture
def authenticated_client(app, client):
    """Create a test client carrying the gateway identity header"""
    client.environ_base['HTTP_X_USER_ID'] = TEST_USER_ID
    return client


@pytest.fixture
def services(app):
    return app.extensions['keyforge']


@pytest.fixture
def create_key(authenticated_client):
    """Create a key through the API as the test user"""
    def _create(**overrides):
        payload = {'name': 'Vase', 'period': 'Ming', 'origin': 'China', 'value': 5000}
        payload.update(overrides)
        return authenticated_client.post('/keys', json=payload)
    return _create
