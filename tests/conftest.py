import json

import pytest

from app import create_app


@pytest.fixture
def data_file(tmp_path):
    return tmp_path / 'data.json'


@pytest.fixture
def app(data_file, tmp_path):
    return create_app({
        'TESTING': True,
        'DATA_FILE': str(data_file),
        'FRONTEND_DIR': str(tmp_path / 'no-frontend'),
    })


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def read_store(data_file):
    def _read():
        with open(data_file, encoding='utf-8') as f:
            return json.load(f)
    return _read


@pytest.fixture
def register(client):
    def _register(name='Alice', **extra):
        payload = {'name': name, 'phone': '+91 98765 43210', 'nationality': 'Indian'}
        payload.update(extra)
        response = client.post('/api/registerTourist', json=payload)
        assert response.status_code == 200
        return response.get_json()['data']
    return _register
