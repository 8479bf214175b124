"""Tests for the dashboard password guard in create_app()."""
from unittest.mock import patch

import pytest


@pytest.fixture
def locked_client():
    with patch('otr_crm.config.DASHBOARD_PASSWORD', 'secret'):
        from otr_crm import create_app
        app = create_app()
    app.config['TESTING'] = True
    with app.test_client() as c:
        yield c


class TestAuth:

    def test_api_requires_login(self, locked_client):
        resp = locked_client.get('/api/otr/leads')
        assert resp.status_code == 401
        assert resp.json == {'error': 'Authentication required'}

    def test_public_paths_stay_open(self, locked_client):
        assert locked_client.get('/health').status_code == 200

    def test_wrong_password(self, locked_client):
        resp = locked_client.post('/login', data={'password': 'nope'})
        assert resp.status_code == 200
        assert 'Senha incorreta' in resp.get_data(as_text=True)

    def test_login_unlocks_api(self, locked_client):
        resp = locked_client.post('/login', data={'email': 'admin@elp.com', 'password': 'secret'})
        assert resp.status_code == 302
        assert locked_client.get('/api/otr/leads').status_code == 200

    def test_logout(self, locked_client):
        locked_client.post('/login', data={'password': 'secret'})
        locked_client.get('/logout')
        assert locked_client.get('/api/otr/leads').status_code == 401

    def test_marketplace_form_open_but_pipeline_locked(self, locked_client):
        assert locked_client.post('/api/marketplace', json={}).status_code == 400
        assert locked_client.get('/api/crm/pipeline').status_code == 401
