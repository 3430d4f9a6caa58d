import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import logging

import jwt

from denidom import create_app, db
from denidom.auth.limiter import TokenBucket


def setup_app():
    app = create_app('testing')
    with app.app_context():
        db.drop_all()
        db.create_all()
    return app


def register(client, email='ivan@smeta-pro.ru', password='secret1', name='Иван'):
    return client.post('/api/auth/register', json={
        'email': email,
        'password': password,
        'name': name,
    })


def test_register_returns_user_and_token():
    app = setup_app()
    resp = register(app.test_client(), email='Ivan@Smeta-Pro.ru')
    assert resp.status_code == 201
    body = resp.get_json()
    assert body['user']['email'] == 'ivan@smeta-pro.ru'
    assert body['user']['name'] == 'Иван'
    assert 'password' not in body['user']

    payload = jwt.decode(body['token'], 'test-secret', algorithms=['HS256'])
    assert payload['id'] == body['user']['id']
    assert payload['email'] == 'ivan@smeta-pro.ru'


def test_register_logs_through_module_logger(caplog):
    app = setup_app()
    with caplog.at_level(logging.INFO, logger='denidom.auth.routes'):
        register(app.test_client())
    records = [r for r in caplog.records if r.getMessage() == 'Registered user ivan@smeta-pro.ru']
    assert [r.name for r in records] == ['denidom.auth.routes']


def test_register_duplicate_email():
    app = setup_app()
    client = app.test_client()
    register(client)
    resp = register(client)
    assert resp.status_code == 400
    assert resp.get_json()['code'] == 'USER_EXISTS'


def test_register_validation_errors():
    app = setup_app()
    resp = register(app.test_client(), email='not-an-email', password='123')
    assert resp.status_code == 400
    fields = {d['field'] for d in resp.get_json()['details']}
    assert fields == {'email', 'password'}


def test_login_and_me():
    app = setup_app()
    client = app.test_client()
    register(client)

    resp = client.post('/api/auth/login', json={'email': 'ivan@smeta-pro.ru', 'password': 'wrong-pass'})
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'Invalid credentials'

    resp = client.post('/api/auth/login', json={'email': 'ivan@smeta-pro.ru', 'password': 'secret1'})
    assert resp.status_code == 200
    token = resp.get_json()['token']

    resp = client.get('/api/auth/me', headers={'Authorization': f'Bearer {token}'})
    assert resp.status_code == 200
    assert resp.get_json()['user']['role'] == 'USER'


def test_me_requires_valid_token():
    app = setup_app()
    client = app.test_client()
    resp = client.get('/api/auth/me')
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'No token provided'

    resp = client.get('/api/auth/me', headers={'Authorization': 'Bearer garbage'})
    assert resp.status_code == 401
    assert resp.get_json()['error'] == 'Invalid token'


def test_refresh_issues_new_token():
    app = setup_app()
    client = app.test_client()
    token = register(client).get_json()['token']
    resp = client.post('/api/auth/refresh', headers={'Authorization': f'Bearer {token}'})
    assert resp.status_code == 200
    payload = jwt.decode(resp.get_json()['token'], 'test-secret', algorithms=['HS256'])
    assert payload['email'] == 'ivan@smeta-pro.ru'


def test_auth_routes_are_rate_limited():
    app = setup_app()
    app.config['AUTH_RATE_LIMIT'] = 2
    client = app.test_client()
    creds = {'email': 'nobody@smeta-pro.ru', 'password': 'whatever'}
    assert client.post('/api/auth/login', json=creds).status_code == 401
    assert client.post('/api/auth/login', json=creds).status_code == 401
    resp = client.post('/api/auth/login', json=creds)
    assert resp.status_code == 429
    assert resp.get_json()['code'] == 'TOO_MANY_REQUESTS'


def test_token_bucket_refuses_when_empty():
    bucket = TokenBucket(capacity=1, window_seconds=3600)
    assert bucket.try_acquire()
    assert not bucket.try_acquire()
