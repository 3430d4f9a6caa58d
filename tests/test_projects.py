import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from denidom import create_app, db
from denidom.models import Estimate, User


def setup_app():
    app = create_app('testing')
    with app.app_context():
        db.drop_all()
        db.create_all()
    return app


def auth_header(client):
    resp = client.post('/api/auth/register', json={
        'email': 'pm@smeta-pro.ru',
        'password': 'secret1',
        'name': 'Прораб',
    })
    return {'Authorization': f"Bearer {resp.get_json()['token']}"}


def test_create_project_uses_token_owner():
    app = setup_app()
    client = app.test_client()
    headers = auth_header(client)

    resp = client.post('/api/projects', json={'name': 'Квартира на Ленина'}, headers=headers)
    assert resp.status_code == 201
    project = resp.get_json()
    assert project['status'] == 'DRAFT'
    assert project['totalAmount'] == 0
    assert project['client'] is None

    with app.app_context():
        user = User.query.filter_by(email='pm@smeta-pro.ru').one()
        assert project['userId'] == user.id

    resp = client.get('/api/projects', headers=headers)
    assert [p['id'] for p in resp.get_json()] == [project['id']]


def test_create_project_without_owner_is_rejected():
    app = setup_app()
    resp = app.test_client().post('/api/projects', json={'name': 'Без владельца'})
    assert resp.status_code == 400
    assert resp.get_json()['details'][0]['field'] == 'userId'


def test_create_project_with_unknown_owner():
    app = setup_app()
    resp = app.test_client().post('/api/projects', json={'name': 'Офис', 'userId': 'USR-NOPE'})
    assert resp.status_code == 404
    assert resp.get_json()['error'] == 'User not found'


def test_project_estimate_with_unknown_owner():
    app = setup_app()
    client = app.test_client()
    project_id = client.post('/api/projects', json={'name': 'Офис'}, headers=auth_header(client)).get_json()['id']

    resp = client.post(f'/api/projects/{project_id}/estimates', json={'name': 'Отделка', 'userId': 'USR-NOPE'})
    assert resp.status_code == 404
    assert resp.get_json()['error'] == 'User not found'


def test_create_project_with_unknown_client():
    app = setup_app()
    client = app.test_client()
    resp = client.post(
        '/api/projects',
        json={'name': 'Офис', 'clientId': 'CLI-NOPE'},
        headers=auth_header(client),
    )
    assert resp.status_code == 404
    assert resp.get_json()['error'] == 'Client not found'


def test_project_total_follows_estimates():
    app = setup_app()
    client = app.test_client()
    headers = auth_header(client)
    project_id = client.post('/api/projects', json={'name': 'Офис'}, headers=headers).get_json()['id']

    item = {'id': 'work-1', 'name': 'Покраска стен', 'unit': 'м²', 'quantity': 10, 'price': 100}
    for name in ('Этап 1', 'Этап 2'):
        resp = client.post(f'/api/projects/{project_id}/estimates', json={
            'name': name,
            'items': [item],
        })
        assert resp.status_code == 201

    resp = client.get(f'/api/projects/{project_id}')
    body = resp.get_json()
    assert body['totalAmount'] == 2903.04
    assert [e['name'] for e in body['estimates']] == ['Этап 1', 'Этап 2']
    assert body['estimates'][0]['items'][0]['name'] == 'Покраска стен'


def test_update_and_delete_project():
    app = setup_app()
    client = app.test_client()
    headers = auth_header(client)
    project_id = client.post('/api/projects', json={'name': 'Дача'}, headers=headers).get_json()['id']
    client.post(f'/api/projects/{project_id}/estimates', json={'name': 'Кровля'})

    resp = client.put(f'/api/projects/{project_id}', json={'status': 'IN_PROGRESS'})
    assert resp.status_code == 200
    assert resp.get_json()['status'] == 'IN_PROGRESS'
    assert resp.get_json()['name'] == 'Дача'

    resp = client.put(f'/api/projects/{project_id}', json={'status': 'UNKNOWN'})
    assert resp.status_code == 400

    assert client.delete(f'/api/projects/{project_id}').status_code == 204
    assert client.get(f'/api/projects/{project_id}').status_code == 404
    with app.app_context():
        assert Estimate.query.count() == 0
