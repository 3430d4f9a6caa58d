import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

from denidom import create_app, db
from denidom.export.documents import fmt


def setup_app():
    app = create_app('testing')
    with app.app_context():
        db.drop_all()
        db.create_all()
    return app


def make_estimate(client):
    token = client.post('/api/auth/register', json={
        'email': 'export@smeta-pro.ru',
        'password': 'secret1',
        'name': 'Сметчик',
    }).get_json()['token']
    headers = {'Authorization': f'Bearer {token}'}
    project_id = client.post('/api/projects', json={'name': 'Ремонт офиса'}, headers=headers).get_json()['id']
    resp = client.post(f'/api/projects/{project_id}/estimates', json={
        'name': 'Отделочные работы',
        'items': [
            {'id': 'work-1', 'name': 'Штукатурка стен', 'unit': 'м²', 'quantity': 10, 'price': 100},
        ],
    })
    return project_id, resp.get_json()['id']


def test_ks2_json_totals():
    app = setup_app()
    client = app.test_client()
    _, estimate_id = make_estimate(client)

    resp = client.get(f'/api/export/ks2/{estimate_id}', query_string={'actNumber': 'A-042'})
    assert resp.status_code == 200
    form = resp.get_json()
    assert form['actNumber'] == 'A-042'
    assert form['contractNumber'] == 'Д-001'
    assert form['objectName'] == 'Ремонт офиса'
    assert form['items'][0]['total'] == 1000
    assert form['totalWithoutVat'] == 1209.6
    assert form['vat'] == 241.92
    assert form['totalWithVat'] == 1451.52


def test_ks2_csv_has_bom_and_semicolons():
    app = setup_app()
    client = app.test_client()
    _, estimate_id = make_estimate(client)

    resp = client.get(f'/api/export/ks2/{estimate_id}', query_string={'format': 'csv'})
    assert resp.status_code == 200
    assert resp.mimetype == 'text/csv'
    assert 'KS-2_A-001.csv' in resp.headers['Content-Disposition']
    text = resp.get_data(as_text=True)
    assert text.startswith('\ufeff')
    assert 'Акт о приемке выполненных работ (КС-2)' in text
    assert 'Всего с НДС;;;;;;1451.52' in text


def test_ks2_unknown_estimate():
    app = setup_app()
    resp = app.test_client().get('/api/export/ks2/EST-NOPE')
    assert resp.status_code == 404
    assert resp.get_json()['error'] == 'Estimate not found'


def test_ks3_sums_project_estimates():
    app = setup_app()
    client = app.test_client()
    project_id, _ = make_estimate(client)
    client.post(f'/api/projects/{project_id}/estimates', json={
        'name': 'Полы',
        'items': [{'id': 'work-2', 'name': 'Укладка ламината', 'unit': 'м²', 'quantity': 20, 'price': 50}],
    })

    resp = client.get(f'/api/export/ks3/{project_id}')
    form = resp.get_json()
    assert [i['name'] for i in form['items']] == ['Отделочные работы', 'Полы']
    assert form['items'][0]['previousAmount'] == 0
    assert form['total'] == 2903.04

    resp = client.get(f'/api/export/ks3/{project_id}', query_string={'format': 'csv'})
    text = resp.get_data(as_text=True)
    assert text.startswith('\ufeff')
    assert 'ИТОГО;;;;;2903.04' in text


def test_ks3_without_estimates():
    app = setup_app()
    resp = app.test_client().get('/api/export/ks3/PRJ-EMPTY')
    assert resp.status_code == 404
    assert resp.get_json()['error'] == 'No estimates found for this project'


def test_m29_deviation():
    app = setup_app()
    client = app.test_client()
    payload = {
        'reportNumber': 'М-007',
        'materials': [
            {'code': 'М-002', 'name': 'Цемент М500', 'unit': 'кг',
             'normativeQuantity': 100, 'actualQuantity': 110, 'price': 8},
        ],
    }
    form = client.post('/api/export/m29', json=payload).get_json()
    row = form['materials'][0]
    assert row['normativeTotal'] == 800
    assert row['actualTotal'] == 880
    assert row['deviation'] == 80
    assert form['total'] == 880
    assert form['objectName'] == 'Объект'

    resp = client.post('/api/export/m29?format=csv', json=payload)
    assert resp.mimetype == 'text/csv'
    assert 'Цемент М500' in resp.get_data(as_text=True)


def test_m29_rejects_negative_quantity():
    app = setup_app()
    resp = app.test_client().post('/api/export/m29', json={
        'materials': [{'code': 'X', 'name': 'X', 'unit': 'кг',
                       'normativeQuantity': -1, 'actualQuantity': 1, 'price': 1}],
    })
    assert resp.status_code == 400
    assert resp.get_json()['details'][0]['field'] == 'materials.0.normativeQuantity'


def test_estimate_csv():
    app = setup_app()
    client = app.test_client()
    _, estimate_id = make_estimate(client)
    resp = client.get(f'/api/export/estimate/{estimate_id}')
    assert resp.mimetype == 'text/csv'
    text = resp.get_data(as_text=True)
    assert text.startswith('\ufeff')
    assert 'Проект;Ремонт офиса' in text
    assert '1;Штукатурка стен;м²;10;100;1;1000' in text
    assert 'ВСЕГО;;;;;1451.52' in text


def test_fmt_drops_trailing_zero():
    assert fmt(45000.0) == '45000'
    assert fmt(1209.6) == '1209.6'
    assert fmt('текст') == 'текст'
