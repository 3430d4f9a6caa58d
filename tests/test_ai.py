import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import base64
from datetime import date

import pytest

from denidom import create_app, db
from denidom.ai.client import AIClient, AIError
from denidom.ai.generate import quantity_from_area
from denidom.ai.parse_request import parse_locally
from denidom.ai.pricing import fallback_predictions, fallback_recommendations, get_season
from denidom.ai.voice import parse_command_locally
from denidom.models import Normative
from denidom.seed import seed_all

DESCRIPTION = 'Штукатурка стен и покраска стен, площадь 50 м²'


class FailingClient:
    def generate_json(self, prompt, image_url=None):
        raise AIError('boom')


class FakeClient:
    def __init__(self, reply):
        self.reply = reply
        self.prompts = []

    def generate_json(self, prompt, image_url=None):
        self.prompts.append(prompt)
        return self.reply


def setup_app(seed=False, ai_key=''):
    app = create_app('testing')
    app.config['AI_API_KEY'] = ai_key
    with app.app_context():
        db.drop_all()
        db.create_all()
        if seed:
            seed_all()
    return app


def login(client, email='user@smeta-pro.ru', password='user123'):
    resp = client.post('/api/auth/login', json={'email': email, 'password': password})
    return {'Authorization': f"Bearer {resp.get_json()['token']}"}


def test_generate_requires_ai_key():
    app = setup_app()
    resp = app.test_client().post('/api/ai/generate', json={'description': DESCRIPTION})
    assert resp.status_code == 503
    assert resp.get_json()['code'] == 'AI_UNAVAILABLE'
    assert resp.get_json()['error'] == 'AI service unavailable'


def test_generate_validates_description():
    app = setup_app(ai_key='test-key')
    resp = app.test_client().post('/api/ai/generate', json={'description': 'коротко'})
    assert resp.status_code == 400
    assert resp.get_json()['details'][0]['field'] == 'description'


def test_parse_locally_splits_works():
    parsed = parse_locally('Ремонт офиса 80 м²: штукатурка стен; укладка ламината и остекление окна')
    assert parsed.project_type == 'office'
    assert parsed.total_area == 80
    categories = [w.category for w in parsed.works]
    assert categories == ['plastering', 'flooring', 'windows']
    assert parsed.works[2].unit == 'шт'


def test_parse_locally_without_known_works():
    parsed = parse_locally('Что-то совсем непонятное')
    assert len(parsed.works) == 1
    assert parsed.works[0].category == 'general'


def test_quantity_from_area():
    assert quantity_from_area('plastering', 50) == 140
    assert quantity_from_area('plastering', 50, '100 м²') == 1.4
    assert quantity_from_area('unknown', 12.5) == 12.5


def test_generate_falls_back_to_keyword_parser(monkeypatch):
    app = setup_app(seed=True, ai_key='test-key')
    monkeypatch.setattr('denidom.ai.parse_request.get_client', lambda: FailingClient())

    resp = app.test_client().post('/api/ai/generate', json={'description': DESCRIPTION})
    assert resp.status_code == 200
    body = resp.get_json()
    assert body['success']
    data = body['data']

    plaster, paint = data['items']
    assert plaster['code'] == 'ФЕР15-02-001-01'
    assert plaster['quantity'] == 140
    assert plaster['price'] == 752
    assert plaster['ferPrice'] == 450
    assert plaster['priceSource'] == 'DATABASE'
    assert paint['code'] == 'ФЕР15-04-001-01'
    assert paint['price'] == 310

    assert data['ferSubtotal'] == 88200
    assert data['commercialSubtotal'] == 148680
    assert data['subtotal'] == 148680
    assert data['difference'] == 69
    assert data['parsed']['totalArea'] == 50


def test_generate_fer_estimate_uses_ai_parse(monkeypatch):
    app = setup_app(seed=True, ai_key='test-key')
    fake = FakeClient({
        'projectType': 'apartment',
        'works': [
            {'description': 'укладка ламината', 'category': 'flooring',
             'keywords': ['ламинат'], 'unit': '100 м²'},
            {'description': 'монтаж вентиляции', 'category': 'general', 'keywords': ['вентиляция']},
        ],
    })
    monkeypatch.setattr('denidom.ai.parse_request.get_client', lambda: fake)

    resp = app.test_client().post('/api/ai/generate', json={
        'description': 'Ламинат в двух комнатах и вентиляция',
        'estimateType': 'FER',
        'area': 40,
    })
    data = resp.get_json()['data']
    assert 'Ламинат в двух комнатах' in fake.prompts[0]

    laminate, placeholder = data['items']
    assert laminate['type'] == 'FER'
    assert laminate['code'] == 'ФЕР11-02-001-01'
    assert laminate['quantity'] == 0.4
    assert laminate['editable'] is False
    assert placeholder['id'].startswith('placeholder-')
    assert placeholder['notes'] == 'Норматив не найден в базе'
    assert placeholder['price'] == 400
    assert data['subtotal'] == data['ferSubtotal'] == 5670 * 0.4


def test_custom_price_overrides_commercial(monkeypatch):
    app = setup_app(seed=True, ai_key='test-key')
    monkeypatch.setattr('denidom.ai.parse_request.get_client', lambda: FailingClient())
    client = app.test_client()
    headers = login(client)
    with app.app_context():
        normative_id = Normative.query.filter_by(code='ФЕР15-02-001-01').one().id

    resp = client.post('/api/ai/prices/custom', headers=headers, json={
        'normativeId': normative_id,
        'name': 'Штукатурка стен (моя цена)',
        'unit': 'м²',
        'price': 999,
    })
    assert resp.status_code == 201
    price_id = resp.get_json()['data']['id']

    resp = client.post('/api/ai/prices/custom', headers=headers, json={
        'normativeId': normative_id,
        'name': 'Штукатурка стен (моя цена)',
        'unit': 'м²',
        'price': 900,
    })
    assert resp.status_code == 200
    assert resp.get_json()['data']['id'] == price_id
    assert resp.get_json()['data']['price'] == 900

    data = client.post('/api/ai/generate', json={'description': DESCRIPTION}, headers=headers).get_json()['data']
    assert data['items'][0]['price'] == 900
    assert data['items'][0]['priceSource'] == 'USER'

    listed = client.get('/api/ai/prices/custom', headers=headers, query_string={'search': 'моя'}).get_json()
    assert listed['count'] == 1

    assert client.delete(f'/api/ai/prices/custom/{price_id}', headers=headers).status_code == 204
    resp = client.delete(f'/api/ai/prices/custom/{price_id}', headers=headers)
    assert resp.status_code == 404
    assert resp.get_json()['error'] == 'Custom price not found'


def test_custom_price_needs_login_and_known_normative():
    app = setup_app(seed=True)
    client = app.test_client()
    payload = {'normativeId': 'NRM-NOPE', 'name': 'X', 'unit': 'м²', 'price': 10}
    assert client.post('/api/ai/prices/custom', json=payload).status_code == 401

    resp = client.post('/api/ai/prices/custom', json=payload, headers=login(client))
    assert resp.status_code == 404
    assert resp.get_json()['error'] == 'Normative not found'


def test_import_prices_is_admin_only():
    app = setup_app(seed=True)
    client = app.test_client()
    payload = {'prices': [{'code': 'КОМ-001', 'name': 'Монтаж потолка', 'unit': 'м²',
                           'price': 900, 'region': 'Казань'}]}

    resp = client.post('/api/ai/prices/import', json=payload, headers=login(client))
    assert resp.status_code == 403
    assert resp.get_json()['code'] == 'FORBIDDEN'

    admin = login(client, 'admin@smeta-pro.ru', 'admin123')
    resp = client.post('/api/ai/prices/import', json=payload, headers=admin)
    assert resp.status_code == 201
    assert resp.get_json()['count'] == 1

    listed = client.get('/api/ai/prices/commercial', query_string={'region': 'Казань'}).get_json()
    assert [p['name'] for p in listed['data']] == ['Монтаж потолка']


def test_commercial_price_listing():
    app = setup_app(seed=True)
    client = app.test_client()
    listed = client.get('/api/ai/prices/commercial').get_json()
    assert listed['count'] == 10

    listed = client.get('/api/ai/prices/commercial', query_string={'search': 'ламинат'}).get_json()
    assert listed['data'][0]['price'] == 8505
    assert listed['data'][0]['normative']['code'] == 'ФЕР11-02-001-01'

    listed = client.get('/api/ai/prices/commercial', query_string={'limit': 3}).get_json()
    assert listed['count'] == 3


def test_normative_search():
    app = setup_app(seed=True)
    client = app.test_client()
    resp = client.get('/api/ai/normatives/search')
    assert resp.status_code == 400

    body = client.get('/api/ai/normatives/search', query_string={'q': 'Штукатурка'}).get_json()
    assert body['count'] == 2

    body = client.get('/api/ai/normatives/search', query_string={
        'q': 'плитк', 'includeCommercial': 'true',
    }).get_json()
    assert body['count'] == 2
    assert body['data'][0]['commercialPrices'][0]['region'] == 'Москва'


def test_voice_parse_locally():
    parsed = parse_command_locally('Добавь кухню 12 квадратов с ламинатом')
    assert parsed == {
        'action': 'add',
        'target': 'кухню 12 квадратов с ламинатом',
        'quantity': 12.0,
        'unit': 'м²',
        'room': 'кухня',
        'material': 'ламинат',
    }
    assert parse_command_locally('Сколько стоит покраска')['action'] == 'query'
    assert parse_command_locally('удали плитку в ванной')['room'] == 'ванная'


def test_voice_route_falls_back_when_ai_answers_nonsense(monkeypatch):
    app = setup_app(ai_key='test-key')
    monkeypatch.setattr('denidom.ai.voice.get_client', lambda: FakeClient({'action': 'dance'}))
    resp = app.test_client().post('/api/ai/voice/parse', json={
        'command': 'Убери 3 шт розеток',
        'useAi': True,
    })
    data = resp.get_json()['data']
    assert data['action'] == 'remove'
    assert data['quantity'] == 3
    assert data['unit'] == 'шт'


def test_blueprint_manual_rooms():
    app = setup_app()
    resp = app.test_client().post('/api/ai/blueprint/analyze', json={
        'manualRooms': [{'name': 'Кухня', 'area': 10}, {'name': 'Спальня', 'area': 15.5}],
    })
    body = resp.get_json()
    assert body['source'] == 'manual'
    assert body['data']['totalArea'] == 25.5
    assert [r['type'] for r in body['data']['rooms']] == ['kitchen', 'bedroom']
    assert body['data']['suggestedWorks'][0]['works'][0] == 'Укладка напольной плитки'


def test_blueprint_image_checks():
    app = setup_app()
    client = app.test_client()
    resp = client.post('/api/ai/blueprint/analyze', json={})
    assert resp.status_code == 400
    assert resp.get_json()['error'] == 'Image (imageBase64) or manualRooms is required'

    image = base64.b64encode(b'\x89PNG fake').decode()
    resp = client.post('/api/ai/blueprint/analyze', json={'imageBase64': image, 'imageType': 'image/bmp'})
    assert resp.status_code == 400

    resp = client.post('/api/ai/blueprint/analyze', json={'imageBase64': image, 'imageType': 'image/png'})
    assert resp.status_code == 503


def test_blueprint_image_with_ai(monkeypatch):
    app = setup_app(ai_key='test-key')
    fake = FakeClient({'rooms': [{'name': 'Зал', 'area': 20}, {'name': 'Кухня', 'area': 9}]})
    monkeypatch.setattr('denidom.ai.blueprint.get_client', lambda: fake)
    image = base64.b64encode(b'\x89PNG fake').decode()
    body = app.test_client().post('/api/ai/blueprint/analyze', json={'imageBase64': image}).get_json()
    assert body['source'] == 'ai'
    assert body['data']['totalArea'] == 29


def test_fallback_predictions():
    result = fallback_predictions(
        [{'id': '1', 'name': 'Цемент', 'category': 'materials', 'currentPrice': 450}],
        3,
        today=date(2024, 1, 15),
    )
    prediction = result['predictions'][0]
    assert prediction['confidence'] == 65
    assert prediction['season'] == 'зима'
    assert prediction['predictedPrice'] == 446
    assert [p['confidence'] for p in prediction['forecast']] == [80, 75, 70]
    assert prediction['forecast'][0]['date'] == '2024-02-15'
    assert len(result['marketTrends']) == 1


def test_predict_route_uses_fallback_without_key():
    app = setup_app()
    resp = app.test_client().post('/api/ai/prices/predict', json={
        'items': [{'id': '1', 'name': 'Цемент', 'category': 'materials', 'price': 450}],
        'forecastMonths': 2,
    })
    data = resp.get_json()['data']
    assert data['predictions'][0]['currentPrice'] == 450
    assert len(data['predictions'][0]['forecast']) == 2


class HtmlResponse:
    status_code = 200
    text = '<html>gateway</html>'

    def raise_for_status(self):
        pass

    def json(self):
        raise ValueError('Expecting value: line 1 column 1 (char 0)')


def test_client_rejects_non_json_body(monkeypatch):
    app = setup_app(ai_key='test-key')
    monkeypatch.setattr('requests.Session.post', lambda self, *a, **kw: HtmlResponse())
    with app.app_context():
        client = AIClient('https://ai.example/v1', 'test-key', 'test-model')
        with pytest.raises(AIError):
            client.generate_json('ping')


def test_ai_flows_fall_back_on_non_json_body(monkeypatch):
    app = setup_app(seed=True, ai_key='test-key')
    monkeypatch.setattr('requests.Session.post', lambda self, *a, **kw: HtmlResponse())
    client = app.test_client()

    resp = client.post('/api/ai/generate', json={'description': DESCRIPTION})
    assert resp.status_code == 200
    assert [i['code'] for i in resp.get_json()['data']['items']] == ['ФЕР15-02-001-01', 'ФЕР15-04-001-01']

    resp = client.post('/api/ai/prices/predict', json={
        'items': [{'id': '1', 'name': 'Цемент', 'category': 'materials', 'price': 450}],
    })
    assert resp.status_code == 200
    assert resp.get_json()['data']['predictions'][0]['confidence'] == 65


def test_recommendations_fallback():
    result = fallback_recommendations('apartment', 60, budget=500000, today=date(2024, 7, 1))
    similar, seasonal = result['recommendations']
    assert similar['confidence'] == 75
    assert 'квартирах площадью 60 м²' in similar['description']
    assert seasonal['savings'] == 50000
    assert seasonal['basedOn']['season'] == 'лето'

    app = setup_app()
    resp = app.test_client().post('/api/ai/recommendations', json={'projectType': 'office', 'totalArea': 120})
    recs = resp.get_json()['data']['recommendations']
    assert 'savings' not in recs[1]


def test_seasons():
    assert [get_season(m) for m in (0, 3, 6, 9, 11)] == ['зима', 'весна', 'лето', 'осень', 'зима']


def test_market_trends_and_regions():
    app = setup_app()
    client = app.test_client()
    body = client.get('/api/ai/market/trends').get_json()
    assert len(body['data']['trends']) == 3
    assert 'updatedAt' in body
    assert len(client.get('/api/ai/regions').get_json()['data']) == 5
