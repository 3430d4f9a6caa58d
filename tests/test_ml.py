import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import math

import pytest

from denidom import create_app, db
from denidom.ml.anomaly_detector import AnomalyDetector
from denidom.ml.cost_optimizer import CostOptimizer
from denidom.ml.embeddings import (
    cosine_similarity,
    create_text_embedding,
    extract_numeric_entities,
)
from denidom.ml.evaluation import classification_metrics, regression_metrics
from denidom.ml.normalization import (
    calculate_norm_params,
    label_encode,
    min_max_normalize,
    one_hot_decode,
    round_half_up,
    z_score_normalize,
)
from denidom.ml.price_predictor import PricePredictor
from denidom.ml.recommendation_engine import RecommendationEngine
from denidom.ml.work_classifier import WorkClassifier


def setup_app():
    app = create_app('testing')
    with app.app_context():
        db.drop_all()
        db.create_all()
    return app


def test_normalization_edge_cases():
    assert min_max_normalize(5, 3, 3) == 0.5
    assert z_score_normalize(10, 4, 0) == 0.0
    params = calculate_norm_params([])
    assert (params.min, params.max, params.mean, params.std) == (0.0, 1.0, 0.5, 0.5)
    assert label_encode('roofing', ['plastering', 'painting']) == 2
    assert one_hot_decode([0, 0], ['a', 'b']) == 'unknown'
    assert round_half_up(2.5) == 3
    assert round_half_up(0.125, 2) == 0.13


def test_text_embedding_is_unit_length():
    embedding = create_text_embedding('штукатурка стен гипсовой смесью')
    assert len(embedding) == 64
    assert math.isclose(sum(v * v for v in embedding), 1.0, rel_tol=1e-9)
    assert create_text_embedding('') == [0.0] * 64
    assert math.isclose(cosine_similarity(embedding, embedding), 1.0, rel_tol=1e-9)
    assert cosine_similarity([1, 0], [1, 0, 0]) == 0.0


def test_extract_numeric_entities():
    entities = extract_numeric_entities('комната 3,5 на 4 площадью 14 м2, 6 шт розеток')
    assert entities['area'] == 14
    assert entities['quantity'] == 6


def test_anomaly_detector_flags_high_price():
    detector = AnomalyDetector()
    result = detector.detect_anomaly({
        'itemId': 'a1', 'category': 'plastering', 'price': 5000, 'quantity': 1500,
    })
    assert result['isAnomaly']
    assert result['anomalyType'] == 'price_high'
    assert result['anomalyScore'] == 0.88
    assert 'значительно выше рыночной' in result['suggestion']


def test_anomaly_detector_accepts_market_price():
    detector = AnomalyDetector()
    result = detector.detect_anomaly({
        'itemId': 'a2', 'category': 'Штукатурные plastering', 'price': 350, 'quantity': 100,
    })
    assert not result['isAnomaly']
    assert result['anomalyType'] is None
    assert result['suggestion'] == 'Цена и количество в пределах нормы'


def test_cost_optimizer_picks_cheaper_material():
    optimizer = CostOptimizer()
    result = optimizer.optimize({
        'items': [{'id': 'f1', 'name': 'Ламинат премиум', 'category': 'flooring',
                   'currentPrice': 1200, 'quantity': 10}],
        'qualityLevel': 'standard',
    })
    assert result['originalTotal'] == 12000
    assert result['optimizedTotal'] == 5500
    assert result['savings'] == 6500
    assert result['changes'][0]['suggestedItem'] == 'Линолеум полукоммерческий'


def test_cost_optimizer_leaves_unknown_categories():
    result = CostOptimizer().optimize({
        'items': [{'id': 'x', 'name': 'Вывоз мусора', 'category': 'general',
                   'currentPrice': 5000, 'quantity': 1}],
    })
    assert result['changes'] == []
    assert result['savings'] == 0


def test_recommendations_follow_similar_projects():
    engine = RecommendationEngine()
    recs = engine.get_recommendations({'projectType': 'apartment', 'totalArea': 60}, month=5)
    assert recs[0]['itemId'] == 'lam-standard'
    assert recs[0]['score'] == 1.0
    assert recs[0]['reason'] == 'Используется в 100% похожих проектов'
    assert all(r['score'] >= 0.5 for r in recs)
    assert any(r['itemId'] == 'seasonal-advice' for r in recs)


def test_material_alternatives_quality_diff():
    alternatives = RecommendationEngine.get_alternatives('lam-standard')
    diffs = {a['id']: a['qualityDiff'] for a in alternatives}
    assert diffs == {'lam-economy': 'lower', 'lam-premium': 'better'}
    assert RecommendationEngine.get_alternatives('missing') == []


def test_classifier_recognises_plastering():
    result = WorkClassifier().classify('Оштукатуривание и шпаклевка, выравнивание стен штукатуркой')
    assert result['category'] == 'plastering'
    assert result['subcategory'] == 'общая'
    assert 0 < result['confidence'] <= 1


def test_price_predictor_forecast_and_cache():
    predictor = PricePredictor()
    item = {'itemId': 'p1', 'category': 'flooring', 'currentPrice': 1000}
    first = predictor.predict_price(item, 6)
    assert first['forecastPeriod'] == 6
    assert len(first['forecast']) == 6
    assert first['trend'] in ('rising', 'falling', 'stable')
    assert predictor.predict_price(item, 6) is first

    predictor.clear_cache()
    assert predictor.predict_price(item, 6) is not first


def test_price_predictor_fallback():
    predictor = PricePredictor()
    prediction = predictor.fallback_predict({'itemId': 'p2', 'currentPrice': 500}, 3)
    assert prediction['confidence'] == 65
    assert [f['name'] for f in prediction['factors']] == ['Инфляция', 'Сезонность', 'Регион']


def test_classification_metrics():
    metrics = classification_metrics([0, 1, 1], [0, 1, 0], 2)
    assert metrics['accuracy'] == 0.6667
    assert metrics['precision'] == 0.75
    assert metrics['recall'] == 0.75
    assert metrics['f1Score'] == 0.75
    assert metrics['confusionMatrix'] == [[1, 1], [0, 1]]


def test_regression_metrics():
    metrics = regression_metrics([110, 190], [100, 200])
    assert metrics['mse'] == 100
    assert metrics['mae'] == 10
    assert metrics['mape'] == 7.5
    assert regression_metrics([], [])['r2'] == 0


def test_ml_routes():
    app = setup_app()
    client = app.test_client()

    status = client.get('/api/ml/status').get_json()
    assert status['isAvailable']
    assert set(status['models']) == {
        'pricePredictor', 'recommendationEngine', 'workClassifier', 'anomalyDetector', 'costOptimizer',
    }

    resp = client.post('/api/ml/classify', json={'text': 'Укладка ламината и паркета, линолеум на пол'})
    assert resp.get_json()['category'] == 'flooring'

    resp = client.post('/api/ml/optimize', json={
        'items': [{'id': 'f1', 'name': 'Ламинат', 'category': 'flooring', 'price': 1200, 'quantity': 10}],
    })
    assert resp.get_json()['savings'] == 6500

    resp = client.post('/api/ml/predict-prices', json={
        'items': [{'id': 'p1', 'name': 'Ламинат', 'category': 'flooring', 'currentPrice': 900}],
        'forecastMonths': 2,
    })
    assert resp.get_json()[0]['itemId'] == 'p1'

    assert len(client.get('/api/ml/alternatives/flooring').get_json()) == 6
    stats = client.get('/api/ml/categories/plastering/statistics').get_json()
    assert stats['min'] == 250 and stats['max'] == 550


def test_ml_route_validation():
    app = setup_app()
    client = app.test_client()
    resp = client.post('/api/ml/predict-prices', json={'items': []})
    assert resp.status_code == 400
    resp = client.post('/api/ml/recommendations', json={'projectType': 'apartment', 'totalArea': 0})
    assert resp.status_code == 400
    assert resp.get_json()['details'][0]['field'] == 'totalArea'


def test_insights_combine_models():
    app = setup_app()
    resp = app.test_client().post('/api/ml/insights', json={
        'items': [{'id': 'i1', 'name': 'Штукатурка', 'category': 'plastering', 'price': 300, 'quantity': 50}],
        'budget': 100000,
    })
    body = resp.get_json()
    assert len(body['pricePredictions']) == 1
    assert len(body['anomalies']) == 1
    assert body['optimization']['originalTotal'] == 15000
    assert 'generatedAt' in body


@pytest.mark.parametrize('path, payload', [
    ('/api/ml/anomalies', {'items': [{'id': '1', 'name': 'X', 'category': 'painting', 'price': 100}]}),
    ('/api/ml/categories/painting/statistics', None),
])
def test_disabled_model_returns_503(monkeypatch, path, payload):
    monkeypatch.setenv('ML_ANOMALY_ENABLED', 'false')
    app = setup_app()
    client = app.test_client()
    resp = client.post(path, json=payload) if payload else client.get(path)
    assert resp.status_code == 503
    assert resp.get_json()['code'] == 'ML_DISABLED'

    status = client.get('/api/ml/status').get_json()
    assert status['models']['anomalyDetector']['status'] == 'disabled'

    insights = client.post('/api/ml/insights', json={'items': payload['items'] if payload else []})
    assert insights.get_json()['anomalies'] == []
