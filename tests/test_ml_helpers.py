import os
import sys

sys.path.insert(0, os.path.abspath(os.path.join(os.path.dirname(__file__), '..')))

import math

import pytest

from denidom.ml.config import CATEGORIES, SEASONAL_FACTORS
from denidom.ml.cost_optimizer import CostOptimizer
from denidom.ml.embeddings import calculate_tf_idf, euclidean_distance, find_most_similar
from denidom.ml.evaluation import (
    classification_metrics,
    confidence_interval,
    evaluation_report,
    regression_metrics,
)
from denidom.ml.features import (
    calculate_trend,
    calculate_volatility,
    create_time_series_features,
    exponential_moving_average,
    extract_item_features,
    extract_project_features,
    extract_text_features,
    features_to_array,
    moving_average,
)
from denidom.ml.normalization import (
    NormParams,
    clamp,
    min_max_denormalize,
    normalize_array,
    normalize_features,
    one_hot_encode,
    relu,
    sigmoid,
    softmax,
    z_score_denormalize,
)
from denidom.ml.recommendation_engine import RecommendationEngine
from denidom.ml.work_classifier import WorkClassifier

MONTHLY_HISTORY = [
    {'date': f'2024-{month:02d}-01', 'price': 100 + 10 * (month - 1)}
    for month in range(1, 9)
]


def test_trend_is_clamped():
    assert calculate_trend([100, 150]) == 0.5
    assert calculate_trend([100, 300]) == 1.0
    assert calculate_trend([200, 50]) == -0.75
    assert calculate_trend([100, 0]) == -1.0
    assert calculate_trend([0, 10]) == 0.0
    assert calculate_trend([5]) == 0.0


def test_time_series_windows_of_six():
    # shuffled input is sorted by date first
    history = list(reversed(MONTHLY_HISTORY))
    features, labels = create_time_series_features(history)
    assert len(features) == len(labels) == 2

    first = features[0]
    assert len(first) == 8
    assert first[:6] == pytest.approx([0, 1 / 7, 2 / 7, 3 / 7, 4 / 7, 5 / 7])
    # target month of the first sample is July
    assert first[6] == SEASONAL_FACTORS[6]
    assert first[7] == 0.5
    assert labels == pytest.approx([6 / 7, 1.0])


def test_time_series_needs_more_than_one_window():
    assert create_time_series_features(MONTHLY_HISTORY[:6]) == ([], [])


def test_moving_averages():
    assert moving_average([1, 2, 3, 4, 5], 3) == pytest.approx([2, 3, 4])
    assert moving_average([1, 2], 3) == [1, 2]
    assert exponential_moving_average([10, 20, 30]) == pytest.approx([10, 13, 18.1])
    assert exponential_moving_average([]) == []


def test_volatility_of_returns():
    assert calculate_volatility([100, 110, 99]) == pytest.approx(0.1)
    assert calculate_volatility([100]) == 0.0
    assert calculate_volatility([0, 0, 0]) == 0.0


def test_project_features_flatten_to_array():
    features = extract_project_features({
        'totalArea': 255,
        'budget': 2550000,
        'projectType': 'office',
        'rooms': ['a', 'b', 'c', 'd'],
    })
    assert features['totalArea'] == 0.5
    assert features['roomCount'] == pytest.approx(1 / 3)
    assert features['projectTypeEncoded'] == [0, 0, 1, 0, 0, 0]
    assert features['budgetPerSqm'] == 0.2
    assert features['qualityLevel'] == 0.5
    assert features_to_array(features) == pytest.approx([0.5, 1 / 3, 0, 0, 1, 0, 0, 0, 0.2, 0.5])

    no_budget = extract_project_features({'totalArea': 60, 'qualityLevel': 'premium'})
    assert no_budget['budgetPerSqm'] == 0.5
    assert no_budget['qualityLevel'] == 1.0
    assert no_budget['projectTypeEncoded'][-1] == 1


def test_item_features():
    features = extract_item_features(
        {'price': 50000, 'category': 'Flooring', 'quantity': 500}, month=0,
    )
    assert features['priceNormalized'] == 0.5
    assert features['quantityNormalized'] == 0.5
    assert features['categoryEncoded'][CATEGORIES.index('flooring')] == 1
    assert sum(features['categoryEncoded']) == 1
    assert features['seasonalFactor'] == SEASONAL_FACTORS[0]
    assert features['regionalFactor'] == 0.88


def test_text_features():
    features = extract_text_features('Укладка ламината 20 м²', ['ламинат', 'плитка'])
    assert features['bagOfWords'] == [1, 0]
    assert features['wordCount'] == pytest.approx(3 / 99)
    assert features['hasNumbers'] == 1
    assert features['hasUnits'] == 1
    assert extract_text_features('демонтаж', [])['hasNumbers'] == 0


def test_scaling_helpers():
    assert min_max_denormalize(0.5, 100, 200) == 150
    assert z_score_denormalize(2, 10, 3) == 16
    assert normalize_array([10, 20, 30]) == [0, 0.5, 1]
    assert clamp(5, 0, 1) == 1
    assert one_hot_encode('b', ['a', 'b', 'c']) == [0, 1, 0]


def test_normalize_features_per_column():
    rows, params = normalize_features([[1, 10], [3, 10]])
    assert rows == [[0, 0.5], [1, 0.5]]
    assert (params[0].min, params[0].max) == (1, 3)

    rows, _ = normalize_features([[1, 10], [3, 10]], [NormParams(min=0, max=4, mean=2, std=1)])
    assert rows == [[0.25, 0.5], [0.75, 0.5]]
    assert normalize_features([]) == ([], [])


def test_activations():
    assert softmax([1, 1]) == pytest.approx([0.5, 0.5])
    probs = softmax([1, 2, 3])
    assert sum(probs) == pytest.approx(1)
    assert probs == sorted(probs)
    assert sigmoid(0) == 0.5
    assert relu(-3) == 0.0
    assert relu(2) == 2


def test_tf_idf_and_distances():
    scores = calculate_tf_idf('ламинат ламинат пол', {'ламинат': 2, 'пол': 10}, 10)
    assert scores['ламинат'] == pytest.approx(math.log(5))
    assert scores['пол'] == 0
    assert calculate_tf_idf('', {}, 10) == {}

    assert euclidean_distance([0, 0], [3, 4]) == 5
    assert euclidean_distance([0], [0, 1]) == math.inf


def test_find_most_similar():
    ranked = find_most_similar([1, 0], [('a', [1, 0]), ('b', [0, 1]), ('c', [1, 1])], k=2)
    assert [r['item'] for r in ranked] == ['a', 'c']
    assert ranked[0]['similarity'] == pytest.approx(1)
    assert ranked[1]['similarity'] == pytest.approx(math.sqrt(0.5))


def test_confidence_interval():
    interval = confidence_interval([10, 20, 30])
    assert interval['mean'] == 20
    assert interval['lower'] == pytest.approx(10.7605, abs=1e-4)
    assert interval['upper'] == pytest.approx(29.2395, abs=1e-4)
    assert confidence_interval([]) == {'mean': 0, 'lower': 0, 'upper': 0}


def test_evaluation_reports():
    report = evaluation_report('PricePredictor', regression_metrics([110, 190], [100, 200]))
    assert report.startswith('=== Evaluation Report: PricePredictor ===')
    assert 'Regression Metrics:' in report
    assert 'MAPE: 7.5%' in report

    metrics = classification_metrics([0, 1, 1], [0, 1, 0], 2)
    report = evaluation_report('WorkClassifier', metrics, classification=True)
    assert 'Accuracy:  66.67%' in report
    assert 'Confusion Matrix:' in report
    assert '  1\t1' in report


def test_content_based_recommendations():
    engine = RecommendationEngine()
    recs = engine.content_based_recommendations('Ламинат стандарт 32 класс flooring')
    assert recs[0]['itemId'] == 'lam-standard'
    assert recs[0]['score'] == pytest.approx(1)
    assert recs[0]['type'] == 'material'
    assert all(r['score'] >= 0.7 for r in recs)
    assert engine.content_based_recommendations('') == []


def test_potential_savings():
    result = CostOptimizer().calculate_potential_savings([
        {'category': 'flooring', 'currentPrice': 1200, 'quantity': 10},
        {'category': 'вывоз', 'currentPrice': 1000, 'quantity': 1},
    ])
    assert result == {
        'currentTotal': 13000,
        'potentialMinimum': 6500,
        'potentialMaximum': 26000,
        'maxSavingsPercent': 50.0,
    }


def test_classify_batch_and_voice_command():
    classifier = WorkClassifier()
    results = classifier.classify_batch([
        'Укладка ламината и паркета, линолеум на пол',
        'Оштукатуривание и шпаклевка, выравнивание стен штукатуркой',
    ])
    assert [r['category'] for r in results] == ['flooring', 'plastering']

    command = classifier.parse_voice_command('Добавить покраску стен 20 м²')
    assert command['intent'] == 'add'
    assert command['classification']['extractedEntities']['area'] == 20
