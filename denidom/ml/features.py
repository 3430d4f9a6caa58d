"""Feature extraction for items, projects, price series and text."""

import re
from datetime import date

import numpy as np

from denidom.ml.config import CATEGORIES, REGIONAL_FACTORS, SEASONAL_FACTORS, VOLATILITY
from denidom.ml.normalization import min_max_normalize, one_hot_encode

PROJECT_TYPES = ['apartment', 'house', 'office', 'commercial', 'industrial', 'other']
QUALITY_LEVELS = {'economy': 0.0, 'standard': 0.5, 'premium': 1.0}
UNITS = ['м²', 'м2', 'кв.м', 'м³', 'м3', 'куб.м', 'шт', 'п.м', 'кг', 'л']


def category_volatility(category: str) -> float:
    category = category.lower()
    for key, value in VOLATILITY.items():
        if key != 'default' and key in category:
            return value
    return VOLATILITY['default']


def extract_item_features(item: dict, price_range=(0, 100000), month: int | None = None) -> dict:
    month = date.today().month - 1 if month is None else month
    category = item.get('category', 'general')
    return {
        'priceNormalized': min_max_normalize(item['price'], *price_range),
        'categoryEncoded': one_hot_encode(category.lower(), CATEGORIES),
        'seasonalFactor': SEASONAL_FACTORS[month],
        'regionalFactor': REGIONAL_FACTORS.get(item.get('region') or 'default', REGIONAL_FACTORS['default']),
        # typical quantities fall in 0..1000
        'quantityNormalized': min_max_normalize(item.get('quantity') or 1, 0, 1000),
        'isHighVolatility': 1 if category_volatility(category) > 0.08 else 0,
    }


def extract_project_features(project: dict, area_range=(10, 500)) -> dict:
    total_area = project['totalArea']
    budget = project.get('budget')
    return {
        'totalArea': min_max_normalize(total_area, *area_range),
        'roomCount': min_max_normalize(len(project.get('rooms') or []) or 1, 1, 10),
        'projectTypeEncoded': one_hot_encode(project.get('projectType') or 'other', PROJECT_TYPES),
        'budgetPerSqm': min_max_normalize(budget / total_area, 0, 50000) if budget and total_area else 0.5,
        'qualityLevel': QUALITY_LEVELS[project.get('qualityLevel') or 'standard'],
    }


def features_to_array(features: dict) -> list[float]:
    values = []
    for value in features.values():
        if isinstance(value, (list, tuple)):
            values.extend(value)
        elif isinstance(value, (int, float)):
            values.append(value)
    return values


def calculate_trend(prices) -> float:
    """Relative change from first to last price, clamped to [-1, 1]."""
    if len(prices) < 2 or prices[0] == 0:
        return 0.0
    change = (prices[-1] - prices[0]) / prices[0]
    return max(-1.0, min(1.0, change))


def create_time_series_features(history: list[dict], window_size: int = 6):
    """Sliding-window samples from ``[{date, price}]`` history.

    Each sample is the normalized window plus the seasonal factor of the
    target month and the window trend; the label is the next normalized price.
    """
    if len(history) < window_size + 1:
        return [], []

    ordered = sorted(history, key=lambda p: p['date'])
    prices = [p['price'] for p in ordered]
    lo, hi = min(prices), max(prices)

    features, labels = [], []
    for i in range(window_size, len(prices)):
        window = prices[i - window_size:i]
        month = date.fromisoformat(str(ordered[i]['date'])[:10]).month - 1
        features.append(
            [min_max_normalize(p, lo, hi) for p in window]
            + [SEASONAL_FACTORS[month], calculate_trend(window)]
        )
        labels.append(min_max_normalize(prices[i], lo, hi))
    return features, labels


def moving_average(data, window: int) -> list[float]:
    if len(data) < window:
        return list(data)
    kernel = np.ones(window) / window
    return np.convolve(np.asarray(data, dtype=float), kernel, mode='valid').tolist()


def exponential_moving_average(data, alpha: float = 0.3) -> list[float]:
    if not data:
        return []
    result = [float(data[0])]
    for value in data[1:]:
        result.append(alpha * value + (1 - alpha) * result[-1])
    return result


def calculate_volatility(prices) -> float:
    """Population standard deviation of period-over-period returns."""
    if len(prices) < 2:
        return 0.0
    returns = [
        (cur - prev) / prev
        for prev, cur in zip(prices, prices[1:])
        if prev != 0
    ]
    if not returns:
        return 0.0
    return float(np.std(returns))


def extract_text_features(text: str, vocabulary: list[str]) -> dict:
    lowered = text.lower()
    return {
        'bagOfWords': [1 if word.lower() in lowered else 0 for word in vocabulary],
        'wordCount': min_max_normalize(len(lowered.split()), 1, 100),
        'hasNumbers': 1 if re.search(r'\d+', text) else 0,
        'hasUnits': 1 if any(unit in text for unit in UNITS) else 0,
    }
