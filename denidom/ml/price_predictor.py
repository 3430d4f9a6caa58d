"""Price forecasts from inflation, seasonality, region and price history."""

import logging
import math
import threading
import time
from datetime import date

from denidom.ml.config import SEASONAL_FACTORS, get_ml_config, regional_factor
from denidom.ml.features import (
    calculate_trend,
    calculate_volatility,
    category_volatility,
    extract_item_features,
)
from denidom.ml.normalization import round_half_up

logger = logging.getLogger(__name__)

ANNUAL_INFLATION = 0.05

# price, seasonal, regional, high volatility, historical trend, volatility
DEFAULT_WEIGHTS = [0.05, 0.15, 0.1, 0.1, 0.3, 0.2]

SEASON_DESCRIPTIONS = [
    'Зима - низкий сезон, цены снижены',
    'Зима - низкий сезон, цены снижены',
    'Весна - начало сезона, рост спроса',
    'Весна - активный сезон',
    'Весна - активный сезон',
    'Лето - пик сезона, максимальный спрос',
    'Лето - пик сезона, максимальный спрос',
    'Лето - высокий сезон',
    'Осень - спад сезона',
    'Осень - умеренный спрос',
    'Осень - снижение активности',
    'Зима - низкий сезон, цены снижены',
]


class PredictorUnavailable(RuntimeError):
    pass


def add_months(start: date, months: int) -> date:
    month_index = start.month - 1 + months
    year = start.year + month_index // 12
    month = month_index % 12 + 1
    # clamp the day for short months
    for day in (start.day, 30, 29, 28):
        try:
            return date(year, month, day)
        except ValueError:
            continue
    raise ValueError(f'cannot add {months} months to {start}')


def _trend_label(current: float, predicted: float) -> str:
    change = (predicted - current) / current * 100 if current else 0.0
    if change > 3:
        return 'rising'
    if change < -3:
        return 'falling'
    return 'stable'


class PricePredictor:
    def __init__(self):
        self.config = get_ml_config()['price_predictor']
        self.model_weights = list(DEFAULT_WEIGHTS)
        self._cache = {}
        self._lock = threading.Lock()

    def get_status(self) -> dict:
        loaded = self.model_weights is not None
        return {
            'name': 'PricePredictor',
            'version': '1.0.0',
            'isLoaded': loaded,
            'status': 'ready' if loaded else 'error',
            'accuracy': 0.75,
        }

    def clear_cache(self) -> None:
        with self._lock:
            self._cache.clear()

    @staticmethod
    def _cache_key(item, months):
        return f"{item.get('itemId')}_{item['currentPrice']}_{item.get('region') or 'default'}_{months}"

    def predict_prices(self, items: list[dict], forecast_months: int = 3) -> list[dict]:
        return [self.predict_price(item, forecast_months) for item in items]

    def predict_price(self, item: dict, forecast_months: int = 3) -> dict:
        key = self._cache_key(item, forecast_months)
        if self.config['cache_enabled']:
            with self._lock:
                cached = self._cache.get(key)
            if cached and time.monotonic() - cached[1] < self.config['cache_ttl']:
                return cached[0]

        if self.model_weights is not None:
            prediction = self.model_predict(item, forecast_months)
        elif self.config['fallback_enabled']:
            prediction = self.fallback_predict(item, forecast_months)
        else:
            raise PredictorUnavailable('Price predictor is not available')

        if self.config['cache_enabled']:
            with self._lock:
                self._cache[key] = (prediction, time.monotonic())
        return prediction

    def model_predict(self, item: dict, months: int, today: date | None = None) -> dict:
        today = today or date.today()
        current = item['currentPrice']
        category = item.get('category') or 'general'
        features = extract_item_features(
            {'price': current, 'category': category, 'region': item.get('region')},
            month=today.month - 1,
        )

        seasonal = self.seasonal_impact(months, today.month - 1)
        inflation = ANNUAL_INFLATION * months / 12
        region = features['regionalFactor']

        trend, volatility = 0.0, 0.05
        history = item.get('historicalPrices') or []
        if len(history) > 3:
            prices = [p['price'] for p in history]
            trend = calculate_trend(prices)
            volatility = calculate_volatility(prices)

        base = current * (1 + inflation * months / 12) * seasonal * region
        adjustment = self.apply_weights([
            features['priceNormalized'],
            features['seasonalFactor'],
            features['regionalFactor'],
            features['isHighVolatility'],
            trend,
            volatility,
        ])
        predicted = round_half_up(base * (1 + adjustment))
        confidence = self.confidence(len(history), volatility, trend)

        return {
            'itemId': item.get('itemId'),
            'currentPrice': current,
            'predictedPrice': predicted,
            'confidence': round_half_up(confidence * 100),
            'trend': _trend_label(current, predicted),
            'factors': self._factors(category, seasonal, inflation,
                                     category_volatility(category), region, today.month - 1),
            'forecastPeriod': months,
            'forecast': self.forecast(current, predicted, months, confidence, today),
        }

    def fallback_predict(self, item: dict, months: int, today: date | None = None) -> dict:
        today = today or date.today()
        month = today.month - 1
        current = item['currentPrice']
        seasonal = SEASONAL_FACTORS[month]
        region = regional_factor(item.get('region'))

        predicted = round_half_up(current * 1.05 ** (months / 12) * seasonal)
        factors = [
            {'name': 'Инфляция', 'impact': 'negative', 'weight': 0.4,
             'description': 'Общий рост цен в экономике'},
            {'name': 'Сезонность', 'impact': 'negative' if seasonal > 1 else 'positive', 'weight': 0.3,
             'description': SEASON_DESCRIPTIONS[month]},
            {'name': 'Регион', 'impact': 'positive' if region < 1 else 'neutral', 'weight': 0.2,
             'description': f'Региональный коэффициент: {region:.2f}'},
        ]
        return {
            'itemId': item.get('itemId'),
            'currentPrice': current,
            'predictedPrice': predicted,
            'confidence': 65,
            'trend': _trend_label(current, predicted),
            'factors': factors,
            'forecastPeriod': months,
            'forecast': self.forecast(current, predicted, months, 0.65, today),
        }

    def apply_weights(self, features: list[float]) -> float:
        if not self.model_weights or len(self.model_weights) != len(features):
            return 0.0
        total = sum(f * w for f, w in zip(features, self.model_weights))
        # at most a 10% swing either way
        return math.tanh(total) * 0.1

    @staticmethod
    def seasonal_impact(months: int, current_month: int) -> float:
        """Geometric mean of the seasonal factors over the next ``months``."""
        if months <= 0:
            return 1.0
        impact = 1.0
        for i in range(1, months + 1):
            impact *= SEASONAL_FACTORS[(current_month + i) % 12]
        return impact ** (1 / months)

    @staticmethod
    def confidence(history_len: int, volatility: float, trend: float) -> float:
        value = 0.7
        if history_len > 12:
            value += 0.15
        elif history_len > 6:
            value += 0.1
        elif history_len > 3:
            value += 0.05

        if volatility < 0.05:
            value += 0.1
        elif volatility > 0.1:
            value -= 0.1

        if abs(trend) > 0.1:
            value += 0.05
        return max(0.5, min(0.95, value))

    @staticmethod
    def _factors(category, seasonal, inflation, volatility, region, month) -> list[dict]:
        def direction(value):
            if value > 1:
                return 'negative'
            if value < 1:
                return 'positive'
            return 'neutral'

        volatile = volatility > 0.08
        return [
            {'name': 'Сезонность', 'impact': direction(seasonal), 'weight': 0.25,
             'description': SEASON_DESCRIPTIONS[month]},
            {'name': 'Инфляция', 'impact': 'negative', 'weight': 0.35,
             'description': f'Прогноз роста {inflation * 100:.1f}% за период'},
            {'name': 'Волатильность категории', 'impact': 'negative' if volatile else 'neutral',
             'weight': 0.2,
             'description': f'Категория "{category}" имеет '
                            f'{"повышенную" if volatile else "нормальную"} волатильность цен'},
            {'name': 'Региональный фактор', 'impact': direction(region), 'weight': 0.2,
             'description': f'Коэффициент региона: {region:.2f}'},
        ]

    @staticmethod
    def forecast(current, predicted, months, base_confidence, today: date | None = None) -> list[dict]:
        """Monthly points on a straight line with a small deterministic wobble."""
        today = today or date.today()
        if months <= 0:
            return []
        step = (predicted - current) / months
        points = []
        for i in range(1, months + 1):
            wobble = math.sin(i * 0.7) * 0.01
            points.append({
                'date': add_months(today, i).isoformat(),
                'price': round_half_up(current + step * i + current * wobble),
                'confidence': max(50, round_half_up((base_confidence - 0.05 * i) * 100)),
            })
        return points


price_predictor = PricePredictor()
