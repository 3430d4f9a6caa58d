"""Statistical outlier scoring for estimate prices and quantities."""

import logging

import numpy as np

from denidom.ml.config import get_ml_config, regional_factor
from denidom.ml.normalization import calculate_norm_params, round_half_up, z_score_normalize

logger = logging.getLogger(__name__)

IQR_BOUND_MULTIPLIER = 1.5
EXPECTED_RANGE_MULTIPLIER = 0.5

# Reference market prices per category, RUB per unit
CATEGORY_PRICES = {
    'plastering': {'prices': [250, 280, 320, 350, 400, 450, 500, 550], 'unit': 'м²'},
    'painting': {'prices': [150, 180, 200, 250, 300, 350, 400], 'unit': 'м²'},
    'flooring': {'prices': [300, 400, 500, 600, 750, 900, 1200, 1500, 2000], 'unit': 'м²'},
    'tiling': {'prices': [500, 700, 850, 1000, 1200, 1500, 1800], 'unit': 'м²'},
    'electrical': {'prices': [300, 450, 600, 800, 1000, 1500], 'unit': 'точка'},
    'plumbing': {'prices': [1000, 1500, 2000, 3000, 4000, 5000], 'unit': 'точка'},
    'drywall': {'prices': [350, 450, 550, 650, 800], 'unit': 'м²'},
    'demolition': {'prices': [100, 150, 200, 300, 400], 'unit': 'м²'},
    'masonry': {'prices': [2000, 2500, 3000, 4000, 5000, 6000], 'unit': 'м³'},
    'insulation': {'prices': [200, 300, 400, 500, 600], 'unit': 'м²'},
    'roofing': {'prices': [400, 600, 800, 1000, 1500], 'unit': 'м²'},
    'windows': {'prices': [2000, 3000, 4000, 5000, 7000, 10000], 'unit': 'шт'},
    'doors': {'prices': [2000, 3000, 4000, 5000, 7000, 10000], 'unit': 'шт'},
    'general': {'prices': [200, 300, 400, 500, 600, 800], 'unit': 'м²'},
}

QUANTITY_BOUNDS = {
    'plastering': {'min': 5, 'max': 1000, 'typical': 100},
    'painting': {'min': 5, 'max': 1000, 'typical': 100},
    'flooring': {'min': 5, 'max': 500, 'typical': 50},
    'tiling': {'min': 1, 'max': 200, 'typical': 30},
    'electrical': {'min': 1, 'max': 100, 'typical': 20},
    'plumbing': {'min': 1, 'max': 50, 'typical': 10},
    'drywall': {'min': 5, 'max': 500, 'typical': 50},
    'demolition': {'min': 5, 'max': 500, 'typical': 50},
    'masonry': {'min': 1, 'max': 100, 'typical': 10},
    'insulation': {'min': 5, 'max': 500, 'typical': 50},
    'roofing': {'min': 10, 'max': 500, 'typical': 100},
    'windows': {'min': 1, 'max': 50, 'typical': 5},
    'doors': {'min': 1, 'max': 20, 'typical': 5},
    'general': {'min': 1, 'max': 1000, 'typical': 100},
}


def _category_stats(prices):
    ordered = sorted(prices)
    n = len(ordered)
    params = calculate_norm_params(ordered)
    return {
        'mean': params.mean,
        'std': params.std,
        'min': params.min,
        'max': params.max,
        # lower-index quantiles, no interpolation
        'median': ordered[int(n * 0.5)],
        'q1': ordered[int(n * 0.25)],
        'q3': ordered[int(n * 0.75)],
    }


class AnomalyDetector:
    def __init__(self):
        self.config = get_ml_config()['anomaly_detector']
        self.category_stats = {
            category: _category_stats(data['prices'])
            for category, data in CATEGORY_PRICES.items()
        }
        logger.debug('AnomalyDetector initialized with %d categories', len(self.category_stats))

    def get_status(self) -> dict:
        return {
            'name': 'AnomalyDetector',
            'version': '1.0.0',
            'isLoaded': True,
            'status': 'ready',
            'accuracy': 0.85,
        }

    @staticmethod
    def normalize_category(category: str) -> str:
        lowered = (category or '').lower()
        for known in CATEGORY_PRICES:
            if lowered and (known in lowered or lowered in known):
                return known
        return 'general'

    @staticmethod
    def price_score(price: float, stats: dict) -> float:
        """0..1 outlier score: IQR fences first, then a scaled z-score inside them."""
        iqr = stats['q3'] - stats['q1']
        lower = stats['q1'] - IQR_BOUND_MULTIPLIER * iqr
        upper = stats['q3'] + IQR_BOUND_MULTIPLIER * iqr

        if price < lower:
            return min(1.0, 0.5 + (lower - price) / iqr * 0.25)
        if price > upper:
            return min(1.0, 0.5 + (price - upper) / iqr * 0.25)
        return min(1.0, abs(z_score_normalize(price, stats['mean'], stats['std'])) / 4)

    @staticmethod
    def quantity_score(quantity: float, category: str) -> float:
        bounds = QUANTITY_BOUNDS.get(category, QUANTITY_BOUNDS['general'])
        if quantity < bounds['min'] * 0.5:
            return 0.8
        if quantity > bounds['max'] * 2:
            return 0.9
        if quantity < bounds['min'] or quantity > bounds['max']:
            return 0.6
        deviation = abs(quantity - bounds['typical']) / bounds['typical']
        return min(0.5, deviation * 0.3)

    @staticmethod
    def expected_range(stats: dict, factor: float) -> dict:
        iqr = stats['q3'] - stats['q1']
        lo = max(stats['min'], stats['q1'] - EXPECTED_RANGE_MULTIPLIER * iqr)
        hi = min(stats['max'] * 1.5, stats['q3'] + EXPECTED_RANGE_MULTIPLIER * iqr)
        return {
            'min': round_half_up(lo * factor),
            'max': round_half_up(hi * factor),
            'median': round_half_up(stats['median'] * factor),
        }

    def detect_anomaly(self, item: dict) -> dict:
        category = self.normalize_category(item.get('category', ''))
        stats = self.category_stats[category]
        price = item['price']
        quantity = item.get('quantity', 0)

        factor = regional_factor(item.get('region'))
        # the better of the raw and the region-adjusted price counts
        final_price_score = min(
            self.price_score(price, stats),
            self.price_score(price / factor, stats),
        )
        qty_score = self.quantity_score(quantity, category)
        combined = final_price_score * 0.7 + qty_score * 0.3

        is_anomaly = combined > self.config['anomaly_threshold']
        expected = self.expected_range(stats, factor)

        anomaly_type = None
        if is_anomaly:
            if final_price_score > 0.8 and qty_score > 0.8:
                anomaly_type = 'combination'
            elif price > expected['max']:
                anomaly_type = 'price_high'
            elif price < expected['min']:
                anomaly_type = 'price_low'
            else:
                anomaly_type = 'quantity_unusual'

        return {
            'itemId': item.get('itemId'),
            'isAnomaly': is_anomaly,
            'anomalyScore': round_half_up(combined, 2),
            'expectedRange': expected,
            'actualPrice': price,
            'suggestion': self._suggestion(item, anomaly_type, expected),
            'anomalyType': anomaly_type,
        }

    def detect_anomalies(self, items: list[dict]) -> list[dict]:
        return [self.detect_anomaly(item) for item in items]

    @staticmethod
    def _suggestion(item, anomaly_type, expected) -> str:
        if anomaly_type is None:
            return 'Цена и количество в пределах нормы'
        price_range = f"{expected['min']:g} - {expected['max']:g} ₽"
        if anomaly_type == 'price_high':
            return (f"Цена {item['price']:g} ₽ значительно выше рыночной. Рекомендуемый диапазон: "
                    f"{price_range}. Проверьте правильность ввода или обоснование цены.")
        if anomaly_type == 'price_low':
            return (f"Цена {item['price']:g} ₽ подозрительно низкая. Рекомендуемый диапазон: "
                    f"{price_range}. Убедитесь в качестве материалов/работ.")
        if anomaly_type == 'quantity_unusual':
            return (f"Количество {item.get('quantity', 0):g} {item.get('unit', '')} выходит за типичные "
                    f"границы для данной категории. Проверьте расчёт объёмов.")
        return 'Обнаружены аномалии как в цене, так и в количестве. Рекомендуется детальная проверка позиции.'

    def get_category_statistics(self, category: str) -> dict:
        stats = self.category_stats[self.normalize_category(category)]
        return {
            'mean': round_half_up(stats['mean']),
            'std': round_half_up(stats['std']),
            'min': stats['min'],
            'max': stats['max'],
            'median': stats['median'],
        }

    def analyze_estimate(self, items: list[dict]) -> dict:
        results = self.detect_anomalies(items)
        anomalies = [r for r in results if r['isAnomaly']]
        by_type = {
            kind: [r for r in anomalies if r['anomalyType'] == kind]
            for kind in ('price_high', 'price_low', 'quantity_unusual')
        }

        quantities = {i.get('itemId'): i.get('quantity', 0) for i in items}
        overpayment = float(np.sum([
            (r['actualPrice'] - r['expectedRange']['median']) * quantities.get(r['itemId'], 0)
            for r in by_type['price_high']
            if r['actualPrice'] > r['expectedRange']['max']
        ]))

        return {
            'results': results,
            'summary': {
                'totalItems': len(items),
                'anomaliesFound': len(anomalies),
                'highPriceAnomalies': len(by_type['price_high']),
                'lowPriceAnomalies': len(by_type['price_low']),
                'quantityAnomalies': len(by_type['quantity_unusual']),
                'estimatedOverpayment': round_half_up(overpayment),
            },
        }


anomaly_detector = AnomalyDetector()
