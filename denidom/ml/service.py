"""One entry point over the ml models, honouring their on/off switches."""

import logging
from datetime import datetime, timezone

from denidom.errors import ApiError
from denidom.ml.anomaly_detector import anomaly_detector
from denidom.ml.config import get_ml_config
from denidom.ml.cost_optimizer import cost_optimizer
from denidom.ml.price_predictor import price_predictor
from denidom.ml.recommendation_engine import recommendation_engine
from denidom.ml.work_classifier import work_classifier

logger = logging.getLogger(__name__)

MODELS = {
    'price_predictor': ('pricePredictor', price_predictor),
    'recommendation_engine': ('recommendationEngine', recommendation_engine),
    'work_classifier': ('workClassifier', work_classifier),
    'anomaly_detector': ('anomalyDetector', anomaly_detector),
    'cost_optimizer': ('costOptimizer', cost_optimizer),
}


class ModelDisabled(ApiError):
    def __init__(self, section):
        super().__init__(f'{MODELS[section][0]} is disabled', 503, 'ML_DISABLED')


def _now():
    return datetime.now(timezone.utc).isoformat()


def _predictor_item(item, region=None):
    return {
        'itemId': item.get('id'),
        'name': item.get('name'),
        'category': item.get('category'),
        'currentPrice': item.get('currentPrice', item.get('price', 0)),
        'unit': 'шт',
        'region': item.get('region') or region,
    }


def _anomaly_item(item, region=None):
    return {
        'itemId': item.get('id'),
        'name': item.get('name'),
        'category': item.get('category'),
        'price': item['price'],
        'quantity': item.get('quantity') or 1,
        'unit': 'шт',
        'region': item.get('region') or region,
    }


def _optimizer_item(item):
    return {
        'id': item.get('id'),
        'name': item.get('name'),
        'category': item.get('category'),
        'currentPrice': item['price'],
        'quantity': item.get('quantity') or 1,
        'unit': 'шт',
    }


class MLService:
    @staticmethod
    def enabled(section: str) -> bool:
        return get_ml_config()[section]['enabled']

    def _require(self, section):
        if not self.enabled(section):
            raise ModelDisabled(section)

    def get_status(self) -> dict:
        models = {}
        for section, (name, model) in MODELS.items():
            status = model.get_status()
            if not self.enabled(section):
                status = {**status, 'status': 'disabled'}
            models[name] = status
        return {'isAvailable': True, 'models': models, 'lastUpdate': _now()}

    def get_insights(self, data: dict) -> dict:
        """Run every enabled model over one estimate; disabled ones contribute nothing."""
        items = data.get('items') or []
        region = data.get('region')
        budget = data.get('budget')

        predictions, recommendations, anomalies, optimization = [], [], [], None
        if self.enabled('price_predictor'):
            predictions = price_predictor.predict_prices([_predictor_item(i, region) for i in items], 3)
        if self.enabled('recommendation_engine'):
            recommendations = recommendation_engine.get_recommendations({
                'projectType': data.get('projectType'),
                'totalArea': sum(i.get('quantity') or 1 for i in items),
                'currentItems': items,
                'budget': budget,
                'region': region,
            })
        if self.enabled('anomaly_detector'):
            analysis = anomaly_detector.analyze_estimate([_anomaly_item(i, region) for i in items])
            anomalies = analysis['results']
        if self.enabled('cost_optimizer'):
            optimization = cost_optimizer.optimize({
                'items': [_optimizer_item(i) for i in items],
                'budget': budget,
                'qualityLevel': 'standard',
            })

        return {
            'pricePredictions': predictions,
            'recommendations': recommendations,
            'anomalies': anomalies,
            'optimization': optimization,
            'generatedAt': _now(),
        }

    def predict_prices(self, items: list[dict], forecast_months: int = 3) -> list[dict]:
        self._require('price_predictor')
        return price_predictor.predict_prices([_predictor_item(i) for i in items], forecast_months)

    def get_recommendations(self, project_type: str, total_area: float, budget=None,
                            region=None, current_items=None) -> list[dict]:
        self._require('recommendation_engine')
        return recommendation_engine.get_recommendations({
            'projectType': project_type,
            'totalArea': total_area,
            'budget': budget,
            'region': region,
            'currentItems': current_items,
        })

    def classify_work(self, text: str) -> dict:
        self._require('work_classifier')
        return work_classifier.classify(text)

    def detect_anomalies(self, items: list[dict]) -> list[dict]:
        self._require('anomaly_detector')
        return anomaly_detector.detect_anomalies([_anomaly_item(i) for i in items])

    def optimize_costs(self, items: list[dict], budget=None, quality_level='standard') -> dict:
        self._require('cost_optimizer')
        return cost_optimizer.optimize({
            'items': [_optimizer_item(i) for i in items],
            'budget': budget,
            'qualityLevel': quality_level or 'standard',
        })

    def get_alternatives(self, category: str) -> list[dict]:
        self._require('cost_optimizer')
        return cost_optimizer.get_alternatives(category)

    def get_category_statistics(self, category: str) -> dict:
        self._require('anomaly_detector')
        return anomaly_detector.get_category_statistics(category)


ml_service = MLService()
