# denidom/ml/routes.py

from typing import Literal, Optional

from flask import Blueprint, jsonify
from pydantic import Field

from denidom.ml.service import ml_service
from denidom.schemas import CamelModel, load_json

bp = Blueprint('ml', __name__)


class PricedItem(CamelModel):
    id: str
    name: str
    category: str
    price: float = Field(ge=0)
    quantity: Optional[float] = Field(default=None, ge=0)
    region: Optional[str] = None


class PredictItem(CamelModel):
    id: str
    name: str
    category: str
    current_price: float = Field(gt=0)
    region: Optional[str] = None


class PredictRequest(CamelModel):
    items: list[PredictItem] = Field(min_length=1)
    forecast_months: int = Field(default=3, ge=1, le=24)


class RecommendationRequest(CamelModel):
    project_type: str
    total_area: float = Field(gt=0)
    budget: Optional[float] = Field(default=None, gt=0)
    region: Optional[str] = None
    current_items: Optional[list[PricedItem]] = None


class ClassifyRequest(CamelModel):
    text: str = Field(min_length=1)


class ItemsRequest(CamelModel):
    items: list[PricedItem] = Field(min_length=1)


class OptimizeRequest(ItemsRequest):
    budget: Optional[float] = Field(default=None, gt=0)
    quality_level: Literal['economy', 'standard', 'premium'] = 'standard'


class InsightsRequest(CamelModel):
    items: list[PricedItem]
    project_type: str = 'apartment'
    budget: Optional[float] = Field(default=None, gt=0)
    region: Optional[str] = None


def _items(data):
    return [i.dump(exclude_none=True) for i in data.items]


@bp.route('/status')
def status():
    return jsonify(ml_service.get_status())


@bp.route('/predict-prices', methods=['POST'])
def predict_prices():
    data = load_json(PredictRequest)
    return jsonify(ml_service.predict_prices(_items(data), data.forecast_months))


@bp.route('/recommendations', methods=['POST'])
def recommendations():
    data = load_json(RecommendationRequest)
    current = [i.dump(exclude_none=True) for i in data.current_items] if data.current_items else None
    return jsonify(ml_service.get_recommendations(
        data.project_type, data.total_area,
        budget=data.budget, region=data.region, current_items=current,
    ))


@bp.route('/classify', methods=['POST'])
def classify():
    data = load_json(ClassifyRequest)
    return jsonify(ml_service.classify_work(data.text))


@bp.route('/anomalies', methods=['POST'])
def anomalies():
    data = load_json(ItemsRequest)
    return jsonify(ml_service.detect_anomalies(_items(data)))


@bp.route('/optimize', methods=['POST'])
def optimize():
    data = load_json(OptimizeRequest)
    return jsonify(ml_service.optimize_costs(_items(data), data.budget, data.quality_level))


@bp.route('/insights', methods=['POST'])
def insights():
    data = load_json(InsightsRequest)
    payload = data.dump(exclude_none=True)
    return jsonify(ml_service.get_insights(payload))


@bp.route('/alternatives/<category>')
def alternatives(category):
    return jsonify(ml_service.get_alternatives(category))


@bp.route('/categories/<category>/statistics')
def category_statistics(category):
    return jsonify(ml_service.get_category_statistics(category))
