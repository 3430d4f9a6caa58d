# denidom/ai/routes.py

import logging
from datetime import datetime, timezone

from flask import Blueprint, g, jsonify, request

from denidom import db
from denidom.ai import blueprint as plans
from denidom.ai.client import ai_configured
from denidom.ai.generate import generate_estimate
from denidom.ai.market import REGIONS, market_trends
from denidom.ai.matcher import search_normatives
from denidom.ai.pricing import generate_recommendations, predict_prices
from denidom.ai.schemas import (
    BlueprintRequest,
    CustomPriceRequest,
    GenerateEstimateRequest,
    ImportPricesRequest,
    PredictRequest,
    RecommendationsRequest,
    VoiceRequest,
)
from denidom.ai.voice import parse_command
from denidom.auth.utils import auth_optional, current_user_id, login_required
from denidom.errors import ApiError, not_found
from denidom.models import CommercialPrice, CustomPrice, Normative
from denidom.schemas import load_json

bp = Blueprint('ai', __name__)
logger = logging.getLogger(__name__)


def _unavailable(message):
    return ApiError(message, 503, 'AI_UNAVAILABLE', error='AI service unavailable')


def _bad_request(message):
    return ApiError(message, 400, 'VALIDATION_ERROR')


def _text_match(rows, search):
    needle = search.lower()
    return [r for r in rows if needle in r.name.lower() or needle in (r.code or '').lower()]


@bp.route('/generate', methods=['POST'])
@auth_optional
def generate():
    data = load_json(GenerateEstimateRequest)
    if not ai_configured():
        raise _unavailable('AI generation service is not configured. Please contact support.')
    result = generate_estimate(
        data.description,
        estimate_type=data.estimate_type,
        area=data.area,
        region=data.region,
        user_id=current_user_id(),
    )
    return jsonify(success=True, data=result)


@bp.route('/normatives/search')
def normatives_search():
    query = request.args.get('q', '').strip()
    if not query:
        raise _bad_request('Query parameter "q" is required')
    normatives = search_normatives(
        query,
        type=request.args.get('type'),
        category=request.args.get('category'),
        limit=request.args.get('limit', 20, type=int),
        include_commercial=request.args.get('includeCommercial') == 'true',
        user_id=request.args.get('userId'),
        region=request.args.get('region'),
    )
    return jsonify(success=True, data=normatives, count=len(normatives))


@bp.route('/prices/custom', methods=['POST'])
@login_required
def save_custom_price():
    data = load_json(CustomPriceRequest)
    user_id = current_user_id()

    if data.normative_id:
        if db.session.get(Normative, data.normative_id) is None:
            raise not_found('Normative')
        price = CustomPrice.query.filter_by(user_id=user_id, normative_id=data.normative_id).first()
    else:
        price = CustomPrice.query.filter_by(user_id=user_id, code=data.code or '').first()

    created = price is None
    if created:
        price = CustomPrice(
            user_id=user_id,
            normative_id=data.normative_id,
            code=data.code if data.normative_id else (data.code or ''),
        )
        db.session.add(price)
    for attr in ('name', 'unit', 'category', 'price', 'notes'):
        setattr(price, attr, getattr(data, attr))
    db.session.commit()
    return jsonify(success=True, data=price.to_dict()), 201 if created else 200


@bp.route('/prices/custom')
@login_required
def list_custom_prices():
    query = CustomPrice.query.filter_by(user_id=current_user_id())
    if request.args.get('category'):
        query = query.filter_by(category=request.args['category'])
    prices = query.order_by(CustomPrice.updated_at.desc()).all()
    if request.args.get('search'):
        prices = _text_match(prices, request.args['search'])
    return jsonify(success=True, data=[p.to_dict() for p in prices], count=len(prices))


@bp.route('/prices/custom/<price_id>', methods=['DELETE'])
@login_required
def delete_custom_price(price_id):
    price = CustomPrice.query.filter_by(id=price_id, user_id=current_user_id()).first()
    if price is None:
        raise not_found('Custom price')
    db.session.delete(price)
    db.session.commit()
    return '', 204


@bp.route('/prices/import', methods=['POST'])
@login_required
def import_prices():
    if g.current_user.role != 'ADMIN':
        raise ApiError('Admin access required', 403, 'FORBIDDEN')
    data = load_json(ImportPricesRequest)

    created = []
    for row in data.prices:
        if row.normative_id and db.session.get(Normative, row.normative_id) is None:
            raise not_found('Normative')
        price = CommercialPrice(**row.model_dump())
        db.session.add(price)
        created.append(price)
    db.session.commit()
    logger.info('Imported %d commercial prices', len(created))
    return jsonify(success=True, data=[p.to_dict() for p in created], count=len(created)), 201


@bp.route('/prices/commercial')
def list_commercial_prices():
    query = CommercialPrice.query.filter_by(is_active=True)
    for arg in ('category', 'region'):
        if request.args.get(arg):
            query = query.filter_by(**{arg: request.args[arg]})
    prices = query.order_by(CommercialPrice.name).all()
    if request.args.get('search'):
        prices = _text_match(prices, request.args['search'])
    prices = prices[:request.args.get('limit', 100, type=int)]
    return jsonify(success=True, data=[p.to_dict() for p in prices], count=len(prices))


@bp.route('/voice/parse', methods=['POST'])
def voice_parse():
    data = load_json(VoiceRequest)
    context = data.context.dump(exclude_none=True) if data.context else None
    parsed = parse_command(data.command, context, use_ai=data.use_ai and ai_configured())
    return jsonify(success=True, data=parsed)


@bp.route('/blueprint/analyze', methods=['POST'])
def blueprint_analyze():
    data = load_json(BlueprintRequest)
    if data.manual_rooms is not None:
        rooms = [r.model_dump() for r in data.manual_rooms]
        return jsonify(success=True, data=plans.analyze_rooms(rooms), source='manual')

    if not data.image_base64:
        raise _bad_request('Image (imageBase64) or manualRooms is required')
    try:
        plans.validate_image(data.image_base64, data.image_type)
    except plans.ImageRejected as e:
        raise _bad_request(str(e))
    if not ai_configured():
        raise _unavailable('Blueprint analysis requires AI service. Please provide manualRooms instead.')

    analysis = plans.analyze_image(
        data.image_base64,
        data.image_type,
        data.project_type,
        data.include_work_suggestions,
    )
    return jsonify(success=True, data=analysis, source='ai')


@bp.route('/prices/predict', methods=['POST'])
def prices_predict():
    data = load_json(PredictRequest)
    items = [
        {
            'id': i.id,
            'name': i.name,
            'category': i.category,
            'currentPrice': i.current_price or i.price or 0,
            'unit': i.unit,
        }
        for i in data.items
    ]
    return jsonify(success=True, data=predict_prices(items, data.region, data.forecast_months))


@bp.route('/recommendations', methods=['POST'])
def recommendations():
    data = load_json(RecommendationsRequest)
    return jsonify(success=True, data=generate_recommendations(data.dump(exclude_none=True)))


@bp.route('/market/trends')
def trends():
    return jsonify(
        success=True,
        data=market_trends(),
        updatedAt=datetime.now(timezone.utc).isoformat(),
    )


@bp.route('/regions')
def regions():
    return jsonify(success=True, data=REGIONS)
