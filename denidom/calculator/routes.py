# denidom/calculator/routes.py

import logging

from flask import Blueprint, jsonify, request

from denidom import db
from denidom.auth.utils import auth_optional, current_user_id, ensure_user
from denidom.calculator.schemas import CalculateRequest, EstimateCreate, EstimateUpdate
from denidom.calculator.utils import (
    TEMPLATES,
    calculate_estimate,
    items_payload,
    recalculate,
)
from denidom.errors import not_found
from denidom.models import Estimate, Project
from denidom.schemas import load_json

bp = Blueprint('calculator', __name__)
logger = logging.getLogger(__name__)


@bp.route('/calculate', methods=['POST'])
def calculate():
    data = load_json(CalculateRequest)
    result = calculate_estimate(items_payload(data.items), data.options.dump())
    return jsonify(result)


@bp.route('/templates')
def templates():
    return jsonify(TEMPLATES)


@bp.route('/estimates', methods=['POST'])
@auth_optional
def create_estimate():
    data = load_json(EstimateCreate)
    project = None
    if data.project_id:
        project = db.session.get(Project, data.project_id)
        if project is None:
            raise not_found('Project')

    user_id = current_user_id()
    if not user_id and data.user_id:
        user_id = ensure_user(data.user_id)
    if not user_id and project is not None:
        user_id = project.user_id

    est = Estimate(
        name=data.name,
        description=data.description,
        type=data.type,
        user_id=user_id,
        project=project,
    )
    db.session.add(est)
    recalculate(est, items_payload(data.items), data.options.dump())
    db.session.commit()
    logger.info('Created estimate %s (total %s)', est.id, est.total)
    return jsonify(est.to_dict()), 201


@bp.route('/estimates')
@auth_optional
def list_estimates():
    query = Estimate.query
    user_id = request.args.get('userId') or current_user_id()
    if user_id:
        query = query.filter_by(user_id=user_id)
    if request.args.get('projectId'):
        query = query.filter_by(project_id=request.args['projectId'])
    ests = query.order_by(Estimate.created_at.desc()).all()
    return jsonify([e.to_dict() for e in ests])


def _get_estimate(estimate_id):
    est = db.session.get(Estimate, estimate_id)
    if est is None:
        raise not_found('Estimate')
    return est


@bp.route('/estimates/<estimate_id>')
def get_estimate(estimate_id):
    return jsonify(_get_estimate(estimate_id).to_dict())


@bp.route('/estimates/<estimate_id>', methods=['PUT'])
def update_estimate(estimate_id):
    est = _get_estimate(estimate_id)
    data = load_json(EstimateUpdate)
    fields = data.model_fields_set

    for attr in ('name', 'type'):
        if getattr(data, attr) is not None:
            setattr(est, attr, getattr(data, attr))
    if 'description' in fields:
        est.description = data.description

    items = items_payload(data.items) if data.items is not None else None
    options = None
    if data.options is not None:
        options = {**(est.options or {}), **data.options.dump(exclude_unset=True)}
    recalculate(est, items, options)
    db.session.commit()
    return jsonify(est.to_dict())


@bp.route('/estimates/<estimate_id>', methods=['DELETE'])
def delete_estimate(estimate_id):
    est = _get_estimate(estimate_id)
    project = est.project
    db.session.delete(est)
    db.session.flush()
    if project is not None:
        db.session.refresh(project)
        project.recalculate_total()
    db.session.commit()
    return '', 204
