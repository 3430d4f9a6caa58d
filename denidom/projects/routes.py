# denidom/projects/routes.py

import logging
from typing import Literal, Optional

from flask import Blueprint, jsonify, request
from pydantic import Field

from denidom import db
from denidom.auth.utils import auth_optional, current_user_id, ensure_user
from denidom.calculator.schemas import EstimateCreate
from denidom.calculator.utils import items_payload, recalculate
from denidom.clients.routes import require_user_id
from denidom.errors import not_found
from denidom.models import Client, Estimate, Project
from denidom.schemas import CamelModel, load_json

bp = Blueprint('projects', __name__)
logger = logging.getLogger(__name__)

ProjectStatus = Literal['DRAFT', 'IN_PROGRESS', 'COMPLETED', 'ARCHIVED']


class ProjectUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    description: Optional[str] = None
    client_id: Optional[str] = None
    status: Optional[ProjectStatus] = None


class ProjectCreate(ProjectUpdate):
    name: str = Field(min_length=1, max_length=255)
    status: ProjectStatus = 'DRAFT'
    user_id: Optional[str] = None


def _get_project(project_id):
    project = db.session.get(Project, project_id)
    if project is None:
        raise not_found('Project')
    return project


def _check_client(client_id):
    if client_id and db.session.get(Client, client_id) is None:
        raise not_found('Client')


@bp.route('/')
@auth_optional
def list_projects():
    query = Project.query
    user_id = request.args.get('userId') or current_user_id()
    if user_id:
        query = query.filter_by(user_id=user_id)
    if request.args.get('clientId'):
        query = query.filter_by(client_id=request.args['clientId'])
    if request.args.get('status'):
        query = query.filter_by(status=request.args['status'])
    projects = query.order_by(Project.updated_at.desc()).all()
    return jsonify([p.to_dict() for p in projects])


@bp.route('/<project_id>')
def get_project(project_id):
    return jsonify(_get_project(project_id).to_dict(with_estimates=True))


@bp.route('/', methods=['POST'])
@auth_optional
def create_project():
    data = load_json(ProjectCreate)
    _check_client(data.client_id)
    project = Project(
        name=data.name,
        description=data.description,
        client_id=data.client_id,
        status=data.status,
        user_id=require_user_id(data.user_id),
    )
    db.session.add(project)
    db.session.commit()
    logger.info('Created project %s', project.id)
    return jsonify(project.to_dict()), 201


@bp.route('/<project_id>', methods=['PUT'])
def update_project(project_id):
    project = _get_project(project_id)
    data = load_json(ProjectUpdate)
    changes = data.model_dump(exclude_unset=True)
    if changes.get('client_id'):
        _check_client(changes['client_id'])
    for attr, value in changes.items():
        if attr in ('name', 'status') and value is None:
            continue
        setattr(project, attr, value)
    db.session.commit()
    return jsonify(project.to_dict())


@bp.route('/<project_id>', methods=['DELETE'])
def delete_project(project_id):
    project = _get_project(project_id)
    db.session.delete(project)
    db.session.commit()
    return '', 204


@bp.route('/<project_id>/estimates', methods=['POST'])
@auth_optional
def add_estimate(project_id):
    project = _get_project(project_id)
    data = load_json(EstimateCreate)
    user_id = current_user_id()
    if not user_id:
        user_id = ensure_user(data.user_id) if data.user_id else project.user_id

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
    logger.info('Project %s total is now %s', project.id, project.total_amount)
    return jsonify(est.to_dict()), 201
