# denidom/clients/routes.py

from typing import Literal, Optional

from flask import Blueprint, jsonify, request
from pydantic import EmailStr, Field

from denidom import db
from denidom.auth.utils import auth_optional, current_user_id, ensure_user
from denidom.errors import ApiError, not_found
from denidom.models import Client, Project
from denidom.schemas import CamelModel, load_json

bp = Blueprint('clients', __name__)


class ClientUpdate(CamelModel):
    name: Optional[str] = Field(default=None, min_length=1, max_length=255)
    type: Optional[Literal['COMPANY', 'INDIVIDUAL']] = None
    contact: Optional[str] = None
    phone: Optional[str] = None
    email: Optional[EmailStr] = None
    address: Optional[str] = None
    inn: Optional[str] = Field(default=None, max_length=12)
    kpp: Optional[str] = Field(default=None, max_length=9)
    notes: Optional[str] = None


class ClientCreate(ClientUpdate):
    name: str = Field(min_length=1, max_length=255)
    type: Literal['COMPANY', 'INDIVIDUAL'] = 'COMPANY'
    user_id: Optional[str] = None


def require_user_id(data_user_id):
    """Owner from the payload, else from the bearer token."""
    user_id = data_user_id or current_user_id()
    if not user_id:
        raise ApiError(
            'Validation Error',
            400,
            'VALIDATION_ERROR',
            details=[{'field': 'userId', 'message': 'Field required'}],
        )
    return ensure_user(user_id)


def _get_client(client_id):
    client = db.session.get(Client, client_id)
    if client is None:
        raise not_found('Client')
    return client


@bp.route('/')
@auth_optional
def list_clients():
    query = Client.query
    user_id = request.args.get('userId') or current_user_id()
    if user_id:
        query = query.filter_by(user_id=user_id)
    clients = query.order_by(Client.updated_at.desc()).all()
    return jsonify([c.to_dict(with_projects=True) for c in clients])


@bp.route('/<client_id>')
def get_client(client_id):
    return jsonify(_get_client(client_id).to_dict(with_projects=True))


@bp.route('/', methods=['POST'])
@auth_optional
def create_client():
    data = load_json(ClientCreate)
    fields = data.model_dump(exclude={'user_id'})
    client = Client(user_id=require_user_id(data.user_id), **fields)
    db.session.add(client)
    db.session.commit()
    return jsonify(client.to_dict()), 201


@bp.route('/<client_id>', methods=['PUT'])
def update_client(client_id):
    client = _get_client(client_id)
    data = load_json(ClientUpdate)
    for attr, value in data.model_dump(exclude_unset=True).items():
        if attr in ('name', 'type') and value is None:
            continue
        setattr(client, attr, value)
    db.session.commit()
    return jsonify(client.to_dict())


@bp.route('/<client_id>', methods=['DELETE'])
def delete_client(client_id):
    client = _get_client(client_id)
    # Projects outlive their client
    for project in client.projects:
        project.client_id = None
    db.session.delete(client)
    db.session.commit()
    return '', 204


@bp.route('/<client_id>/projects')
def client_projects(client_id):
    client = _get_client(client_id)
    projects = (
        Project.query.filter_by(client_id=client.id)
        .order_by(Project.updated_at.desc())
        .all()
    )
    return jsonify([p.to_dict() for p in projects])
