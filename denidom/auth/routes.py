# denidom/auth/routes.py

import logging

from flask import Blueprint, g, jsonify
from pydantic import EmailStr, Field
from werkzeug.security import check_password_hash, generate_password_hash

from denidom import db
from denidom.auth.utils import create_token, login_required, rate_limited
from denidom.errors import ApiError
from denidom.models import User
from denidom.schemas import CamelModel, load_json

bp = Blueprint('auth', __name__)
logger = logging.getLogger(__name__)


class RegisterSchema(CamelModel):
    email: EmailStr
    password: str = Field(min_length=6)
    name: str = Field(min_length=2)


class LoginSchema(CamelModel):
    email: EmailStr
    password: str


@bp.route('/register', methods=['POST'])
@rate_limited
def register():
    data = load_json(RegisterSchema)
    email = data.email.lower()
    if User.query.filter_by(email=email).first():
        raise ApiError('User already exists', 400, 'USER_EXISTS')

    user = User(
        email=email,
        name=data.name,
        password_hash=generate_password_hash(data.password),
    )
    db.session.add(user)
    db.session.commit()
    logger.info('Registered user %s', user.email)
    return jsonify(user=user.to_dict(), token=create_token(user)), 201


@bp.route('/login', methods=['POST'])
@rate_limited
def login():
    data = load_json(LoginSchema)
    user = User.query.filter_by(email=data.email.lower()).first()
    if not user or not check_password_hash(user.password_hash, data.password):
        logger.info('Failed login for %s', data.email)
        raise ApiError('Invalid credentials', 401, 'UNAUTHORIZED')
    return jsonify(user=user.to_dict(), token=create_token(user))


@bp.route('/me')
@login_required
def me():
    return jsonify(user=g.current_user.to_dict(with_role=True))


@bp.route('/refresh', methods=['POST'])
@login_required
def refresh():
    return jsonify(token=create_token(g.current_user))
