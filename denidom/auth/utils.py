# denidom/auth/utils.py

"""Token helpers and route decorators for bearer authentication."""

from datetime import datetime, timedelta, timezone
from functools import wraps

import jwt
from flask import current_app, g, request

from denidom import db
from denidom.auth.limiter import RateLimiter
from denidom.errors import ApiError, not_found
from denidom.models import User


def create_token(user: User) -> str:
    payload = {
        'id': user.id,
        'email': user.email,
        'name': user.name,
        'exp': datetime.now(timezone.utc) + timedelta(days=current_app.config['JWT_EXPIRES_DAYS']),
    }
    return jwt.encode(payload, current_app.config['JWT_SECRET'], algorithm='HS256')


def decode_token(token: str) -> dict:
    try:
        return jwt.decode(token, current_app.config['JWT_SECRET'], algorithms=['HS256'])
    except jwt.PyJWTError:
        raise ApiError('Invalid token', 401, 'UNAUTHORIZED')


def _bearer_token():
    header = request.headers.get('Authorization', '')
    if not header.startswith('Bearer '):
        return None
    return header[len('Bearer '):].strip() or None


def _load_user(payload):
    user = db.session.get(User, payload.get('id'))
    if user is None:
        raise ApiError('Invalid token', 401, 'UNAUTHORIZED')
    return user


def login_required(view):
    """Reject the request unless it carries a valid bearer token."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        token = _bearer_token()
        if not token:
            raise ApiError('No token provided', 401, 'UNAUTHORIZED')
        g.current_user = _load_user(decode_token(token))
        return view(*args, **kwargs)

    return wrapper


def auth_optional(view):
    """Attach the user when a valid token is sent; never reject."""

    @wraps(view)
    def wrapper(*args, **kwargs):
        g.current_user = None
        token = _bearer_token()
        if token:
            try:
                g.current_user = _load_user(decode_token(token))
            except ApiError:
                g.current_user = None
        return view(*args, **kwargs)

    return wrapper


def current_user_id():
    user = g.get('current_user')
    return user.id if user else None


def ensure_user(user_id):
    """Return ``user_id`` if it names an existing user, else 404."""
    if db.session.get(User, user_id) is None:
        raise not_found('User')
    return user_id


def get_limiter() -> RateLimiter:
    limiter = current_app.extensions.get('auth_limiter')
    if limiter is None:
        limiter = RateLimiter(
            current_app.config['AUTH_RATE_LIMIT'],
            current_app.config['AUTH_RATE_WINDOW'],
        )
        current_app.extensions['auth_limiter'] = limiter
    return limiter


def rate_limited(view):
    @wraps(view)
    def wrapper(*args, **kwargs):
        if not get_limiter().allow(request.remote_addr or 'unknown'):
            raise ApiError(
                'Too many authentication attempts, please try again later',
                429,
                'TOO_MANY_REQUESTS',
            )
        return view(*args, **kwargs)

    return wrapper
