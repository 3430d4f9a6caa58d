"""JSON error responses shared by every blueprint."""

import logging

from flask import current_app, jsonify, request
from pydantic import ValidationError
from sqlalchemy.exc import IntegrityError
from werkzeug.exceptions import HTTPException, NotFound

logger = logging.getLogger(__name__)


class ApiError(Exception):
    """Error raised by route handlers and rendered as a JSON body."""

    def __init__(self, message, status_code=500, code=None, details=None, error=None):
        super().__init__(message)
        self.message = message
        self.status_code = status_code
        self.code = code
        self.details = details
        self.error = error

    def to_dict(self):
        body = {
            'error': self.error or self.message,
            'message': self.message,
            'code': self.code or 'ERROR',
        }
        if self.details is not None:
            body['details'] = self.details
        return body


def not_found(entity: str) -> ApiError:
    return ApiError(f'{entity} not found', 404, 'NOT_FOUND')


def validation_details(exc: ValidationError) -> list:
    """Flatten pydantic errors into ``[{field, message}]`` pairs."""
    return [
        {
            'field': '.'.join(str(part) for part in err['loc']),
            'message': err['msg'],
        }
        for err in exc.errors()
    ]


def register_error_handlers(app):
    from denidom import db

    @app.errorhandler(ApiError)
    def handle_api_error(err):
        if err.status_code >= 500:
            logger.error('%s %s failed: %s', request.method, request.path, err.message)
        return jsonify(err.to_dict()), err.status_code

    @app.errorhandler(ValidationError)
    def handle_validation_error(err):
        return jsonify({
            'error': 'Validation Error',
            'message': 'Invalid request data',
            'code': 'VALIDATION_ERROR',
            'details': validation_details(err),
        }), 400

    @app.errorhandler(IntegrityError)
    def handle_integrity_error(err):
        db.session.rollback()
        logger.warning('Integrity error on %s: %s', request.path, err.orig)
        return jsonify({
            'error': 'Duplicate entry',
            'message': 'A record with this value already exists',
            'code': 'DUPLICATE_ENTRY',
        }), 409

    @app.errorhandler(NotFound)
    def handle_not_found(_):
        return jsonify({
            'error': 'Not Found',
            'message': f'Route {request.method} {request.path} not found',
            'code': 'NOT_FOUND',
        }), 404

    @app.errorhandler(HTTPException)
    def handle_http_error(err):
        return jsonify({
            'error': err.name,
            'message': err.description,
            'code': err.name.upper().replace(' ', '_'),
        }), err.code

    @app.errorhandler(Exception)
    def handle_unexpected(err):
        logger.exception('Unhandled error on %s %s', request.method, request.path)
        body = {'error': 'Internal Server Error', 'code': 'INTERNAL_ERROR'}
        if current_app.debug:
            body['message'] = str(err)
        else:
            body['message'] = 'Something went wrong'
        return jsonify(body), 500
