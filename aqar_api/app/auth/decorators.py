from functools import wraps

from flask import jsonify
from flask_jwt_extended import get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from app.i18n import translate
from app.models import User


def _load_user(identity):
    if identity is None or not str(identity).isdigit():
        return None
    return User.query.get(int(identity))


def get_optional_user():
    """The signed-in user, or None for anonymous callers and broken tokens."""
    try:
        verify_jwt_in_request(optional=True)
    except (JWTExtendedException, PyJWTError):
        return None
    return _load_user(get_jwt_identity())


def get_current_user():
    return _load_user(get_jwt_identity())


def login_required_json(fn):
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            verify_jwt_in_request()
        except (JWTExtendedException, PyJWTError):
            return jsonify({'message': translate('auth.authRequired'), 'success': False}), 401
        if get_current_user() is None:
            return jsonify({'message': translate('auth.authRequired'), 'success': False}), 401
        return fn(*args, **kwargs)
    return wrapper


def admin_required(fn):
    """The token's role claim is not trusted; the role is read back from Users."""
    @wraps(fn)
    def wrapper(*args, **kwargs):
        try:
            verify_jwt_in_request()
        except (JWTExtendedException, PyJWTError):
            return jsonify({'message': translate('auth.authRequired'), 'success': False}), 401
        user = get_current_user()
        if user is None:
            return jsonify({'message': translate('auth.authRequired'), 'success': False}), 401
        if user.role != 'admin':
            return jsonify({'message': translate('auth.adminRequired'), 'success': False}), 403
        return fn(*args, **kwargs)
    return wrapper
