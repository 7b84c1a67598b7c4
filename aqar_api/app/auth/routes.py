from flask import Blueprint, current_app, g, jsonify, request
from flask_jwt_extended import set_access_cookies, unset_jwt_cookies
from marshmallow import ValidationError

from app import db
from app.auth import services as auth_services
from app.auth.decorators import get_current_user, login_required_json
from app.i18n import translate
from app.schemas import (
    AdminSignupSchema, LoginSchema, ProfileSchema, SignupSchema,
    payload_from_request, validation_error_response
)

auth_bp = Blueprint('auth', __name__, url_prefix='/<lng>/auth')


def _signup(schema, role):
    try:
        data = schema.load(payload_from_request(request))
    except ValidationError as err:
        return validation_error_response(err)

    try:
        if role == 'admin':
            auth_services.check_admin_code(data['admin_code'])
        user = auth_services.create_user(data, role=role)
    except auth_services.InvalidAdminCodeError:
        current_app.logger.warning(f"Admin signup refused for {data['email']}: bad admin code")
        return jsonify({
            'message': translate('auth.invalidAdminCode'),
            'errors': {'admin_code': [translate('auth.invalidAdminCode')]},
            'success': False,
        }), 403
    except auth_services.EmailTakenError:
        return jsonify({
            'message': translate('auth.emailTaken'),
            'errors': {'email': [translate('auth.emailTaken')]},
            'success': False,
        }), 409
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Signup failed: {e}", exc_info=True)
        return jsonify({'message': translate('errors.unexpected'), 'success': False}), 500

    key = 'auth.adminSignupSuccess' if role == 'admin' else 'auth.signupSuccess'
    return jsonify({'message': translate(key), 'success': True, 'user': user.to_dict()}), 201


@auth_bp.route('/signup', methods=['POST'])
def signup():
    return _signup(SignupSchema(), 'user')


@auth_bp.route('/admin-signup', methods=['POST'])
def admin_signup():
    return _signup(AdminSignupSchema(), 'admin')


@auth_bp.route('/login', methods=['POST'])
def login():
    try:
        data = LoginSchema().load(payload_from_request(request))
    except ValidationError as err:
        return validation_error_response(err)

    try:
        user, access_token = auth_services.authenticate_user(data['email'], data['password'])
    except auth_services.InvalidCredentialsError:
        return jsonify({'message': translate('auth.invalidCredentials'), 'success': False}), 401

    redirect_to = f"/{g.lng}/admin" if user.role == 'admin' else f"/{g.lng}"
    response = jsonify({
        'message': translate('auth.loginSuccess'),
        'success': True,
        'access_token': access_token,
        'user': user.to_dict(),
        'redirect_to': redirect_to,
    })
    set_access_cookies(response, access_token)
    return response, 200


@auth_bp.route('/logout', methods=['POST'])
def logout():
    response = jsonify({'message': translate('auth.logoutSuccess'), 'success': True})
    unset_jwt_cookies(response)
    return response, 200


@auth_bp.route('/profile', methods=['GET'])
@login_required_json
def get_profile():
    return jsonify(get_current_user().to_dict()), 200


@auth_bp.route('/profile', methods=['PUT'])
@login_required_json
def update_profile():
    user = get_current_user()
    try:
        data = ProfileSchema().load(payload_from_request(request))
    except ValidationError as err:
        return validation_error_response(err)

    try:
        auth_services.update_profile(user, data)
        return jsonify(user.to_dict()), 200
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Profile update failed for user {user.id}: {e}", exc_info=True)
        return jsonify({'message': translate('errors.unexpected'), 'success': False}), 500
