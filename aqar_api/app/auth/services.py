import hmac

from flask import current_app
from flask_jwt_extended import create_access_token
from werkzeug.security import check_password_hash, generate_password_hash

from app import db
from app.models import User


class AuthError(ValueError):
    pass


class EmailTakenError(AuthError):
    pass


class InvalidAdminCodeError(AuthError):
    pass


class InvalidCredentialsError(AuthError):
    pass


def create_user(data, role='user'):
    email = data['email'].strip().lower()
    if User.query.filter_by(email=email).first():
        raise EmailTakenError(email)

    user = User(
        email=email,
        password_hash=generate_password_hash(data['password']),
        full_name=data['full_name'],
        phone=data.get('phone'),
        role=role,
    )
    db.session.add(user)
    db.session.commit()
    current_app.logger.info(f"👤 New {role} account: {email}")
    return user


def check_admin_code(code):
    """An unset ADMIN_SIGNUP_CODE closes admin signup entirely."""
    expected = current_app.config.get('ADMIN_SIGNUP_CODE')
    if not expected or not code:
        raise InvalidAdminCodeError()
    if not hmac.compare_digest(str(expected).encode('utf-8'), str(code).encode('utf-8')):
        raise InvalidAdminCodeError()


def issue_token(user):
    return create_access_token(identity=str(user.id), additional_claims={'role': user.role})


def authenticate_user(email, password):
    user = User.query.filter_by(email=email.strip().lower()).first()
    if not user or not check_password_hash(user.password_hash, password):
        raise InvalidCredentialsError()
    return user, issue_token(user)


def update_profile(user, data):
    for field in ('full_name', 'phone', 'avatar_url'):
        if field in data:
            setattr(user, field, data[field])
    db.session.commit()
    return user
