import re

from flask import current_app, redirect, request
from flask_jwt_extended import get_jwt, get_jwt_identity, verify_jwt_in_request
from flask_jwt_extended.exceptions import JWTExtendedException
from jwt.exceptions import PyJWTError

from app.i18n import negotiate_locale, supported_locales
from app.models import User

# Static folders served as-is, never locale-prefixed
PUBLIC_PREFIXES = ('/videos', '/images', '/categories')
EXCLUDED_PREFIXES = ('/api', '/static', '/favicon.ico', '/.well-known')
MEDIA_FILE = re.compile(r'.*\.(?:svg|png|jpg|jpeg|gif|webp|mp4|mov|avi|wmv|flv|webm|mkv)$', re.IGNORECASE)


def _matches_prefix(path, prefix):
    return path == prefix or path.startswith(f'{prefix}/')


def is_passthrough(path):
    if any(_matches_prefix(path, prefix) for prefix in PUBLIC_PREFIXES):
        return True
    if any(path.startswith(prefix) for prefix in EXCLUDED_PREFIXES):
        return True
    return bool(MEDIA_FILE.match(path))


def path_has_locale(path, locales):
    return any(path.startswith(f'/{locale}/') or path == f'/{locale}' for locale in locales)


def is_admin_path(path):
    """'/en/admin', '/en/admin/areas'; not '/en/auth/admin-signup'."""
    return re.search(r'/admin(?:/|$)', path) is not None


def resolve_role():
    """
    Role of the caller: the Users.role column first, then the token claim,
    defaulting to 'user'. Returns None when there is no valid session.
    """
    try:
        verify_jwt_in_request(optional=True)
    except (JWTExtendedException, PyJWTError) as e:
        current_app.logger.info(f"Admin gate: rejected token ({e})")
        return None

    identity = get_jwt_identity()
    if identity is None:
        return None

    user = User.query.get(int(identity)) if str(identity).isdigit() else None
    if user is not None:
        return user.role
    return get_jwt().get('role') or 'user'


def register_locale_middleware(app):
    @app.before_request
    def locale_and_admin_gate():
        path = request.path
        if is_passthrough(path):
            return None

        locales = supported_locales()
        if not path_has_locale(path, locales):
            locale = negotiate_locale(request.accept_languages)
            target = f"/{locale}{'' if path.startswith('/') else '/'}{path}"
            query = request.query_string.decode()
            if query:
                target = f"{target}?{query}"
            return redirect(target, code=307)

        locale = path.split('/')[1]
        if is_admin_path(path):
            role = resolve_role()
            if role is None:
                return redirect(f'/{locale}/auth/login', code=307)
            if role != 'admin':
                app.logger.warning(f"Admin gate: role '{role}' denied for {path}")
                return redirect(f'/{locale}', code=307)

        return None
