"""
Locale handling: dictionaries, locale negotiation and the `<lng>` URL prefix.

Every page blueprint is mounted under `/<lng>`; the value is moved into
`g.lng` before the view runs, so views never take a `lng` argument.
"""
import json
import os
from functools import lru_cache

from flask import current_app, g, has_request_context

DICTIONARY_DIR = os.path.join(os.path.dirname(__file__), 'dictionaries')
DICTIONARY_PARTS = ('main', 'admin', 'legal')
FALLBACK_LOCALE = 'en'


def supported_locales():
    return current_app.config.get('LANGUAGES', [FALLBACK_LOCALE])


def default_locale():
    return current_app.config.get('DEFAULT_LANGUAGE', FALLBACK_LOCALE)


def negotiate_locale(accept_languages):
    """Best supported match for an Accept-Language header, else the default."""
    return accept_languages.best_match(supported_locales()) or default_locale()


def current_locale():
    if has_request_context() and getattr(g, 'lng', None):
        return g.lng
    return default_locale()


@lru_cache(maxsize=None)
def _load_part(locale, part):
    path = os.path.join(DICTIONARY_DIR, locale, f'{part}.json')
    with open(path, encoding='utf-8') as f:
        return json.load(f)


def get_dictionary(locale):
    if not os.path.isdir(os.path.join(DICTIONARY_DIR, locale or '')):
        locale = FALLBACK_LOCALE
    merged = {}
    for part in DICTIONARY_PARTS:
        merged.update(_load_part(locale, part))
    return merged


def translate(key_path, locale=None, **params):
    """Dotted lookup, e.g. translate('comparison.added', 'ar'). Unknown keys come back verbatim."""
    node = get_dictionary(locale or current_locale())
    for key in key_path.split('.'):
        if not isinstance(node, dict) or key not in node:
            return key_path
        node = node[key]
    if isinstance(node, str) and params:
        return node.format(**params)
    return node


def localized(obj, field, lng=None):
    lng = lng or current_locale()
    value = getattr(obj, f'{field}_{lng}', None)
    return value or getattr(obj, field, None)


def init_i18n(app):
    @app.url_value_preprocessor
    def pull_lng(endpoint, values):
        if values and 'lng' in values:
            g.lng = values.pop('lng')

    @app.url_defaults
    def add_lng(endpoint, values):
        if 'lng' in values or not getattr(g, 'lng', None):
            return
        if app.url_map.is_endpoint_expecting(endpoint, 'lng'):
            values['lng'] = g.lng
