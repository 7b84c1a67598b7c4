# app/search/routes.py

from flask import Blueprint, current_app, jsonify, request

from app.i18n import translate
from app.search import services as search_services

search_bp = Blueprint('search', __name__, url_prefix='/<lng>/search')


def _echo_params(args):
    echoed = {}
    for key in args.keys():
        values = args.getlist(key)
        echoed[key] = values if key in ('amenities', 'features') else values[0]
    return echoed


@search_bp.route('', methods=['GET'])
def search():
    """
    Public search. Filters come from the query string (see parse_search_params),
    results are sorted and paginated after the database filter.
    """
    try:
        parsed = search_services.parse_search_params(
            request.args, default_limit=current_app.config.get('SEARCH_PAGE_SIZE', search_services.DEFAULT_LIMIT)
        )
        limit = parsed['limit']

        properties = search_services.fetch_filtered_properties(parsed['query'], parsed['filters'])
        properties = search_services.sort_properties(properties, parsed['sort'])
        page_items, pagination = search_services.paginate(properties, parsed['page'], limit)
    except Exception as e:
        current_app.logger.error(f"Error in search: {e}", exc_info=True)
        return jsonify({'message': translate('search.failed'), 'success': False}), 500

    return jsonify({
        'properties': [p.to_card_dict() for p in page_items],
        'pagination': pagination,
        'active_filters_count': search_services.get_active_filters_count(request.args),
        'params': _echo_params(request.args),
        'sort': parsed['sort'],
    }), 200
