from flask import Blueprint, current_app, jsonify, session

from app.comparison.services import ComparisonError, ComparisonList, snapshot
from app.i18n import translate
from app.models import Property
from app.utils.helpers import format_price_per_meter

comparison_bp = Blueprint('comparison', __name__, url_prefix='/<lng>/compare')


def _comparison():
    return ComparisonList(session, max_items=current_app.config.get('MAX_COMPARISONS', 4))


def _state(comparison, message=None):
    items = comparison.items
    payload = {
        'items': [
            dict(item, price_per_meter=format_price_per_meter(item.get('price') or 0, item.get('size')))
            for item in items
        ],
        'count': len(items),
        'can_add_more': len(items) < comparison.max_items,
    }
    if message:
        payload['message'] = message
    return payload


@comparison_bp.route('', methods=['GET'])
def get_comparison():
    return jsonify(_state(_comparison())), 200


@comparison_bp.route('/<int:property_id>', methods=['POST'])
def add_to_comparison(property_id):
    prop = Property.query.filter_by(id=property_id, status='active').first()
    if not prop:
        return jsonify({'message': translate('properties.notFound')}), 404

    comparison = _comparison()
    try:
        comparison.add(snapshot(prop))
    except ComparisonError as e:
        if e.code == ComparisonError.FULL:
            message = translate('comparison.full', max=comparison.max_items)
        else:
            message = translate('comparison.alreadyAdded')
        return jsonify(dict(_state(comparison), message=message, success=False)), 400

    return jsonify(dict(_state(comparison, translate('comparison.added')), success=True)), 200


@comparison_bp.route('/<int:property_id>', methods=['DELETE'])
def remove_from_comparison(property_id):
    comparison = _comparison()
    comparison.remove(property_id)
    return jsonify(dict(_state(comparison, translate('comparison.removed')), success=True)), 200


@comparison_bp.route('', methods=['DELETE'])
def clear_comparison():
    comparison = _comparison()
    comparison.clear()
    return jsonify(dict(_state(comparison, translate('comparison.cleared')), success=True)), 200
