from flask import Blueprint, current_app, g, jsonify

from app import db
from app.i18n import translate
from app.properties import services as property_services
from app.utils.helpers import format_price_per_meter, get_time_ago

properties_bp = Blueprint('properties', __name__, url_prefix='/<lng>/properties')


@properties_bp.route('/<int:property_id>', methods=['GET'])
def get_property(property_id):
    """
    Property detail page. Only active listings are visible; each hit counts as a view.
    """
    prop = property_services.get_active_property(property_id)
    if not prop:
        return jsonify({'message': translate('properties.notFound')}), 404

    try:
        property_services.record_view(prop)
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Could not record a view for property {property_id}: {e}", exc_info=True)

    data = prop.to_dict(g.lng)
    data['price_per_meter_display'] = format_price_per_meter(data['price'] or 0, data['size'])
    data['listed'] = get_time_ago(prop.created_at) if prop.created_at else None
    data['ratings'] = prop.rating.to_dict() if prop.rating else None
    data['related'] = [p.to_card_dict() for p in property_services.related_properties(prop)]
    return jsonify(data), 200
