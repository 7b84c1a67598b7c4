# app/favorites/routes.py

from flask import Blueprint, current_app, jsonify

from app import db
from app.auth.decorators import get_current_user, login_required_json
from app.i18n import translate
from app.models import LovedProperty, Property

favorites_bp = Blueprint('favorites', __name__, url_prefix='/<lng>/favorites')


@favorites_bp.route('/<int:property_id>', methods=['POST'])
@login_required_json
def toggle_loved(property_id):
    """
    Toggle route: a loved property is removed from the list, otherwise it is added.
    """
    user = get_current_user()

    property_obj = Property.query.get(property_id)
    if not property_obj:
        return jsonify({'message': translate('properties.notFound')}), 404

    existing = LovedProperty.query.filter_by(user_id=user.id, property_id=property_id).first()

    try:
        if existing:
            db.session.delete(existing)
            db.session.commit()
            return jsonify({'loved': False, 'message': translate('properties.unloved')}), 200

        db.session.add(LovedProperty(user_id=user.id, property_id=property_id))
        db.session.commit()
        return jsonify({'loved': True, 'message': translate('properties.loved')}), 201
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Error while toggling loved property {property_id}: {e}", exc_info=True)
        return jsonify({'message': translate('errors.unexpected')}), 500


@favorites_bp.route('/', methods=['GET'])
@login_required_json
def get_loved_properties():
    user = get_current_user()

    loved = Property.query.join(
        LovedProperty, LovedProperty.property_id == Property.id
    ).filter(
        LovedProperty.user_id == user.id,
        Property.status == 'active'
    ).order_by(LovedProperty.created_at.desc(), LovedProperty.id.desc()).all()

    return jsonify([p.to_card_dict() for p in loved]), 200


@favorites_bp.route('/<int:property_id>', methods=['GET'])
@login_required_json
def is_loved(property_id):
    user = get_current_user()
    exists = LovedProperty.query.filter_by(user_id=user.id, property_id=property_id).first() is not None
    return jsonify({'loved': exists}), 200
