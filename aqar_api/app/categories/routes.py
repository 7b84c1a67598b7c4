from flask import Blueprint, g, jsonify
from sqlalchemy import func

from app import db
from app.i18n import translate
from app.models import Category, Property

categories_bp = Blueprint('categories', __name__, url_prefix='/<lng>/categories')


def active_property_counts():
    rows = db.session.query(Property.category_id, func.count(Property.id)).filter(
        Property.status == 'active'
    ).group_by(Property.category_id).all()
    return {category_id: count for category_id, count in rows}


@categories_bp.route('', methods=['GET'])
def list_categories():
    counts = active_property_counts()
    categories = Category.query.order_by(Category.order_index.asc(), Category.name.asc()).all()
    return jsonify([
        dict(c.to_dict(g.lng), property_count=counts.get(c.id, 0)) for c in categories
    ]), 200


@categories_bp.route('/<slug>', methods=['GET'])
def get_category(slug):
    category = Category.query.filter_by(slug=slug).first()
    if not category:
        return jsonify({'message': translate('categories.notFound')}), 404

    properties = Property.query.filter(
        Property.category_id == category.id, Property.status == 'active'
    ).order_by(Property.created_at.desc(), Property.id.desc()).all()

    return jsonify({
        'category': category.to_dict(g.lng),
        'properties': [p.to_card_dict() for p in properties],
    }), 200
