from flask import Blueprint, current_app, g, jsonify, request
from marshmallow import ValidationError
from sqlalchemy import func, or_

from app import db
from app.admin import services as admin_services
from app.auth.decorators import admin_required
from app.i18n import translate
from app.models import Area, Category, Property, User
from app.schemas import (
    AreaFormSchema, CategoryFormSchema, OrderItemSchema, PropertyFormSchema,
    SiteSettingsSchema, payload_from_request, validation_error_response
)
from app.utils.helpers import format_portfolio_value, parse_bool

admin_bp = Blueprint('admin', __name__, url_prefix='/<lng>/admin')

RECENT_FEATURED_LIMIT = 5


def _admin_error(e):
    message = translate(e.key)
    payload = {'message': message, 'success': False}
    if e.field:
        payload['errors'] = {e.field: [message]}
    return jsonify(payload), e.status


def _server_error(action, e):
    db.session.rollback()
    current_app.logger.error(f"Admin: {action} failed: {e}", exc_info=True)
    return jsonify({'message': translate('errors.unexpected'), 'success': False}), 500


def _json_object():
    data = request.get_json(silent=True)
    return data if isinstance(data, dict) else {}


def _order_items():
    data = request.get_json(silent=True)
    if isinstance(data, dict):
        data = data.get('items')
    return OrderItemSchema(many=True).load(data or [])


def _property_counts():
    rows = db.session.query(Property.category_id, func.count(Property.id)).group_by(Property.category_id).all()
    return {category_id: count for category_id, count in rows}


# ------------- DASHBOARD -------------
@admin_bp.route('/', methods=['GET'])
@admin_required
def dashboard():
    active = Property.query.filter(Property.status == 'active')
    total_value = db.session.query(func.coalesce(func.sum(Property.price), 0)).filter(
        Property.status == 'active'
    ).scalar()
    recent_featured = Property.query.filter(Property.is_featured.is_(True)).order_by(
        Property.created_at.desc(), Property.id.desc()
    ).limit(RECENT_FEATURED_LIMIT).all()
    counts = _property_counts()
    categories = Category.query.order_by(Category.order_index.asc()).all()

    return jsonify({
        'stats': {
            'total_properties': active.count(),
            'total_categories': len(categories),
            'featured_properties': Property.query.filter(Property.is_featured.is_(True)).count(),
            'total_portfolio_value': format_portfolio_value(float(total_value or 0)),
        },
        'recent_featured': [p.to_card_dict() for p in recent_featured],
        'categories': [dict(c.to_dict(g.lng), property_count=counts.get(c.id, 0)) for c in categories],
    }), 200


# ------------- USERS -------------
@admin_bp.route('/users', methods=['GET'])
@admin_required
def get_users():
    users = User.query.order_by(User.created_at.desc()).all()
    return jsonify([user.to_dict() for user in users]), 200


# ------------- PROPERTIES -------------
@admin_bp.route('/properties', methods=['GET'])
@admin_required
def get_properties():
    query = Property.query
    search = (request.args.get('search') or '').strip()
    if search:
        pattern = f"%{search}%"
        query = query.filter(or_(
            Property.title.ilike(pattern), Property.location.ilike(pattern), Property.area.ilike(pattern)
        ))
    category = request.args.get('category')
    if category and category != 'all':
        query = query.filter(Property.category_id == category)
    status = request.args.get('status')
    if status and status != 'all':
        query = query.filter(Property.status == status)

    properties = query.order_by(Property.order_index.asc(), Property.created_at.desc()).all()
    return jsonify([p.to_dict(g.lng) for p in properties]), 200


@admin_bp.route('/properties/<int:property_id>', methods=['GET'])
@admin_required
def get_property(property_id):
    prop = Property.query.get_or_404(property_id)
    return jsonify(prop.to_dict(g.lng)), 200


def _save_property(prop=None):
    updating = prop is not None
    try:
        data = PropertyFormSchema().load(payload_from_request(request, list_fields=('features', 'amenities')))
    except ValidationError as err:
        return validation_error_response(err)

    try:
        prop = admin_services.save_property(data, prop)
        uploaded = admin_services.apply_image_form(prop, request.form, request.files, updating=updating)
        if uploaded or admin_services.image_count(request.form) > 0:
            admin_services.refresh_property_thumbnail(prop, uploaded)
        db.session.commit()
    except admin_services.AdminError as e:
        db.session.rollback()
        return _admin_error(e)
    except Exception as e:
        return _server_error('saving property', e)

    current_app.logger.info(f"🏠 Property {prop.id} {'updated' if updating else 'created'}")
    key = 'admin.properties.updated' if updating else 'admin.properties.created'
    return jsonify({
        'message': translate(key),
        'success': True,
        'property': prop.to_dict(g.lng),
    }), 200 if updating else 201


@admin_bp.route('/properties', methods=['POST'])
@admin_required
def create_property():
    return _save_property()


@admin_bp.route('/properties/<int:property_id>', methods=['PUT'])
@admin_required
def update_property(property_id):
    prop = Property.query.get_or_404(property_id)
    return _save_property(prop)


@admin_bp.route('/properties/<int:property_id>', methods=['DELETE'])
@admin_required
def delete_property(property_id):
    prop = Property.query.get_or_404(property_id)
    try:
        admin_services.delete_property(prop)
    except Exception as e:
        return _server_error(f'deleting property {property_id}', e)
    return jsonify({'message': translate('admin.properties.deleted'), 'success': True}), 200


@admin_bp.route('/properties/<int:property_id>/featured', methods=['POST'])
@admin_required
def toggle_featured(property_id):
    prop = Property.query.get_or_404(property_id)
    featured = parse_bool(_json_object().get('featured'))
    try:
        admin_services.set_featured(prop, featured)
    except Exception as e:
        return _server_error(f'featuring property {property_id}', e)
    key = 'admin.properties.featured' if featured else 'admin.properties.unfeatured'
    return jsonify({'message': translate(key), 'success': True, 'property': prop.to_card_dict()}), 200


@admin_bp.route('/properties/<int:property_id>/main-featured', methods=['POST'])
@admin_required
def set_main_featured(property_id):
    prop = Property.query.get_or_404(property_id)
    main = parse_bool(_json_object().get('main'), default=True)
    try:
        admin_services.set_main_featured(prop, main)
    except admin_services.AdminError as e:
        return _admin_error(e)
    except Exception as e:
        return _server_error(f'setting main featured property {property_id}', e)
    return jsonify({'message': translate('admin.properties.mainSet'), 'success': True}), 200


@admin_bp.route('/properties/order', methods=['POST'])
@admin_required
def order_properties():
    try:
        items = _order_items()
    except ValidationError as err:
        return validation_error_response(err)
    try:
        admin_services.apply_order(Property, items, 'admin.properties.someNotFound')
    except admin_services.AdminError as e:
        return _admin_error(e)
    except Exception as e:
        return _server_error('ordering properties', e)
    return jsonify({'message': translate('admin.properties.orderUpdated'), 'success': True}), 200


@admin_bp.route('/featured', methods=['GET'])
@admin_required
def get_featured():
    featured = Property.query.filter(Property.is_featured.is_(True)).order_by(
        Property.is_main_featured.desc(), Property.order_index.asc()
    ).all()
    available = Property.query.filter(
        Property.status == 'active', or_(Property.is_featured.is_(False), Property.is_featured.is_(None))
    ).order_by(Property.created_at.desc(), Property.id.desc()).all()
    return jsonify({
        'featured': [dict(p.to_card_dict(), is_main_featured=p.is_main_featured, order_index=p.order_index)
                     for p in featured],
        'available': [p.to_card_dict() for p in available],
    }), 200


# ------------- CATEGORIES -------------
@admin_bp.route('/categories', methods=['GET'])
@admin_required
def get_categories():
    counts = _property_counts()
    categories = Category.query.order_by(Category.order_index.asc(), Category.name.asc()).all()
    return jsonify([dict(c.to_dict(g.lng), property_count=counts.get(c.id, 0)) for c in categories]), 200


@admin_bp.route('/categories', methods=['POST'])
@admin_required
def create_category():
    try:
        data = CategoryFormSchema().load(payload_from_request(request))
    except ValidationError as err:
        return validation_error_response(err)
    try:
        category = admin_services.save_category(data)
    except admin_services.AdminError as e:
        db.session.rollback()
        return _admin_error(e)
    except Exception as e:
        return _server_error('creating category', e)
    return jsonify({
        'message': translate('admin.categories.created'),
        'success': True,
        'category': category.to_dict(g.lng),
    }), 201


@admin_bp.route('/categories/<int:category_id>', methods=['PUT'])
@admin_required
def update_category(category_id):
    category = Category.query.get_or_404(category_id)
    try:
        data = CategoryFormSchema().load(payload_from_request(request))
    except ValidationError as err:
        return validation_error_response(err)
    try:
        admin_services.save_category(data, category)
    except admin_services.AdminError as e:
        db.session.rollback()
        return _admin_error(e)
    except Exception as e:
        return _server_error(f'updating category {category_id}', e)
    return jsonify({
        'message': translate('admin.categories.updated'),
        'success': True,
        'category': category.to_dict(g.lng),
    }), 200


@admin_bp.route('/categories/<int:category_id>', methods=['DELETE'])
@admin_required
def delete_category(category_id):
    category = Category.query.get_or_404(category_id)
    try:
        admin_services.delete_category(category)
    except admin_services.AdminError as e:
        return _admin_error(e)
    except Exception as e:
        return _server_error(f'deleting category {category_id}', e)
    return jsonify({'message': translate('admin.categories.deleted'), 'success': True}), 200


@admin_bp.route('/categories/order', methods=['POST'])
@admin_required
def order_categories():
    try:
        items = _order_items()
    except ValidationError as err:
        return validation_error_response(err)
    try:
        admin_services.apply_order(Category, items, 'admin.categories.someNotFound')
    except admin_services.AdminError as e:
        return _admin_error(e)
    except Exception as e:
        return _server_error('ordering categories', e)
    return jsonify({'message': translate('admin.categories.orderUpdated'), 'success': True}), 200


# ------------- AREAS -------------
@admin_bp.route('/areas', methods=['GET'])
@admin_required
def get_areas():
    areas = Area.query.order_by(Area.order_index.asc(), Area.name.asc()).all()
    return jsonify([a.to_dict() for a in areas]), 200


@admin_bp.route('/areas', methods=['POST'])
@admin_required
def create_area():
    try:
        data = AreaFormSchema().load(payload_from_request(request))
    except ValidationError as err:
        return validation_error_response(err)
    try:
        area = admin_services.save_area(data)
    except admin_services.AdminError as e:
        db.session.rollback()
        return _admin_error(e)
    except Exception as e:
        return _server_error('creating area', e)
    return jsonify({'message': translate('admin.areas.created'), 'success': True, 'area': area.to_dict()}), 201


@admin_bp.route('/areas/<int:area_id>', methods=['PUT'])
@admin_required
def update_area(area_id):
    area = Area.query.get_or_404(area_id)
    try:
        data = AreaFormSchema().load(payload_from_request(request))
    except ValidationError as err:
        return validation_error_response(err)
    try:
        admin_services.save_area(data, area)
    except admin_services.AdminError as e:
        db.session.rollback()
        return _admin_error(e)
    except Exception as e:
        return _server_error(f'updating area {area_id}', e)
    return jsonify({'message': translate('admin.areas.updated'), 'success': True, 'area': area.to_dict()}), 200


@admin_bp.route('/areas/<int:area_id>', methods=['DELETE'])
@admin_required
def delete_area(area_id):
    area = Area.query.get_or_404(area_id)
    try:
        admin_services.delete_area(area)
    except admin_services.AdminError as e:
        return _admin_error(e)
    except Exception as e:
        return _server_error(f'deleting area {area_id}', e)
    return jsonify({'message': translate('admin.areas.deleted'), 'success': True}), 200


@admin_bp.route('/areas/order', methods=['POST'])
@admin_required
def order_areas():
    try:
        items = _order_items()
    except ValidationError as err:
        return validation_error_response(err)
    if not items:
        return jsonify({'message': translate('admin.areas.noneProvided'), 'success': False}), 400
    try:
        admin_services.apply_order(Area, items, 'admin.areas.someNotFound')
    except admin_services.AdminError as e:
        return _admin_error(e)
    except Exception as e:
        return _server_error('ordering areas', e)
    return jsonify({'message': translate('admin.areas.orderUpdated'), 'success': True}), 200


# ------------- SETTINGS -------------
@admin_bp.route('/settings', methods=['GET'])
@admin_required
def get_settings():
    return jsonify(admin_services.get_site_settings()), 200


@admin_bp.route('/settings', methods=['PUT'])
@admin_required
def update_settings():
    try:
        data = SiteSettingsSchema(partial=True).load(request.get_json(silent=True) or {})
    except ValidationError as err:
        return validation_error_response(err)
    try:
        settings = admin_services.save_site_settings(data)
    except Exception as e:
        return _server_error('saving settings', e)
    return jsonify({'message': translate('admin.settings.saved'), 'success': True, 'settings': settings}), 200
