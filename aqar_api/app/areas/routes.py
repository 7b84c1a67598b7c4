from flask import Blueprint, current_app, jsonify, request
from marshmallow import ValidationError

from app import db
from app.areas import services as area_services
from app.auth.decorators import get_current_user, get_optional_user, login_required_json
from app.i18n import translate
from app.models import Area
from app.schemas import AreaRatingSchema, payload_from_request, validation_error_response
from app.utils.helpers import client_ip

areas_bp = Blueprint('areas', __name__, url_prefix='/<lng>/areas')


def _active_area(area_id):
    return Area.query.filter_by(id=area_id, is_active=True).first()


def _int_arg(name, default, minimum):
    try:
        value = int(request.args.get(name, default))
    except (TypeError, ValueError):
        return default
    return value if value >= minimum else default


@areas_bp.route('', methods=['GET'])
def list_areas():
    areas = Area.query.filter_by(is_active=True).order_by(Area.order_index.asc(), Area.name.asc()).all()
    return jsonify([
        dict(a.to_dict(), ratings_summary=area_services.ratings_summary(a.id)) for a in areas
    ]), 200


@areas_bp.route('/<int:area_id>/ratings/summary', methods=['GET'])
def get_ratings_summary(area_id):
    if not _active_area(area_id):
        return jsonify({'message': translate('areas.notFound')}), 404
    return jsonify(area_services.ratings_summary(area_id)), 200


@areas_bp.route('/<int:area_id>/ratings', methods=['GET'])
def get_ratings(area_id):
    if not _active_area(area_id):
        return jsonify({'message': translate('areas.notFound')}), 404
    limit = _int_arg('limit', 10, 1)
    offset = _int_arg('offset', 0, 0)
    ratings = area_services.list_ratings(area_id, limit=limit, offset=offset)
    return jsonify([r.to_dict() for r in ratings]), 200


@areas_bp.route('/<int:area_id>/ratings/mine', methods=['GET'])
def get_my_rating(area_id):
    user = get_optional_user()
    rating = area_services.find_rating(area_id, user, None if user else client_ip(request))
    return jsonify(rating.to_dict() if rating else None), 200


@areas_bp.route('/<int:area_id>/ratings', methods=['POST'])
def rate_area(area_id):
    """
    Create or update the caller's rating. Signed-in users are identified by
    account, anonymous visitors by client IP.
    """
    area = _active_area(area_id)
    if not area:
        return jsonify({'message': translate('areas.notFound'), 'success': False}), 404

    try:
        data = AreaRatingSchema().load(payload_from_request(request))
    except ValidationError as err:
        return validation_error_response(err)

    user = get_optional_user()
    ip_address = None if user else client_ip(request)
    try:
        rating, created = area_services.submit_rating(area, data, user=user, ip_address=ip_address)
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to save rating for area {area_id}: {e}", exc_info=True)
        return jsonify({'message': translate('errors.unexpected'), 'success': False}), 500

    key = 'areas.ratingSubmitted' if created else 'areas.ratingUpdated'
    return jsonify({
        'message': translate(key),
        'success': True,
        'rating': rating.to_dict(),
    }), 201 if created else 200


@areas_bp.route('/ratings/<int:rating_id>', methods=['DELETE'])
@login_required_json
def delete_rating(rating_id):
    user = get_current_user()
    try:
        deleted = area_services.delete_rating(rating_id, user)
    except Exception as e:
        db.session.rollback()
        current_app.logger.error(f"Failed to delete rating {rating_id}: {e}", exc_info=True)
        return jsonify({'message': translate('errors.unexpected'), 'success': False}), 500

    if not deleted:
        return jsonify({'message': translate('areas.ratingNotFound'), 'success': False}), 404
    return jsonify({'message': translate('areas.ratingDeleted'), 'success': True}), 200
