# app/main/routes.py

from flask import Blueprint, current_app, g, jsonify, request
from marshmallow import ValidationError

from app.areas.services import ratings_summary
from app.i18n import translate
from app.properties import services as property_services
from app.schemas import ContactSchema, payload_from_request, validation_error_response
from app.utils.email_utils import send_contact_message

main_bp = Blueprint('main', __name__, url_prefix='/<lng>')


@main_bp.route('/', methods=['GET'])
def home():
    featured = property_services.featured_properties()
    latest = property_services.new_properties()
    categories = property_services.ordered_categories()
    areas = property_services.active_areas()

    return jsonify({
        'site': translate('site'),
        'featured_properties': [p.to_card_dict() for p in featured],
        'new_properties': [p.to_card_dict() for p in latest],
        'categories': [c.to_dict(g.lng) for c in categories],
        'areas': [dict(a.to_dict(), ratings_summary=ratings_summary(a.id)) for a in areas],
    }), 200


@main_bp.route('/contact', methods=['POST'])
def contact():
    try:
        data = ContactSchema().load(payload_from_request(request))
    except ValidationError as err:
        return validation_error_response(err)

    sent = send_contact_message(
        name=data['name'],
        email=data['email'],
        subject=data['subject'],
        message=data['message'],
        phone=data.get('phone'),
        subject_label=translate(f"contact.subjects.{data['subject']}"),
    )
    if not sent:
        return jsonify({
            'success': False,
            'message': translate('contact.messageError'),
            'description': translate('contact.messageErrorDesc'),
        }), 502

    current_app.logger.info(f"📨 Contact form submitted ({data['subject']})")
    return jsonify({
        'success': True,
        'message': translate('contact.messageSent'),
        'description': translate('contact.messageSentDesc'),
    }), 200


@main_bp.route('/legal/terms', methods=['GET'])
def terms():
    return jsonify(translate('legal.terms')), 200


@main_bp.route('/legal/policies', methods=['GET'])
def policies():
    return jsonify(translate('legal.policies')), 200
