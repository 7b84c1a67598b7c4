from flask import jsonify
from marshmallow import (
    EXCLUDE, Schema, ValidationError, fields, post_load, validate, validates_schema
)

from app.i18n import translate
from app.models import OWNER_TYPES, PROPERTY_STATUSES, PROPERTY_TYPES

CONTACT_SUBJECTS = ('general', 'buying', 'selling', 'renting', 'support')


def payload_from_request(req, list_fields=()):
    """
    Flatten a JSON body or a submitted form into a plain dict for schema loading.
    Empty strings are dropped so optional fields fall back to their defaults.
    """
    if req.is_json:
        data = req.get_json(silent=True)
        if not isinstance(data, dict):
            return {}
        return {k: v for k, v in data.items() if v != ''}

    data = {}
    for key in req.form.keys():
        if key in list_fields:
            values = [v for v in req.form.getlist(key) if v != '']
            data[key] = values
        else:
            value = req.form.get(key)
            if value != '':
                data[key] = value
    return data


class BaseSchema(Schema):
    class Meta:
        unknown = EXCLUDE


class SignupSchema(BaseSchema):
    email = fields.Email(required=True)
    password = fields.String(required=True, validate=validate.Length(min=6, error="Password must be at least 6 characters"))
    confirm_password = fields.String(required=True)
    full_name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    phone = fields.String(load_default=None, validate=validate.Length(max=30))

    @validates_schema
    def passwords_match(self, data, **kwargs):
        if data.get('password') != data.get('confirm_password'):
            raise ValidationError("Passwords do not match", field_name='confirm_password')


class AdminSignupSchema(SignupSchema):
    admin_code = fields.String(required=True)


class LoginSchema(BaseSchema):
    email = fields.Email(required=True)
    password = fields.String(required=True)


class ProfileSchema(BaseSchema):
    full_name = fields.String(validate=validate.Length(min=1, max=255))
    phone = fields.String(allow_none=True, validate=validate.Length(max=30))
    avatar_url = fields.URL(allow_none=True)


class PropertyFormSchema(BaseSchema):
    """Admin property form. Field names follow the database columns."""
    title = fields.String(required=True, validate=validate.Length(min=1, max=500, error="Title is required"))
    description = fields.String(required=True, validate=validate.Length(min=1, error="Description is required"))
    price = fields.Float(required=True, validate=validate.Range(min=0, error="Price must be a positive number"))
    price_per_meter = fields.Float(load_default=None, allow_none=True)
    location = fields.String(required=True, validate=validate.Length(min=1, error="Location is required"))
    area = fields.String(required=True, validate=validate.Length(min=1, error="Area is required"))
    area_id = fields.Integer(load_default=None, allow_none=True)
    bedrooms = fields.Integer(required=True, validate=validate.Range(min=0, error="Bedrooms must be 0 or greater"))
    bathrooms = fields.Integer(required=True, validate=validate.Range(min=0, error="Bathrooms must be 0 or greater"))
    size = fields.Float(required=True, validate=validate.Range(min=1, error="Size must be greater than 0"))
    floor = fields.Integer(load_default=None, allow_none=True)
    total_floors = fields.Integer(load_default=None, allow_none=True)
    year_built = fields.Integer(load_default=None, allow_none=True)
    category_id = fields.Integer(required=True, error_messages={'required': "Category is required"})
    property_type = fields.String(required=True, validate=validate.OneOf(PROPERTY_TYPES))
    owner_type = fields.String(load_default='owner', validate=validate.OneOf(OWNER_TYPES))
    status = fields.String(load_default='active', validate=validate.OneOf(PROPERTY_STATUSES))
    features = fields.List(fields.String(), load_default=list)
    amenities = fields.List(fields.String(), load_default=list)
    is_new = fields.Boolean(load_default=False)
    is_featured = fields.Boolean(load_default=False)
    is_verified = fields.Boolean(load_default=False)
    location_lat = fields.Float(load_default=None, allow_none=True, validate=validate.Range(min=-90, max=90))
    location_lng = fields.Float(load_default=None, allow_none=True, validate=validate.Range(min=-180, max=180))
    location_iframe_url = fields.String(load_default=None, allow_none=True)
    contact_name = fields.String(required=True, validate=validate.Length(min=1, error="Contact name is required"))
    contact_phone = fields.String(required=True, validate=validate.Length(min=1, error="Contact phone is required"))
    contact_whatsapp = fields.String(load_default=None, allow_none=True)
    contact_email = fields.Email(load_default=None, allow_none=True, error_messages={'invalid': "Invalid email"})
    response_time = fields.String(load_default='1 hour')

    @post_load
    def fill_price_per_meter(self, data, **kwargs):
        if not data.get('price_per_meter'):
            data['price_per_meter'] = data['price'] / data['size']
        return data


class CategoryFormSchema(BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=255, error="Name is required"))
    description = fields.String(load_default=None, allow_none=True)
    icon = fields.String(load_default=None, allow_none=True)
    order_index = fields.Integer(load_default=None, allow_none=True,
                                 validate=validate.Range(min=0, error="Order must be 0 or greater"))
    image_url = fields.String(load_default=None, allow_none=True)
    name_en = fields.String(load_default=None, allow_none=True)
    name_ar = fields.String(load_default=None, allow_none=True)
    description_en = fields.String(load_default=None, allow_none=True)
    description_ar = fields.String(load_default=None, allow_none=True)


class AreaFormSchema(BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=255, error="Name is required"))
    description = fields.String(load_default=None, allow_none=True)
    order_index = fields.Integer(load_default=None, allow_none=True,
                                 validate=validate.Range(min=0, error="Order must be 0 or greater"))
    is_active = fields.Boolean(load_default=True)
    image_url = fields.String(load_default=None, allow_none=True)


class OrderItemSchema(BaseSchema):
    id = fields.Integer(required=True)
    order_index = fields.Integer(required=True, validate=validate.Range(min=0))


def _optional_rating():
    return fields.Integer(load_default=None, allow_none=True,
                          validate=validate.Range(min=1, max=5, error="Rating must be between 1 and 5"))


class AreaRatingSchema(BaseSchema):
    overall_rating = fields.Integer(required=True, validate=validate.Range(min=1, max=5, error="Rating must be between 1 and 5"))
    schools_rating = _optional_rating()
    transportation_rating = _optional_rating()
    shopping_rating = _optional_rating()
    restaurants_rating = _optional_rating()
    safety_rating = _optional_rating()
    quietness_rating = _optional_rating()
    walkability_rating = _optional_rating()
    nightlife_rating = _optional_rating()
    healthcare_rating = _optional_rating()
    parks_rating = _optional_rating()
    comment = fields.String(load_default=None, allow_none=True, validate=validate.Length(max=1000, error="Comment too long"))


class ContactSchema(BaseSchema):
    name = fields.String(required=True, validate=validate.Length(min=1, max=255))
    email = fields.Email(required=True)
    phone = fields.String(load_default=None, allow_none=True, validate=validate.Length(max=30))
    subject = fields.String(required=True, validate=validate.OneOf(CONTACT_SUBJECTS))
    message = fields.String(required=True, validate=validate.Length(min=1, max=5000))


class SiteSettingsSchema(BaseSchema):
    """Site settings editable from the admin settings page."""
    site_name = fields.String(validate=validate.Length(min=1, max=255))
    site_description = fields.String(validate=validate.Length(max=500))
    contact_email = fields.Email()
    contact_phone = fields.String(validate=validate.Length(max=50))
    address = fields.String(validate=validate.Length(max=500))
    meta_title = fields.String(validate=validate.Length(max=255))
    meta_description = fields.String(validate=validate.Length(max=500))
    meta_keywords = fields.String(validate=validate.Length(max=500))
    email_notifications = fields.Boolean()
    sms_notifications = fields.Boolean()
    push_notifications = fields.Boolean()
    marketing_emails = fields.Boolean()
    session_timeout = fields.Integer(validate=validate.Range(min=1))
    password_expiry = fields.Integer(validate=validate.Range(min=1))
    items_per_page = fields.Integer(validate=validate.Range(min=1, max=100))
    default_currency = fields.String(validate=validate.Length(equal=3))
    date_format = fields.String(validate=validate.Length(max=20))
    timezone = fields.String(validate=validate.Length(max=64))
    enable_reviews = fields.Boolean()
    enable_wishlist = fields.Boolean()
    enable_comparison = fields.Boolean()
    maintenance_mode = fields.Boolean()


def validation_error_response(err):
    return jsonify({
        'message': translate('errors.validation'),
        'errors': err.messages,
        'success': False,
    }), 422
