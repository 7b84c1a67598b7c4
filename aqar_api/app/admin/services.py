import time

from flask import current_app
from sqlalchemy import func

from app import db
from app.models import AppSetting, Area, Category, Property, PropertyImage
from app.uploads.services import file_extension, store_thumbnail
from app.utils.helpers import generate_slug, generate_unicode_slug, parse_bool
from app.utils.storage_utils import PROPERTY_IMAGES_BUCKET, delete_file, download_url, upload_file


class AdminError(ValueError):
    """Carries a dictionary key for the message and the HTTP status to answer with."""
    status = 400

    def __init__(self, key, field=None):
        super().__init__(key)
        self.key = key
        self.field = field


class NotFoundError(AdminError):
    status = 404


class DuplicateSlugError(AdminError):
    status = 409


class InUseError(AdminError):
    status = 409


# ------------- PROPERTIES -------------

PROPERTY_FIELDS = (
    'title', 'description', 'price', 'price_per_meter', 'location', 'area', 'area_id',
    'bedrooms', 'bathrooms', 'size', 'floor', 'total_floors', 'year_built', 'category_id',
    'property_type', 'owner_type', 'status', 'features', 'amenities', 'is_new', 'is_featured',
    'is_verified', 'location_lat', 'location_lng', 'location_iframe_url', 'contact_name',
    'contact_phone', 'contact_whatsapp', 'contact_email', 'response_time',
)


def save_property(data, prop=None):
    """Create (prop=None) or update a property from validated form data. Does not commit."""
    if not Category.query.get(data['category_id']):
        raise NotFoundError('admin.properties.categoryNotFound', field='category_id')
    if data.get('area_id') is not None and not Area.query.get(data['area_id']):
        raise NotFoundError('admin.properties.areaNotFound', field='area_id')

    if prop is None:
        prop = Property()
        db.session.add(prop)

    for field in PROPERTY_FIELDS:
        if field in data:
            setattr(prop, field, data[field])
    if not prop.is_featured:
        prop.is_main_featured = False

    db.session.flush()
    return prop


def _upload_property_image(prop, file_storage, index):
    content = file_storage.read()
    path = f"properties/{prop.id}_{index}_{int(time.time() * 1000)}.{file_extension(file_storage.filename)}"
    url = upload_file(content, PROPERTY_IMAGES_BUCKET, path)
    if not url:
        current_app.logger.error(f"Image {index} of property {prop.id} could not be uploaded, skipping it")
        return None, None, path
    return url, content, path


def image_count(form):
    try:
        return int(form.get("total_images") or 0)
    except ValueError:
        return 0


def _image_field(form, i, name):
    return form.get(f"image_{i}_{name}") or form.get(f"existing_image_{i}_{name}")


def apply_image_form(prop, form, files, updating=False):
    """
    Images travel as numbered form fields:
      total_images, image_<i> (file), image_<i>_alt, image_<i>_order, image_<i>_is_main
    and, on update, existing_image_<i>_id / _alt / _order / _is_main for images kept as-is.

    On update every current image not referenced by an existing_image_<i>_id is
    removed from storage and from the database. A failed upload is skipped.
    Returns {image id: (bytes, storage path)} for the images uploaded in this call.
    """
    total = image_count(form)
    if total <= 0:
        return {}

    current_images = list(prop.images) if updating else []
    kept_ids = set()
    uploaded = {}

    for i in range(total):
        file_storage = files.get(f'image_{i}')
        existing_id = form.get(f'existing_image_{i}_id')

        alt_text = _image_field(form, i, "alt") or None
        try:
            order_index = int(_image_field(form, i, "order"))
        except (TypeError, ValueError):
            order_index = i
        is_main = parse_bool(_image_field(form, i, "is_main"))

        if file_storage and file_storage.filename:
            url, content, path = _upload_property_image(prop, file_storage, i)
            if not url:
                continue
            image = PropertyImage(url=url, alt_text=alt_text, order_index=order_index, is_main=is_main)
            prop.images.append(image)
            db.session.flush()
            uploaded[image.id] = (content, path)
        elif existing_id and str(existing_id).isdigit():
            image = PropertyImage.query.filter_by(id=int(existing_id), property_id=prop.id).first()
            if image is None:
                continue
            kept_ids.add(image.id)
            image.alt_text = alt_text
            image.order_index = order_index
            image.is_main = is_main

    for image in current_images:
        if image.id not in kept_ids:
            if not delete_file(image.url):
                current_app.logger.warning(f"Storage object for image {image.id} was not removed: {image.url}")
            if image.thumbnail_url:
                delete_file(image.thumbnail_url)
            prop.images.remove(image)
            db.session.delete(image)

    db.session.flush()
    return uploaded


def refresh_property_thumbnail(prop, uploaded):
    """
    Point the listing thumbnail at the main image, falling back to the first
    one, generating the resized copy when that image has none yet.
    """
    db.session.expire(prop, ['images'])
    source = prop.main_image()
    if source is None:
        prop.thumbnail_url = None
        return None

    if source.id in uploaded:
        content, path = uploaded[source.id]
    elif source.thumbnail_url:
        prop.thumbnail_url = source.thumbnail_url
        return prop.thumbnail_url
    else:
        content = download_url(source.url)
        path = f"properties/{prop.id}_{source.id}.jpg"
        if content is None:
            return prop.thumbnail_url

    url = store_thumbnail(content, path)
    if url:
        source.thumbnail_url = url
        prop.thumbnail_url = url
    return prop.thumbnail_url


def delete_property(prop):
    for image in prop.images:
        delete_file(image.url)
        if image.thumbnail_url:
            delete_file(image.thumbnail_url)
    db.session.delete(prop)
    db.session.commit()


def set_featured(prop, featured):
    prop.is_featured = featured
    if not featured:
        prop.is_main_featured = False
    db.session.commit()
    return prop


def set_main_featured(prop, main):
    """At most one main featured property, and it must be featured."""
    if main and not prop.is_featured:
        raise AdminError('admin.properties.mustBeFeatured')
    if main:
        Property.query.filter(Property.id != prop.id, Property.is_main_featured.is_(True)).update(
            {Property.is_main_featured: False}, synchronize_session=False
        )
    prop.is_main_featured = main
    db.session.commit()
    return prop


def apply_order(model, items, not_found_key):
    """Write order_index for every {id, order_index}; all ids must exist."""
    ids = {item['id'] for item in items}
    found = {obj.id: obj for obj in model.query.filter(model.id.in_(ids)).all()}
    if len(found) != len(ids):
        raise NotFoundError(not_found_key)
    for item in items:
        found[item['id']].order_index = item['order_index']
    db.session.commit()


def next_order_index(model):
    current_max = db.session.query(func.max(model.order_index)).scalar()
    return 0 if current_max is None else current_max + 1


# ------------- CATEGORIES -------------

def category_slug(name):
    """ASCII slug; names without any ASCII word characters keep their own script."""
    return generate_slug(name) or generate_unicode_slug(name)


def save_category(data, category=None):
    slug = category_slug(data['name'])
    clash = Category.query.filter(Category.slug == slug)
    if category is not None:
        clash = clash.filter(Category.id != category.id)
    if not slug or clash.first():
        raise DuplicateSlugError('admin.categories.duplicate', field='name')

    if category is None:
        if data.get('order_index') is None:
            data['order_index'] = next_order_index(Category)
        category = Category()
        db.session.add(category)

    category.slug = slug
    for field in ('name', 'description', 'icon', 'image_url', 'name_en', 'name_ar',
                  'description_en', 'description_ar'):
        if field in data:
            setattr(category, field, data[field])
    if data.get('order_index') is not None:
        category.order_index = data['order_index']

    db.session.commit()
    return category


def delete_category(category):
    if Property.query.filter_by(category_id=category.id).first():
        raise InUseError('admin.categories.inUse')
    db.session.delete(category)
    db.session.commit()


# ------------- AREAS -------------

def save_area(data, area=None):
    slug = generate_unicode_slug(data['name'])
    if area is None or slug != area.slug:
        clash = Area.query.filter(Area.slug == slug)
        if area is not None:
            clash = clash.filter(Area.id != area.id)
        if not slug or clash.first():
            raise DuplicateSlugError('admin.areas.duplicate', field='name')

    if area is None:
        if data.get('order_index') is None:
            data['order_index'] = next_order_index(Area)
        area = Area()
        db.session.add(area)

    area.slug = slug
    for field in ('name', 'description', 'image_url', 'is_active'):
        if field in data:
            setattr(area, field, data[field])
    if data.get('order_index') is not None:
        area.order_index = data['order_index']

    db.session.commit()
    return area


def delete_area(area):
    if Property.query.filter_by(area_id=area.id).first():
        raise InUseError('admin.areas.inUse')
    db.session.delete(area)
    db.session.commit()


# ------------- SETTINGS -------------

DEFAULT_SETTINGS = {
    'site_name': 'Aqar',
    'site_description': 'Real estate marketplace',
    'contact_email': 'info@example.com',
    'contact_phone': '',
    'address': '',
    'meta_title': 'Aqar',
    'meta_description': '',
    'meta_keywords': '',
    'email_notifications': True,
    'sms_notifications': False,
    'push_notifications': False,
    'marketing_emails': False,
    'session_timeout': 30,
    'password_expiry': 90,
    'items_per_page': 24,
    'default_currency': 'EGP',
    'date_format': 'DD/MM/YYYY',
    'timezone': 'Africa/Cairo',
    'enable_reviews': True,
    'enable_wishlist': True,
    'enable_comparison': True,
    'maintenance_mode': False,
}


def _data_type(value):
    if isinstance(value, bool):
        return 'boolean'
    if isinstance(value, int):
        return 'integer'
    if isinstance(value, float):
        return 'decimal'
    return 'string'


def get_site_settings():
    settings = dict(DEFAULT_SETTINGS)
    stored = AppSetting.query.filter(AppSetting.setting_key.in_(DEFAULT_SETTINGS.keys())).all()
    for setting in stored:
        try:
            settings[setting.setting_key] = setting.typed_value()
        except ValueError:
            current_app.logger.warning(f"Ignoring malformed setting {setting.setting_key}={setting.setting_value!r}")
    return settings


def save_site_settings(data):
    for key, value in data.items():
        setting = AppSetting.query.filter_by(setting_key=key).first()
        if setting is None:
            setting = AppSetting(setting_key=key)
            db.session.add(setting)
        setting.data_type = _data_type(value)
        setting.setting_value = ('true' if value else 'false') if isinstance(value, bool) else str(value)
    db.session.commit()
    return get_site_settings()
