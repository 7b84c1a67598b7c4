from app import db
from datetime import datetime

PROPERTY_TYPES = ('sale', 'rent')
OWNER_TYPES = ('owner', 'broker')
PROPERTY_STATUSES = ('active', 'draft', 'sold', 'rented', 'inactive')
RATING_DIMENSIONS = (
    'schools', 'transportation', 'shopping', 'restaurants', 'safety',
    'quietness', 'walkability', 'nightlife', 'healthcare', 'parks',
)


def _iso(value):
    return value.isoformat() if value else None


def _num(value):
    return float(value) if value is not None else None


class User(db.Model):
    __tablename__ = 'Users'

    id = db.Column(db.Integer, primary_key=True)
    email = db.Column(db.String(191), unique=True, nullable=False)
    password_hash = db.Column(db.String(255), nullable=False)
    full_name = db.Column(db.String(255))
    phone = db.Column(db.String(30))
    avatar_url = db.Column(db.String(500))
    role = db.Column(db.Enum('user', 'admin', name='user_role'), nullable=False, default='user')
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def __repr__(self):
        return f'<User {self.email}>'

    def to_dict(self):
        return {
            'id': self.id,
            'email': self.email,
            'full_name': self.full_name,
            'phone': self.phone,
            'avatar_url': self.avatar_url,
            'role': self.role,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }


class AppSetting(db.Model):
    __tablename__ = 'AppSettings'
    id = db.Column(db.Integer, primary_key=True)
    setting_key = db.Column(db.String(100), unique=True, nullable=False)
    setting_value = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text)
    data_type = db.Column(db.Enum('integer', 'decimal', 'string', 'boolean', name='setting_type'), nullable=False, default='string')

    def typed_value(self):
        if self.data_type == 'integer':
            return int(self.setting_value)
        if self.data_type == 'decimal':
            return float(self.setting_value)
        if self.data_type == 'boolean':
            return self.setting_value == 'true'
        return self.setting_value


class Category(db.Model):
    __tablename__ = 'Categories'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False)
    description = db.Column(db.Text)
    icon = db.Column(db.String(100))
    order_index = db.Column(db.Integer, default=0)
    image_url = db.Column(db.String(500))
    name_en = db.Column(db.String(255))
    name_ar = db.Column(db.String(255))
    description_en = db.Column(db.Text)
    description_ar = db.Column(db.Text)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    def to_dict(self, lng=None):
        from app.i18n import localized
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'description': self.description,
            'icon': self.icon,
            'order_index': self.order_index,
            'image_url': self.image_url,
            'name_en': self.name_en,
            'name_ar': self.name_ar,
            'description_en': self.description_en,
            'description_ar': self.description_ar,
            'display_name': localized(self, 'name', lng),
            'display_description': localized(self, 'description', lng),
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }


class Area(db.Model):
    __tablename__ = 'Areas'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(255), nullable=False)
    slug = db.Column(db.String(255), unique=True, nullable=False)
    description = db.Column(db.Text)
    order_index = db.Column(db.Integer, default=0)
    is_active = db.Column(db.Boolean, nullable=False, default=True)
    image_url = db.Column(db.String(500))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    ratings = db.relationship('AreaRating', back_populates='area', cascade="all, delete-orphan", lazy=True)

    def to_dict(self):
        return {
            'id': self.id,
            'name': self.name,
            'slug': self.slug,
            'description': self.description,
            'order_index': self.order_index,
            'is_active': self.is_active,
            'image_url': self.image_url,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }


class AreaRating(db.Model):
    __tablename__ = 'AreaRatings'
    id = db.Column(db.Integer, primary_key=True)
    area_id = db.Column(db.Integer, db.ForeignKey('Areas.id', ondelete='CASCADE'), nullable=False)
    user_id = db.Column(db.Integer, db.ForeignKey('Users.id', ondelete='SET NULL'))
    overall_rating = db.Column(db.Integer, nullable=False)
    schools_rating = db.Column(db.Integer)
    transportation_rating = db.Column(db.Integer)
    shopping_rating = db.Column(db.Integer)
    restaurants_rating = db.Column(db.Integer)
    safety_rating = db.Column(db.Integer)
    quietness_rating = db.Column(db.Integer)
    walkability_rating = db.Column(db.Integer)
    nightlife_rating = db.Column(db.Integer)
    healthcare_rating = db.Column(db.Integer)
    parks_rating = db.Column(db.Integer)
    comment = db.Column(db.Text)
    ip_address = db.Column(db.String(64))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    area = db.relationship('Area', back_populates='ratings')

    def to_dict(self):
        data = {
            'id': self.id,
            'area_id': self.area_id,
            'user_id': self.user_id,
            'overall_rating': self.overall_rating,
            'comment': self.comment,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        }
        for dimension in RATING_DIMENSIONS:
            data[f'{dimension}_rating'] = getattr(self, f'{dimension}_rating')
        return data


class Property(db.Model):
    __tablename__ = 'Properties'
    id = db.Column(db.Integer, primary_key=True)
    title = db.Column(db.String(500), nullable=False)
    description = db.Column(db.Text, nullable=False)
    price = db.Column(db.Numeric(14, 2), nullable=False)
    price_per_meter = db.Column(db.Numeric(14, 2))
    location = db.Column(db.String(255), nullable=False)
    area = db.Column(db.String(255), nullable=False)
    area_id = db.Column(db.Integer, db.ForeignKey('Areas.id', ondelete='SET NULL'))
    bedrooms = db.Column(db.Integer, nullable=False, default=0)
    bathrooms = db.Column(db.Integer, nullable=False, default=0)
    size = db.Column(db.Numeric(10, 2), nullable=False)
    floor = db.Column(db.Integer)
    total_floors = db.Column(db.Integer)
    year_built = db.Column(db.Integer)
    category_id = db.Column(db.Integer, db.ForeignKey('Categories.id', ondelete='RESTRICT'))
    property_type = db.Column(db.Enum(*PROPERTY_TYPES, name='property_type'), nullable=False)
    owner_type = db.Column(db.Enum(*OWNER_TYPES, name='owner_type'), default='owner')
    status = db.Column(db.Enum(*PROPERTY_STATUSES, name='property_status'), nullable=False, default='active')
    features = db.Column(db.JSON, default=list)
    amenities = db.Column(db.JSON, default=list)
    is_new = db.Column(db.Boolean, default=False)
    is_featured = db.Column(db.Boolean, default=False)
    is_main_featured = db.Column(db.Boolean, default=False)
    is_verified = db.Column(db.Boolean, default=False)
    views = db.Column(db.Integer, nullable=False, default=0)
    location_lat = db.Column(db.Numeric(9, 6))
    location_lng = db.Column(db.Numeric(9, 6))
    location_iframe_url = db.Column(db.Text)
    contact_name = db.Column(db.String(255), nullable=False)
    contact_phone = db.Column(db.String(50), nullable=False)
    contact_whatsapp = db.Column(db.String(50))
    contact_email = db.Column(db.String(191))
    contact_avatar = db.Column(db.String(500))
    contact_is_verified = db.Column(db.Boolean, default=False)
    response_time = db.Column(db.String(50), default='1 hour')
    thumbnail_url = db.Column(db.String(500))
    order_index = db.Column(db.Integer, default=0)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    category = db.relationship('Category', backref='properties')
    area_ref = db.relationship('Area', backref='properties')
    images = db.relationship('PropertyImage', back_populates='property', cascade="all, delete-orphan",
                             order_by='PropertyImage.order_index', lazy=True)
    rating = db.relationship('PropertyRating', back_populates='property', uselist=False,
                             cascade="all, delete-orphan")

    def __repr__(self):
        return f'<Property {self.id} {self.title}>'

    def main_image(self):
        for image in self.images:
            if image.is_main:
                return image
        return self.images[0] if self.images else None

    def to_card_dict(self):
        """Fields needed by listing cards and the comparison tray."""
        from app.utils.helpers import format_price
        main = self.main_image()
        return {
            'id': self.id,
            'title': self.title,
            'price': _num(self.price),
            'price_display': format_price(_num(self.price) or 0),
            'price_per_meter': _num(self.price_per_meter),
            'location': self.location,
            'area': self.area,
            'bedrooms': self.bedrooms,
            'bathrooms': self.bathrooms,
            'size': _num(self.size),
            'property_type': self.property_type,
            'is_new': self.is_new,
            'is_featured': self.is_featured,
            'is_verified': self.is_verified,
            'thumbnail_url': self.thumbnail_url or (main.url if main else None),
        }

    def to_dict(self, lng=None):
        data = self.to_card_dict()
        data.update({
            'description': self.description,
            'area_id': self.area_id,
            'floor': self.floor,
            'total_floors': self.total_floors,
            'year_built': self.year_built,
            'category_id': self.category_id,
            'owner_type': self.owner_type,
            'status': self.status,
            'features': list(self.features or []),
            'amenities': list(self.amenities or []),
            'is_main_featured': self.is_main_featured,
            'views': self.views,
            'location_lat': _num(self.location_lat),
            'location_lng': _num(self.location_lng),
            'location_iframe_url': self.location_iframe_url,
            'contact': {
                'name': self.contact_name,
                'phone': self.contact_phone,
                'whatsapp': self.contact_whatsapp,
                'email': self.contact_email,
                'avatar': self.contact_avatar,
                'is_verified': self.contact_is_verified,
                'response_time': self.response_time,
            },
            'order_index': self.order_index,
            'images': [image.to_dict() for image in self.images],
            'category': self.category.to_dict(lng) if self.category else None,
            'created_at': _iso(self.created_at),
            'updated_at': _iso(self.updated_at),
        })
        return data


class PropertyImage(db.Model):
    __tablename__ = 'PropertyImages'
    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey('Properties.id', ondelete='CASCADE'), nullable=False)
    url = db.Column(db.String(500), nullable=False)
    thumbnail_url = db.Column(db.String(500))
    alt_text = db.Column(db.String(255))
    order_index = db.Column(db.Integer, default=0)
    is_main = db.Column(db.Boolean, default=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)

    property = db.relationship('Property', back_populates='images')

    def to_dict(self):
        return {
            'id': self.id,
            'url': self.url,
            'thumbnail_url': self.thumbnail_url,
            'alt_text': self.alt_text,
            'order_index': self.order_index,
            'is_main': self.is_main,
        }


class PropertyRating(db.Model):
    __tablename__ = 'PropertyRatings'
    id = db.Column(db.Integer, primary_key=True)
    property_id = db.Column(db.Integer, db.ForeignKey('Properties.id', ondelete='CASCADE'), unique=True, nullable=False)
    schools = db.Column(db.Numeric(3, 1))
    transportation = db.Column(db.Numeric(3, 1))
    shopping = db.Column(db.Numeric(3, 1))
    restaurants = db.Column(db.Numeric(3, 1))
    safety = db.Column(db.Numeric(3, 1))
    quietness = db.Column(db.Numeric(3, 1))
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    property = db.relationship('Property', back_populates='rating')

    SCORES = ('schools', 'transportation', 'shopping', 'restaurants', 'safety', 'quietness')

    def to_dict(self):
        from app.utils.helpers import get_rating_color
        data = {}
        for name in self.SCORES:
            value = _num(getattr(self, name))
            data[name] = {
                'value': value,
                'color': get_rating_color(value) if value is not None else None,
            }
        return data


class LovedProperty(db.Model):
    __tablename__ = 'LovedProperties'
    id = db.Column(db.Integer, primary_key=True)
    user_id = db.Column(db.Integer, db.ForeignKey('Users.id', ondelete='CASCADE'), nullable=False)
    property_id = db.Column(db.Integer, db.ForeignKey('Properties.id', ondelete='CASCADE'), nullable=False)
    created_at = db.Column(db.DateTime, default=datetime.utcnow)
    __table_args__ = (db.UniqueConstraint('user_id', 'property_id', name='unique_user_loved_property'),)

    user = db.relationship('User', backref='loved_properties')
    property = db.relationship('Property', backref=db.backref('loved_by', cascade="all, delete-orphan"))
