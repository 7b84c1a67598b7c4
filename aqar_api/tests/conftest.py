import io

import pytest
from PIL import Image

from app import create_app, db
from app.auth.services import issue_token
from app.models import Area, Category, Property, User
from config import TestConfig
from werkzeug.security import generate_password_hash


@pytest.fixture
def app():
    app = create_app(TestConfig)
    with app.app_context():
        db.create_all()
        yield app
        db.session.remove()
        db.drop_all()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def make_user(app):
    def _make_user(email='user@example.com', role='user', password='secret123', full_name='Test User'):
        user = User(
            email=email,
            password_hash=generate_password_hash(password),
            full_name=full_name,
            role=role,
        )
        db.session.add(user)
        db.session.commit()
        return user
    return _make_user


@pytest.fixture
def auth_headers(app):
    def _auth_headers(user):
        return {'Authorization': f'Bearer {issue_token(user)}'}
    return _auth_headers


@pytest.fixture
def admin_headers(make_user, auth_headers):
    admin = make_user(email='admin@example.com', role='admin')
    return auth_headers(admin)


@pytest.fixture
def user_headers(make_user, auth_headers):
    return auth_headers(make_user())


@pytest.fixture
def make_category(app):
    def _make_category(name='Apartments', slug=None, order_index=0, **kwargs):
        category = Category(name=name, slug=slug or name.lower(), order_index=order_index, **kwargs)
        db.session.add(category)
        db.session.commit()
        return category
    return _make_category


@pytest.fixture
def make_area(app):
    def _make_area(name='New Cairo', slug=None, order_index=0, is_active=True):
        area = Area(name=name, slug=slug or name.lower().replace(' ', '-'),
                    order_index=order_index, is_active=is_active)
        db.session.add(area)
        db.session.commit()
        return area
    return _make_area


@pytest.fixture
def make_property(app):
    def _make_property(**overrides):
        data = {
            'title': 'Modern Apartment',
            'description': 'Bright apartment with city views',
            'price': 2500000,
            'price_per_meter': 2500000 / 150,
            'location': 'New Cairo, Egypt',
            'area': 'New Cairo',
            'bedrooms': 3,
            'bathrooms': 2,
            'size': 150,
            'property_type': 'sale',
            'owner_type': 'owner',
            'status': 'active',
            'features': [],
            'amenities': [],
            'contact_name': 'Sales',
            'contact_phone': '+20 100 000 0000',
        }
        data.update(overrides)
        prop = Property(**data)
        db.session.add(prop)
        db.session.commit()
        return prop
    return _make_property


def image_bytes(size=(800, 600), color=(200, 30, 30), fmt='PNG'):
    buffer = io.BytesIO()
    Image.new('RGB', size, color).save(buffer, format=fmt)
    return buffer.getvalue()


@pytest.fixture
def png_bytes():
    return image_bytes()


@pytest.fixture
def make_image():
    return image_bytes


class FakeCloudinary:
    """Records uploads/deletes instead of talking to Cloudinary."""

    def __init__(self):
        self.uploads = []
        self.destroyed = []
        self.fail_uploads = False

    def upload(self, file, public_id=None, resource_type='image', overwrite=False, **kwargs):
        if self.fail_uploads:
            raise RuntimeError('upload refused')
        content = file.read() if hasattr(file, 'read') else file
        self.uploads.append({
            'public_id': public_id,
            'resource_type': resource_type,
            'overwrite': overwrite,
            'content': content,
        })
        return {'secure_url': f'https://res.cloudinary.com/demo/{resource_type}/upload/v1/{public_id}.jpg'}

    def destroy(self, public_id, resource_type='image', **kwargs):
        self.destroyed.append(public_id)
        return {'result': 'ok'}


@pytest.fixture
def fake_cloudinary(monkeypatch):
    import cloudinary.uploader
    fake = FakeCloudinary()
    monkeypatch.setattr(cloudinary.uploader, 'upload', fake.upload)
    monkeypatch.setattr(cloudinary.uploader, 'destroy', fake.destroy)
    return fake
