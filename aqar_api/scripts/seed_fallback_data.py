"""
Seed an empty database with the starter catalogue: two categories and one
sample listing. Rows that already exist (matched by slug or title) are left alone.

Usage: python scripts/seed_fallback_data.py
"""
from dotenv import load_dotenv
load_dotenv()

from app import create_app, db
from app.models import Category, Property

FALLBACK_CATEGORIES = [
    {
        'name': 'Apartments',
        'slug': 'apartments',
        'description': 'Modern apartments in prime locations',
        'icon': 'Building',
        'order_index': 0,
    },
    {
        'name': 'Villas',
        'slug': 'villas',
        'description': 'Luxury villas with gardens',
        'icon': 'Home',
        'order_index': 1,
    },
]

FALLBACK_PROPERTIES = [
    {
        'title': 'Modern Apartment in New Cairo',
        'description': 'Beautiful 3-bedroom apartment with city views',
        'price': 2500000,
        'location': 'New Cairo, Egypt',
        'area': 'New Cairo',
        'bedrooms': 3,
        'bathrooms': 2,
        'size': 150,
        'property_type': 'sale',
        'category_slug': 'apartments',
        'is_featured': True,
        'amenities': ['Parking', 'Gym', 'Pool'],
        'contact_name': 'Aqar Sales',
        'contact_phone': '+20 100 000 0000',
    },
]


def seed():
    categories = {}
    for data in FALLBACK_CATEGORIES:
        category = Category.query.filter_by(slug=data['slug']).first()
        if category is None:
            category = Category(**data)
            db.session.add(category)
            print(f"Category added: {data['name']}")
        categories[data['slug']] = category
    db.session.flush()

    for data in FALLBACK_PROPERTIES:
        data = dict(data)
        if Property.query.filter_by(title=data['title']).first():
            continue
        category = categories[data.pop('category_slug')]
        prop = Property(category_id=category.id, status='active', **data)
        prop.price_per_meter = data['price'] / data['size']
        db.session.add(prop)
        print(f"Property added: {data['title']}")

    db.session.commit()


if __name__ == '__main__':
    app = create_app()
    with app.app_context():
        db.create_all()
        try:
            seed()
        except Exception as e:
            db.session.rollback()
            print(f"Seeding failed: {e}")
            raise
