from dotenv import load_dotenv
load_dotenv()

from sqlalchemy import func

from app import create_app, db
from app.models import (
    Area, AreaRating, Category, LovedProperty, Property, PropertyImage, User
)

app = create_app()
with app.app_context():
    for model in (User, Category, Area, AreaRating, Property, PropertyImage, LovedProperty):
        print(f"{model.__tablename__}: {model.query.count()}")

    print("Properties by status:")
    for status, count in db.session.query(Property.status, func.count(Property.id)).group_by(Property.status):
        print(f"  {status}: {count}")

    featured = Property.query.filter(Property.is_featured.is_(True)).count()
    main = Property.query.filter(Property.is_main_featured.is_(True)).count()
    print(f"Featured: {featured}, main featured: {main}")
