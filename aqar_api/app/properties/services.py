from sqlalchemy import or_

from app import db
from app.models import Area, Category, Property

HOME_SECTION_SIZE = 6
RELATED_LIMIT = 4


def active_properties():
    return Property.query.filter(Property.status == 'active')


def featured_properties(limit=HOME_SECTION_SIZE):
    """Active featured listings: the main featured one first, then by order_index."""
    query = active_properties().filter(Property.is_featured.is_(True)).order_by(
        Property.is_main_featured.desc(), Property.order_index.asc(), Property.created_at.desc()
    )
    if limit:
        query = query.limit(limit)
    return query.all()


def new_properties(limit=HOME_SECTION_SIZE):
    return active_properties().filter(Property.is_new.is_(True)).order_by(
        Property.created_at.desc(), Property.id.desc()
    ).limit(limit).all()


def ordered_categories():
    return Category.query.order_by(Category.order_index.asc(), Category.name.asc()).all()


def active_areas():
    return Area.query.filter(Area.is_active.is_(True)).order_by(Area.order_index.asc(), Area.name.asc()).all()


def get_active_property(property_id):
    return active_properties().filter(Property.id == property_id).first()


def record_view(prop):
    """Atomic increment so concurrent readers don't lose views."""
    Property.query.filter(Property.id == prop.id).update(
        {Property.views: Property.views + 1}, synchronize_session=False
    )
    db.session.commit()
    db.session.refresh(prop)
    return prop.views


def related_properties(prop, limit=RELATED_LIMIT):
    """Other active listings sharing the category or the area, most viewed first."""
    criteria = [Property.area == prop.area]
    if prop.category_id is not None:
        criteria.append(Property.category_id == prop.category_id)
    return active_properties().filter(
        Property.id != prop.id, or_(*criteria)
    ).order_by(Property.views.desc(), Property.id.desc()).limit(limit).all()
