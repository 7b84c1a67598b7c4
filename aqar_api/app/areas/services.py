from sqlalchemy import func

from app import db
from app.models import RATING_DIMENSIONS, AreaRating

RATING_FIELDS = ('overall_rating',) + tuple(f'{d}_rating' for d in RATING_DIMENSIONS)


def ratings_summary(area_id):
    """
    Rating count and the average of each dimension (2 decimals).
    None when the area has no ratings yet.
    """
    columns = [func.count(AreaRating.id)] + [func.avg(getattr(AreaRating, f)) for f in RATING_FIELDS]
    row = db.session.query(*columns).filter(AreaRating.area_id == area_id).one()

    total = row[0] or 0
    if total == 0:
        return None

    averages = {}
    for field, value in zip(RATING_FIELDS, row[1:]):
        averages[field.replace('_rating', '')] = round(float(value), 2) if value is not None else None
    return {'area_id': area_id, 'total_ratings': total, 'averages': averages}


def list_ratings(area_id, limit=10, offset=0):
    return AreaRating.query.filter_by(area_id=area_id).order_by(
        AreaRating.created_at.desc(), AreaRating.id.desc()
    ).offset(offset).limit(limit).all()


def find_rating(area_id, user=None, ip_address=None):
    """The caller's rating: by user id when signed in, else by IP among anonymous ratings."""
    query = AreaRating.query.filter(AreaRating.area_id == area_id)
    if user is not None:
        return query.filter(AreaRating.user_id == user.id).first()
    if not ip_address:
        return None
    return query.filter(AreaRating.user_id.is_(None), AreaRating.ip_address == ip_address).first()


def submit_rating(area, data, user=None, ip_address=None):
    """
    Create or replace the caller's rating for `area`.
    Returns (rating, created).
    """
    rating = find_rating(area.id, user, ip_address)
    created = rating is None
    if created:
        rating = AreaRating(area_id=area.id)
        db.session.add(rating)

    rating.user_id = user.id if user is not None else None
    rating.ip_address = None if user is not None else ip_address
    for field in RATING_FIELDS:
        setattr(rating, field, data.get(field))
    rating.comment = data.get('comment') or None

    db.session.commit()
    return rating, created


def delete_rating(rating_id, user):
    """Only the author may delete; returns False when there is nothing of theirs to delete."""
    rating = AreaRating.query.filter_by(id=rating_id, user_id=user.id).first()
    if rating is None:
        return False
    db.session.delete(rating)
    db.session.commit()
    return True
