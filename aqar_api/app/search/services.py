# app/search/services.py
"""
Search over active listings.

The request's query string is parsed into a filter dict, the database narrows
the listings down, and sorting and pagination then run over the filtered list
in memory. The last two steps are pure functions so they can be reused by any
listing page.
"""
import math
from urllib.parse import urlencode

from sqlalchemy import or_

from app.models import Category, Property

DEFAULT_SORT = 'newest'
DEFAULT_PAGE = 1
DEFAULT_LIMIT = 24

SORT_KEYS = (
    'newest', 'oldest', 'price-low', 'price-high', 'area-large', 'area-small',
    'price-per-meter-low', 'price-per-meter-high',
)

# query-string name -> filter name
NUMBER_PARAMS = {
    'minPrice': 'min_price',
    'maxPrice': 'max_price',
    'bedrooms': 'bedrooms',
    'bathrooms': 'bathrooms',
    'minSize': 'min_size',
    'maxSize': 'max_size',
    'minPricePerMeter': 'min_price_per_meter',
    'maxPricePerMeter': 'max_price_per_meter',
    'floor': 'floor',
    'yearBuilt': 'year_built',
}
TEXT_PARAMS = {
    'category': 'category',
    'location': 'location',
    'area': 'area',
}
FLAG_PARAMS = {
    'isNew': 'is_new',
    'isFeatured': 'is_featured',
    'isVerified': 'is_verified',
}


def _get(params, key):
    value = params.get(key)
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _get_list(params, key):
    if hasattr(params, 'getlist'):
        values = params.getlist(key)
    else:
        value = params.get(key)
        if value is None:
            values = []
        elif isinstance(value, (list, tuple)):
            values = list(value)
        else:
            values = [value]
    return [v for v in values if v not in (None, '')]


def _number(value):
    if value is None or str(value).strip() == '':
        return None
    try:
        number = float(value)
    except (TypeError, ValueError):
        return None
    if math.isnan(number) or math.isinf(number):
        return None
    return int(number) if number.is_integer() else number


def _positive_int(value, default):
    try:
        number = int(str(value).strip())
    except (TypeError, ValueError):
        return default
    return number if number > 0 else default


def parse_search_params(params, default_limit=DEFAULT_LIMIT):
    """
    Turn request arguments into `(filters, query, sort, page, limit)`.

    Unparsable numbers are dropped rather than rejected; page and limit fall
    back to their defaults when missing, invalid or not positive;
    `default_limit` lets callers substitute a configured page size.
    """
    filters = {}

    for param, name in TEXT_PARAMS.items():
        value = _get(params, param)
        if value:
            filters[name] = value

    for param, name in NUMBER_PARAMS.items():
        number = _number(_get(params, param))
        if number is not None:
            filters[name] = number

    property_type = _get(params, 'type')
    if property_type:
        filters['property_type'] = property_type
    owner_type = _get(params, 'ownerType')
    if owner_type:
        filters['owner_type'] = owner_type

    for param, name in FLAG_PARAMS.items():
        if _get(params, param) == 'true':
            filters[name] = True

    for name in ('amenities', 'features'):
        values = _get_list(params, name)
        if values:
            filters[name] = values

    query = _get(params, 'q') or ''
    sort = _get(params, 'sort') or DEFAULT_SORT
    page = _positive_int(_get(params, 'page'), DEFAULT_PAGE)
    limit = _positive_int(_get(params, 'limit'), default_limit)

    return {
        'filters': filters,
        'query': query,
        'sort': sort,
        'page': page,
        'limit': limit,
    }


def _contains_all(values, required):
    present = set(values or [])
    return all(item in present for item in required)


def fetch_filtered_properties(query='', filters=None):
    """
    Active listings matching `filters` and the free-text `query`, newest first.
    Zero-valued numeric filters are treated as unset.
    """
    filters = filters or {}
    q = Property.query.filter(Property.status == 'active')

    category = filters.get('category')
    if category:
        if str(category).isdigit():
            q = q.filter(Property.category_id == int(category))
        else:
            q = q.join(Category, Property.category_id == Category.id).filter(Category.slug == category)

    if filters.get('min_price'):
        q = q.filter(Property.price >= filters['min_price'])
    if filters.get('max_price'):
        q = q.filter(Property.price <= filters['max_price'])
    if filters.get('bedrooms'):
        q = q.filter(Property.bedrooms == filters['bedrooms'])
    if filters.get('bathrooms'):
        q = q.filter(Property.bathrooms == filters['bathrooms'])
    if filters.get('min_size'):
        q = q.filter(Property.size >= filters['min_size'])
    if filters.get('max_size'):
        q = q.filter(Property.size <= filters['max_size'])
    if filters.get('min_price_per_meter'):
        q = q.filter(Property.price_per_meter >= filters['min_price_per_meter'])
    if filters.get('max_price_per_meter'):
        q = q.filter(Property.price_per_meter <= filters['max_price_per_meter'])
    if filters.get('floor'):
        q = q.filter(Property.floor == filters['floor'])
    if filters.get('year_built'):
        q = q.filter(Property.year_built == filters['year_built'])

    if filters.get('location'):
        pattern = f"%{filters['location']}%"
        q = q.filter(or_(Property.location.ilike(pattern), Property.area.ilike(pattern)))
    if filters.get('area'):
        q = q.filter(Property.area.ilike(f"%{filters['area']}%"))

    if filters.get('property_type'):
        q = q.filter(Property.property_type == filters['property_type'])
    if filters.get('owner_type'):
        q = q.filter(Property.owner_type == filters['owner_type'])
    if filters.get('is_new'):
        q = q.filter(Property.is_new.is_(True))
    if filters.get('is_featured'):
        q = q.filter(Property.is_featured.is_(True))
    if filters.get('is_verified'):
        q = q.filter(Property.is_verified.is_(True))

    if query and query.strip():
        pattern = f"%{query.strip()}%"
        q = q.filter(or_(
            Property.title.ilike(pattern),
            Property.description.ilike(pattern),
            Property.location.ilike(pattern),
            Property.area.ilike(pattern),
        ))

    properties = q.order_by(Property.created_at.desc(), Property.id.desc()).all()

    # JSON list columns: containment is checked here to stay portable across MySQL and SQLite
    for name in ('amenities', 'features'):
        required = filters.get(name)
        if required:
            properties = [p for p in properties if _contains_all(getattr(p, name), required)]

    return properties


def _value(item, name):
    if isinstance(item, dict):
        value = item.get(name)
    else:
        value = getattr(item, name, None)
    return float(value) if value else 0


def sort_properties(items, sort=DEFAULT_SORT):
    """
    Return a sorted copy. `newest` keeps the incoming order (already newest
    first) and `oldest` reverses it. Missing values count as 0; ties keep
    their relative order.
    """
    items = list(items)
    if sort == 'oldest':
        return items[::-1]
    if sort == 'price-low':
        return sorted(items, key=lambda p: _value(p, 'price'))
    if sort == 'price-high':
        return sorted(items, key=lambda p: -_value(p, 'price'))
    if sort == 'area-large':
        return sorted(items, key=lambda p: -_value(p, 'size'))
    if sort == 'area-small':
        return sorted(items, key=lambda p: _value(p, 'size'))
    if sort == 'price-per-meter-low':
        return sorted(items, key=lambda p: _value(p, 'price_per_meter'))
    if sort == 'price-per-meter-high':
        return sorted(items, key=lambda p: -_value(p, 'price_per_meter'))
    return items


def paginate(items, page=DEFAULT_PAGE, limit=DEFAULT_LIMIT):
    total = len(items)
    start = (page - 1) * limit
    end = start + limit
    return items[start:end], {
        'page': page,
        'limit': limit,
        'total': total,
        'total_pages': math.ceil(total / limit) if limit else 0,
        'has_next_page': end < total,
        'has_previous_page': page > 1,
    }


def _query_value(value):
    if isinstance(value, bool):
        return 'true' if value else 'false'
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def build_search_url(lng, new_params, current_params=None):
    """
    `/<lng>/search` with `current_params` overridden by `new_params`.
    Empty values are left out and list values repeat their key.
    """
    merged = dict(current_params or {})
    merged.update(new_params or {})

    pairs = []
    for key, value in merged.items():
        if value is None or value == '':
            continue
        if isinstance(value, (list, tuple)):
            pairs.extend((key, _query_value(v)) for v in value)
        else:
            pairs.append((key, _query_value(value)))

    query_string = urlencode(pairs)
    return f"/{lng}/search?{query_string}" if query_string else f"/{lng}/search"


def get_active_filters_count(params):
    count = 0
    q = _get(params, 'q')
    if q and q.strip():
        count += 1
    if _get(params, 'category'):
        count += 1
    if _get(params, 'minPrice') or _get(params, 'maxPrice'):
        count += 1
    for key in ('location', 'bedrooms', 'bathrooms'):
        if _get(params, key):
            count += 1
    if _get(params, 'minSize') or _get(params, 'maxSize'):
        count += 1
    for key in ('type', 'ownerType'):
        if _get(params, key):
            count += 1
    if _get(params, 'isNew') == 'true':
        count += 1
    count += len(_get_list(params, 'amenities'))
    return count
