from urllib.parse import parse_qs, urlsplit

from werkzeug.datastructures import MultiDict

from app.search.services import (
    build_search_url, fetch_filtered_properties, get_active_filters_count,
    paginate, parse_search_params, sort_properties
)


def test_parse_defaults():
    parsed = parse_search_params(MultiDict())
    assert parsed == {'filters': {}, 'query': '', 'sort': 'newest', 'page': 1, 'limit': 24}


def test_parse_full_query_string():
    args = MultiDict([
        ('q', 'garden'), ('category', 'villas'), ('minPrice', '100000'), ('maxPrice', '900000'),
        ('bedrooms', '3'), ('type', 'rent'), ('ownerType', 'broker'), ('isNew', 'true'),
        ('amenities', 'Pool'), ('amenities', 'Gym'), ('sort', 'price-low'), ('page', '2'), ('limit', '10'),
    ])
    parsed = parse_search_params(args)
    filters = parsed['filters']
    assert filters['category'] == 'villas'
    assert filters['min_price'] == 100000
    assert filters['max_price'] == 900000
    assert filters['bedrooms'] == 3
    assert filters['property_type'] == 'rent'
    assert filters['owner_type'] == 'broker'
    assert filters['is_new'] is True
    assert filters['amenities'] == ['Pool', 'Gym']
    assert (parsed['query'], parsed['sort'], parsed['page'], parsed['limit']) == ('garden', 'price-low', 2, 10)


def test_parse_drops_bad_numbers_and_falls_back_on_bad_paging():
    parsed = parse_search_params({'minPrice': 'abc', 'maxSize': '', 'isNew': 'yes', 'page': '-3', 'limit': 'x'})
    assert 'min_price' not in parsed['filters']
    assert 'max_size' not in parsed['filters']
    assert 'is_new' not in parsed['filters']
    assert parsed['page'] == 1
    assert parsed['limit'] == 24
    assert parse_search_params({'limit': 'x'}, default_limit=12)['limit'] == 12
    assert parse_search_params({'limit': '30'}, default_limit=12)['limit'] == 30


def test_single_amenity_from_plain_dict():
    assert parse_search_params({'amenities': 'Pool'})['filters']['amenities'] == ['Pool']


def test_sort_is_stable_and_treats_missing_as_zero():
    items = [
        {'id': 1, 'price': 300, 'size': 100, 'price_per_meter': None},
        {'id': 2, 'price': None, 'size': 80, 'price_per_meter': 5},
        {'id': 3, 'price': 300, 'size': 120, 'price_per_meter': 2},
    ]
    assert [p['id'] for p in sort_properties(items, 'price-low')] == [2, 1, 3]
    assert [p['id'] for p in sort_properties(items, 'price-high')] == [1, 3, 2]
    assert [p['id'] for p in sort_properties(items, 'area-large')] == [3, 1, 2]
    assert [p['id'] for p in sort_properties(items, 'area-small')] == [2, 1, 3]
    assert [p['id'] for p in sort_properties(items, 'price-per-meter-low')] == [1, 3, 2]
    assert [p['id'] for p in sort_properties(items, 'price-per-meter-high')] == [2, 3, 1]
    assert [p['id'] for p in sort_properties(items, 'oldest')] == [3, 2, 1]
    assert [p['id'] for p in sort_properties(items, 'unknown')] == [1, 2, 3]


def test_sort_does_not_mutate_input():
    items = [{'id': 1, 'price': 5}, {'id': 2, 'price': 1}]
    sort_properties(items, 'price-low')
    assert [p['id'] for p in items] == [1, 2]


def test_paginate_middle_and_last_page():
    items = list(range(50))
    page_items, meta = paginate(items, page=2, limit=24)
    assert page_items == list(range(24, 48))
    assert meta == {'page': 2, 'limit': 24, 'total': 50, 'total_pages': 3,
                    'has_next_page': True, 'has_previous_page': True}

    page_items, meta = paginate(items, page=3, limit=24)
    assert page_items == [48, 49]
    assert meta['has_next_page'] is False


def test_paginate_past_the_end_is_empty():
    page_items, meta = paginate([1, 2], page=5, limit=24)
    assert page_items == []
    assert meta['total_pages'] == 1


def test_build_search_url_merges_and_drops_empty_values():
    url = build_search_url('ar', {'page': 2, 'q': ''}, {'q': 'villa', 'amenities': ['Pool', 'Gym'], 'type': None})
    parts = urlsplit(url)
    assert parts.path == '/ar/search'
    assert parse_qs(parts.query) == {'page': ['2'], 'amenities': ['Pool', 'Gym']}


def test_build_search_url_without_params():
    assert build_search_url('en', {}) == '/en/search'


def test_active_filters_count():
    params = MultiDict([
        ('q', '  '), ('category', '1'), ('minPrice', '10'), ('maxPrice', '20'), ('minSize', '50'),
        ('isNew', 'false'), ('amenities', 'Pool'), ('amenities', 'Gym'), ('type', 'sale'),
    ])
    # category + price range + size range + type + 2 amenities
    assert get_active_filters_count(params) == 6


def test_fetch_applies_filters(make_category, make_property):
    apartments = make_category('Apartments', slug='apartments')
    villas = make_category('Villas', slug='villas', order_index=1)
    cheap = make_property(title='Cheap flat', price=500000, category_id=apartments.id, amenities=['Pool', 'Gym'])
    make_property(title='Big villa', price=9000000, size=400, category_id=villas.id, amenities=['Pool'])
    make_property(title='Hidden draft', status='draft', category_id=apartments.id)
    make_property(title='Zamalek loft', location='Zamalek, Cairo', area='Zamalek', category_id=apartments.id)

    assert {p.title for p in fetch_filtered_properties('', {'category': 'villas'})} == {'Big villa'}
    assert {p.title for p in fetch_filtered_properties('', {'category': str(villas.id)})} == {'Big villa'}
    assert [p.id for p in fetch_filtered_properties('', {'amenities': ['Pool', 'Gym']})] == [cheap.id]
    assert {p.title for p in fetch_filtered_properties('', {'location': 'zamalek'})} == {'Zamalek loft'}
    assert {p.title for p in fetch_filtered_properties('VILLA', {})} == {'Big villa'}
    assert {p.title for p in fetch_filtered_properties('', {'max_price': 1000000})} == {'Cheap flat'}


def test_fetch_ignores_zero_filters_and_returns_newest_first(make_property):
    first = make_property(title='First')
    second = make_property(title='Second')
    results = fetch_filtered_properties('', {'min_price': 0, 'bedrooms': 0})
    assert [p.id for p in results] == [second.id, first.id]
