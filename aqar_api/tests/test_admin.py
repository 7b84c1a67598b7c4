import io

import pytest

from app import db
from app.models import AppSetting, Area, Category, Property, PropertyImage


def _property_form(category_id, **overrides):
    form = {
        'title': 'Garden Villa',
        'description': 'Villa with a private garden',
        'price': '5000000',
        'location': 'Sheikh Zayed, Giza',
        'area': 'Sheikh Zayed',
        'bedrooms': '4',
        'bathrooms': '3',
        'size': '250',
        'category_id': str(category_id),
        'property_type': 'sale',
        'contact_name': 'Sales Team',
        'contact_phone': '+20 100 000 0000',
        'is_featured': 'true',
    }
    form.update(overrides)
    return form


def test_dashboard(client, admin_headers, make_category, make_property):
    category = make_category()
    make_property(price=1500000, category_id=category.id, is_featured=True)
    make_property(price=500000, category_id=category.id)
    make_property(price=9000000, status='draft')

    body = client.get('/en/admin/', headers=admin_headers).get_json()
    assert body['stats']['total_properties'] == 2
    assert body['stats']['featured_properties'] == 1
    assert body['stats']['total_portfolio_value'] == '$2.0M'
    assert body['categories'][0]['property_count'] == 2
    assert len(body['recent_featured']) == 1


def test_users_listing(client, admin_headers, make_user):
    make_user(email='someone@example.com')
    emails = {u['email'] for u in client.get('/en/admin/users', headers=admin_headers).get_json()}
    assert emails == {'admin@example.com', 'someone@example.com'}


def test_create_property_with_images(client, admin_headers, make_category, fake_cloudinary, make_image):
    category = make_category()
    form = _property_form(category.id, total_images='2', features=['Garden', 'Pool'])
    form.update({
        'image_0': (io.BytesIO(make_image((1600, 1200))), 'front.jpg'),
        'image_0_alt': 'Front',
        'image_1': (io.BytesIO(make_image((1200, 800))), 'garden.png'),
        'image_1_is_main': 'true',
    })

    response = client.post('/en/admin/properties', headers=admin_headers, data=form,
                           content_type='multipart/form-data')

    assert response.status_code == 201
    body = response.get_json()['property']
    assert body['price_per_meter'] == 20000
    assert body['features'] == ['Garden', 'Pool']
    assert [i['alt_text'] for i in body['images']] == ['Front', None]

    public_ids = [u['public_id'] for u in fake_cloudinary.uploads]
    assert len(public_ids) == 3
    assert public_ids[0].startswith(f"property-images/properties/{body['id']}_0_")
    assert public_ids[2].startswith(f"property-images/properties/thumbnail_{body['id']}_1_")
    assert body['thumbnail_url'] == f'https://res.cloudinary.com/demo/image/upload/v1/{public_ids[2]}.jpg'
    assert body['images'][1]['is_main'] is True


def test_failed_image_upload_still_saves_property(client, admin_headers, make_category, fake_cloudinary,
                                                  make_image):
    category = make_category()
    fake_cloudinary.fail_uploads = True
    form = _property_form(category.id, total_images='1')
    form['image_0'] = (io.BytesIO(make_image()), 'front.jpg')

    response = client.post('/en/admin/properties', headers=admin_headers, data=form,
                           content_type='multipart/form-data')

    assert response.status_code == 201
    body = response.get_json()['property']
    assert body['images'] == []
    assert body['thumbnail_url'] is None
    assert Property.query.get(body['id']).title == 'Garden Villa'
    assert PropertyImage.query.count() == 0

    form = _property_form(category.id, title='Garden Villa II', total_images='1')
    form['image_0'] = (io.BytesIO(make_image()), 'back.jpg')
    response = client.put(f"/en/admin/properties/{body['id']}", headers=admin_headers, data=form,
                          content_type='multipart/form-data')
    assert response.status_code == 200
    assert response.get_json()['property']['title'] == 'Garden Villa II'
    assert PropertyImage.query.count() == 0


def test_create_property_validation(client, admin_headers, make_category):
    make_category()
    response = client.post('/en/admin/properties', headers=admin_headers,
                           json={'title': '', 'price': -5, 'property_type': 'lease'})
    assert response.status_code == 422
    errors = response.get_json()['errors']
    assert {'title', 'price', 'property_type', 'category_id', 'size'} <= set(errors)


def test_create_property_unknown_category(client, admin_headers):
    response = client.post('/en/admin/properties', headers=admin_headers, json=_property_form(999))
    assert response.status_code == 404
    assert 'category_id' in response.get_json()['errors']
    assert Property.query.count() == 0


def test_update_property_replaces_images(client, admin_headers, make_category, make_property, fake_cloudinary):
    category = make_category()
    prop = make_property(category_id=category.id, thumbnail_url='https://res.cloudinary.com/demo/image/upload/v1/t.jpg')
    kept = PropertyImage(property_id=prop.id, is_main=True, order_index=0,
                         url='https://res.cloudinary.com/demo/image/upload/v1/property-images/properties/kept.jpg',
                         thumbnail_url='https://res.cloudinary.com/demo/image/upload/v1/property-images/properties/thumbnail_kept.jpg')
    dropped = PropertyImage(property_id=prop.id, order_index=1,
                            url='https://res.cloudinary.com/demo/image/upload/v1/property-images/properties/dropped.jpg')
    db.session.add_all([kept, dropped])
    db.session.commit()

    form = _property_form(category.id, title='Renamed', total_images='1',
                          existing_image_0_id=str(kept.id), existing_image_0_alt='Kept', existing_image_0_is_main='true')
    response = client.put(f'/en/admin/properties/{prop.id}', headers=admin_headers, data=form,
                          content_type='multipart/form-data')

    assert response.status_code == 200
    body = response.get_json()['property']
    assert body['title'] == 'Renamed'
    assert [i['id'] for i in body['images']] == [kept.id]
    assert body['thumbnail_url'] == kept.thumbnail_url
    assert fake_cloudinary.destroyed == ['property-images/properties/dropped']
    assert fake_cloudinary.uploads == []


def test_delete_property_removes_images(client, admin_headers, make_property, fake_cloudinary):
    prop = make_property()
    db.session.add(PropertyImage(property_id=prop.id,
                                 url='https://res.cloudinary.com/demo/image/upload/v1/property-images/properties/a.jpg'))
    db.session.commit()

    response = client.delete(f'/en/admin/properties/{prop.id}', headers=admin_headers)
    assert response.status_code == 200
    assert Property.query.get(prop.id) is None
    assert PropertyImage.query.count() == 0
    assert fake_cloudinary.destroyed == ['property-images/properties/a']


def test_admin_property_filters(client, admin_headers, make_category, make_property):
    category = make_category()
    make_property(title='Sea view flat', category_id=category.id)
    make_property(title='Desert villa', status='draft')

    def titles(query):
        return [p['title'] for p in client.get(f'/en/admin/properties{query}', headers=admin_headers).get_json()]

    assert sorted(titles('')) == ['Desert villa', 'Sea view flat']
    assert titles('?search=sea') == ['Sea view flat']
    assert titles('?status=draft') == ['Desert villa']
    assert titles(f'?category={category.id}&status=all') == ['Sea view flat']


def test_featured_and_main_featured(client, admin_headers, make_property):
    first = make_property(title='First', is_featured=True, is_main_featured=True)
    second = make_property(title='Second')

    refused = client.post(f'/en/admin/properties/{second.id}/main-featured', headers=admin_headers, json={})
    assert refused.status_code == 400

    client.post(f'/en/admin/properties/{second.id}/featured', headers=admin_headers, json={'featured': True})
    assert client.post(f'/en/admin/properties/{second.id}/main-featured', headers=admin_headers,
                       json={}).status_code == 200
    db.session.expire_all()
    assert Property.query.get(second.id).is_main_featured is True
    assert Property.query.get(first.id).is_main_featured is False

    client.post(f'/en/admin/properties/{second.id}/featured', headers=admin_headers, json={'featured': False})
    db.session.expire_all()
    unfeatured = Property.query.get(second.id)
    assert unfeatured.is_featured is False
    assert unfeatured.is_main_featured is False

    listing = client.get('/en/admin/featured', headers=admin_headers).get_json()
    assert [p['title'] for p in listing['featured']] == ['First']
    assert [p['title'] for p in listing['available']] == ['Second']


def test_property_order(client, admin_headers, make_property):
    a = make_property(title='A')
    b = make_property(title='B')

    items = [{'id': a.id, 'order_index': 1}, {'id': b.id, 'order_index': 0}]
    assert client.post('/en/admin/properties/order', headers=admin_headers, json=items).status_code == 200
    titles = [p['title'] for p in client.get('/en/admin/properties', headers=admin_headers).get_json()]
    assert titles == ['B', 'A']

    missing = client.post('/en/admin/properties/order', headers=admin_headers,
                          json={'items': [{'id': 999, 'order_index': 0}]})
    assert missing.status_code == 404


def test_category_crud(client, admin_headers, make_property):
    response = client.post('/en/admin/categories', headers=admin_headers,
                           json={'name': 'Luxury Villas!', 'name_ar': 'فلل فاخرة'})
    assert response.status_code == 201
    category = response.get_json()['category']
    assert category['slug'] == 'luxury-villas'
    assert category['order_index'] == 0

    second = client.post('/en/admin/categories', headers=admin_headers, json={'name': 'شقق'}).get_json()
    assert second['category']['slug'] == 'شقق'
    assert second['category']['order_index'] == 1

    duplicate = client.post('/en/admin/categories', headers=admin_headers, json={'name': 'luxury villas'})
    assert duplicate.status_code == 409
    assert 'name' in duplicate.get_json()['errors']

    updated = client.put(f"/en/admin/categories/{category['id']}", headers=admin_headers,
                         json={'name': 'Villas', 'order_index': 3})
    assert updated.get_json()['category']['slug'] == 'villas'
    assert updated.get_json()['category']['order_index'] == 3

    make_property(category_id=category['id'])
    in_use = client.delete(f"/en/admin/categories/{category['id']}", headers=admin_headers)
    assert in_use.status_code == 409

    assert client.delete(f"/en/admin/categories/{second['category']['id']}",
                         headers=admin_headers).status_code == 200
    assert Category.query.count() == 1


def test_category_order_requires_known_ids(client, admin_headers, make_category):
    category = make_category()
    ok = client.post('/en/admin/categories/order', headers=admin_headers,
                     json=[{'id': category.id, 'order_index': 7}])
    assert ok.status_code == 200
    assert Category.query.get(category.id).order_index == 7

    bad = client.post('/en/admin/categories/order', headers=admin_headers,
                      json=[{'id': category.id, 'order_index': 1}, {'id': 404, 'order_index': 2}])
    assert bad.status_code == 404


def test_area_crud(client, admin_headers, make_property):
    created = client.post('/en/admin/areas', headers=admin_headers, json={'name': 'New Cairo'})
    assert created.status_code == 201
    area = created.get_json()['area']
    assert area['slug'] == 'new-cairo'
    assert area['order_index'] == 0

    arabic = client.post('/en/admin/areas', headers=admin_headers, json={'name': 'مدينة نصر'}).get_json()['area']
    assert arabic['slug'] == 'مدينة-نصر'
    assert arabic['order_index'] == 1

    assert client.post('/en/admin/areas', headers=admin_headers, json={'name': 'new cairo'}).status_code == 409

    same_name = client.put(f"/en/admin/areas/{area['id']}", headers=admin_headers,
                           json={'name': 'New Cairo', 'is_active': False})
    assert same_name.status_code == 200
    assert same_name.get_json()['area']['is_active'] is False

    make_property(area_id=area['id'])
    assert client.delete(f"/en/admin/areas/{area['id']}", headers=admin_headers).status_code == 409
    assert client.delete(f"/en/admin/areas/{arabic['id']}", headers=admin_headers).status_code == 200
    assert [a['name'] for a in client.get('/en/admin/areas', headers=admin_headers).get_json()] == ['New Cairo']


@pytest.mark.parametrize('payload, status', [
    ([], 400),
    ({'items': []}, 400),
    ([{'id': 999, 'order_index': 0}], 404),
    ([{'id': 1, 'order_index': -1}], 422),
])
def test_area_order_errors(client, admin_headers, make_area, payload, status):
    make_area()
    assert client.post('/en/admin/areas/order', headers=admin_headers, json=payload).status_code == status


def test_area_order(client, admin_headers, make_area):
    first = make_area(name='Maadi')
    second = make_area(name='Zamalek')
    items = [{'id': first.id, 'order_index': 2}, {'id': second.id, 'order_index': 1}]
    assert client.post('/en/admin/areas/order', headers=admin_headers, json=items).status_code == 200
    names = [a['name'] for a in client.get('/en/admin/areas', headers=admin_headers).get_json()]
    assert names == ['Zamalek', 'Maadi']


def test_settings(client, admin_headers):
    defaults = client.get('/en/admin/settings', headers=admin_headers).get_json()
    assert defaults['site_name'] == 'Aqar'
    assert defaults['items_per_page'] == 24

    response = client.put('/en/admin/settings', headers=admin_headers,
                          json={'site_name': 'Aqar Plus', 'items_per_page': 12, 'maintenance_mode': True})
    assert response.status_code == 200
    settings = response.get_json()['settings']
    assert settings['site_name'] == 'Aqar Plus'
    assert settings['items_per_page'] == 12
    assert settings['maintenance_mode'] is True
    assert settings['enable_wishlist'] is True
    assert AppSetting.query.filter_by(setting_key='items_per_page').first().data_type == 'integer'

    invalid = client.put('/en/admin/settings', headers=admin_headers, json={'items_per_page': 0})
    assert invalid.status_code == 422


def test_featured_toggle_ignores_non_object_body(client, admin_headers, make_property):
    prop = make_property(is_featured=True)
    response = client.post(f'/en/admin/properties/{prop.id}/featured', headers=admin_headers, json=['x'])
    assert response.status_code == 200
    assert Property.query.get(prop.id).is_featured is False


def test_admin_routes_refuse_plain_users(client, user_headers):
    response = client.get('/en/admin/settings', headers=user_headers)
    assert response.status_code == 307
    assert Area.query.count() == 0
