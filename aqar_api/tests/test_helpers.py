from datetime import datetime, timedelta

from app.utils.helpers import (
    client_ip, format_portfolio_value, format_price, format_price_per_meter,
    generate_slug, generate_unicode_slug, get_rating_color, get_time_ago, parse_bool
)


class _Request:
    def __init__(self, headers=None, remote_addr='10.0.0.9'):
        self.headers = headers or {}
        self.remote_addr = remote_addr


def test_format_price_scales():
    assert format_price(2500000) == '2.5M'
    assert format_price(350000) == '350K'
    assert format_price(950) == '950'


def test_format_price_per_meter_rounds_and_handles_zero_size():
    assert format_price_per_meter(2500000, 150) == 16667
    assert format_price_per_meter(1000, 0) is None


def test_portfolio_value():
    assert format_portfolio_value(12_340_000) == '$12.3M'


def test_rating_color_thresholds():
    assert get_rating_color(8) == 'rating-excellent'
    assert get_rating_color(6.5) == 'rating-good'
    assert get_rating_color(4) == 'rating-average'
    assert get_rating_color(3.9) == 'rating-poor'


def test_time_ago_buckets():
    now = datetime(2024, 6, 1, 12, 0, 0)
    assert get_time_ago(now - timedelta(hours=5), now=now) == '5 hours ago'
    assert get_time_ago(now - timedelta(days=3), now=now) == '3 days ago'
    assert get_time_ago(now - timedelta(days=95), now=now) == '3 months ago'


def test_ascii_slug():
    assert generate_slug('Luxury  Villas!') == 'luxury-villas'
    assert generate_slug('--Sea_View--') == 'sea-view'
    assert generate_slug('شقق') == ''


def test_unicode_slug_keeps_arabic_and_drops_accents():
    assert generate_unicode_slug('التجمع الخامس') == 'التجمع-الخامس'
    assert generate_unicode_slug('Café Zone') == 'cafe-zone'


def test_parse_bool():
    assert parse_bool('true') is True
    assert parse_bool('on') is True
    assert parse_bool('false') is False
    assert parse_bool(None, default=True) is True


def test_client_ip_prefers_forwarded_for():
    req = _Request({'X-Forwarded-For': '1.2.3.4, 5.6.7.8', 'X-Real-IP': '9.9.9.9'})
    assert client_ip(req) == '1.2.3.4'
    assert client_ip(_Request({'X-Real-IP': '9.9.9.9'})) == '9.9.9.9'
    assert client_ip(_Request()) == '10.0.0.9'
