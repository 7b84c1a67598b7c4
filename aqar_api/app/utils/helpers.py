# app/utils/helpers.py
import re
import unicodedata
from datetime import datetime


def generate_slug(name):
    """ASCII slug used for categories: 'Luxury Villas!' -> 'luxury-villas'."""
    slug = name.lower()
    slug = re.sub(r'[^\w\s-]', '', slug, flags=re.ASCII)
    slug = re.sub(r'[\s_-]+', '-', slug)
    return slug.strip('-')


def generate_unicode_slug(name):
    """
    Slug that keeps letters and digits of any script, so Arabic names
    still produce a usable slug. Accents are dropped through NFKD.
    """
    normalized = unicodedata.normalize('NFKD', name.lower())
    kept = ''.join(
        ch for ch in normalized
        if unicodedata.category(ch)[0] in ('L', 'N') or ch.isspace() or ch == '-'
    )
    slug = re.sub(r'[\s_-]+', '-', kept)
    return slug.strip('-')


def format_price(price):
    if price >= 1000000:
        return f"{price / 1000000:.1f}M"
    if price >= 1000:
        return f"{price / 1000:.0f}K"
    return f"{price:,.0f}" if float(price).is_integer() else f"{price:,}"


def format_price_per_meter(price, size):
    if not size:
        return None
    return round(price / size)


def format_portfolio_value(total):
    return f"${total / 1000000:.1f}M"


def get_rating_color(rating):
    if rating >= 8:
        return 'rating-excellent'
    if rating >= 6:
        return 'rating-good'
    if rating >= 4:
        return 'rating-average'
    return 'rating-poor'


def get_time_ago(value, now=None):
    now = now or datetime.utcnow()
    hours = int((now - value).total_seconds() // 3600)
    if hours < 24:
        return f"{hours} hours ago"
    days = hours // 24
    if days < 30:
        return f"{days} days ago"
    return f"{days // 30} months ago"


def parse_bool(value, default=False):
    if value is None or value == '':
        return default
    if isinstance(value, bool):
        return value
    return str(value).strip().lower() in ('true', '1', 'on', 'yes')


def client_ip(req):
    """First X-Forwarded-For hop, then X-Real-IP, then the socket address."""
    forwarded_for = req.headers.get('X-Forwarded-For')
    if forwarded_for:
        first = forwarded_for.split(',')[0].strip()
        if first:
            return first
    return req.headers.get('X-Real-IP') or req.remote_addr
