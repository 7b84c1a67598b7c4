import os

import cloudinary
import cloudinary.uploader
import cloudinary.utils
import requests
from flask import current_app

# Logical buckets map onto Cloudinary folders
PROPERTY_IMAGES_BUCKET = 'property-images'
PROPERTY_VIDEOS_BUCKET = 'property-videos'


def init_cloudinary(app):
    """
    Configure Cloudinary from the app config.
    CLOUDINARY_URL in the environment configures the SDK on its own.
    """
    if os.getenv('CLOUDINARY_URL'):
        return

    cloudinary.config(
        cloud_name=app.config.get('CLOUDINARY_CLOUD_NAME'),
        api_key=app.config.get('CLOUDINARY_API_KEY'),
        api_secret=app.config.get('CLOUDINARY_API_SECRET'),
        secure=True
    )


def upload_file(file_or_bytes, bucket, path, resource_type='image', overwrite=False):
    """
    Upload a file to Cloudinary.

    Args:
        file_or_bytes: a werkzeug FileStorage, a file path or raw bytes.
        bucket: logical bucket ('property-images', 'property-videos').
        path: object path inside the bucket, extension optional
              (e.g. 'properties/12_0_1700000000.jpg').
        resource_type: 'image' or 'video'.
        overwrite: replace an existing object with the same path.

    Returns:
        str: the secure URL of the stored object, or None on error.
    """
    try:
        response = cloudinary.uploader.upload(
            file_or_bytes,
            public_id=public_id_for(bucket, path),
            resource_type=resource_type,
            overwrite=overwrite,
        )
        secure_url = response.get('secure_url')
        current_app.logger.info(f"Cloudinary upload success: {secure_url}")
        return secure_url
    except Exception as e:
        current_app.logger.error(f"Cloudinary upload error for {bucket}/{path}: {e}", exc_info=True)
        return None


def delete_file(url, resource_type='image'):
    """Remove the object behind a public URL. Returns True when Cloudinary accepted it."""
    public_id = public_id_from_url(url)
    if not public_id:
        current_app.logger.warning(f"Cannot derive a public id from URL: {url}")
        return False
    try:
        result = cloudinary.uploader.destroy(public_id, resource_type=resource_type)
        return result.get('result') == 'ok'
    except Exception as e:
        current_app.logger.error(f"Cloudinary delete error for {public_id}: {e}", exc_info=True)
        return False


def build_url(bucket, path, resource_type='image'):
    url, _ = cloudinary.utils.cloudinary_url(
        public_id_for(bucket, path), resource_type=resource_type, secure=True
    )
    return url


def download_bytes(bucket, path):
    """Fetch an object's bytes over its delivery URL. Returns None on error."""
    return download_url(build_url(bucket, path))


def download_url(url):
    try:
        response = requests.get(url, timeout=15)
        if response.status_code != 200:
            current_app.logger.error(f"Download of {url} failed: HTTP {response.status_code}")
            return None
        return response.content
    except requests.RequestException as e:
        current_app.logger.error(f"Download of {url} failed: {e}", exc_info=True)
        return None


def public_id_for(bucket, path):
    base, _ = os.path.splitext(path.strip('/'))
    return f"{bucket}/{base}"


def public_id_from_url(url):
    """
    'https://res.cloudinary.com/demo/image/upload/v1712/property-images/properties/12_0_1.jpg'
    -> 'property-images/properties/12_0_1'
    """
    if not url or '/upload/' not in url:
        return None
    tail = url.split('/upload/', 1)[1]
    parts = tail.split('/')
    if parts and parts[0].startswith('v') and parts[0][1:].isdigit():
        parts = parts[1:]
    if not parts:
        return None
    base, _ = os.path.splitext('/'.join(parts))
    return base or None
