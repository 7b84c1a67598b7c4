import os
import time
import uuid

from flask import current_app

from app.utils.image_utils import ImageProcessingError, THUMBNAIL_SIZE, make_thumbnail
from app.utils.storage_utils import PROPERTY_IMAGES_BUCKET, upload_file

THUMBNAIL_PREFIX = 'thumbnail_'


def file_extension(filename, default='jpg'):
    _, ext = os.path.splitext(filename or '')
    return ext.lstrip('.').lower() or default


def unique_object_name(filename):
    """'<ms timestamp>-<random>.<ext>', collision-free across concurrent uploads."""
    return f"{int(time.time() * 1000)}-{uuid.uuid4().hex[:13]}.{file_extension(filename)}"


def property_id_from_name(name):
    """
    Property images are stored as '<property id>_<index>_<timestamp>.<ext>'.
    Returns the id, or None when the name doesn't follow that pattern.
    """
    basename = os.path.basename(name)
    if basename.startswith(THUMBNAIL_PREFIX):
        return None
    prefix = basename.split('_', 1)[0]
    return int(prefix) if prefix.isdigit() else None


def thumbnail_path(name):
    directory, basename = os.path.split(name.strip('/'))
    thumb = f"{THUMBNAIL_PREFIX}{basename}"
    return f"{directory}/{thumb}" if directory else thumb


def store_thumbnail(image_bytes, name, size=THUMBNAIL_SIZE):
    """
    Resize `image_bytes` to a cover-fit thumbnail and store it next to the
    source as 'thumbnail_<basename>', replacing any previous one.
    Returns the thumbnail URL, or None when processing or upload fails.
    """
    try:
        thumbnail = make_thumbnail(image_bytes, size)
    except ImageProcessingError as e:
        current_app.logger.error(f"Thumbnail generation failed for {name}: {e}")
        return None

    url = upload_file(thumbnail, PROPERTY_IMAGES_BUCKET, thumbnail_path(name), overwrite=True)
    if url:
        current_app.logger.info(f"🖼️ Thumbnail stored for {name}")
    return url
