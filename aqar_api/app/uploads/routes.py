import hmac
import math
import os
import uuid

from flask import Blueprint, current_app, jsonify, request

from app import db
from app.auth.decorators import login_required_json
from app.models import Property
from app.uploads.services import (
    file_extension, property_id_from_name, store_thumbnail, unique_object_name
)
from app.utils.image_utils import ImageProcessingError, crop_image
from app.utils.storage_utils import (
    PROPERTY_IMAGES_BUCKET, PROPERTY_VIDEOS_BUCKET, download_bytes, upload_file
)

uploads_bp = Blueprint('uploads', __name__, url_prefix='/api')


@uploads_bp.route('/upload', methods=['POST'])
@login_required_json
def upload_files():
    """
    Store one or more files under '<bucket>/<prefix>/<timestamp>-<random>.<ext>'.
    Form fields: files (repeatable), bucket (default property-images), prefix (default uploads).
    """
    files = [f for f in request.files.getlist('files') if f and f.filename]
    if not files:
        return jsonify({'error': 'No files provided'}), 400

    bucket = request.form.get('bucket') or PROPERTY_IMAGES_BUCKET
    prefix = (request.form.get('prefix') or 'uploads').strip('/')

    urls = []
    for file in files:
        url = upload_file(file, bucket, f"{prefix}/{unique_object_name(file.filename)}")
        if not url:
            return jsonify({'error': f'Failed to upload {file.filename}'}), 500
        urls.append(url)

    current_app.logger.info(f"📤 {len(urls)} file(s) uploaded to {bucket}/{prefix}")
    return jsonify({'success': True, 'urls': urls}), 200


def _float_field(name, default=None):
    value = request.form.get(name)
    if value is None or value == '':
        if default is None:
            raise ImageProcessingError(f"Missing crop field '{name}'")
        return default
    try:
        number = float(value)
    except ValueError:
        raise ImageProcessingError(f"Crop field '{name}' must be a number")
    if not math.isfinite(number):
        raise ImageProcessingError(f"Crop field '{name}' must be a finite number")
    return number


@uploads_bp.route('/upload/crop', methods=['POST'])
@login_required_json
def upload_cropped_image():
    """
    Crop an image to the box chosen client-side (pixels of the rotated image),
    re-encode it as JPEG and store it like /upload does.
    """
    file = request.files.get('file')
    if not file or not file.filename:
        return jsonify({'error': 'No file provided'}), 400

    bucket = request.form.get('bucket') or PROPERTY_IMAGES_BUCKET
    prefix = (request.form.get('prefix') or 'uploads').strip('/')

    try:
        cropped = crop_image(
            file.read(),
            x=_float_field('x'),
            y=_float_field('y'),
            width=_float_field('width'),
            height=_float_field('height'),
            rotation=_float_field('rotation', default=0.0),
        )
    except ImageProcessingError as e:
        return jsonify({'error': str(e)}), 400

    base, _ = os.path.splitext(unique_object_name(file.filename))
    url = upload_file(cropped, bucket, f"{prefix}/{base}.jpg")
    if not url:
        return jsonify({'error': f'Failed to upload {file.filename}'}), 500
    return jsonify({'success': True, 'url': url}), 200


@uploads_bp.route('/upload/videos', methods=['POST'])
@login_required_json
def upload_videos():
    files = [f for f in request.files.getlist('files') if f and f.filename]
    if not files:
        return jsonify({'error': 'No files provided'}), 400

    max_videos = current_app.config.get('MAX_VIDEO_UPLOADS', 5)
    if len(files) > max_videos:
        return jsonify({'error': f'Maximum {max_videos} videos can be uploaded'}), 400

    for file in files:
        if not (file.mimetype or '').startswith('video/'):
            return jsonify({'error': f'{file.filename} is not a video file'}), 400

    videos = []
    for index, file in enumerate(files):
        path = f"videos/properties/{uuid.uuid4()}.{file_extension(file.filename, default='mp4')}"
        url = upload_file(file, PROPERTY_VIDEOS_BUCKET, path, resource_type='video')
        if not url:
            return jsonify({'error': f'Failed to upload {file.filename}'}), 500
        videos.append({'url': url, 'order': index})

    return jsonify({'success': True, 'videos': videos, 'urls': [v['url'] for v in videos]}), 200


def _webhook_authorized():
    """Shared secret sent by the storage webhook; an unset secret disables the hook."""
    expected = current_app.config.get('THUMBNAIL_WEBHOOK_SECRET')
    given = request.headers.get('X-Webhook-Secret')
    if not expected or not given:
        return False
    return hmac.compare_digest(expected.encode('utf-8'), given.encode('utf-8'))


@uploads_bp.route('/thumbnails', methods=['POST'])
def generate_thumbnail():
    """
    Storage webhook: {"record": {"bucket": ..., "name": ...}} for every new object.
    Property images get a 400x300 'thumbnail_<basename>' next to them and, when the
    name starts with '<property id>_', the property's thumbnail_url is updated.
    """
    if not _webhook_authorized():
        current_app.logger.warning("🔒 Thumbnail webhook called without a valid secret")
        return jsonify({'error': 'Unauthorized'}), 401

    payload = request.get_json(silent=True)
    record = payload.get('record') if isinstance(payload, dict) else None
    if not isinstance(record, dict) or not record.get('name'):
        return jsonify({'error': 'No record found'}), 400

    bucket = record.get('bucket')
    name = record['name']
    if bucket != PROPERTY_IMAGES_BUCKET:
        return jsonify({'message': 'Not a property image, skipping'}), 200
    if os.path.basename(name).startswith('thumbnail_'):
        return jsonify({'message': 'Already a thumbnail, skipping'}), 200

    content = download_bytes(bucket, name)
    if content is None:
        return jsonify({'error': 'Failed to download image'}), 500

    url = store_thumbnail(content, name)
    if not url:
        return jsonify({'error': 'Failed to upload thumbnail'}), 500

    property_id = property_id_from_name(name)
    if property_id is not None:
        prop = Property.query.get(property_id)
        if prop:
            try:
                prop.thumbnail_url = url
                db.session.commit()
            except Exception as e:
                db.session.rollback()
                current_app.logger.error(f"Could not save thumbnail for property {property_id}: {e}", exc_info=True)
                return jsonify({'error': 'Failed to update property'}), 500

    return jsonify({'success': True, 'thumbnail_url': url, 'property_id': property_id}), 200
