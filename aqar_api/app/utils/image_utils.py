import io

from PIL import Image, ImageOps, UnidentifiedImageError

THUMBNAIL_SIZE = (400, 300)
JPEG_QUALITY = 90


class ImageProcessingError(ValueError):
    pass


def _open(image_bytes):
    try:
        image = Image.open(io.BytesIO(image_bytes))
        image.load()
    except (UnidentifiedImageError, OSError) as e:
        raise ImageProcessingError(f"Not a readable image: {e}")
    return ImageOps.exif_transpose(image)


def _to_jpeg(image, quality=JPEG_QUALITY):
    if image.mode not in ('RGB', 'L'):
        image = image.convert('RGB')
    buffer = io.BytesIO()
    image.save(buffer, format='JPEG', quality=quality)
    return buffer.getvalue()


def crop_image(image_bytes, x, y, width, height, rotation=0):
    """
    Crop an uploaded image to the box chosen in the cropper and return JPEG bytes.

    The box is expressed in pixels of the (rotated) source image. Rotation is
    applied first, clockwise, expanding the canvas so nothing is clipped.
    """
    image = _open(image_bytes)
    if rotation:
        image = image.rotate(-rotation, expand=True)

    if width <= 0 or height <= 0:
        raise ImageProcessingError("Crop width and height must be positive")
    if x < 0 or y < 0 or x + width > image.width or y + height > image.height:
        raise ImageProcessingError(
            f"Crop box ({x}, {y}, {width}, {height}) is outside the {image.width}x{image.height} image"
        )

    cropped = image.crop((int(x), int(y), int(x + width), int(y + height)))
    return _to_jpeg(cropped)


def make_thumbnail(image_bytes, size=THUMBNAIL_SIZE):
    """Resize to exactly `size`, cropping the overflow (cover fit)."""
    image = _open(image_bytes)
    thumbnail = ImageOps.fit(image, size, method=Image.LANCZOS)
    return _to_jpeg(thumbnail)
