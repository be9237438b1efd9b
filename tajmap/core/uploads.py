"""
Upload handling for admin media: photos, videos and library documents.

Files are validated, optionally cropped (images only) with Pillow and written
through Django's default storage under ``uploads/YYYY/MM/<uuid><ext>``.
"""
import io
import logging
import mimetypes
import os
import uuid
from typing import Optional

from django.conf import settings
from django.core.files.base import ContentFile
from django.core.files.storage import default_storage
from django.utils import timezone
from PIL import Image, UnidentifiedImageError

logger = logging.getLogger('tajmap.uploads')

# No SVG: it can carry script and uploads are served from the site origin
IMAGE_TYPES = {
    'image/jpeg', 'image/png', 'image/gif', 'image/webp', 'image/bmp',
}
VIDEO_TYPES = {
    'video/mp4', 'video/webm', 'video/ogg', 'video/quicktime', 'video/x-msvideo', 'video/x-matroska',
}
DOCUMENT_TYPES = {
    'application/pdf',
    'application/msword',
    'application/vnd.openxmlformats-officedocument.wordprocessingml.document',
    'application/vnd.ms-excel',
    'application/vnd.openxmlformats-officedocument.spreadsheetml.sheet',
    'application/vnd.ms-powerpoint',
    'application/vnd.openxmlformats-officedocument.presentationml.presentation',
    'application/epub+zip',
    'application/rtf',
    'text/plain',
    'application/zip',
}

CROP_FIELDS = ('crop_x', 'crop_y', 'crop_width', 'crop_height')


class UploadError(Exception):
    """Raised when an uploaded file is rejected"""

    def __init__(self, message, field='file'):
        super().__init__(message)
        self.message = message
        self.field = field


def detect_content_type(uploaded_file) -> str:
    """Prefer the client-declared type, fall back to guessing from the file name"""
    content_type = (getattr(uploaded_file, 'content_type', '') or '').split(';')[0].strip().lower()
    if not content_type or content_type == 'application/octet-stream':
        guessed, _ = mimetypes.guess_type(uploaded_file.name or '')
        content_type = (guessed or content_type or 'application/octet-stream').lower()
    return content_type


def classify(content_type: str) -> Optional[str]:
    if content_type in IMAGE_TYPES:
        return 'image'
    if content_type in VIDEO_TYPES:
        return 'video'
    if content_type in DOCUMENT_TYPES:
        return 'document'
    return None


def parse_crop_box(data) -> Optional[tuple]:
    """
    Read an optional crop box from request data.

    Either all four of crop_x, crop_y, crop_width, crop_height are given or
    none of them. Returns (x, y, width, height).
    """
    present = [name for name in CROP_FIELDS if data.get(name) not in (None, '')]
    if not present:
        return None
    if len(present) != len(CROP_FIELDS):
        missing = [name for name in CROP_FIELDS if name not in present][0]
        raise UploadError('Crop box requires crop_x, crop_y, crop_width and crop_height', field=missing)

    values = {}
    for name in CROP_FIELDS:
        try:
            values[name] = int(float(data.get(name)))
        except (TypeError, ValueError, OverflowError):
            raise UploadError(f'{name} must be a number', field=name)

    if values['crop_x'] < 0 or values['crop_y'] < 0:
        raise UploadError('Crop offsets must not be negative', field='crop_x')
    if values['crop_width'] <= 0 or values['crop_height'] <= 0:
        raise UploadError('Crop width and height must be positive', field='crop_width')

    return tuple(values[name] for name in CROP_FIELDS)


def crop_image(raw: bytes, crop: tuple) -> bytes:
    """Crop an image and re-encode it as PNG"""
    x, y, width, height = crop
    with Image.open(io.BytesIO(raw)) as image:
        if x + width > image.width or y + height > image.height:
            raise UploadError(
                f'Crop box exceeds image bounds ({image.width}x{image.height})', field='crop_width'
            )
        cropped = image.crop((x, y, x + width, y + height))
        if cropped.mode not in ('RGB', 'RGBA', 'L', 'LA'):
            cropped = cropped.convert('RGBA')
        buffer = io.BytesIO()
        cropped.save(buffer, format='PNG', optimize=True)
        return buffer.getvalue()


def verify_image(raw: bytes):
    try:
        with Image.open(io.BytesIO(raw)) as image:
            image.verify()
    except (UnidentifiedImageError, OSError, SyntaxError, ValueError):
        raise UploadError('File is not a valid image')


def build_storage_path(extension: str) -> str:
    now = timezone.now()
    return f"uploads/{now:%Y}/{now:%m}/{uuid.uuid4().hex}{extension}"


def store_upload(uploaded_file, crop: Optional[tuple] = None) -> dict:
    """
    Validate and persist an uploaded file.

    Returns a dict with the public url, original name, storage path, size,
    content type and kind (image, video or document).
    """
    if uploaded_file is None:
        raise UploadError('No file uploaded')

    max_size = settings.MAX_UPLOAD_SIZE
    if uploaded_file.size > max_size:
        raise UploadError(f'File is too large (limit {max_size // (1024 * 1024)} MB)')
    if uploaded_file.size == 0:
        raise UploadError('Uploaded file is empty')

    content_type = detect_content_type(uploaded_file)
    kind = classify(content_type)
    if kind is None:
        raise UploadError(f'Unsupported file type: {content_type}')

    original_name = os.path.basename(uploaded_file.name or 'upload')
    extension = os.path.splitext(original_name)[1].lower()
    if not extension:
        extension = mimetypes.guess_extension(content_type) or ''

    raw = uploaded_file.read()

    if crop is not None and kind != 'image':
        raise UploadError('Only images can be cropped', field='crop_x')

    if kind == 'image':
        verify_image(raw)
        if crop is not None:
            raw = crop_image(raw, crop)
            content_type = 'image/png'
            extension = '.png'

    path = default_storage.save(build_storage_path(extension), ContentFile(raw))
    stored = {
        'url': default_storage.url(path),
        'name': original_name,
        'path': path,
        'size': len(raw),
        'content_type': content_type,
        'kind': kind,
    }
    logger.info(f"Stored {kind} upload '{original_name}' at {path} ({len(raw)} bytes)")
    return stored
