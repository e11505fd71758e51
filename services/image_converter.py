"""
Image format conversion service

Converts uploads in formats Gemini does not accept (HEIC from iPhones,
TIFF, ICO) to JPEG before they are sent to the model.
"""

import logging
from io import BytesIO
from pathlib import Path
from PIL import Image
from pillow_heif import register_heif_opener

from models.schemas import FileRef

# Register HEIF/HEIC support
register_heif_opener()

logger = logging.getLogger(__name__)

CONVERTIBLE_TYPES = {
    'image/heic',
    'image/heif',
    'image/tiff',
    'image/x-icon'
}

FORMAT_TO_MIME = {
    'JPEG': 'image/jpeg',
    'PNG': 'image/png',
    'GIF': 'image/gif',
    'BMP': 'image/bmp',
    'WEBP': 'image/webp',
    'HEIC': 'image/heic',
    'HEIF': 'image/heif',
    'TIFF': 'image/tiff',
    'ICO': 'image/x-icon'
}


def detect_image_type(data: bytes, declared: str = None) -> str:
    """
    Detect image MIME type, trusting a specific declared type when present.

    Missing and generic (application/octet-stream) types are sniffed from
    the bytes.

    Args:
        data: Raw image bytes
        declared: MIME type sent with the upload

    Returns:
        MIME type string (e.g., 'image/jpeg')
    """
    if declared and declared.lower() != 'application/octet-stream':
        return declared.lower()

    try:
        with Image.open(BytesIO(data)) as img:
            return FORMAT_TO_MIME.get(img.format, 'image/jpeg')
    except Exception:
        # Default fallback
        return 'image/jpeg'


def needs_conversion(mime_type: str) -> bool:
    """Check if image format needs conversion for Gemini compatibility"""
    return mime_type.lower() in CONVERTIBLE_TYPES


def convert_to_jpeg(data: bytes, quality: int = 95) -> bytes:
    """
    Convert image bytes in any Pillow-readable format to JPEG.

    Args:
        data: Raw image bytes
        quality: JPEG quality (1-100, default 95)

    Returns:
        JPEG-encoded bytes

    Raises:
        ValueError: If conversion fails
    """
    try:
        with Image.open(BytesIO(data)) as img:
            # Convert RGBA to RGB if necessary
            if img.mode in ('RGBA', 'LA', 'P'):
                # Create white background
                background = Image.new('RGB', img.size, (255, 255, 255))
                if img.mode == 'P':
                    img = img.convert('RGBA')
                background.paste(img, mask=img.split()[-1] if img.mode in ('RGBA', 'LA') else None)
                img = background
            elif img.mode != 'RGB':
                img = img.convert('RGB')

            output = BytesIO()
            img.save(output, 'JPEG', quality=quality, optimize=True)

        return output.getvalue()

    except Exception as e:
        raise ValueError(f"Failed to convert image to JPEG: {e}")


def prepare_for_generation(file_ref: FileRef) -> FileRef:
    """
    Return an upload in a format the generative API accepts.

    Files that need conversion are re-encoded as JPEG. If conversion fails
    the original is returned and the API gets to decide. Files without a
    usable type get the one read from their bytes.
    """
    mime_type = detect_image_type(file_ref.data, file_ref.mime_type)

    if not needs_conversion(mime_type):
        if mime_type == (file_ref.mime_type or '').lower():
            return file_ref
        return FileRef(name=file_ref.name, mime_type=mime_type, data=file_ref.data)

    try:
        converted = convert_to_jpeg(file_ref.data)
    except ValueError as e:
        logger.warning(f"Image conversion failed for {file_ref.name}: {e}")
        return file_ref

    logger.info(f"Converted {file_ref.name} from {mime_type} to image/jpeg")
    return FileRef(
        name=str(Path(file_ref.name).with_suffix('.jpg')),
        mime_type='image/jpeg',
        data=converted
    )
