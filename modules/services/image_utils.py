"""
Image helpers: in-memory image files, size-bounded compression, thumbnails
and data URI conversion.
"""

import base64
import io
import logging
import mimetypes
import os
from dataclasses import dataclass, field
from typing import Optional, Tuple

from PIL import Image, UnidentifiedImageError

from modules.core.error_handler import ImageProcessingError

logger = logging.getLogger(__name__)

MB = 1024 * 1024
MIN_QUALITY = 0.3

# Pillow encoder names by MIME type; anything else is re-encoded as JPEG
PIL_FORMATS = {
    'image/jpeg': 'JPEG',
    'image/jpg': 'JPEG',
    'image/png': 'PNG',
    'image/webp': 'WEBP',
    'image/gif': 'GIF',
}

@dataclass
class ImageFile:
    """An uploaded image held in memory"""
    name: str
    content_type: str
    data: bytes = field(repr=False)
    size: int = 0

    def __post_init__(self):
        if not self.size:
            self.size = len(self.data)

    @classmethod
    def from_upload(cls, uploaded_file) -> 'ImageFile':
        """Wrap a Streamlit UploadedFile"""
        data = uploaded_file.getvalue()
        return cls(
            name=uploaded_file.name,
            content_type=uploaded_file.type or 'application/octet-stream',
            data=data,
            size=len(data)
        )

    @property
    def extension(self) -> str:
        """File extension without the dot, taken from the name or the MIME type"""
        ext = os.path.splitext(self.name)[1].lstrip('.').lower()
        if ext:
            return ext
        guessed = mimetypes.guess_extension(self.content_type) or '.jpg'
        return guessed.lstrip('.')

def format_file_size(size_bytes: int) -> str:
    """Human readable size, e.g. 1536 -> '1.5 KB'"""
    if size_bytes == 0:
        return '0 Bytes'

    units = ['Bytes', 'KB', 'MB', 'GB']
    value = float(size_bytes)
    index = 0
    while value >= 1024 and index < len(units) - 1:
        value /= 1024
        index += 1

    formatted = f"{value:.2f}".rstrip('0').rstrip('.')
    return f"{formatted} {units[index]}"

def max_dimension_for(max_size_mb: float) -> int:
    if max_size_mb <= 1:
        return 1200
    if max_size_mb <= 3:
        return 1800
    return 2400

def calculate_dimensions(width: int, height: int, max_size_mb: float) -> Tuple[int, int]:
    """Scale (width, height) so the longer side fits the tier for max_size_mb"""
    max_dimension = max_dimension_for(max_size_mb)

    if width > height and width > max_dimension:
        height = round(height * max_dimension / width)
        width = max_dimension
    elif height >= width and height > max_dimension:
        width = round(width * max_dimension / height)
        height = max_dimension

    return width, height

def _encode(img: Image.Image, pil_format: str, quality: float) -> bytes:
    buffer = io.BytesIO()
    if pil_format == 'JPEG':
        if img.mode != 'RGB':
            img = img.convert('RGB')
        img.save(buffer, format='JPEG', quality=int(quality * 100), optimize=True)
    elif pil_format == 'WEBP':
        img.save(buffer, format='WEBP', quality=int(quality * 100))
    else:
        img.save(buffer, format=pil_format, optimize=True)
    return buffer.getvalue()

def compress_image(image: ImageFile, max_size_mb: float = 5, quality: float = 0.7) -> ImageFile:
    """
    Downsize an image until it fits max_size_mb

    Args:
        image: Image to compress
        max_size_mb: Target size in megabytes
        quality: Starting encoder quality between 0 and 1

    Returns:
        ImageFile: The same object when already small enough, otherwise a
        re-encoded copy. Quality is lowered by 0.1 per pass and never below 0.3.

    Raises:
        ImageProcessingError: If the input cannot be decoded
    """
    if image.size / MB < max_size_mb:
        return image

    try:
        img = Image.open(io.BytesIO(image.data))
        img.load()
    except (UnidentifiedImageError, OSError) as e:
        logger.error(f"Could not decode image {image.name}: {str(e)}")
        raise ImageProcessingError("Could not read image", details=str(e)) from e

    pil_format = PIL_FORMATS.get(image.content_type, 'JPEG')
    content_type = image.content_type if image.content_type in PIL_FORMATS else 'image/jpeg'

    width, height = calculate_dimensions(img.width, img.height, max_size_mb)
    if (width, height) != (img.width, img.height):
        img = img.resize((width, height), Image.LANCZOS)

    try:
        data = _encode(img, pil_format, quality)
    except (OSError, ValueError) as e:
        logger.warning(f"Failed to re-encode {image.name}, keeping original: {str(e)}")
        return image

    compressed = ImageFile(name=image.name, content_type=content_type, data=data, size=len(data))
    logger.info(f"Compressed {image.name} from {format_file_size(image.size)} "
                f"to {format_file_size(compressed.size)} at quality {quality}")

    if compressed.size / MB > max_size_mb and quality > MIN_QUALITY:
        next_quality = max(round(quality - 0.1, 1), MIN_QUALITY)
        return compress_image(image, max_size_mb, next_quality)

    return compressed

def to_data_uri(image: ImageFile) -> str:
    encoded = base64.b64encode(image.data).decode()
    return f"data:{image.content_type};base64,{encoded}"

def parse_data_uri(uri: str) -> Tuple[str, bytes]:
    """Split a base64 data URI into (content_type, bytes)"""
    if not uri or not uri.startswith('data:') or ',' not in uri:
        raise ImageProcessingError("Invalid data URI")

    header, payload = uri.split(',', 1)
    content_type = header[len('data:'):].split(';')[0] or 'application/octet-stream'
    if ';base64' not in header:
        raise ImageProcessingError("Only base64 data URIs are supported")

    try:
        return content_type, base64.b64decode(payload)
    except ValueError as e:
        raise ImageProcessingError("Invalid base64 payload", details=str(e)) from e

def create_thumbnail(data_uri: str, max_size: int = 100) -> Optional[str]:
    """Small JPEG preview of a data URI image, None if it cannot be decoded"""
    try:
        _, data = parse_data_uri(data_uri)
        img = Image.open(io.BytesIO(data))
        if img.mode != 'RGB':
            img = img.convert('RGB')
        img.thumbnail((max_size, max_size))

        buffer = io.BytesIO()
        img.save(buffer, format='JPEG', quality=50)
        encoded = base64.b64encode(buffer.getvalue()).decode()
        return f"data:image/jpeg;base64,{encoded}"
    except (ImageProcessingError, UnidentifiedImageError, OSError) as e:
        logger.warning(f"Could not create thumbnail: {str(e)}")
        return None
