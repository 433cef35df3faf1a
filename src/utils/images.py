"""Image helpers for photo-based nutrition analysis.

Images arrive as base64 text, either plain or as a data URL
(``data:image/jpeg;base64,...``) produced by the browser's FileReader.

Functions:
- decode_image_data(): base64 / data URL -> bytes
- encoded_payload_length() / max_encoded_length(): size check before decoding
- guess_mime_type(): MIME type from magic bytes
- validate_image_format(): any image type recognised by filetype
- validate_image_size(): decoded size limit
- compress_image(): JPEG re-encode with Pillow before upload
"""

import base64
import binascii
import math
from io import BytesIO
from typing import Optional

import filetype
from PIL import Image

from src.utils.config import config
from src.utils.logger import logger
from src.utils.safe_execute import safe_execute_sync


def decode_image_data(image_data: str) -> bytes:
    """Decode a base64 image string or data URL into raw bytes.

    Args:
        image_data: Plain base64 text or ``data:<mime>;base64,<payload>``.

    Returns:
        Decoded image bytes.

    Raises:
        ValueError: If the text is empty, the data URL is malformed or the payload
            is not valid base64.
    """
    if not image_data or not image_data.strip():
        raise ValueError("Image data is empty")

    payload = image_data.strip()
    if payload.startswith("data:"):
        header, sep, encoded = payload.partition(",")
        if not sep or ";base64" not in header:
            raise ValueError("Data URL must be base64-encoded")
        payload = encoded

    try:
        decoded = base64.b64decode(payload, validate=True)
    except (binascii.Error, ValueError) as e:
        raise ValueError(f"Invalid base64 image data: {e}") from e

    if not decoded:
        raise ValueError("Image data is empty")
    return decoded


def encoded_payload_length(image_data: str) -> int:
    """Length of the base64 payload, excluding any ``data:...;base64,`` header."""
    payload = image_data.strip()
    if payload.startswith("data:"):
        payload = payload.partition(",")[2]
    return len(payload)


def max_encoded_length(max_bytes: int) -> int:
    """Longest base64 text that can decode to at most max_bytes."""
    return 4 * math.ceil(max_bytes / 3)


def guess_mime_type(image_bytes: bytes) -> Optional[str]:
    kind = filetype.guess(image_bytes)
    return kind.mime if kind is not None else None


def validate_image_format(image_bytes: bytes) -> bool:
    """Validate that bytes are an image, detected from magic bytes not extension.

    Args:
        image_bytes: Raw image bytes.

    Returns:
        True if filetype recognises an ``image/*`` type, False otherwise.
    """
    mime = guess_mime_type(image_bytes)
    if mime is None or not mime.startswith("image/"):
        logger.warning(f"Invalid image format: {mime}. Please select a valid image file.")
        return False
    return True


def validate_image_size(image_bytes: bytes, max_bytes: Optional[int] = None) -> bool:
    """Validate decoded image size against the configured limit.

    Args:
        image_bytes: Raw image bytes.
        max_bytes: Limit in bytes. Default: config.max_image_bytes.

    Returns:
        True if size is within the limit (inclusive), False otherwise.
    """
    limit = config.max_image_bytes if max_bytes is None else max_bytes
    if len(image_bytes) > limit:
        logger.warning(
            f"Image size {len(image_bytes) / (1024 * 1024):.2f}MB exceeds limit of "
            f"{limit / (1024 * 1024):.2f}MB"
        )
        return False
    return True


def compress_image(image_bytes: bytes, max_width: int = 1024) -> bytes:
    """Compress image for API transmission using Pillow.

    Re-encodes to JPEG (quality 85, optimized, progressive), converting
    transparent/palette modes to RGB and downscaling wider images.
    Images below COMPRESS_IMG_THRESHOLD_KB are returned untouched.

    Args:
        image_bytes: Raw image bytes to compress
        max_width: Maximum image width in pixels

    Returns:
        Compressed image bytes, or the original bytes if below threshold or on failure.
    """
    size_kb = len(image_bytes) / 1024
    if size_kb < config.COMPRESS_IMG_THRESHOLD_KB:
        logger.debug(
            f"Image size {size_kb:.1f}KB below compression threshold "
            f"({config.COMPRESS_IMG_THRESHOLD_KB}KB), skipping compression"
        )
        return image_bytes

    def _compress() -> bytes:
        img = Image.open(BytesIO(image_bytes))

        if img.mode in ("RGBA", "LA", "P"):
            rgb_img = Image.new("RGB", img.size, (255, 255, 255))
            if img.mode == "RGBA":
                rgb_img.paste(img, mask=img.split()[-1])
            else:
                rgb_img.paste(img.convert("RGB"))
            img = rgb_img
        elif img.mode != "RGB":
            img = img.convert("RGB")

        if img.width > max_width:
            ratio = max_width / img.width
            img = img.resize((max_width, int(img.height * ratio)), Image.Resampling.LANCZOS)

        output = BytesIO()
        img.save(output, format="JPEG", quality=85, optimize=True, progressive=True)
        compressed = output.getvalue()

        logger.debug(f"Image compressed: {size_kb:.1f}KB → {len(compressed) / 1024:.1f}KB")
        return compressed

    return safe_execute_sync(_compress, "Image compression", log_level="warning", default_return=image_bytes)
