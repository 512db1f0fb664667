"""Decoding and normalization of uploaded data-URL images.

Uploads arrive as ``"<prefix>,<base64 payload>"``. The payload is validated,
decoded, resized to a fixed resolution and re-encoded as JPEG so that the
images sent to the inference backend have a bounded size.
"""

import base64
import binascii
import io
import re
from typing import Optional

from PIL import Image

from ..errors import MISSING_IMAGE_MESSAGE, DecodeError, ValidationError
from .models import NormalizedImage, UploadedImage

TARGET_SIZE = (800, 600)
JPEG_QUALITY = 85

_BASE64_RE = re.compile(
    r"^(?:[A-Za-z0-9+/]{4})*(?:[A-Za-z0-9+/]{2}==|[A-Za-z0-9+/]{3}=)?$"
)


def extract_payload(data_url: str) -> str:
    """Return everything after the first comma of a data URL.

    A string without a comma is returned unchanged.
    """
    _prefix, sep, payload = data_url.partition(",")
    return payload if sep else data_url


def is_valid_base64(text: str) -> bool:
    """Check that text is standard, correctly padded base64.

    Empty strings are rejected.
    """
    if not text or len(text) % 4 != 0:
        return False
    return _BASE64_RE.fullmatch(text) is not None


def decode_upload(data_url: Optional[str]) -> UploadedImage:
    """Extract and decode the base64 payload of a data URL.

    Raises:
        ValidationError: If the payload is absent, empty or not valid base64
    """
    if not data_url:
        raise ValidationError(MISSING_IMAGE_MESSAGE)

    payload = extract_payload(data_url)
    if not is_valid_base64(payload):
        raise ValidationError()

    try:
        data = base64.b64decode(payload, validate=True)
    except binascii.Error as e:
        raise ValidationError() from e
    return UploadedImage(data=data)


def normalize_image(
    upload: UploadedImage,
    size: tuple[int, int] = TARGET_SIZE,
    quality: int = JPEG_QUALITY,
) -> NormalizedImage:
    """Resize an upload to exactly ``size`` and re-encode it as JPEG.

    The aspect ratio is not preserved. The same input bytes always produce
    the same output bytes.

    Raises:
        DecodeError: If the bytes cannot be read as an image
    """
    try:
        with Image.open(io.BytesIO(upload.data)) as img:
            img.load()
            # JPEG has no alpha or palette modes
            rgb = img.convert("RGB")
    except (Image.UnidentifiedImageError, Image.DecompressionBombError, OSError, ValueError) as e:
        raise DecodeError() from e

    resized = rgb.resize(size, Image.Resampling.LANCZOS)

    buffer = io.BytesIO()
    resized.save(buffer, format="JPEG", quality=quality)
    return NormalizedImage(data=buffer.getvalue(), width=size[0], height=size[1])


def standardize_data_url(data_url: Optional[str]) -> str:
    """Validate, normalize and base64-encode an uploaded data URL.

    Returns:
        Base64 text of the 800x600 JPEG

    Raises:
        ValidationError: If the payload is missing or not valid base64
        DecodeError: If the payload is not a readable image
    """
    return normalize_image(decode_upload(data_url)).base64
