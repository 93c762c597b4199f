from __future__ import annotations

import base64
import binascii
import io

from PIL import Image, ImageOps, UnidentifiedImageError

from ..core.constants import REFERENCE_JPEG_QUALITY, REFERENCE_MAX_DIM, SCAN_JPEG_QUALITY, SCAN_MAX_DIM
from ..core.exceptions import ValidationError

DATA_URL_PREFIX = "data:image/jpeg;base64,"


def decode_image_payload(payload) -> bytes:
    """Accept raw bytes, a base64 string or a ``data:`` URL and return image bytes."""

    if isinstance(payload, (bytes, bytearray)):
        data = bytes(payload)
    elif isinstance(payload, str):
        text = payload.strip()
        if text.startswith("data:"):
            _, _, text = text.partition(",")
        try:
            data = base64.b64decode(text, validate=True)
        except (binascii.Error, ValueError):
            raise ValidationError("Image payload is not valid base64")
    else:
        raise ValidationError("Image payload is missing")

    if not data:
        raise ValidationError("Image payload is empty")
    return data


def strip_data_url(value: str) -> str:
    """Base64 body of a data URL (or the value itself when it has no header)."""

    head, sep, body = value.partition(",")
    return body if sep and head.startswith("data:") else value


def to_data_url(jpeg_bytes: bytes) -> str:
    return DATA_URL_PREFIX + base64.b64encode(jpeg_bytes).decode("ascii")


def downscale_jpeg(image_bytes: bytes, *, max_dim: int = SCAN_MAX_DIM, quality: int = SCAN_JPEG_QUALITY) -> bytes:
    """Shrink so the long edge is at most ``max_dim`` and re-encode as JPEG.

    Smaller images are never upscaled. EXIF orientation is applied first so
    phone captures are not sent sideways.
    """

    try:
        with Image.open(io.BytesIO(image_bytes)) as img:
            img = ImageOps.exif_transpose(img)
            if img.mode != "RGB":
                img = img.convert("RGB")

            width, height = img.size
            longest = max(width, height)
            if longest > max_dim:
                scale = max_dim / float(longest)
                size = (max(1, round(width * scale)), max(1, round(height * scale)))
                img = img.resize(size, Image.LANCZOS)

            out = io.BytesIO()
            img.save(out, format="JPEG", quality=int(quality))
            return out.getvalue()
    except (UnidentifiedImageError, OSError) as e:
        raise ValidationError(f"Unreadable image: {e}")


def encode_reference(image_bytes: bytes) -> str:
    """Normalise an enrollment capture into the stored reference data URL."""

    return to_data_url(downscale_jpeg(image_bytes, max_dim=REFERENCE_MAX_DIM, quality=REFERENCE_JPEG_QUALITY))
