from __future__ import annotations

import base64
import io

import pytest
from PIL import Image

from conftest import make_jpeg

from src.eduface.eduface.core.exceptions import ValidationError
from src.eduface.eduface.imaging.frames import decode_image_payload, downscale_jpeg, encode_reference, strip_data_url


def _size(data: bytes):
    with Image.open(io.BytesIO(data)) as img:
        return img.size


def test_downscale_bounds_the_long_edge():
    assert _size(downscale_jpeg(make_jpeg(1200, 800), max_dim=400)) == (400, 267)


def test_small_images_are_not_upscaled():
    assert _size(downscale_jpeg(make_jpeg(200, 100), max_dim=400)) == (200, 100)


def test_decode_payload_variants():
    raw = make_jpeg()
    b64 = base64.b64encode(raw).decode("ascii")

    assert decode_image_payload(raw) == raw
    assert decode_image_payload(b64) == raw
    assert decode_image_payload("data:image/jpeg;base64," + b64) == raw

    for bad in (None, "", "***", b""):
        with pytest.raises(ValidationError):
            decode_image_payload(bad)


def test_unreadable_image():
    with pytest.raises(ValidationError):
        downscale_jpeg(b"definitely not a jpeg")


def test_reference_is_a_data_url():
    ref = encode_reference(make_jpeg(1280, 960))

    assert ref.startswith("data:image/jpeg;base64,")
    assert _size(base64.b64decode(strip_data_url(ref))) == (640, 480)
