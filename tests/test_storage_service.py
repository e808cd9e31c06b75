from io import BytesIO

import pytest
from PIL import Image

from storeaway.core.exceptions import ValidationError
from storeaway.services.storage_service import StorageService


def encode(image: Image.Image, fmt: str) -> bytes:
    buffer = BytesIO()
    image.save(buffer, format=fmt)
    return buffer.getvalue()


def test_transparent_png_becomes_bounded_jpeg():
    data = encode(Image.new("RGBA", (3200, 1200), (10, 20, 30, 0)), "PNG")

    prepared = Image.open(StorageService().prepare_image(data))

    assert prepared.format == "JPEG"
    assert prepared.mode == "RGB"
    assert prepared.size == (1600, 600)


def test_small_image_is_not_enlarged():
    data = encode(Image.new("RGB", (320, 240)), "JPEG")

    prepared = Image.open(StorageService().prepare_image(data))

    assert prepared.size == (320, 240)


def test_rejects_non_image():
    with pytest.raises(ValidationError):
        StorageService().prepare_image(b"%PDF-1.7 definitely not a photo")


def test_rejects_unsupported_format():
    data = encode(Image.new("RGB", (10, 10)), "BMP")

    with pytest.raises(ValidationError) as exc_info:
        StorageService().prepare_image(data)

    assert "BMP" in exc_info.value.detail


def test_rejects_oversized_upload():
    with pytest.raises(ValidationError):
        StorageService().prepare_image(b"\0" * (StorageService.MAX_IMAGE_SIZE + 1))


def test_key_from_public_url():
    service = StorageService()
    url = service.public_url("listings/abc/photos/1.jpg")

    assert service.key_from_url(url) == "listings/abc/photos/1.jpg"
    assert service.key_from_url("https://elsewhere.example.com/x.jpg") is None
