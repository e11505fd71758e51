from io import BytesIO

from PIL import Image

from models.schemas import FileRef
from services.image_converter import (
    convert_to_jpeg,
    detect_image_type,
    needs_conversion,
    prepare_for_generation
)


def encode(fmt, mode="RGB"):
    buffer = BytesIO()
    Image.new(mode, (32, 32), (200, 10, 10, 255)[:len(mode)]).save(buffer, fmt)
    return buffer.getvalue()


def test_declared_type_wins():
    assert detect_image_type(b"whatever", "IMAGE/PNG") == "image/png"


def test_detect_from_bytes():
    assert detect_image_type(encode("PNG")) == "image/png"
    assert detect_image_type(b"not an image") == "image/jpeg"


def test_needs_conversion():
    assert needs_conversion("image/heic")
    assert needs_conversion("image/TIFF")
    assert not needs_conversion("image/png")
    assert not needs_conversion("image/jpeg")


def test_convert_rgba_to_jpeg():
    jpeg = convert_to_jpeg(encode("PNG", "RGBA"))
    with Image.open(BytesIO(jpeg)) as img:
        assert img.format == "JPEG"
        assert img.mode == "RGB"


def test_supported_formats_pass_through():
    original = FileRef("shirt.png", "image/png", encode("PNG"))
    assert prepare_for_generation(original) is original


def test_tiff_is_converted():
    prepared = prepare_for_generation(FileRef("scan.tiff", "image/tiff", encode("TIFF")))
    assert prepared.mime_type == "image/jpeg"
    assert prepared.name == "scan.jpg"
    with Image.open(BytesIO(prepared.data)) as img:
        assert img.format == "JPEG"


def test_failed_conversion_keeps_original():
    original = FileRef("broken.heic", "image/heic", b"not really heic")
    assert prepare_for_generation(original) is original


def test_generic_type_is_sniffed():
    assert detect_image_type(encode("PNG"), "application/octet-stream") == "image/png"


def test_untyped_upload_gets_type_from_bytes():
    original = FileRef("model", "application/octet-stream", encode("PNG"))

    prepared = prepare_for_generation(original)

    assert prepared.mime_type == "image/png"
    assert prepared.name == "model"
    assert prepared.data == original.data
