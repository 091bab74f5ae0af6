"""image_utils 单元测试。"""

from __future__ import annotations

import io

import pytest
from PIL import Image

from modules.pipelines.errors import DecodeFailure
from modules.pipelines.models import SourceFile
from modules.utils.image_utils import (
    data_uri_payload_size,
    decode_image,
    has_alpha,
    load_source,
    sanitize_stem,
)


def encode(image: Image.Image, fmt: str, **params) -> bytes:
    buffer = io.BytesIO()
    image.save(buffer, format=fmt, **params)
    return buffer.getvalue()


def test_decode_jpeg_as_rgb():
    data = encode(Image.new("RGB", (40, 30), "navy"), "JPEG")

    image = decode_image(data, "a.jpg")

    assert image.mode == "RGB"
    assert image.size == (40, 30)


def test_decode_keeps_transparency():
    data = encode(Image.new("RGBA", (8, 8), (0, 0, 0, 0)), "PNG")

    assert decode_image(data, "a.png").mode == "RGBA"


def test_decode_palette_with_transparency():
    palette = Image.new("P", (8, 8), 0)
    data = encode(palette, "PNG", transparency=0)

    assert decode_image(data, "p.png").mode == "RGBA"


def test_decode_applies_exif_orientation():
    image = Image.new("RGB", (60, 20), "white")
    exif = Image.Exif()
    exif[0x0112] = 6  # rotate 90 CW on display
    data = encode(image, "JPEG", exif=exif.tobytes())

    assert decode_image(data, "rotated.jpg").size == (20, 60)


@pytest.mark.parametrize("payload", [b"", b"not an image", encode(Image.new("RGB", (50, 50)), "PNG")[:40]])
def test_decode_failure(payload):
    with pytest.raises(DecodeFailure) as excinfo:
        decode_image(payload, "broken.png")

    assert excinfo.value.source_name == "broken.png"


def test_load_source_keeps_identity():
    file = SourceFile(name="dress.png", data=encode(Image.new("RGB", (12, 34)), "PNG"))

    source = load_source(file, index=3)

    assert (source.name, source.index, source.width, source.height) == ("dress.png", 3, 12, 34)


def test_source_file_from_path(tmp_path):
    path = tmp_path / "shoe.png"
    path.write_bytes(encode(Image.new("RGB", (5, 5)), "PNG"))

    file = SourceFile.from_path(path)

    assert file.name == "shoe.png"
    assert file.data == path.read_bytes()


@pytest.mark.parametrize(
    "filename,expected",
    [
        ("blue shirt.png", "blue_shirt"),
        ("archive.tar.gz", "archive.tar"),
        ("C:\\photos\\coat.JPEG", "coat"),
        ("../etc/passwd", "passwd"),
        (".png", "image"),
        ("çalça.jpg", "al_a"),
    ],
)
def test_sanitize_stem(filename, expected):
    assert sanitize_stem(filename) == expected


@pytest.mark.parametrize(
    "uri,expected",
    [
        ("data:image/png;base64,QUJD", 3),
        ("data:image/png;base64,QUI=", 2),
        ("data:image/png;base64,QQ==", 1),
        ("data:image/png;base64,", 0),
        ("no-comma", 0),
    ],
)
def test_data_uri_payload_size(uri, expected):
    assert data_uri_payload_size(uri) == expected


def test_has_alpha():
    assert has_alpha(Image.new("RGBA", (1, 1)))
    assert has_alpha(Image.new("LA", (1, 1)))
    assert not has_alpha(Image.new("RGB", (1, 1)))
    assert not has_alpha(Image.new("P", (1, 1)))
