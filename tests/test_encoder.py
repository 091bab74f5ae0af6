"""SizeConstrainedEncoder 单元测试。"""

from __future__ import annotations

import io

import pytest
from PIL import Image, ImageChops

from modules.pipelines.encoder import SizeConstrainedEncoder
from modules.pipelines.errors import EncodeFailure
from modules.utils.image_utils import data_uri_payload_size


def textured(size=(320, 320), sigma=60) -> Image.Image:
    """Noise-heavy RGB raster that compresses poorly."""
    noise = Image.effect_noise(size, sigma)
    gradient = Image.linear_gradient("L").resize(size)
    return Image.merge("RGB", (noise, gradient, ImageChops.invert(noise)))


@pytest.fixture
def encoder() -> SizeConstrainedEncoder:
    return SizeConstrainedEncoder(initial_quality=0.95, quality_floor=0.10, quality_step=0.05)


def test_generous_budget_keeps_initial_quality(encoder):
    result = encoder.encode(textured(), byte_budget=50 * 1024 * 1024)

    assert result.format == "JPEG"
    assert result.quality == pytest.approx(0.95)
    assert result.extension == "jpg"
    assert result.mime_type == "image/jpeg"


def test_budget_reachable_is_met(encoder):
    raster = textured()
    budget = encoder.encode_at(raster, 0.5).size_bytes

    result = encoder.encode(raster, budget)

    assert result.size_bytes <= budget
    assert result.quality >= 0.5 - 1e-9


def test_budget_below_floor_returns_floor_encoding(encoder):
    raster = textured()
    floor = encoder.encode_at(raster, 0.10)

    first = encoder.encode(raster, byte_budget=1)
    second = encoder.encode(raster, byte_budget=1)

    assert first.quality == pytest.approx(0.10)
    assert first.size_bytes == floor.size_bytes
    assert second.size_bytes == first.size_bytes


def test_lower_quality_never_grows_output(encoder):
    raster = textured()
    sizes = [encoder.encode_at(raster, quality).size_bytes for quality in (0.95, 0.75, 0.5, 0.25, 0.1)]

    assert sizes == sorted(sizes, reverse=True)


def test_output_decodes_to_same_dimensions(encoder):
    raster = textured((210, 140))

    result = encoder.encode(raster, byte_budget=10_000)

    with Image.open(io.BytesIO(result.data)) as decoded:
        assert decoded.size == (210, 140)
        assert decoded.format == "JPEG"
    assert (result.width, result.height) == (210, 140)


def test_data_uri_payload_matches_byte_size(encoder):
    result = encoder.encode(textured((97, 61)), byte_budget=1024 * 1024)

    assert result.data_uri.startswith("data:image/jpeg;base64,")
    assert data_uri_payload_size(result.data_uri) == result.size_bytes


def test_alpha_raster_prefers_smaller_lossless(encoder):
    raster = Image.new("RGBA", (64, 64), (0, 0, 0, 0))

    result = encoder.encode(raster, byte_budget=1024 * 1024)

    assert result.format == "PNG"
    assert result.extension == "png"
    assert result.quality is None


def test_alpha_raster_prefers_smaller_lossy_even_over_budget(encoder):
    noise = textured((256, 256))
    raster = noise.convert("RGBA")
    raster.putalpha(Image.effect_noise((256, 256), 80))

    result = encoder.encode(raster, byte_budget=1)

    assert result.format == "JPEG"
    assert result.size_bytes < encoder.encode_lossless(raster).size_bytes


def test_alpha_is_flattened_onto_white(encoder):
    raster = Image.new("RGBA", (32, 32), (255, 0, 0, 0))

    result = encoder.encode_at(raster, 0.95)

    with Image.open(io.BytesIO(result.data)) as decoded:
        assert min(decoded.convert("RGB").getpixel((16, 16))) > 240


def test_encoder_errors_are_wrapped(encoder):
    class BrokenRaster:
        mode = "RGB"
        width = 10
        height = 10
        info: dict = {}

        def save(self, *args, **kwargs):
            raise OSError("encoder unavailable")

    with pytest.raises(EncodeFailure):
        encoder.encode(BrokenRaster(), byte_budget=1000)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"initial_quality": 0.5, "quality_floor": 0.6},
        {"quality_floor": 0.0},
        {"quality_step": 0.0},
    ],
)
def test_invalid_quality_settings(kwargs):
    with pytest.raises(ValueError):
        SizeConstrainedEncoder(**kwargs)
