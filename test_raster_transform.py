"""Tests for the raster watermark strategy."""

import asyncio

import pytest
from PIL import Image, ImageChops

from mcp_brand_converter.brand_config import Template
from mcp_brand_converter.transforms import watermark_image
from mcp_brand_converter.transforms.raster import watermark_origin

WIDTH, HEIGHT = 400, 200


@pytest.fixture
def png_file(tmp_path):
    image = Image.new("RGB", (WIDTH, HEIGHT), (255, 255, 255))
    for x in range(0, WIDTH, 10):
        image.putpixel((x, 5), (25, 113, 194))
    path = tmp_path / "excalidraw-export.png"
    image.save(path, format="PNG")
    return path


@pytest.mark.parametrize("corner, expected", [
    ("top-left", (20, 20)),
    ("top-right", (280, 20)),
    ("bottom-left", (20, 160)),
    ("bottom-right", (280, 160)),
    ("center", (280, 160)),
])
def test_watermark_origin(corner, expected):
    assert watermark_origin(corner, (WIDTH, HEIGHT), (100, 20)) == expected


def test_no_watermark_keeps_pixels(png_file, tmp_path, brand):
    from mcp_brand_converter.converter import BrandConverter

    output = tmp_path / "out.png"

    result = asyncio.run(BrandConverter(brand).convert(png_file, "presentation", output))

    assert result.metadata == {"processMethod": "raster", "templateApplied": "presentation"}
    with Image.open(png_file) as original, Image.open(output) as branded:
        assert branded.size == original.size
        assert branded.mode == original.mode
        assert branded.tobytes() == original.tobytes()


def test_no_watermark_keeps_jpeg_pixels(tmp_path, converter):
    source = tmp_path / "export.jpg"
    image = Image.new("RGB", (64, 64), (255, 255, 255))
    for x in range(0, 64, 4):
        image.putpixel((x, x), (25, 113, 194))
    image.save(source, format="JPEG", quality=80)
    output = tmp_path / "out.jpg"

    result = asyncio.run(converter.convert(source, "presentation", output))

    assert result.success
    assert output.read_bytes() == source.read_bytes()
    with Image.open(source) as original, Image.open(output) as branded:
        assert branded.tobytes() == original.tobytes()


def test_watermark_only_touches_its_corner(png_file, tmp_path, converter):
    output = tmp_path / "out.png"

    result = asyncio.run(converter.convert(png_file, "excalidraw", output))

    assert result.success
    with Image.open(png_file) as original, Image.open(output) as branded:
        assert branded.mode == "RGB"
        diff = ImageChops.difference(original.convert("RGB"), branded.convert("RGB"))
        bbox = diff.getbbox()
        assert bbox is not None
        left, top, right, bottom = bbox
        # Bottom-right corner, inside the 20px margin
        assert left > WIDTH // 2
        assert top > HEIGHT // 2
        assert right <= WIDTH - 20
        assert bottom <= HEIGHT - 20


def test_watermark_corner_from_template(brand):
    image = Image.new("RGBA", (WIDTH, HEIGHT), (255, 255, 255, 255))
    template = Template(name="tl", watermark_position="top-left")

    branded = watermark_image(image, template, brand)

    bbox = ImageChops.difference(image, branded).getbbox()
    assert bbox is not None
    assert bbox[0] >= 20 and bbox[1] >= 20
    assert bbox[2] < WIDTH // 2 and bbox[3] < HEIGHT // 2
    assert branded.mode == "RGBA"


def test_disabled_watermark_returns_same_image(brand):
    image = Image.new("RGB", (10, 10))
    template = Template(name="off", add_watermark=False)

    assert watermark_image(image, template, brand) is image


def test_jpeg_output(png_file, tmp_path, converter):
    output = tmp_path / "out.jpg"

    asyncio.run(converter.convert(png_file, "excalidraw", output))

    with Image.open(output) as branded:
        assert branded.format == "JPEG"
        assert branded.size == (WIDTH, HEIGHT)


def test_svg_target_gets_png_sibling(png_file, tmp_path, converter):
    output = tmp_path / "out.svg"

    result = asyncio.run(converter.convert(png_file, "excalidraw", output))

    assert result.metadata["outputFile"] == "out.png"
    assert not output.exists()
    with Image.open(tmp_path / "out.png") as branded:
        assert branded.format == "PNG"


def test_corrupt_image_raises(tmp_path, converter):
    from mcp_brand_converter.errors import ArtifactIOError

    source = tmp_path / "broken.png"
    source.write_bytes(b"definitely not a png")

    with pytest.raises(ArtifactIOError):
        asyncio.run(converter.convert(source, "excalidraw", tmp_path / "out.png"))
