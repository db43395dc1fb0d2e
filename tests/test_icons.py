from pathlib import Path

import pytest
from PIL import Image

from clipbox.exceptions import IconError
from clipbox.icons import MAX_ICON_SIZE, detect_format, icon_dimensions, image_info


class TestDetectFormat:
    def test_png(self, make_image):
        assert detect_format(make_image(fmt="PNG")) == ("png", True)

    def test_jpeg_reported_as_jpg(self, make_image):
        assert detect_format(make_image(fmt="JPEG")) == ("jpg", True)

    def test_gif(self, make_image):
        assert detect_format(make_image(fmt="GIF")) == ("gif", True)

    def test_other_formats_pass_through(self, make_image):
        assert detect_format(make_image(fmt="WEBP")) == ("webp", True)

    def test_text_is_not_an_image(self):
        assert detect_format(b"hello world") == ("", False)

    def test_truncated_header(self):
        assert detect_format(b"\x89PNG\r\n\x1a\n") == ("", False)


class TestImageInfo:
    def test_reads_dimensions(self, make_image):
        assert image_info(make_image(320, 200)) == ("PNG", 320, 200)

    def test_header_of_large_image(self, make_image):
        data = make_image(64, 64) + b"\x00" * (2 * 1024 * 1024)
        assert image_info(data) == ("PNG", 64, 64)

    def test_not_an_image(self):
        assert image_info(b"\x00\x01\x02") is None

    def test_dimensions_beyond_pixel_limit(self, make_png_header):
        assert image_info(make_png_header(20000, 20000)) == ("PNG", 20000, 20000)

    def test_pixel_limit_restored(self, make_png_header):
        limit = Image.MAX_IMAGE_PIXELS
        image_info(make_png_header(20000, 20000))
        assert Image.MAX_IMAGE_PIXELS == limit

    def test_full_decode_keeps_pixel_limit(self, icons, make_png_header):
        with pytest.raises(IconError):
            icons.generate_icon(1, make_png_header(20000, 20000))


class TestIconDimensions:
    def test_landscape(self):
        assert icon_dimensions(200, 100) == (64, 32)

    def test_portrait(self):
        assert icon_dimensions(100, 400) == (16, 64)

    def test_square(self):
        assert icon_dimensions(128, 128) == (64, 64)

    def test_small_image_not_upscaled(self):
        assert icon_dimensions(20, 10) == (20, 10)

    def test_extreme_ratio_keeps_one_pixel(self):
        assert icon_dimensions(1000, 2) == (64, 1)


class TestIconStore:
    def test_generate_icon_writes_png(self, icons, make_image):
        path = icons.generate_icon(7, make_image(300, 150))
        assert Path(path).is_absolute()
        assert Path(path).name == "7.png"
        with Image.open(path) as img:
            assert img.format == "PNG"
            assert img.size == (MAX_ICON_SIZE, 32)

    def test_generate_icon_from_jpeg(self, icons, make_image):
        path = icons.generate_icon(3, make_image(50, 40, fmt="JPEG"))
        with Image.open(path) as img:
            assert img.size == (50, 40)

    def test_generate_icon_creates_directory(self, icons, make_image):
        assert not icons.directory.exists()
        icons.generate_icon(1, make_image())
        assert icons.directory.is_dir()

    def test_generate_icon_rejects_non_image(self, icons):
        with pytest.raises(IconError):
            icons.generate_icon(1, b"not an image")

    def test_icon_path_missing(self, icons):
        assert icons.icon_path(99) is None

    def test_icon_path_after_generate(self, icons, make_image):
        path = icons.generate_icon(5, make_image())
        assert icons.icon_path(5) == path

    def test_delete_icon(self, icons, make_image):
        icons.generate_icon(5, make_image())
        icons.delete_icon(5)
        assert icons.icon_path(5) is None

    def test_delete_icon_is_idempotent(self, icons):
        icons.delete_icon(5)
        icons.delete_icon(5)
