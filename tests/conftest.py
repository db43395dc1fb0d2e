import io
import struct
import zlib
from dataclasses import replace

import pytest
from PIL import Image

from clipbox.config import Settings
from clipbox.icons import IconStore
from clipbox.storage import StorageManager


@pytest.fixture
def make_settings():
    """Factory fixture returning default Settings with selected overrides."""

    def _make_settings(**overrides) -> Settings:
        return replace(Settings(), **overrides)

    return _make_settings


@pytest.fixture
def icons(tmp_path):
    return IconStore(tmp_path / "icons")


@pytest.fixture
def make_storage(icons):
    managers = []

    def _make_storage(settings: Settings | None = None, db_path: str = ":memory:") -> StorageManager:
        mgr = StorageManager(db_path=db_path, settings=settings or Settings(), icons=icons)
        managers.append(mgr)
        return mgr

    yield _make_storage
    for mgr in managers:
        mgr.close()


@pytest.fixture
def storage(make_storage):
    return make_storage()


@pytest.fixture
def make_image():
    """Factory fixture encoding a solid-color image with Pillow."""

    def _make_image(width: int = 100, height: int = 50, fmt: str = "PNG") -> bytes:
        mode = "RGB" if fmt == "JPEG" else "RGBA"
        img = Image.new(mode, (width, height), (200, 30, 30) if mode == "RGB" else (200, 30, 30, 255))
        buf = io.BytesIO()
        img.save(buf, format=fmt)
        return buf.getvalue()

    return _make_image


@pytest.fixture
def make_png_header():
    """Factory fixture building a pixel-less PNG that declares the given size."""

    def _chunk(kind: bytes, payload: bytes) -> bytes:
        return struct.pack(">I", len(payload)) + kind + payload + struct.pack(">I", zlib.crc32(kind + payload))

    def _make_png_header(width: int, height: int) -> bytes:
        ihdr = struct.pack(">IIBBBBB", width, height, 8, 6, 0, 0, 0)
        return b"\x89PNG\r\n\x1a\n" + _chunk(b"IHDR", ihdr) + _chunk(b"IDAT", b"") + _chunk(b"IEND", b"")

    return _make_png_header
