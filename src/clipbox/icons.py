import io
from pathlib import Path

from PIL import Image, UnidentifiedImageError

from clipbox.exceptions import IconError
from clipbox.utils import ensure_dirs

MAX_ICON_SIZE = 64  # pixels, larger side
HEADER_SCAN_LIMIT = 1024 * 1024  # bytes read when sniffing image headers

# Only these formats are sniffed; several other Pillow plugins match plain text.
SUPPORTED_FORMATS = ("PNG", "JPEG", "GIF", "WEBP")

_DECODE_ERRORS = (UnidentifiedImageError, Image.DecompressionBombError, OSError, EOFError, ValueError, SyntaxError)

_FORMAT_NAMES = {"jpeg": "jpg", "jpg": "jpg", "png": "png", "gif": "gif"}


def _read_header(data: bytes) -> tuple[str, int, int]:
    with Image.open(io.BytesIO(data[:HEADER_SCAN_LIMIT]), formats=SUPPORTED_FORMATS) as img:
        width, height = img.size
        return (img.format or "").upper(), width, height


def _read_header_unguarded(data: bytes) -> tuple[str, int, int] | None:
    # Pillow's pixel-count limit guards full decodes; only the header is read here.
    limit = Image.MAX_IMAGE_PIXELS
    Image.MAX_IMAGE_PIXELS = None
    try:
        return _read_header(data)
    except _DECODE_ERRORS:
        return None
    finally:
        Image.MAX_IMAGE_PIXELS = limit


def image_info(data: bytes) -> tuple[str, int, int] | None:
    """Read format and dimensions from the image header only.

    Returns:
        (format, width, height) with the format upper-cased as Pillow names
        it, or None when the data is not a supported image.
    """
    try:
        return _read_header(data)
    except Image.DecompressionBombError:
        return _read_header_unguarded(data)
    except _DECODE_ERRORS:
        return None


def detect_format(data: bytes) -> tuple[str, bool]:
    info = image_info(data)
    if info is None:
        return "", False
    name = info[0].lower()
    return _FORMAT_NAMES.get(name, name), True


def icon_dimensions(width: int, height: int) -> tuple[int, int]:
    """Scale (width, height) so the larger side is at most MAX_ICON_SIZE.

    Smaller images keep their size.
    """
    if width > height:
        if width <= MAX_ICON_SIZE:
            return width, height
        return MAX_ICON_SIZE, max(1, height * MAX_ICON_SIZE // width)
    if height <= MAX_ICON_SIZE:
        return width, height
    return max(1, width * MAX_ICON_SIZE // height), MAX_ICON_SIZE


class IconStore:
    """Thumbnail PNGs for image entries, one file per entry id."""

    def __init__(self, icons_dir: str | Path):
        self._dir = Path(icons_dir)

    @property
    def directory(self) -> Path:
        return self._dir

    def _path_for(self, entry_id: int) -> Path:
        return self._dir / f"{entry_id}.png"

    def icon_path(self, entry_id: int) -> str | None:
        path = self._path_for(entry_id)
        if not path.is_file():
            return None
        return str(path.resolve())

    def generate_icon(self, entry_id: int, data: bytes) -> str:
        """Decode an image, shrink it to icon size and save it as PNG.

        Args:
            entry_id: Id of the entry owning the icon.
            data: Raw image bytes.

        Returns:
            Absolute path of the written icon.

        Raises:
            IconError: The image could not be decoded or the icon not written.
        """
        try:
            with Image.open(io.BytesIO(data), formats=SUPPORTED_FORMATS) as img:
                img.load()
                size = icon_dimensions(*img.size)
                icon = img.convert("RGBA")
        except _DECODE_ERRORS as exc:
            raise IconError(f"failed to decode image: {exc}") from exc

        if icon.size != size:
            icon = icon.resize(size, Image.Resampling.BILINEAR)

        path = self._path_for(entry_id)
        try:
            ensure_dirs(self._dir)
            icon.save(path, format="PNG")
        except OSError as exc:
            raise IconError(f"failed to write icon {path}: {exc}") from exc
        return str(path.resolve())

    def delete_icon(self, entry_id: int) -> None:
        self._path_for(entry_id).unlink(missing_ok=True)
