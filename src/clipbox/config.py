import logging
import os
from dataclasses import dataclass
from pathlib import Path

from clipbox.models import BUFFER_COUNT

logger = logging.getLogger(__name__)


def _xdg_dir(env_var: str, fallback: str) -> Path:
    value = os.environ.get(env_var)
    if value:
        return Path(value)
    return Path.home() / fallback


CONFIG_DIR = _xdg_dir("XDG_CONFIG_HOME", ".config") / "clipbox"
CONFIG_PATH = Path(os.environ.get("CLIPBOX_CONFIG", CONFIG_DIR / "config.conf"))
CACHE_DIR = _xdg_dir("XDG_CACHE_HOME", ".cache") / "clipbox"
DEFAULT_DB_PATH = CACHE_DIR / "clipbox.db"
LOG_PATH = CACHE_DIR / "clipbox.log"

TRUE_VALUES = ("true", "1", "yes")
FALSE_VALUES = ("false", "0", "no")


@dataclass(frozen=True)
class Settings:
    limit: int = 500  # rows listed when no explicit limit is given
    pinned_marker: str = ""
    unpinned_marker: str = ""
    buffer_names: tuple[str, ...] = ("",) * BUFFER_COUNT
    separator_length: int = 66
    max_dedupe_search: int = 100  # 0 disables deduplication
    max_items: int = 500  # unpinned entries kept per buffer, 0 = unlimited
    min_store_length: int = 0
    db_path: str = ""
    preview_width: int = 65
    show_image_icons: bool = False
    mask_passwords: int = 0  # 0 = off, 1 = partial, 2 = full
    password_mask_color: str = "#DC2626"
    password_mask_char: str = "*"
    password_ignore_patterns: tuple[str, ...] = ()

    def buffer_name(self, buffer_id: int) -> str:
        name = ""
        if 1 <= buffer_id <= len(self.buffer_names):
            name = self.buffer_names[buffer_id - 1]
        return name or f"Buffer {buffer_id}"

    def resolved_db_path(self) -> Path:
        return Path(self.db_path) if self.db_path else DEFAULT_DB_PATH

    def icons_dir(self) -> Path:
        return self.resolved_db_path().parent / "icons"


def _parse_int(raw: str, minimum: int) -> int | None:
    try:
        value = int(raw)
    except ValueError:
        return None
    if value < minimum:
        return None
    return value


def _parse_bool(raw: str) -> bool | None:
    lowered = raw.lower()
    if lowered in TRUE_VALUES:
        return True
    if lowered in FALSE_VALUES:
        return False
    return None


def parse_settings(lines) -> Settings:
    """Build Settings from ``key = value`` lines.

    Unknown keys and invalid values are ignored so that the matching field
    keeps its default.
    """
    values: dict = {}
    buffer_names = list(Settings.buffer_names)
    ignore_patterns: list[str] = []

    for raw_line in lines:
        line = raw_line.strip()
        if not line or line.startswith("#"):
            continue
        key, sep, value = line.partition("=")
        if not sep:
            continue
        key = key.strip()
        value = value.strip()

        if key in ("limit", "separator_length", "max_dedupe_search", "preview_width"):
            parsed = _parse_int(value, minimum=1)
            if parsed is not None:
                values[key] = parsed
        elif key in ("max_items", "min_store_length"):
            parsed = _parse_int(value, minimum=0)
            if parsed is not None:
                values[key] = parsed
        elif key in ("pinned_marker", "unpinned_marker"):
            values[key] = value
        elif key.startswith("buffer_") and key.endswith("_name"):
            index = _parse_int(key[len("buffer_"):-len("_name")], minimum=1)
            if index is not None and index <= BUFFER_COUNT:
                buffer_names[index - 1] = value
        elif key == "db_path":
            values[key] = os.path.expandvars(value)
        elif key == "show_image_icons":
            parsed_bool = _parse_bool(value)
            if parsed_bool is not None:
                values[key] = parsed_bool
        elif key == "mask_passwords":
            parsed = _parse_int(value, minimum=0)
            if parsed is not None and parsed <= 2:
                values[key] = parsed
        elif key == "password_mask_color":
            if value:
                values[key] = value
        elif key == "password_mask_char":
            if value:
                values[key] = value[0]
        elif key == "password_ignore_pattern":
            if value:
                ignore_patterns.append(value)

    return Settings(
        buffer_names=tuple(buffer_names),
        password_ignore_patterns=tuple(ignore_patterns),
        **values,
    )


def load_settings(path: str | Path | None = None) -> Settings:
    """Load settings from the config file, falling back to defaults.

    A missing file is not an error. Any other failure to read it is logged
    and the defaults are used.
    """
    config_path = Path(path) if path else CONFIG_PATH
    try:
        with open(config_path, encoding="utf-8") as fh:
            return parse_settings(fh)
    except FileNotFoundError:
        return Settings()
    except (OSError, UnicodeDecodeError) as exc:
        logger.warning("Failed to read config %s: %s, using defaults", config_path, exc)
        return Settings()

