from pathlib import Path

ELLIPSIS = "…"
SIZE_UNITS = ("B", "KiB", "MiB", "GiB")

_MARKUP_ESCAPES = str.maketrans({"&": "&amp;", "<": "&lt;", ">": "&gt;"})


def decode_text(content: bytes | str) -> str | None:
    """Return content as text, or None when it is not valid UTF-8."""
    if isinstance(content, str):
        return content
    try:
        return content.decode("utf-8")
    except UnicodeDecodeError:
        return None


def strip_content(content: bytes) -> bytes:
    """Trim surrounding whitespace, Unicode-aware when content is UTF-8 text."""
    text = decode_text(content)
    if text is None:
        return content.strip()
    return text.strip().encode("utf-8")


def escape_markup(text: str) -> str:
    return text.translate(_MARKUP_ESCAPES)


def collapse_whitespace(text: str) -> str:
    return " ".join(text.split())


def truncate_text(text: str, max_len: int, ellipsis: str = ELLIPSIS) -> str:
    if len(text) <= max_len:
        return text
    return text[:max_len] + ellipsis


def format_size(size: int) -> str:
    value = float(size)
    unit = 0
    while value >= 1024 and unit < len(SIZE_UNITS) - 1:
        value /= 1024
        unit += 1
    return f"{value:.2f} {SIZE_UNITS[unit]}"


def ensure_dirs(*dirs: Path) -> None:
    for directory in dirs:
        directory.mkdir(parents=True, exist_ok=True)
