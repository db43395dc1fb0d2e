from clipbox.config import Settings
from clipbox.detect import is_password
from clipbox.hidden_id import encode_hidden
from clipbox.icons import image_info
from clipbox.utils import collapse_whitespace, decode_text, escape_markup, format_size, truncate_text

PASSWORD_PLACEHOLDER = "[[ PASSWORD ]]"
MASK_KEEP_HEAD = 2
MASK_KEEP_TAIL = 4
MIN_MASK_LENGTH = MASK_KEEP_HEAD + MASK_KEEP_TAIL

MASK_OFF = 0
MASK_PARTIAL = 1
MASK_FULL = 2


def mask_password(password: str, mode: int, mask_color: str, mask_char: str) -> str:
    """Hide a password for display.

    Mode 2 replaces it with a fixed placeholder. Mode 1 keeps the first 2 and
    last 4 characters and replaces the rest with ``mask_char`` inside a
    colored Pango span. Passwords too short to mask are shown as they are.
    """
    if mode == MASK_FULL:
        return PASSWORD_PLACEHOLDER

    if len(password) < MIN_MASK_LENGTH:
        return escape_markup(password)

    head = escape_markup(password[:MASK_KEEP_HEAD])
    tail = escape_markup(password[-MASK_KEEP_TAIL:])
    masked = escape_markup(mask_char * (len(password) - MIN_MASK_LENGTH))
    color = escape_markup(mask_color)
    return f"{head}<span color='{color}'>{masked}</span>{tail}"


def _text_preview(text: str, settings: Settings) -> str:
    text = text.strip()
    if settings.mask_passwords > MASK_OFF and is_password(text, settings.password_ignore_patterns):
        text = truncate_text(text, settings.preview_width)
        return mask_password(
            text,
            settings.mask_passwords,
            settings.password_mask_color,
            settings.password_mask_char,
        )
    text = truncate_text(collapse_whitespace(text), settings.preview_width)
    return escape_markup(text)


def preview_text(content: bytes, settings: Settings) -> str:
    """Render the visible part of an entry's row, without marker or metadata."""
    info = image_info(content)
    if info is not None:
        fmt, width, height = info
        return f"[[ {fmt}: {width}x{height} • {format_size(len(content))} ]]"

    text = decode_text(content)
    if text is None:
        return f"[[ BIN: {format_size(len(content))} ]]"
    return _text_preview(text, settings)


def render_preview(
    entry_id: int,
    content: bytes,
    pinned: bool,
    icon_path: str | None,
    settings: Settings,
) -> str:
    """Build the full rofi row stored as an entry's preview.

    The row is the pin marker and the rendered content followed by rofi
    metadata fields. Rows with an icon also carry the hidden id encoding
    right after the visible text.
    """
    marker = settings.pinned_marker if pinned else settings.unpinned_marker
    row = f"{marker} {preview_text(content, settings)}"

    if icon_path:
        row += f"{encode_hidden(entry_id)}\x00icon\x1f{icon_path}"
    return f"{row}\x00info\x1f{entry_id}"
