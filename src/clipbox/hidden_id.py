"""Invisible id encoding embedded in rofi row text.

rofi hands back the selected row's text, so rows carrying an icon also embed
their entry id as zero-width characters: a U+200B delimiter, one variation
selector (U+FE00 + digit) per decimal digit, and a closing U+200B. Rows already
cached by rofi depend on these exact code points.
"""

from clipbox.exceptions import InvalidEntryIdError

DELIMITER = "\u200b"
DIGIT_BASE = 0xFE00


def encode_hidden(entry_id: int) -> str:
    digits = "".join(chr(DIGIT_BASE + int(d)) for d in str(entry_id) if d.isdigit())
    return f"{DELIMITER}{digits}{DELIMITER}"


def decode_hidden(text: str) -> int | None:
    """Recover an id written by :func:`encode_hidden`.

    Returns None when no delimiter pair is present or no positive id can be
    read between them.
    """
    start = text.find(DELIMITER)
    if start == -1:
        return None
    end = text.find(DELIMITER, start + 1)
    if end == -1:
        return None

    digits = "".join(
        str(ord(ch) - DIGIT_BASE)
        for ch in text[start + 1:end]
        if DIGIT_BASE <= ord(ch) <= DIGIT_BASE + 9
    )
    if not digits:
        return None
    entry_id = int(digits)
    return entry_id if entry_id > 0 else None


def _positive_int(raw: str | None) -> int | None:
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        return None
    return value if value > 0 else None


def extract_id(selection: str, side_channel: str | None = None) -> int:
    """Resolve the entry id behind a selected row.

    Args:
        selection: The row text rofi passed back.
        side_channel: The row's info field (``ROFI_INFO``), preferred when it
            holds a positive integer.

    Raises:
        InvalidEntryIdError: Neither source yields a positive id.
    """
    entry_id = _positive_int(side_channel)
    if entry_id is not None:
        return entry_id
    entry_id = decode_hidden(selection)
    if entry_id is not None:
        return entry_id
    raise InvalidEntryIdError("selection carries no entry id and ROFI_INFO is not set")
