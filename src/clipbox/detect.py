"""Content classification for clipboard entries.

Every detector is an independent predicate over the stripped text of an
entry. Content that is not valid UTF-8, or is only whitespace, is never
classified as anything.
"""

import ipaddress
import os
import re
import unicodedata

from clipbox.utils import decode_text

MIN_PASSWORD_LENGTH = 8
MAX_PASSWORD_LENGTH = 50
MIN_CHAR_CLASSES = 3
MIN_PATH_COMPONENTS = 2

_MERIDIEM = r"(?:AM|PM|am|pm)"
_TIME = r"\d{1,2}:\d{2}(?::\d{2})?"

DATETIME_PATTERNS: list[re.Pattern] = [
    re.compile(r"\d{4}-\d{2}-\d{2}T\d{2}:\d{2}:\d{2}(?:Z|[+-]\d{2}:\d{2})", re.ASCII),  # 2024-01-15T10:30:00Z
    re.compile(r"\d{4}-\d{2}-\d{2}", re.ASCII),  # 2024-01-15
    re.compile(r"\d{1,2}[/-]\d{1,2}[/-]\d{4}", re.ASCII),  # 01/15/2024
    re.compile(rf"\d{{1,2}}[/-]\d{{1,2}}[/-]\d{{4}}\s+{_TIME}", re.ASCII),  # 01/15/2024 10:30
    re.compile(rf"\d{{1,2}}[/-]\d{{1,2}}[/-]\d{{4}}\s+{_TIME}\s+{_MERIDIEM}", re.ASCII),
    re.compile(_TIME, re.ASCII),  # 10:30:00
    re.compile(rf"{_TIME}\s+{_MERIDIEM}", re.ASCII),  # 09:15 AM
    re.compile(r"\d{4}-\d{2}-\d{2}\s+\d{1,2}:\d{2}:\d{2}", re.ASCII),  # 2024-01-15 10:30:00
    re.compile(rf"\d{{4}}-\d{{2}}-\d{{2}}\s+\d{{1,2}}:\d{{2}}:\d{{2}}\s+{_MERIDIEM}", re.ASCII),
    re.compile(rf"\d{{1,2}}\.\d{{1,2}}\.\d{{4}}(?:\s+{_TIME})?", re.ASCII),  # 15.01.2024 10:30
    re.compile(rf"\d{{1,2}}\.\d{{1,2}}\.\d{{4}}\s+{_TIME}\s+{_MERIDIEM}", re.ASCII),
    re.compile(r"\d{1,2}\s+[A-Za-z]{3,9}\s+\d{4}", re.ASCII),  # 15 Jan 2024
    re.compile(rf"\d{{1,2}}\s+[A-Za-z]{{3,9}}\s+\d{{4}}\s+{_TIME}", re.ASCII),
    re.compile(rf"\d{{1,2}}\s+[A-Za-z]{{3,9}}\s+\d{{4}}\s+{_TIME}\s+{_MERIDIEM}", re.ASCII),
    re.compile(r"\d{10}|\d{13}", re.ASCII),  # unix timestamp, seconds or milliseconds
]

EMAIL_PATTERN = re.compile(r"[a-zA-Z0-9._%+\-]+@[a-zA-Z0-9.\-]+\.[a-zA-Z]{2,}", re.ASCII)

UUID_PATTERN = re.compile(
    r"[0-9a-fA-F]{8}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{4}-[0-9a-fA-F]{12}", re.ASCII
)

URL_SCHEMES = (
    "http://",
    "https://",
    "ftp://",
    "ftps://",
    "ws://",
    "wss://",
    "file://",
    "mailto:",
    "tel:",
)


def _stripped_text(content: bytes | str) -> str | None:
    text = decode_text(content)
    if text is None:
        return None
    text = text.strip()
    return text or None


def is_datetime(content: bytes | str) -> bool:
    text = _stripped_text(content)
    if text is None:
        return False
    return any(pattern.fullmatch(text) for pattern in DATETIME_PATTERNS)


def is_email(content: bytes | str) -> bool:
    text = _stripped_text(content)
    return text is not None and EMAIL_PATTERN.fullmatch(text) is not None


def is_url(content: bytes | str) -> bool:
    text = _stripped_text(content)
    return text is not None and text.lower().startswith(URL_SCHEMES)


def is_ip(content: bytes | str) -> bool:
    text = _stripped_text(content)
    if text is None:
        return False
    try:
        ipaddress.ip_address(text)
    except ValueError:
        return False
    return True


def is_uuid(content: bytes | str) -> bool:
    text = _stripped_text(content)
    return text is not None and UUID_PATTERN.fullmatch(text) is not None


def _is_windows_drive(text: str) -> bool:
    # "C:" alone, or followed by a separator
    if len(text) < 2 or text[1] != ":" or not text[0].isalpha():
        return False
    return len(text) == 2 or text[2] in "/\\"


def _has_path_separators(text: str) -> bool:
    if "/" not in text and "\\" not in text:
        return False
    components = [part for part in re.split(r"[/\\]", text) if part]
    if len(components) >= MIN_PATH_COMPONENTS:
        return True
    return text.startswith(("/", "\\"))


def is_file_path(content: bytes | str) -> bool:
    """Check whether content looks like a Unix or Windows file path.

    Absolute paths, ``./`` and ``../`` relative paths, drive letters and UNC
    prefixes are paths. So is anything split into two or more components by
    ``/`` or ``\\``.
    """
    text = _stripped_text(content)
    if text is None:
        return False
    if os.path.normpath(text) in (".", ".."):
        return False
    if text.startswith("/"):
        return True
    if text.startswith(("./", ".\\", "../", "..\\")):
        return True
    if _is_windows_drive(text):
        return True
    if text.startswith("\\\\"):
        return True
    return _has_path_separators(text)


def _char_class_count(text: str) -> int:
    has_lower = has_upper = has_digit = has_special = False
    for ch in text:
        category = unicodedata.category(ch)
        if category == "Ll":
            has_lower = True
        elif category == "Lu":
            has_upper = True
        elif category == "Nd":
            has_digit = True
        elif category[0] in ("P", "S"):
            has_special = True
    return sum((has_lower, has_upper, has_digit, has_special))


def _matches_ignore_pattern(text: str, ignore_patterns) -> bool:
    for pattern in ignore_patterns:
        try:
            if re.search(pattern, text):
                return True
        except re.error:
            continue
    return False


def is_password(content: bytes | str, ignore_patterns=()) -> bool:
    """Guess whether content is a password.

    The rules are checked in order and the first failing rule rejects the
    text: length between 8 and 50 characters, not a date/time, no spaces,
    not an email, URL, IP address or UUID, no line breaks, only printable
    characters, not a file path, and at least three of the four character
    classes (lowercase, uppercase, digit, punctuation/symbol). Text matching
    any of ``ignore_patterns`` is never a password; patterns that fail to
    compile are skipped.

    Args:
        content: Raw entry content or text.
        ignore_patterns: User supplied regular expressions.

    Returns:
        True if the text looks like a password.
    """
    text = _stripped_text(content)
    if text is None:
        return False

    rules = (
        lambda: MIN_PASSWORD_LENGTH <= len(text) <= MAX_PASSWORD_LENGTH,
        lambda: not is_datetime(text),
        lambda: " " not in text,
        lambda: not is_email(text),
        lambda: not is_url(text),
        lambda: not is_ip(text),
        lambda: not is_uuid(text),
        lambda: "\n" not in text and "\r" not in text,
        lambda: text.isprintable(),
        lambda: not is_file_path(text),
        lambda: _char_class_count(text) >= MIN_CHAR_CLASSES,
        lambda: not _matches_ignore_pattern(text, ignore_patterns),
    )
    return all(rule() for rule in rules)
