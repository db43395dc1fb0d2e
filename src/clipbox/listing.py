"""rofi script-mode listing of the current buffer."""

import sys

from clipbox.config import Settings
from clipbox.storage import StorageManager

PINNED_LIST_LIMIT = 1000
SEPARATOR_CHAR = "─"


def option(key: str, value: str) -> str:
    return f"\x00{key}\x1f{value}\n"


def render_list(storage: StorageManager, settings: Settings, limit: int | None = None) -> str:
    """Render the rofi menu for the current buffer.

    The header options come first, then up to ``limit`` rows newest first,
    then the buffer's pinned rows again behind a separator. Separator and
    placeholder rows carry info ``0`` so selecting them does nothing.
    """
    if limit is None or limit <= 0:
        limit = settings.limit

    buffer_id = storage.current_buffer()
    lines = [
        option("use-hot-keys", "true"),
        option("keep-selection", "true"),
        option("markup-rows", "true"),
        option("prompt", settings.buffer_name(buffer_id)),
    ]

    rows = storage.get_previews(buffer_id, limit)
    pinned_rows = storage.get_previews(buffer_id, PINNED_LIST_LIMIT, pinned_only=True)

    lines.extend(f"{row}\n" for row in rows)
    if pinned_rows:
        if rows:
            lines.append(f"{SEPARATOR_CHAR * settings.separator_length}\x00info\x1f0\n")
        lines.extend(f"{row}\n" for row in pinned_rows)
    if not rows and not pinned_rows:
        lines.append(f" (No entries in buffer {buffer_id})\x00info\x1f0\n")

    return "".join(lines)


def write_list(storage: StorageManager, settings: Settings, limit: int | None = None, stream=None) -> None:
    stream = stream or sys.stdout
    stream.write(render_list(storage, settings, limit))
    stream.flush()
