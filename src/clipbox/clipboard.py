import logging
import subprocess

from clipbox.exceptions import ClipboardError

logger = logging.getLogger(__name__)

COPY_COMMAND = ["wl-copy"]


def copy_to_clipboard(content: bytes) -> None:
    """Hand content to the Wayland clipboard through wl-copy."""
    try:
        result = subprocess.run(COPY_COMMAND, input=content, capture_output=True)
    except OSError as exc:
        raise ClipboardError(f"failed to run {COPY_COMMAND[0]}: {exc}") from exc
    if result.returncode != 0:
        stderr = result.stderr.decode("utf-8", errors="replace").strip()
        raise ClipboardError(f"failed to copy to clipboard: {stderr or result.returncode}")
    logger.debug("Copied %d bytes to the clipboard", len(content))
