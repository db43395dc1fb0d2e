import argparse
import logging
import os
import sqlite3
import sys

from clipbox import __version__
from clipbox.clipboard import copy_to_clipboard
from clipbox.config import CACHE_DIR, LOG_PATH, Settings, load_settings
from clipbox.exceptions import ClipboxError, InvalidEntryIdError
from clipbox.hidden_id import extract_id
from clipbox.listing import write_list
from clipbox.models import MAX_CONTENT_SIZE
from clipbox.storage import StorageManager
from clipbox.utils import ensure_dirs, format_size

logger = logging.getLogger(__name__)

# rofi custom keybindings report ROFI_RETV = 10 + (n - 1) for kb-custom-n
RETV_TOGGLE_PIN = 10
RETV_BUFFER_FIRST = 11
RETV_BUFFER_LAST = 15
RETV_DELETE = 16
RETV_PREVIOUS_BUFFER = 17
RETV_NEXT_BUFFER = 18

COMMAND_FLAGS = ("--store", "--list", "--rebuild-previews", "--vacuum", "--version", "-v", "--help", "-h")


def setup_logging() -> None:
    handlers: list[logging.Handler] = [logging.StreamHandler(sys.stderr)]
    file_error = None
    try:
        ensure_dirs(CACHE_DIR)
        handlers.append(logging.FileHandler(LOG_PATH))
    except OSError as exc:
        file_error = exc

    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s [%(levelname)s] %(name)s: %(message)s",
        handlers=handlers,
    )
    if file_error is not None:
        logger.warning("Cannot write log file %s: %s", LOG_PATH, file_error)


def store_from_stdin(storage: StorageManager) -> int:
    data = sys.stdin.buffer.read(MAX_CONTENT_SIZE + 1)
    storage.put(data)
    return 0


def list_entries(storage: StorageManager, settings: Settings, limit: int | None = None) -> int:
    write_list(storage, settings, limit)
    return 0


def copy_selection(storage: StorageManager, settings: Settings, selection: str) -> int:
    """Copy the selected entry's content out, or re-list if it has no id."""
    try:
        entry_id = extract_id(selection, os.environ.get("ROFI_INFO"))
    except InvalidEntryIdError:
        return list_entries(storage, settings)
    copy_to_clipboard(storage.get_content(entry_id))
    return 0


def handle_custom_key(storage: StorageManager, settings: Settings, retv: int, selection: str | None) -> int | None:
    """Run the action bound to a rofi custom key, then re-list the buffer.

    Returns None when ``retv`` is not one of the custom keys.
    """
    if retv in (RETV_TOGGLE_PIN, RETV_DELETE):
        entry_id = None
        if selection:
            try:
                entry_id = extract_id(selection, os.environ.get("ROFI_INFO"))
            except InvalidEntryIdError:
                entry_id = None
        if entry_id is not None:
            if retv == RETV_TOGGLE_PIN:
                storage.toggle_pin(entry_id)
            else:
                storage.delete_entry(entry_id)
    elif RETV_BUFFER_FIRST <= retv <= RETV_BUFFER_LAST:
        storage.switch_buffer(retv - RETV_BUFFER_FIRST + 1)
    elif retv == RETV_PREVIOUS_BUFFER:
        storage.previous_buffer()
    elif retv == RETV_NEXT_BUFFER:
        storage.next_buffer()
    else:
        return None
    return list_entries(storage, settings)


def _rofi_retv() -> int | None:
    raw = os.environ.get("ROFI_RETV")
    if not raw:
        return None
    try:
        return int(raw)
    except ValueError:
        return None


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="clipbox",
        description="clipbox - multi-buffer clipboard history for rofi",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Examples:
  wl-paste --watch clipbox --store        # record every copy
  rofi -modi clipbox:clipbox -show clipbox
  clipbox --list 50                       # print the rofi menu for 50 entries
  clipbox --rebuild-previews              # re-render after changing config
""",
    )
    commands = parser.add_mutually_exclusive_group()
    commands.add_argument("--store", action="store_true", help="store stdin in the current buffer")
    commands.add_argument(
        "--list", nargs="?", const=0, type=int, metavar="LIMIT", help="print the current buffer for rofi"
    )
    commands.add_argument("--rebuild-previews", action="store_true", help="re-render all previews")
    commands.add_argument("--vacuum", action="store_true", help="reclaim unused database space")
    parser.add_argument("-v", "--version", action="version", version=f"clipbox {__version__}")
    parser.add_argument("selection", nargs="?", help="row selected in rofi")
    return parser


def run(argv: list[str] | None = None) -> int:
    if argv is None:
        argv = sys.argv[1:]
    if argv and argv[0].split("=", 1)[0] not in COMMAND_FLAGS:
        # rofi passes the selected row verbatim; it may start with a dash
        argv = ["--", *argv]
    args = build_parser().parse_args(argv)

    settings = load_settings()
    try:
        with StorageManager(settings=settings) as storage:
            retv = _rofi_retv()
            if retv is not None:
                result = handle_custom_key(storage, settings, retv, args.selection)
                if result is not None:
                    return result

            if args.store:
                return store_from_stdin(storage)
            if args.rebuild_previews:
                updated = storage.rebuild_previews()
                print(f"Updated {updated} previews", file=sys.stderr)
                return 0
            if args.vacuum:
                before, after = storage.vacuum()
                print(f"Database size before VACUUM: {format_size(before)}", file=sys.stderr)
                print(f"Database size after VACUUM: {format_size(after)}", file=sys.stderr)
                if before > after:
                    print(f"Freed: {format_size(before - after)}", file=sys.stderr)
                return 0
            if args.selection:
                return copy_selection(storage, settings, args.selection)
            return list_entries(storage, settings, args.list)
    except (ClipboxError, sqlite3.Error, OSError) as exc:
        logger.error("Error: %s", exc)
        return 1


def main():
    setup_logging()
    sys.exit(run())


if __name__ == "__main__":
    main()
